"""
Domain exceptions for the project lifecycle engine.

The hierarchy mirrors the error taxonomy callers need to tell apart:
configuration problems (fatal), blocked transitions (recoverable),
invalid documents, unsupported phase operations and storage failures.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from phasegate.domain.models import GuardResult


class PhasegateError(Exception):
    """Base class for every error raised by phasegate."""


# =============================================================================
# CONFIGURATION ERRORS (fatal, never retried)
# =============================================================================


class ConfigurationError(PhasegateError):
    """Raised when a project type, state graph or settings file is invalid."""


class UnknownProjectTypeError(ConfigurationError):
    """Raised when a document declares a type that is not registered."""

    def __init__(self, project_type: str, available: list[str]):
        names = ", ".join(available) or "(none)"
        super().__init__(
            f"unknown project type: '{project_type}'. Registered types: {names}"
        )
        self.project_type = project_type
        self.available = available


class DuplicateProjectTypeError(ConfigurationError):
    """Raised when the same type name is registered twice."""

    def __init__(self, project_type: str):
        super().__init__(f"project type '{project_type}' is already registered")
        self.project_type = project_type


class StateNotConfiguredError(ConfigurationError):
    """Raised when the machine is asked to act from a state it does not know."""

    def __init__(self, state: str):
        super().__init__(f"state '{state}' is not configured in the state machine")
        self.state = state


# =============================================================================
# TRANSITION ERRORS (recoverable)
# =============================================================================


class TransitionError(PhasegateError):
    """Base class for transitions that could not be performed."""


class GuardFailedError(TransitionError):
    """
    Raised when a transition's guard returned false.

    Carries the guard description and feedback so the caller knows which
    mutation is still missing.
    """

    def __init__(self, state: str, event: str, result: "GuardResult"):
        detail = f": {result.feedback}" if result.feedback else ""
        super().__init__(
            f"blocked: guard '{result.guard_name or 'unnamed'}' failed for event "
            f"'{event}' from state '{state}'{detail}"
        )
        self.state = state
        self.event = event
        self.result = result


class InvalidTransitionError(TransitionError):
    """Raised when no edge exists for (current state, event)."""

    def __init__(self, state: str, event: str, permitted: list[str]):
        options = ", ".join(permitted) or "(none)"
        super().__init__(
            f"event '{event}' is not valid from state '{state}'. "
            f"Configured events: {options}"
        )
        self.state = state
        self.event = event


class NoTransitionConfiguredError(TransitionError):
    """Raised by advance() when the current state has no determiner (terminal)."""

    def __init__(self, state: str):
        super().__init__(
            f"no transition configured for state '{state}' (terminal state)"
        )
        self.state = state


class DeterminerError(TransitionError):
    """Raised when a state's determiner cannot select the next event."""

    def __init__(self, state: str, reason: str):
        super().__init__(f"cannot advance from state '{state}': {reason}")
        self.state = state
        self.reason = reason


class TransitionActionError(TransitionError):
    """Raised when an entry or exit action fails; nothing is persisted."""

    def __init__(self, state: str, event: str, cause: Exception):
        super().__init__(
            f"action failed while firing '{event}' from state '{state}': {cause}"
        )
        self.state = state
        self.event = event


# =============================================================================
# VALIDATION, CAPABILITY AND LOOKUP ERRORS
# =============================================================================


class DocumentValidationError(PhasegateError):
    """Raised when a project document fails schema or metadata validation."""

    def __init__(self, message: str, errors: list[str] | None = None):
        self.errors = errors or []
        if self.errors:
            message = message + "\n" + "\n".join(f"  - {e}" for e in self.errors)
        super().__init__(message)


class NotSupportedError(PhasegateError):
    """Raised when a phase lacks the capability an operation needs."""

    def __init__(self, phase: str, operation: str, capability: str):
        super().__init__(
            f"phase '{phase}' does not support {capability}: {operation} is not available"
        )
        self.phase = phase
        self.operation = operation
        self.capability = capability


class PhaseNotFoundError(PhasegateError, KeyError):
    """Raised when a phase name does not exist in the project."""

    def __init__(self, name: str):
        super().__init__(f"phase not found: {name}")
        self.name = name

    def __str__(self) -> str:
        return str(self.args[0])


class ArtifactNotFoundError(PhasegateError, KeyError):
    """Raised when an artifact path or index does not resolve."""

    def __init__(self, ref: str | int, phase: str):
        super().__init__(f"artifact not found in phase '{phase}': {ref}")
        self.ref = ref

    def __str__(self) -> str:
        return str(self.args[0])


class TaskNotFoundError(PhasegateError, KeyError):
    """Raised when a task id does not exist in a phase."""

    def __init__(self, task_id: str, phase: str):
        super().__init__(f"task not found in phase '{phase}': {task_id}")
        self.task_id = task_id

    def __str__(self) -> str:
        return str(self.args[0])


class DuplicateArtifactError(PhasegateError):
    """Raised when an artifact with the same path already exists."""


class DuplicateTaskError(PhasegateError):
    """Raised when a task id is already taken."""


class FieldPathError(PhasegateError):
    """Raised when a field path cannot be resolved or written."""


class InvalidValueError(PhasegateError, ValueError):
    """Raised when an input value violates an enumeration or pattern."""


class ProjectDeletedError(PhasegateError):
    """Raised when a deleted project is saved again."""


class StorageError(PhasegateError):
    """Raised when reading or writing the project document fails."""


class CodeHostError(PhasegateError):
    """Raised when the code-hosting client cannot open a pull request."""
