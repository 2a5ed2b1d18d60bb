"""
Domain layer for the project lifecycle engine.

Contains entity records, read-only views, the field-path engine, document
serialization, ports and exceptions. No external dependencies.
"""

from phasegate.domain.exceptions import (
    ArtifactNotFoundError,
    CodeHostError,
    ConfigurationError,
    DeterminerError,
    DocumentValidationError,
    DuplicateArtifactError,
    DuplicateProjectTypeError,
    DuplicateTaskError,
    FieldPathError,
    GuardFailedError,
    InvalidTransitionError,
    InvalidValueError,
    NoTransitionConfiguredError,
    NotSupportedError,
    PhaseNotFoundError,
    PhasegateError,
    ProjectDeletedError,
    StateNotConfiguredError,
    StorageError,
    TaskNotFoundError,
    TransitionActionError,
    TransitionError,
    UnknownProjectTypeError,
)
from phasegate.domain.fieldpath import convert_value, get_field, set_field
from phasegate.domain.interfaces import (
    ClockInterface,
    CodeHostInterface,
    DocumentStoreInterface,
    GuardInterface,
)
from phasegate.domain.models import (
    ArtifactState,
    ArtifactView,
    GuardResult,
    PhaseState,
    PhaseStatus,
    PhaseView,
    ProjectState,
    ProjectView,
    TaskState,
    TaskStatus,
    TaskView,
    TransitionRecord,
)

__all__ = [
    # Records
    "ProjectState",
    "PhaseState",
    "TaskState",
    "ArtifactState",
    "TransitionRecord",
    "PhaseStatus",
    "TaskStatus",
    # Views
    "ProjectView",
    "PhaseView",
    "TaskView",
    "ArtifactView",
    "GuardResult",
    # Field paths
    "set_field",
    "get_field",
    "convert_value",
    # Interfaces
    "GuardInterface",
    "DocumentStoreInterface",
    "ClockInterface",
    "CodeHostInterface",
    # Exceptions
    "PhasegateError",
    "ConfigurationError",
    "UnknownProjectTypeError",
    "DuplicateProjectTypeError",
    "StateNotConfiguredError",
    "TransitionError",
    "GuardFailedError",
    "InvalidTransitionError",
    "NoTransitionConfiguredError",
    "DeterminerError",
    "TransitionActionError",
    "DocumentValidationError",
    "NotSupportedError",
    "PhaseNotFoundError",
    "ArtifactNotFoundError",
    "TaskNotFoundError",
    "DuplicateArtifactError",
    "DuplicateTaskError",
    "FieldPathError",
    "InvalidValueError",
    "ProjectDeletedError",
    "StorageError",
    "CodeHostError",
]
