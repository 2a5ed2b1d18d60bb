"""
phasegate: guarded lifecycle state machine for multi-phase projects.

A project is a durable document describing where a long-running,
multi-phase piece of work stands. Transitions between lifecycle states are
gated by guards that inspect the persisted document, so an agent can only
move forward once the required work has been recorded.

Example:
    from phasegate import create, load
    from phasegate.infrastructure import InMemoryDocumentStore, SystemClock
    from phasegate.projects import default_registry

    store = InMemoryDocumentStore()
    registry = default_registry()
    project = create(store, registry, SystemClock(), "feat/auth", "Add OAuth login")

    planning = project.phase("planning")
    planning.add_artifact("tasks.md", type="task_list")
    planning.approve_artifact("tasks.md")
    project.save()
    project.advance()  # Planning -> Executing
"""

# Application layer (orchestration)
from phasegate.application import (
    ARTIFACTS_AND_TASKS,
    ARTIFACTS_ONLY,
    NO_CAPABILITIES,
    TASKS_ONLY,
    MachineBuilder,
    Phase,
    PhaseCapabilities,
    Project,
    ProjectTypeBuilder,
    ProjectTypeConfig,
    ProjectTypeRegistry,
    StateMachine,
    create,
    load,
)

# Domain exceptions
from phasegate.domain.exceptions import (
    ConfigurationError,
    DocumentValidationError,
    GuardFailedError,
    NotSupportedError,
    PhasegateError,
    StorageError,
    TransitionError,
)

# Domain interfaces (for type hints and custom implementations)
from phasegate.domain.interfaces import (
    ClockInterface,
    CodeHostInterface,
    DocumentStoreInterface,
    GuardInterface,
)
from phasegate.domain.models import (
    GuardResult,
    PhaseStatus,
    ProjectView,
    TaskStatus,
    TransitionRecord,
)

# Guards (commonly composed)
from phasegate.guards import CompositeGuard, PredicateGuard

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Domain models
    "GuardResult",
    "PhaseStatus",
    "TaskStatus",
    "ProjectView",
    "TransitionRecord",
    # Domain interfaces
    "GuardInterface",
    "DocumentStoreInterface",
    "ClockInterface",
    "CodeHostInterface",
    # Domain exceptions
    "PhasegateError",
    "ConfigurationError",
    "TransitionError",
    "GuardFailedError",
    "DocumentValidationError",
    "NotSupportedError",
    "StorageError",
    # Application layer
    "StateMachine",
    "MachineBuilder",
    "Phase",
    "PhaseCapabilities",
    "NO_CAPABILITIES",
    "ARTIFACTS_ONLY",
    "TASKS_ONLY",
    "ARTIFACTS_AND_TASKS",
    "ProjectTypeBuilder",
    "ProjectTypeConfig",
    "ProjectTypeRegistry",
    "Project",
    "load",
    "create",
    # Guards
    "CompositeGuard",
    "PredicateGuard",
]
