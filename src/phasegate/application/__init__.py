"""
Application layer for the project lifecycle engine.

Contains the state machine core, phase operations, project-type builders,
the registry and the Project aggregate with its load/create entry points.
"""

from phasegate.application.loader import (
    create,
    detect_project_type,
    generate_project_name,
    load,
)
from phasegate.application.machine import (
    MachineBuilder,
    StateMachine,
    Transition,
)
from phasegate.application.phase import (
    ARTIFACTS_AND_TASKS,
    ARTIFACTS_ONLY,
    NO_CAPABILITIES,
    TASKS_ONLY,
    Phase,
    PhaseCapabilities,
    requires_capability,
)
from phasegate.application.project import Project
from phasegate.application.project_type import (
    PhaseConfig,
    ProjectTypeBuilder,
    ProjectTypeConfig,
    TransitionConfig,
)
from phasegate.application.registry import ProjectTypeRegistry

__all__ = [
    # Machine
    "StateMachine",
    "MachineBuilder",
    "Transition",
    # Phases
    "Phase",
    "PhaseCapabilities",
    "NO_CAPABILITIES",
    "ARTIFACTS_ONLY",
    "TASKS_ONLY",
    "ARTIFACTS_AND_TASKS",
    "requires_capability",
    # Project types
    "ProjectTypeBuilder",
    "ProjectTypeConfig",
    "PhaseConfig",
    "TransitionConfig",
    "ProjectTypeRegistry",
    # Projects
    "Project",
    "load",
    "create",
    "detect_project_type",
    "generate_project_name",
]
