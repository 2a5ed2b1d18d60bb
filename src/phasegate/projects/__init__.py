"""
Registered project types.

Registration is explicit: ``KNOWN_PROJECT_TYPES`` lists the builders and
``default_registry()`` registers each of them once.
"""

from collections.abc import Callable

from phasegate.application.project_type import ProjectTypeConfig
from phasegate.application.registry import ProjectTypeRegistry
from phasegate.projects import breakdown, design, exploration, standard

KNOWN_PROJECT_TYPES: tuple[Callable[[], ProjectTypeConfig], ...] = (
    standard.build,
    exploration.build,
    design.build,
    breakdown.build,
)


def default_registry() -> ProjectTypeRegistry:
    """Registry populated with every known project type."""
    return ProjectTypeRegistry(build() for build in KNOWN_PROJECT_TYPES)


__all__ = [
    "KNOWN_PROJECT_TYPES",
    "default_registry",
]
