"""
Loading and creating projects.

Load order: read document -> validate structure -> resolve registered
type -> rebuild records -> validate phase metadata -> bind machine at the
recorded current state. Creation persists the initial document once.
"""

import logging
import re

from phasegate.application.project import GuidanceSink, Project
from phasegate.application.registry import ProjectTypeRegistry
from phasegate.domain.document import from_document
from phasegate.domain.exceptions import (
    DocumentValidationError,
    InvalidValueError,
    StateNotConfiguredError,
    StorageError,
)
from phasegate.domain.interfaces import (
    ClockInterface,
    CodeHostInterface,
    DocumentStoreInterface,
)
from phasegate.domain.models import ProjectState
from phasegate.schemas import validate_document

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 50
_SEPARATORS = re.compile(r"[\s_]+")
_DISALLOWED = re.compile(r"[^a-z0-9-]")


def generate_project_name(description: str) -> str:
    """
    Kebab-case name from a description, truncated to 50 characters.

    >>> generate_project_name("Add OAuth_login support!")
    'add-oauth-login-support'
    """
    name = description[:MAX_NAME_LENGTH].strip().lower()
    name = _SEPARATORS.sub("-", name)
    name = _DISALLOWED.sub("", name)
    return re.sub(r"-{2,}", "-", name).strip("-")


def detect_project_type(branch: str, registry: ProjectTypeRegistry) -> str:
    """Type name from the branch prefix (``explore/`` -> exploration), else standard."""
    return registry.detect(branch)


def load(
    store: DocumentStoreInterface,
    registry: ProjectTypeRegistry,
    clock: ClockInterface,
    code_host: CodeHostInterface | None = None,
    guidance: GuidanceSink | None = None,
) -> Project:
    """
    Load the project document and bind it to its registered type.

    Raises:
        StorageError: No document or unreadable document
        DocumentValidationError: Structure or phase metadata invalid
        UnknownProjectTypeError: Declared type is not registered
        StateNotConfiguredError: Recorded current state is not in the type's graph
    """
    data = store.read()
    validate_document(data)

    config = registry.get(data["project"]["type"])
    state = from_document(data)

    missing = [name for name in config.phase_names if name not in state.phases]
    errors = [f"phases.{name}: required by type '{config.name}'" for name in missing]
    errors.extend(config.validate_metadata(state.phases))
    if errors:
        raise DocumentValidationError("project document failed validation", errors)

    if state.current_state not in config.states:
        raise StateNotConfiguredError(state.current_state)

    logger.debug(
        "Loaded project %s (type=%s, state=%s)",
        state.name,
        state.type,
        state.current_state,
    )
    return Project(
        state,
        config,
        store,
        clock,
        code_host=code_host,
        guidance=guidance,
    )


def create(
    store: DocumentStoreInterface,
    registry: ProjectTypeRegistry,
    clock: ClockInterface,
    branch: str,
    description: str,
    project_type: str | None = None,
    name: str | None = None,
    code_host: CodeHostInterface | None = None,
    guidance: GuidanceSink | None = None,
) -> Project:
    """
    Create and persist a new project at its type's initial state.

    Raises:
        StorageError: A project document already exists
        UnknownProjectTypeError: ``project_type`` is not registered
        InvalidValueError: No usable name could be derived
    """
    if store.exists():
        raise StorageError(
            "a project already exists in this workspace; finish or delete it first"
        )

    type_name = project_type or detect_project_type(branch, registry)
    config = registry.get(type_name)
    name = name or generate_project_name(description)
    if not name:
        raise InvalidValueError(
            f"cannot derive a project name from description {description!r}"
        )

    now = clock.now()
    state = ProjectState(
        name=name,
        type=config.name,
        branch=branch,
        description=description,
        created_at=now,
        updated_at=now,
        current_state=config.initial_state,
        statechart_updated_at=now,
        phases=config.new_phase_states(now),
    )
    project = Project(
        state,
        config,
        store,
        clock,
        code_host=code_host,
        guidance=guidance,
    )
    if config.initializer is not None:
        config.initializer(project)
    project.save()
    logger.info("Created %s project %s on branch %s", config.name, name, branch)
    return project
