"""
Phase: capability-checked operations over one phase of a project.

A Phase wraps the mutable PhaseState record. Mutations change memory only
and notify the owning project (which marks itself dirty); persisting is the
project's job. Reads return frozen views.
"""

import functools
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any, TypeVar

from phasegate.domain.exceptions import (
    ArtifactNotFoundError,
    DuplicateArtifactError,
    DuplicateTaskError,
    InvalidValueError,
    NotSupportedError,
    TaskNotFoundError,
)
from phasegate.domain.fieldpath import get_field, set_field
from phasegate.domain.interfaces import ClockInterface
from phasegate.domain.models import (
    ArtifactState,
    ArtifactView,
    Metadata,
    PhaseState,
    PhaseStatus,
    PhaseView,
    TaskState,
    TaskStatus,
    TaskView,
)

TASK_ID_PATTERN = re.compile(r"[0-9]{3,}")
TASK_ID_GAP = 10

F = TypeVar("F", bound=Callable[..., Any])


@dataclass(frozen=True)
class PhaseCapabilities:
    """Which operation families a phase supports."""

    artifacts: bool = False
    tasks: bool = False

    def supports(self, capability: str) -> bool:
        return bool(getattr(self, capability))


NO_CAPABILITIES = PhaseCapabilities()
ARTIFACTS_ONLY = PhaseCapabilities(artifacts=True)
TASKS_ONLY = PhaseCapabilities(tasks=True)
ARTIFACTS_AND_TASKS = PhaseCapabilities(artifacts=True, tasks=True)


def requires_capability(capability: str) -> Callable[[F], F]:
    """Reject the decorated Phase method with NotSupportedError unless the capability is present."""

    def decorator(method: F) -> F:
        @functools.wraps(method)
        def wrapper(self: "Phase", *args: Any, **kwargs: Any) -> Any:
            if not self.capabilities.supports(capability):
                raise NotSupportedError(self.name, method.__name__, capability)
            return method(self, *args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator


def next_task_id(existing: Iterable[str]) -> str:
    """
    Next gap-numbered id: the next multiple of 10 above the highest numeric id.

    010, 020, 030 -> 040; after an explicit 015 the next id is still 040.
    """
    highest = max(
        (int(task_id) for task_id in existing if TASK_ID_PATTERN.fullmatch(task_id)),
        default=0,
    )
    return f"{(highest // TASK_ID_GAP + 1) * TASK_ID_GAP:03d}"


class Phase:
    """Operations on a single named phase."""

    def __init__(
        self,
        name: str,
        state: PhaseState,
        capabilities: PhaseCapabilities,
        clock: ClockInterface,
        on_change: Callable[[], None] | None = None,
    ):
        """
        Args:
            name: Phase name (key in the project's phase map)
            state: The mutable record this phase operates on
            capabilities: Operation families this phase supports
            clock: Timestamp source for created_at / updated_at
            on_change: Called after every mutation (marks the project dirty)
        """
        self.name = name
        self.capabilities = capabilities
        self._state = state
        self._clock = clock
        self._on_change = on_change

    def __repr__(self) -> str:
        return f"Phase({self.name!r}, status={self._state.status.value})"

    # =========================================================================
    # PHASE-LEVEL
    # =========================================================================

    @property
    def status(self) -> PhaseStatus:
        return self._state.status

    @property
    def enabled(self) -> bool:
        return self._state.enabled

    @property
    def iteration(self) -> int:
        return self._state.iteration

    def view(self) -> PhaseView:
        return self._state.view(self.name)

    def enable(self) -> None:
        self._state.enabled = True
        self._changed()

    def set_field(self, path: str, value: str) -> None:
        """Write a phase field or ``metadata.<key>`` path."""
        set_field(self._state, path, value)
        self._changed()

    def get_field(self, path: str) -> Any:
        return get_field(self._state, path)

    # =========================================================================
    # ARTIFACTS
    # =========================================================================

    @requires_capability("artifacts")
    def add_artifact(
        self,
        path: str,
        type: str | None = None,
        metadata: Metadata | None = None,
    ) -> ArtifactView:
        """
        Register a produced artifact (unapproved).

        Raises:
            DuplicateArtifactError: An artifact with this path already exists
        """
        if any(a.path == path for a in self._state.artifacts):
            raise DuplicateArtifactError(
                f"artifact already exists in phase '{self.name}': {path}"
            )
        artifact = ArtifactState(
            path=path,
            created_at=self._clock.now(),
            type=type,
            approved=False,
            metadata=dict(metadata or {}),
        )
        self._state.artifacts.append(artifact)
        self._changed()
        return artifact.view()

    @requires_capability("artifacts")
    def approve_artifact(self, ref: str | int) -> ArtifactView:
        artifact = self._resolve_artifact(ref)
        artifact.approved = True
        self._changed()
        return artifact.view()

    @requires_capability("artifacts")
    def set_artifact_field(self, ref: str | int, path: str, value: str) -> None:
        set_field(self._resolve_artifact(ref), path, value)
        self._changed()

    @requires_capability("artifacts")
    def get_artifact(self, ref: str | int) -> ArtifactView:
        return self._resolve_artifact(ref).view()

    @requires_capability("artifacts")
    def get_artifact_field(self, ref: str | int, path: str) -> Any:
        return get_field(self._resolve_artifact(ref), path)

    @requires_capability("artifacts")
    def list_artifacts(self, type: str | None = None) -> list[ArtifactView]:
        return [
            a.view()
            for a in self._state.artifacts
            if type is None or a.type == type
        ]

    @requires_capability("artifacts")
    def latest_artifact(self, type: str | None = None) -> ArtifactView | None:
        """Most recently added artifact (optionally of one type)."""
        for artifact in reversed(self._state.artifacts):
            if type is None or artifact.type == type:
                return artifact.view()
        return None

    def _resolve_artifact(self, ref: str | int) -> ArtifactState:
        # Paths are canonical; an index is resolved against the current list.
        if isinstance(ref, int):
            if 0 <= ref < len(self._state.artifacts):
                return self._state.artifacts[ref]
            raise ArtifactNotFoundError(ref, self.name)
        for artifact in self._state.artifacts:
            if artifact.path == ref:
                return artifact
        raise ArtifactNotFoundError(ref, self.name)

    # =========================================================================
    # TASKS
    # =========================================================================

    @requires_capability("tasks")
    def add_task(
        self,
        name: str,
        id: str | None = None,
        parallel: bool = False,
        dependencies: Iterable[str] = (),
    ) -> TaskView:
        """
        Add a task with a gap-numbered id.

        Raises:
            InvalidValueError: Explicit id is not three or more digits
            DuplicateTaskError: Explicit id already taken
            TaskNotFoundError: A dependency does not exist in this phase
        """
        existing = {t.id for t in self._state.tasks}
        if id is None:
            id = next_task_id(existing)
        elif not TASK_ID_PATTERN.fullmatch(id):
            raise InvalidValueError(
                f"invalid task id {id!r}: must be three or more digits (e.g. 010)"
            )
        elif id in existing:
            raise DuplicateTaskError(f"task id already exists in phase '{self.name}': {id}")

        deps = list(dependencies)
        for dep in deps:
            if dep not in existing:
                raise TaskNotFoundError(dep, self.name)

        task = TaskState(
            id=id,
            name=name,
            created_at=self._clock.now(),
            parallel=parallel,
            dependencies=deps,
        )
        self._state.tasks.append(task)
        self._changed()
        return task.view()

    @requires_capability("tasks")
    def get_task(self, task_id: str) -> TaskView:
        return self._resolve_task(task_id).view()

    @requires_capability("tasks")
    def get_task_field(self, task_id: str, path: str) -> Any:
        return get_field(self._resolve_task(task_id), path)

    @requires_capability("tasks")
    def list_tasks(self, status: TaskStatus | None = None) -> list[TaskView]:
        return [
            t.view()
            for t in self._state.tasks
            if status is None or t.status is status
        ]

    @requires_capability("tasks")
    def set_task_status(self, task_id: str, status: TaskStatus | str) -> TaskView:
        """Set a task's status. Any status may follow any other."""
        if not isinstance(status, TaskStatus):
            try:
                status = TaskStatus(status)
            except ValueError:
                allowed = ", ".join(s.value for s in TaskStatus)
                raise InvalidValueError(
                    f"invalid task status {status!r} (expected one of {allowed})"
                ) from None
        task = self._resolve_task(task_id)
        task.status = status
        task.updated_at = self._clock.now()
        self._changed()
        return task.view()

    @requires_capability("tasks")
    def set_task_field(self, task_id: str, path: str, value: str) -> None:
        task = self._resolve_task(task_id)
        set_field(task, path, value)
        task.updated_at = self._clock.now()
        self._changed()

    @requires_capability("tasks")
    def add_task_artifact(self, task_id: str, artifact_path: str) -> TaskView:
        """Reference an artifact path from a task (idempotent)."""
        task = self._resolve_task(task_id)
        if artifact_path not in task.artifacts:
            task.artifacts.append(artifact_path)
            task.updated_at = self._clock.now()
            self._changed()
        return task.view()

    def _resolve_task(self, task_id: str) -> TaskState:
        for task in self._state.tasks:
            if task.id == task_id:
                return task
        raise TaskNotFoundError(task_id, self.name)

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()
