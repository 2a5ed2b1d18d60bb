"""
Domain models for the project lifecycle engine.

Two families of types live here:

- Mutable records (``ProjectState``, ``PhaseState``, ``TaskState``,
  ``ArtifactState``) mirror the persisted document and are what phase
  operations and entry/exit actions mutate.
- Frozen views (``ProjectView`` and friends) are deep, read-only snapshots
  handed to guards and determiners. A view never aliases a record, so a
  guard cannot mutate the working document even by accident.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

# =============================================================================
# METADATA VALUES
# =============================================================================

# Closed variant for open-ended metadata: scalars or nested maps of the same.
MetadataScalar = str | bool | int | None
MetadataValue = str | bool | int | None | dict[str, "MetadataValue"]
Metadata = dict[str, MetadataValue]


# =============================================================================
# ENUMERATIONS
# =============================================================================


class PhaseStatus(Enum):
    """Lifecycle status of a phase."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    SKIPPED = "skipped"
    FAILED = "failed"


class TaskStatus(Enum):
    """Lifecycle status of a task."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    NEEDS_REVIEW = "needs_review"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


RESOLVED_TASK_STATUSES = frozenset({TaskStatus.COMPLETED, TaskStatus.ABANDONED})


# =============================================================================
# GUARD RESULT AND HISTORY
# =============================================================================


@dataclass(frozen=True)
class GuardResult:
    """Immutable guard evaluation outcome."""

    passed: bool
    feedback: str = ""
    guard_name: str | None = None


@dataclass(frozen=True)
class TransitionRecord:
    """One entry of the project's audit trail."""

    from_state: str
    to_state: str
    event: str
    timestamp: str  # ISO timestamp


# =============================================================================
# MUTABLE RECORDS (the working document)
# =============================================================================


@dataclass
class ArtifactState:
    """A unit of produced work awaiting approval."""

    path: str
    created_at: str
    type: str | None = None
    approved: bool | None = None
    assessment: str | None = None  # "pass" / "fail"
    metadata: Metadata = field(default_factory=dict)

    def view(self) -> "ArtifactView":
        return ArtifactView(
            path=self.path,
            created_at=self.created_at,
            type=self.type,
            approved=self.approved,
            assessment=self.assessment,
            metadata=freeze_metadata(self.metadata),
        )


@dataclass
class TaskState:
    """A unit of schedulable work with a gap-numbered id."""

    id: str
    name: str
    created_at: str
    status: TaskStatus = TaskStatus.PENDING
    parallel: bool = False
    dependencies: list[str] = field(default_factory=list)
    artifacts: list[str] = field(default_factory=list)  # artifact paths
    updated_at: str | None = None
    metadata: Metadata = field(default_factory=dict)

    @property
    def resolved(self) -> bool:
        return self.status in RESOLVED_TASK_STATUSES

    def view(self) -> "TaskView":
        return TaskView(
            id=self.id,
            name=self.name,
            created_at=self.created_at,
            status=self.status,
            parallel=self.parallel,
            dependencies=tuple(self.dependencies),
            artifacts=tuple(self.artifacts),
            updated_at=self.updated_at,
            metadata=freeze_metadata(self.metadata),
        )


@dataclass
class PhaseState:
    """A named subdivision of the lifecycle."""

    created_at: str
    status: PhaseStatus = PhaseStatus.PENDING
    enabled: bool = True
    started_at: str | None = None
    completed_at: str | None = None
    failed_at: str | None = None
    iteration: int = 1
    artifacts: list[ArtifactState] = field(default_factory=list)
    tasks: list[TaskState] = field(default_factory=list)
    metadata: Metadata = field(default_factory=dict)

    def view(self, name: str) -> "PhaseView":
        return PhaseView(
            name=name,
            status=self.status,
            enabled=self.enabled,
            created_at=self.created_at,
            started_at=self.started_at,
            completed_at=self.completed_at,
            failed_at=self.failed_at,
            iteration=self.iteration,
            artifacts=tuple(a.view() for a in self.artifacts),
            tasks=tuple(t.view() for t in self.tasks),
            metadata=freeze_metadata(self.metadata),
        )


@dataclass
class ProjectState:
    """Root aggregate record: project identity, statechart position and phases."""

    name: str
    type: str
    branch: str
    description: str
    created_at: str
    updated_at: str
    current_state: str
    statechart_updated_at: str | None = None
    phases: dict[str, PhaseState] = field(default_factory=dict)
    history: list[TransitionRecord] = field(default_factory=list)
    metadata: Metadata = field(default_factory=dict)

    def view(self) -> "ProjectView":
        return ProjectView(
            name=self.name,
            type=self.type,
            branch=self.branch,
            description=self.description,
            created_at=self.created_at,
            updated_at=self.updated_at,
            current_state=self.current_state,
            phases=MappingProxyType(
                {name: phase.view(name) for name, phase in self.phases.items()}
            ),
            history=tuple(self.history),
            metadata=freeze_metadata(self.metadata),
        )


# =============================================================================
# READ-ONLY VIEWS (what guards and determiners see)
# =============================================================================


@dataclass(frozen=True)
class ArtifactView:
    """Read-only artifact snapshot."""

    path: str
    created_at: str
    type: str | None
    approved: bool | None
    assessment: str | None
    metadata: Mapping[str, Any]


@dataclass(frozen=True)
class TaskView:
    """Read-only task snapshot."""

    id: str
    name: str
    created_at: str
    status: TaskStatus
    parallel: bool
    dependencies: tuple[str, ...]
    artifacts: tuple[str, ...]
    updated_at: str | None
    metadata: Mapping[str, Any]


@dataclass(frozen=True)
class PhaseView:
    """Read-only phase snapshot."""

    name: str
    status: PhaseStatus
    enabled: bool
    created_at: str
    started_at: str | None
    completed_at: str | None
    failed_at: str | None
    iteration: int
    artifacts: tuple[ArtifactView, ...]
    tasks: tuple[TaskView, ...]
    metadata: Mapping[str, Any]


@dataclass(frozen=True)
class ProjectView:
    """Read-only project snapshot passed to guards, determiners and prompts."""

    name: str
    type: str
    branch: str
    description: str
    created_at: str
    updated_at: str
    current_state: str
    phases: Mapping[str, PhaseView]
    history: tuple[TransitionRecord, ...]
    metadata: Mapping[str, Any]

    def phase(self, name: str) -> PhaseView | None:
        return self.phases.get(name)


def freeze_metadata(metadata: Metadata) -> Mapping[str, Any]:
    """Deep-copy a metadata map into nested read-only mappings."""
    return MappingProxyType(
        {
            key: freeze_metadata(value) if isinstance(value, dict) else value
            for key, value in metadata.items()
        }
    )
