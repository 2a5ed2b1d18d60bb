"""
Guard primitives: pure predicates over read-only views.

None of these know which transition they gate. Project types compose them
with a phase name or metadata key (see ``phasegate.guards.phase``).
"""

from collections.abc import Sequence

from phasegate.domain.models import ArtifactView, PhaseView, TaskStatus, TaskView


def artifacts_approved(artifacts: Sequence[ArtifactView]) -> bool:
    """True if every artifact is approved (vacuously true when empty)."""
    return all(artifact.approved is True for artifact in artifacts)


def has_artifact_of_type(artifacts: Sequence[ArtifactView], type_: str) -> bool:
    """True if at least one artifact carries the given type tag."""
    return any(artifact.type == type_ for artifact in artifacts)


def latest_artifact_of_type(
    artifacts: Sequence[ArtifactView], type_: str
) -> ArtifactView | None:
    """Most recently added artifact with the given type, if any."""
    for artifact in reversed(artifacts):
        if artifact.type == type_:
            return artifact
    return None


def latest_artifact_approved(artifacts: Sequence[ArtifactView], type_: str) -> bool:
    """True if the latest artifact of ``type_`` exists and is approved."""
    latest = latest_artifact_of_type(artifacts, type_)
    return latest is not None and latest.approved is True


def tasks_resolved(tasks: Sequence[TaskView]) -> bool:
    """True if every task is completed or abandoned (vacuously true when empty)."""
    return all(
        task.status in (TaskStatus.COMPLETED, TaskStatus.ABANDONED) for task in tasks
    )


def all_tasks_completed(tasks: Sequence[TaskView]) -> bool:
    """True if every task is completed; abandoned tasks do not count."""
    return all(task.status is TaskStatus.COMPLETED for task in tasks)


def min_completed_count(tasks: Sequence[TaskView], n: int) -> bool:
    """True if at least ``n`` tasks reached completed."""
    return sum(1 for task in tasks if task.status is TaskStatus.COMPLETED) >= n


def has_tasks(tasks: Sequence[TaskView], n: int = 1) -> bool:
    return len(tasks) >= n


def metadata_flag(phase: PhaseView, key: str) -> bool:
    """Boolean metadata value; False when absent or not a bool."""
    value = phase.metadata.get(key)
    return value if isinstance(value, bool) else False


def completed_dependencies_acyclic(tasks: Sequence[TaskView]) -> bool:
    """
    Dependencies among completed tasks form a DAG.

    Only completed tasks take part: each of their dependencies must name
    another completed task, and following dependencies must never lead
    back to the start. Pending and abandoned tasks are ignored.
    """
    completed = {
        task.id: task.dependencies
        for task in tasks
        if task.status is TaskStatus.COMPLETED
    }
    for deps in completed.values():
        if any(dep not in completed for dep in deps):
            return False

    visited: set[str] = set()
    on_path: set[str] = set()

    def has_cycle(task_id: str) -> bool:
        visited.add(task_id)
        on_path.add(task_id)
        for dep in completed[task_id]:
            if dep in on_path or (dep not in visited and has_cycle(dep)):
                return True
        on_path.discard(task_id)
        return False

    return not any(
        has_cycle(task_id) for task_id in completed if task_id not in visited
    )


def completed_tasks_flagged(tasks: Sequence[TaskView], key: str) -> bool:
    """At least one completed task, and every completed task has ``metadata[key] is True``."""
    completed = [task for task in tasks if task.status is TaskStatus.COMPLETED]
    return bool(completed) and all(task.metadata.get(key) is True for task in completed)
