"""
Phase-bound guard factories.

Each factory closes a predicate from ``phasegate.guards.predicates`` over a
phase name (and a type tag or metadata key). A phase that is missing or not
enabled never satisfies a phase-bound guard.
"""

from collections.abc import Callable

from phasegate.domain.models import PhaseView, ProjectView
from phasegate.guards import predicates
from phasegate.guards.base import PredicateGuard


def _on_phase(
    phase_name: str, check: Callable[[PhaseView], bool]
) -> Callable[[ProjectView], bool]:
    def predicate(project: ProjectView) -> bool:
        phase = project.phase(phase_name)
        if phase is None or not phase.enabled:
            return False
        return check(phase)

    return predicate


def phase_artifacts_approved(phase_name: str) -> PredicateGuard:
    return PredicateGuard(
        f"{phase_name} artifacts approved",
        _on_phase(phase_name, lambda p: predicates.artifacts_approved(p.artifacts)),
        feedback=f"every artifact in phase '{phase_name}' must be approved",
    )


def phase_has_artifact_of_type(phase_name: str, type_: str) -> PredicateGuard:
    return PredicateGuard(
        f"{phase_name} has {type_} artifact",
        _on_phase(
            phase_name, lambda p: predicates.has_artifact_of_type(p.artifacts, type_)
        ),
        feedback=f"phase '{phase_name}' needs at least one artifact of type '{type_}'",
    )


def phase_latest_artifact_approved(phase_name: str, type_: str) -> PredicateGuard:
    return PredicateGuard(
        f"latest {type_} approved",
        _on_phase(
            phase_name,
            lambda p: predicates.latest_artifact_approved(p.artifacts, type_),
        ),
        feedback=(
            f"the latest artifact of type '{type_}' in phase '{phase_name}' "
            "must exist and be approved"
        ),
    )


def phase_artifacts_of_type_approved(phase_name: str, type_: str) -> PredicateGuard:
    """At least one artifact of ``type_`` exists and all of them are approved."""

    def check(phase: PhaseView) -> bool:
        typed = [a for a in phase.artifacts if a.type == type_]
        return bool(typed) and predicates.artifacts_approved(typed)

    return PredicateGuard(
        f"all {type_} artifacts approved",
        _on_phase(phase_name, check),
        feedback=(
            f"phase '{phase_name}' needs at least one '{type_}' artifact and all "
            "of them approved"
        ),
    )


def phase_has_tasks(phase_name: str, n: int = 1) -> PredicateGuard:
    return PredicateGuard(
        f"{phase_name} has tasks",
        _on_phase(phase_name, lambda p: predicates.has_tasks(p.tasks, n)),
        feedback=f"phase '{phase_name}' needs at least {n} task(s)",
    )


def phase_tasks_resolved(phase_name: str) -> PredicateGuard:
    return PredicateGuard(
        f"{phase_name} tasks resolved",
        _on_phase(phase_name, lambda p: predicates.tasks_resolved(p.tasks)),
        feedback=f"every task in phase '{phase_name}' must be completed or abandoned",
    )


def phase_tasks_completed(phase_name: str) -> PredicateGuard:
    return PredicateGuard(
        f"{phase_name} tasks completed",
        _on_phase(phase_name, lambda p: predicates.all_tasks_completed(p.tasks)),
        feedback=f"every task in phase '{phase_name}' must be completed",
    )


def phase_min_completed(phase_name: str, n: int = 1) -> PredicateGuard:
    return PredicateGuard(
        f"{phase_name} has {n} completed task(s)",
        _on_phase(phase_name, lambda p: predicates.min_completed_count(p.tasks, n)),
        feedback=(
            f"phase '{phase_name}' needs at least {n} completed task(s); "
            "abandoned tasks do not count"
        ),
    )


def phase_metadata_flag(phase_name: str, key: str) -> PredicateGuard:
    return PredicateGuard(
        f"{phase_name}.{key}",
        _on_phase(phase_name, lambda p: predicates.metadata_flag(p, key)),
        feedback=f"set metadata.{key}=true on phase '{phase_name}'",
    )


def phase_dependencies_valid(phase_name: str) -> PredicateGuard:
    return PredicateGuard(
        f"{phase_name} dependencies valid",
        _on_phase(
            phase_name, lambda p: predicates.completed_dependencies_acyclic(p.tasks)
        ),
        feedback=(
            f"dependencies of completed tasks in phase '{phase_name}' must point "
            "at completed tasks and must not form a cycle"
        ),
    )


def phase_completed_tasks_flagged(phase_name: str, key: str) -> PredicateGuard:
    return PredicateGuard(
        f"{phase_name} completed tasks {key}",
        _on_phase(
            phase_name, lambda p: predicates.completed_tasks_flagged(p.tasks, key)
        ),
        feedback=(
            f"every completed task in phase '{phase_name}' needs "
            f"metadata.{key}=true (and at least one task must be completed)"
        ),
    )
