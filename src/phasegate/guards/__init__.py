"""
Guards for the project lifecycle engine.

Guards are pure predicates over a read-only ProjectView that return a
GuardResult. They can be composed using CompositeGuard.

Organization:
- predicates: primitive checks over artifacts, tasks and metadata
- base: PredicateGuard adapter and CompositeGuard (logical AND)
- phase: factories binding primitives to a named phase
"""

from phasegate.guards.base import CompositeGuard, PredicateGuard, all_of
from phasegate.guards.phase import (
    phase_artifacts_approved,
    phase_artifacts_of_type_approved,
    phase_completed_tasks_flagged,
    phase_dependencies_valid,
    phase_has_artifact_of_type,
    phase_has_tasks,
    phase_latest_artifact_approved,
    phase_metadata_flag,
    phase_min_completed,
    phase_tasks_completed,
    phase_tasks_resolved,
)
from phasegate.guards.predicates import (
    all_tasks_completed,
    artifacts_approved,
    completed_dependencies_acyclic,
    completed_tasks_flagged,
    has_artifact_of_type,
    has_tasks,
    latest_artifact_approved,
    latest_artifact_of_type,
    metadata_flag,
    min_completed_count,
    tasks_resolved,
)

__all__ = [
    # Primitives (pure)
    "artifacts_approved",
    "has_artifact_of_type",
    "latest_artifact_of_type",
    "latest_artifact_approved",
    "tasks_resolved",
    "all_tasks_completed",
    "min_completed_count",
    "has_tasks",
    "metadata_flag",
    "completed_dependencies_acyclic",
    "completed_tasks_flagged",
    # Composition patterns
    "PredicateGuard",
    "CompositeGuard",
    "all_of",
    # Phase-bound factories
    "phase_artifacts_approved",
    "phase_artifacts_of_type_approved",
    "phase_has_artifact_of_type",
    "phase_latest_artifact_approved",
    "phase_has_tasks",
    "phase_tasks_resolved",
    "phase_tasks_completed",
    "phase_min_completed",
    "phase_metadata_flag",
    "phase_dependencies_valid",
    "phase_completed_tasks_flagged",
]
