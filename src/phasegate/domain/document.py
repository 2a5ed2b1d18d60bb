"""
Conversion between project records and the persisted document shape.

The document is a plain JSON-compatible dict::

    {
      "statechart": {"current_state": ..., "updated_at": ..., "history": [...]},
      "project": {"type", "name", "branch", "description", "created_at", "updated_at"},
      "phases": {"<name>": {"status", "enabled", "created_at", ..., "artifacts", "tasks"}}
    }

Optional fields that are unset are omitted rather than written as null.
"""

from copy import deepcopy
from typing import Any

from phasegate.domain.models import (
    ArtifactState,
    PhaseState,
    PhaseStatus,
    ProjectState,
    TaskState,
    TaskStatus,
    TransitionRecord,
)


def _put_optional(data: dict[str, Any], key: str, value: Any) -> None:
    if value is not None:
        data[key] = value


def _put_metadata(data: dict[str, Any], metadata: dict[str, Any]) -> None:
    if metadata:
        data["metadata"] = deepcopy(metadata)


# =============================================================================
# SERIALIZE
# =============================================================================


def artifact_to_dict(artifact: ArtifactState) -> dict[str, Any]:
    data: dict[str, Any] = {"path": artifact.path, "created_at": artifact.created_at}
    _put_optional(data, "type", artifact.type)
    _put_optional(data, "approved", artifact.approved)
    _put_optional(data, "assessment", artifact.assessment)
    _put_metadata(data, artifact.metadata)
    return data


def task_to_dict(task: TaskState) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": task.id,
        "name": task.name,
        "status": task.status.value,
        "parallel": task.parallel,
        "created_at": task.created_at,
    }
    if task.dependencies:
        data["dependencies"] = list(task.dependencies)
    if task.artifacts:
        data["artifacts"] = list(task.artifacts)
    _put_optional(data, "updated_at", task.updated_at)
    _put_metadata(data, task.metadata)
    return data


def phase_to_dict(phase: PhaseState) -> dict[str, Any]:
    data: dict[str, Any] = {
        "status": phase.status.value,
        "enabled": phase.enabled,
        "created_at": phase.created_at,
    }
    _put_optional(data, "started_at", phase.started_at)
    _put_optional(data, "completed_at", phase.completed_at)
    _put_optional(data, "failed_at", phase.failed_at)
    data["iteration"] = phase.iteration
    data["artifacts"] = [artifact_to_dict(a) for a in phase.artifacts]
    data["tasks"] = [task_to_dict(t) for t in phase.tasks]
    _put_metadata(data, phase.metadata)
    return data


def to_document(state: ProjectState) -> dict[str, Any]:
    """Serialize a project record to the document dict."""
    statechart: dict[str, Any] = {"current_state": state.current_state}
    _put_optional(statechart, "updated_at", state.statechart_updated_at)
    statechart["history"] = [
        {
            "from": record.from_state,
            "to": record.to_state,
            "event": record.event,
            "timestamp": record.timestamp,
        }
        for record in state.history
    ]

    project: dict[str, Any] = {
        "type": state.type,
        "name": state.name,
        "branch": state.branch,
        "description": state.description,
        "created_at": state.created_at,
        "updated_at": state.updated_at,
    }
    _put_metadata(project, state.metadata)

    return {
        "statechart": statechart,
        "project": project,
        "phases": {name: phase_to_dict(p) for name, p in state.phases.items()},
    }


# =============================================================================
# DESERIALIZE
# =============================================================================


def artifact_from_dict(data: dict[str, Any]) -> ArtifactState:
    return ArtifactState(
        path=data["path"],
        created_at=data["created_at"],
        type=data.get("type"),
        approved=data.get("approved"),
        assessment=data.get("assessment"),
        metadata=deepcopy(data.get("metadata", {})),
    )


def task_from_dict(data: dict[str, Any]) -> TaskState:
    return TaskState(
        id=data["id"],
        name=data["name"],
        created_at=data["created_at"],
        status=TaskStatus(data["status"]),
        parallel=data.get("parallel", False),
        dependencies=list(data.get("dependencies", [])),
        artifacts=list(data.get("artifacts", [])),
        updated_at=data.get("updated_at"),
        metadata=deepcopy(data.get("metadata", {})),
    )


def phase_from_dict(data: dict[str, Any]) -> PhaseState:
    return PhaseState(
        created_at=data["created_at"],
        status=PhaseStatus(data["status"]),
        enabled=data["enabled"],
        started_at=data.get("started_at"),
        completed_at=data.get("completed_at"),
        failed_at=data.get("failed_at"),
        iteration=data.get("iteration", 1),
        artifacts=[artifact_from_dict(a) for a in data.get("artifacts", [])],
        tasks=[task_from_dict(t) for t in data.get("tasks", [])],
        metadata=deepcopy(data.get("metadata", {})),
    )


def from_document(data: dict[str, Any]) -> ProjectState:
    """Deserialize a (validated) document dict into a project record."""
    statechart = data["statechart"]
    project = data["project"]
    return ProjectState(
        name=project["name"],
        type=project["type"],
        branch=project["branch"],
        description=project["description"],
        created_at=project["created_at"],
        updated_at=project["updated_at"],
        current_state=statechart["current_state"],
        statechart_updated_at=statechart.get("updated_at"),
        phases={
            name: phase_from_dict(phase)
            for name, phase in data.get("phases", {}).items()
        },
        history=[
            TransitionRecord(
                from_state=entry["from"],
                to_state=entry["to"],
                event=entry["event"],
                timestamp=entry["timestamp"],
            )
            for entry in statechart.get("history", [])
        ],
        metadata=deepcopy(project.get("metadata", {})),
    )
