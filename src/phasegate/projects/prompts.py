"""
Shared building blocks for state guidance prompts.

Prompts are plain markdown rendered from a ProjectView; project types
compose these helpers with their own state-specific instructions.
"""

from phasegate.domain.models import PhaseView, ProjectView


def header(project: ProjectView) -> str:
    lines = [f"# Project: {project.name}", f"Branch: {project.branch}"]
    if project.description:
        lines.append(f"Description: {project.description}")
    lines.append(f"State: {project.current_state}")
    return "\n".join(lines) + "\n"


def artifact_section(phase: PhaseView | None, title: str) -> str:
    if phase is None or not phase.artifacts:
        return ""
    lines = [f"## {title}", ""]
    for artifact in phase.artifacts:
        status = "approved" if artifact.approved else "pending approval"
        tag = f" [{artifact.type}]" if artifact.type else ""
        lines.append(f"- {artifact.path}{tag} ({status})")
    return "\n".join(lines) + "\n"


def task_section(phase: PhaseView | None, title: str) -> str:
    if phase is None or not phase.tasks:
        return ""
    lines = [f"## {title}", ""]
    for task in phase.tasks:
        marker = " (parallel)" if task.parallel else ""
        lines.append(f"- [{task.id}] {task.name}: {task.status.value}{marker}")
    return "\n".join(lines) + "\n"


def compose(*sections: str) -> str:
    """Join non-empty sections with blank lines."""
    return "\n".join(s for s in sections if s)
