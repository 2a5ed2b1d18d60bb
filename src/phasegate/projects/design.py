"""
Design project type: plan and write design documents.

    Active --complete_design--> Finalizing --complete_finalization--> Completed

Each design document is tracked as a task in the ``design`` phase. The
``finalization`` phase starts disabled and is enabled on entering
Finalizing.
"""

from pydantic import BaseModel, ConfigDict

from phasegate.application.phase import ARTIFACTS_AND_TASKS
from phasegate.application.project import Project
from phasegate.application.project_type import ProjectTypeBuilder, ProjectTypeConfig
from phasegate.domain.models import ProjectView, TaskStatus
from phasegate.guards import (
    CompositeGuard,
    phase_has_tasks,
    phase_min_completed,
    phase_tasks_completed,
    phase_tasks_resolved,
)
from phasegate.projects import prompts
from phasegate.projects.standard import PullRequestUrl

NAME = "design"
BRANCH_PREFIX = "design/"

ACTIVE = "Active"
FINALIZING = "Finalizing"
COMPLETED = "Completed"

COMPLETE_DESIGN = "complete_design"
COMPLETE_FINALIZATION = "complete_finalization"

DOCUMENT_TYPES = ("design", "adr", "architecture", "diagram", "spec")


class FinalizationMetadata(BaseModel):
    model_config = ConfigDict(extra="allow")

    pr_url: PullRequestUrl | None = None


def _enable_finalization(project: Project) -> None:
    project.phase("finalization").enable()


def _document_progress(project: ProjectView) -> str:
    phase = project.phase("design")
    if phase is None or not phase.tasks:
        return (
            "No documents planned yet. Add one task per document to the "
            "`design` phase before adding artifacts."
        )
    unresolved = sum(
        1
        for t in phase.tasks
        if t.status not in (TaskStatus.COMPLETED, TaskStatus.ABANDONED)
    )
    if unresolved:
        return f"{unresolved} of {len(phase.tasks)} document(s) still in progress."
    return "All documents resolved. Advance to finalize."


def _active_prompt(project: ProjectView) -> str:
    return prompts.compose(
        prompts.header(project),
        "## Active Design\n\n"
        "Plan each document as a task in the `design` phase and register the "
        "written document as an artifact (types: "
        + ", ".join(f"`{t}`" for t in DOCUMENT_TYPES)
        + "). Complete a task once its document is approved; abandon tasks "
        "for documents you no longer need. At least one document must be "
        "completed.",
        _document_progress(project),
        prompts.task_section(project.phase("design"), "Design Documents"),
        prompts.artifact_section(project.phase("design"), "Artifacts"),
    )


def _finalizing_prompt(project: ProjectView) -> str:
    return prompts.compose(
        prompts.header(project),
        "## Finalizing\n\n"
        "All documents approved. Add tasks to the `finalization` phase for "
        "moving the documents into place, opening a pull request and cleaning "
        "up, then complete all of them.",
        prompts.task_section(project.phase("finalization"), "Finalization Tasks"),
    )


def _orchestrator_prompt(project: ProjectView) -> str:
    return prompts.compose(
        prompts.header(project),
        "## Design lifecycle\n\n"
        "Active -> Finalizing -> Completed. Documents are planned as tasks and "
        "produced as artifacts; finalization publishes them.",
    )


def build() -> ProjectTypeConfig:
    """Build the design project type."""
    return (
        ProjectTypeBuilder(NAME, "Plan and write design documents")
        .initial_state(ACTIVE)
        .branch_prefix(BRANCH_PREFIX)
        .phase("design", ARTIFACTS_AND_TASKS, start_state=ACTIVE)
        .phase(
            "finalization",
            ARTIFACTS_AND_TASKS,
            start_state=FINALIZING,
            metadata_model=FinalizationMetadata,
            enabled=False,
        )
        .transition(
            ACTIVE,
            FINALIZING,
            COMPLETE_DESIGN,
            guard=CompositeGuard(
                phase_has_tasks("design"),
                phase_tasks_resolved("design"),
                phase_min_completed("design"),
                name="all documents approved",
            ),
            description="Documents done; finalize",
            on_entry=_enable_finalization,
        )
        .transition(
            FINALIZING,
            COMPLETED,
            COMPLETE_FINALIZATION,
            guard=CompositeGuard(
                phase_has_tasks("finalization"),
                phase_tasks_completed("finalization"),
                name="all finalization tasks completed",
            ),
            description="Finalization done",
        )
        .on_advance(ACTIVE, COMPLETE_DESIGN)
        .on_advance(FINALIZING, COMPLETE_FINALIZATION)
        .prompt(ACTIVE, _active_prompt)
        .prompt(FINALIZING, _finalizing_prompt)
        .orchestrator_prompt(_orchestrator_prompt)
        .build()
    )
