"""
Exploration project type: research a topic and summarize the findings.

    Active --begin_summarizing--> Summarizing --complete_summarizing--> Finalizing
    Finalizing --complete_finalization--> Completed

The ``finalization`` phase starts disabled and is enabled on entering
Finalizing.
"""

from pydantic import BaseModel, ConfigDict

from phasegate.application.phase import ARTIFACTS_AND_TASKS, TASKS_ONLY
from phasegate.application.project import Project
from phasegate.application.project_type import ProjectTypeBuilder, ProjectTypeConfig
from phasegate.domain.models import ProjectView
from phasegate.guards import (
    CompositeGuard,
    phase_artifacts_of_type_approved,
    phase_has_tasks,
    phase_tasks_completed,
    phase_tasks_resolved,
)
from phasegate.projects import prompts
from phasegate.projects.standard import PullRequestUrl

NAME = "exploration"
BRANCH_PREFIX = "explore/"

ACTIVE = "Active"
SUMMARIZING = "Summarizing"
FINALIZING = "Finalizing"
COMPLETED = "Completed"

BEGIN_SUMMARIZING = "begin_summarizing"
COMPLETE_SUMMARIZING = "complete_summarizing"
COMPLETE_FINALIZATION = "complete_finalization"

SUMMARY = "summary"


class FinalizationMetadata(BaseModel):
    model_config = ConfigDict(extra="allow")

    pr_url: PullRequestUrl | None = None


def _enable_finalization(project: Project) -> None:
    project.phase("finalization").enable()


def _active_prompt(project: ProjectView) -> str:
    return prompts.compose(
        prompts.header(project),
        "## Exploration\n\n"
        "Break the topic into research tasks in the `exploration` phase and "
        "work through them. Record findings as artifacts. Abandon tasks that "
        "turn out to be dead ends; advance once every task is resolved.",
        prompts.task_section(project.phase("exploration"), "Research Topics"),
        prompts.artifact_section(project.phase("exploration"), "Findings"),
    )


def _summarizing_prompt(project: ProjectView) -> str:
    return prompts.compose(
        prompts.header(project),
        "## Summarizing\n\n"
        "Write one or more summaries of the findings and register each as an "
        "artifact of type `summary` in the `exploration` phase. Every summary "
        "must be approved before finalizing.",
        prompts.artifact_section(project.phase("exploration"), "Artifacts"),
    )


def _finalizing_prompt(project: ProjectView) -> str:
    return prompts.compose(
        prompts.header(project),
        "## Finalizing\n\n"
        "Add tasks to the `finalization` phase for publishing the summaries "
        "(moving documents, opening a pull request) and complete all of them.",
        prompts.task_section(project.phase("finalization"), "Finalization Tasks"),
    )


def _orchestrator_prompt(project: ProjectView) -> str:
    return prompts.compose(
        prompts.header(project),
        "## Exploration lifecycle\n\n"
        "Active -> Summarizing -> Finalizing -> Completed. Research happens "
        "in tasks, conclusions are captured as approved `summary` artifacts.",
    )


def build() -> ProjectTypeConfig:
    """Build the exploration project type."""
    return (
        ProjectTypeBuilder(NAME, "Research a topic and summarize the findings")
        .initial_state(ACTIVE)
        .branch_prefix(BRANCH_PREFIX)
        .phase("exploration", ARTIFACTS_AND_TASKS, start_state=ACTIVE, end_state=SUMMARIZING)
        .phase(
            "finalization",
            TASKS_ONLY,
            start_state=FINALIZING,
            metadata_model=FinalizationMetadata,
            enabled=False,
        )
        .transition(
            ACTIVE,
            SUMMARIZING,
            BEGIN_SUMMARIZING,
            guard=CompositeGuard(
                phase_has_tasks("exploration"),
                phase_tasks_resolved("exploration"),
                name="all research tasks resolved",
            ),
            description="Research done; summarize",
        )
        .transition(
            SUMMARIZING,
            FINALIZING,
            COMPLETE_SUMMARIZING,
            guard=phase_artifacts_of_type_approved("exploration", SUMMARY),
            description="Summaries approved; finalize",
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
        .on_advance(ACTIVE, BEGIN_SUMMARIZING)
        .on_advance(SUMMARIZING, COMPLETE_SUMMARIZING)
        .on_advance(FINALIZING, COMPLETE_FINALIZATION)
        .prompt(ACTIVE, _active_prompt)
        .prompt(SUMMARIZING, _summarizing_prompt)
        .prompt(FINALIZING, _finalizing_prompt)
        .orchestrator_prompt(_orchestrator_prompt)
        .build()
    )
