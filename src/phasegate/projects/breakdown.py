"""
Breakdown project type: decompose a feature into publishable work units.

    Active --begin_publishing--> Publishing --complete_breakdown--> Completed

A single ``breakdown`` phase spans both working states. Each work unit is
a task; its specification is a ``work_unit_spec`` artifact. Work units are
published (for example as issues) by setting ``metadata.published=true``
on the task.
"""

from phasegate.application.phase import ARTIFACTS_AND_TASKS
from phasegate.application.project_type import ProjectTypeBuilder, ProjectTypeConfig
from phasegate.domain.models import ProjectView, TaskStatus
from phasegate.guards import (
    CompositeGuard,
    phase_completed_tasks_flagged,
    phase_dependencies_valid,
    phase_has_tasks,
    phase_min_completed,
    phase_tasks_resolved,
)
from phasegate.projects import prompts

NAME = "breakdown"
BRANCH_PREFIX = "breakdown/"

ACTIVE = "Active"
PUBLISHING = "Publishing"
COMPLETED = "Completed"

BEGIN_PUBLISHING = "begin_publishing"
COMPLETE_BREAKDOWN = "complete_breakdown"

WORK_UNIT_SPEC = "work_unit_spec"
PUBLISHED = "published"


def _unpublished(project: ProjectView) -> list[str]:
    phase = project.phase("breakdown")
    if phase is None:
        return []
    return [
        t.id
        for t in phase.tasks
        if t.status is TaskStatus.COMPLETED and t.metadata.get(PUBLISHED) is not True
    ]


def _active_prompt(project: ProjectView) -> str:
    return prompts.compose(
        prompts.header(project),
        "## Decomposing\n\n"
        "Split the feature into work units, one task each in the `breakdown` "
        f"phase, and write a `{WORK_UNIT_SPEC}` artifact per unit. Declare "
        "ordering with task dependencies; they must not form a cycle. "
        "Complete approved units and abandon the ones you drop.",
        prompts.task_section(project.phase("breakdown"), "Work Units"),
        prompts.artifact_section(project.phase("breakdown"), "Specifications"),
    )


def _publishing_prompt(project: ProjectView) -> str:
    pending = _unpublished(project)
    status = (
        "Unpublished work units: " + ", ".join(pending)
        if pending
        else "Every completed work unit is published. Advance to complete."
    )
    return prompts.compose(
        prompts.header(project),
        "## Publishing\n\n"
        "Publish each completed work unit in dependency order, then set "
        f"`metadata.{PUBLISHED}=true` on its task.",
        status,
        prompts.task_section(project.phase("breakdown"), "Work Units"),
    )


def _orchestrator_prompt(project: ProjectView) -> str:
    return prompts.compose(
        prompts.header(project),
        "## Breakdown lifecycle\n\n"
        "Active -> Publishing -> Completed. Work units are tasks with "
        f"`{WORK_UNIT_SPEC}` artifacts; publishing marks each one published.",
    )


def build() -> ProjectTypeConfig:
    """Build the breakdown project type."""
    return (
        ProjectTypeBuilder(NAME, "Decompose a feature into work units")
        .initial_state(ACTIVE)
        .branch_prefix(BRANCH_PREFIX)
        .phase("breakdown", ARTIFACTS_AND_TASKS, start_state=ACTIVE, end_state=PUBLISHING)
        .transition(
            ACTIVE,
            PUBLISHING,
            BEGIN_PUBLISHING,
            guard=CompositeGuard(
                phase_has_tasks("breakdown"),
                phase_tasks_resolved("breakdown"),
                phase_min_completed("breakdown"),
                phase_dependencies_valid("breakdown"),
                name="all work units approved and dependencies valid",
            ),
            description="Work units approved; publish",
        )
        .transition(
            PUBLISHING,
            COMPLETED,
            COMPLETE_BREAKDOWN,
            guard=phase_completed_tasks_flagged("breakdown", PUBLISHED),
            description="All work units published",
        )
        .on_advance(ACTIVE, BEGIN_PUBLISHING)
        .on_advance(PUBLISHING, COMPLETE_BREAKDOWN)
        .prompt(ACTIVE, _active_prompt)
        .prompt(PUBLISHING, _publishing_prompt)
        .orchestrator_prompt(_orchestrator_prompt)
        .build()
    )
