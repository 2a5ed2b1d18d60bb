"""
Standard project type: plan, implement, review, finalize.

    Planning --complete_planning--> Executing --all_tasks_complete--> Reviewing
    Reviewing --review_pass--> FinalizeDocumentation
    Reviewing --review_fail--> Executing            (loop-back, review failed)
    FinalizeDocumentation --documentation_done--> FinalizeChecks
    FinalizeChecks --checks_done--> FinalizeDelete   (opens a pull request)
    FinalizeDelete --project_delete--> NoProject     (removes the document)
"""

import logging
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, StrictBool, StringConstraints

from phasegate.application.phase import ARTIFACTS_AND_TASKS, ARTIFACTS_ONLY
from phasegate.application.project import Project
from phasegate.application.project_type import ProjectTypeBuilder, ProjectTypeConfig
from phasegate.domain.exceptions import CodeHostError, DeterminerError
from phasegate.domain.models import ArtifactView, ProjectView
from phasegate.guards import (
    CompositeGuard,
    PredicateGuard,
    phase_has_tasks,
    phase_latest_artifact_approved,
    phase_metadata_flag,
    phase_min_completed,
    phase_tasks_resolved,
)
from phasegate.projects import prompts

logger = logging.getLogger(__name__)

NAME = "standard"

# States
PLANNING = "Planning"
EXECUTING = "Executing"
REVIEWING = "Reviewing"
FINALIZE_DOCUMENTATION = "FinalizeDocumentation"
FINALIZE_CHECKS = "FinalizeChecks"
FINALIZE_DELETE = "FinalizeDelete"
NO_PROJECT = "NoProject"

# Events
COMPLETE_PLANNING = "complete_planning"
ALL_TASKS_COMPLETE = "all_tasks_complete"
REVIEW_PASS = "review_pass"
REVIEW_FAIL = "review_fail"
DOCUMENTATION_DONE = "documentation_done"
CHECKS_DONE = "checks_done"
PROJECT_DELETE = "project_delete"

# Artifact type tags
TASK_LIST = "task_list"
REVIEW = "review"

PullRequestUrl = Annotated[str, StringConstraints(pattern=r"^https?://")]


# =============================================================================
# PHASE METADATA
# =============================================================================


class ImplementationMetadata(BaseModel):
    model_config = ConfigDict(extra="allow")

    tasks_approved: StrictBool | None = None


class ReviewMetadata(BaseModel):
    model_config = ConfigDict(extra="allow")

    assessment: Literal["pass", "fail"] | None = None


class FinalizeMetadata(BaseModel):
    model_config = ConfigDict(extra="allow")

    documentation_assessed: StrictBool | None = None
    checks_assessed: StrictBool | None = None
    project_deleted: StrictBool | None = None
    pr_url: PullRequestUrl | None = None
    pr_error: str | None = None


# =============================================================================
# REVIEW ASSESSMENT
# =============================================================================


def latest_approved_review(project: ProjectView) -> ArtifactView | None:
    phase = project.phase("review")
    if phase is None:
        return None
    for artifact in reversed(phase.artifacts):
        if artifact.type == REVIEW and artifact.approved is True:
            return artifact
    return None


def review_assessment(project: ProjectView) -> str | None:
    """Assessment of the latest approved review; falls back to review metadata."""
    review = latest_approved_review(project)
    if review is None:
        return None
    if review.assessment is not None:
        return review.assessment
    phase = project.phase("review")
    value = phase.metadata.get("assessment") if phase is not None else None
    return value if isinstance(value, str) else None


def determine_review_outcome(project: ProjectView) -> str:
    if latest_approved_review(project) is None:
        raise DeterminerError(REVIEWING, "no approved review artifact")
    assessment = review_assessment(project)
    if assessment == "pass":
        return REVIEW_PASS
    if assessment == "fail":
        return REVIEW_FAIL
    raise DeterminerError(
        REVIEWING,
        f"review has no valid assessment (got {assessment!r}, expected pass or fail)",
    )


def _assessment_is(expected: str) -> PredicateGuard:
    return PredicateGuard(
        f"review assessment is {expected}",
        lambda project: review_assessment(project) == expected,
        feedback=f"the latest approved review must be assessed '{expected}'",
    )


# =============================================================================
# ACTIONS
# =============================================================================


def _reset_task_approval(project: Project) -> None:
    project.state.phases["implementation"].metadata.pop("tasks_approved", None)


def _open_pull_request(project: Project) -> None:
    finalize = project.state.phases["finalize"]
    if project.code_host is None or finalize.metadata.get("pr_url"):
        return
    try:
        url = project.code_host.create_pull_request(
            title=project.name,
            body=project.state.description,
            branch=project.branch,
        )
    except CodeHostError as e:
        logger.warning("Pull request creation failed for %s: %s", project.name, e)
        finalize.metadata["pr_error"] = str(e)
        return
    finalize.metadata["pr_url"] = url
    finalize.metadata.pop("pr_error", None)
    logger.info("Opened pull request %s", url)


def _delete_project(project: Project) -> None:
    project.delete()


# =============================================================================
# PROMPTS
# =============================================================================


def _planning_prompt(project: ProjectView) -> str:
    return prompts.compose(
        prompts.header(project),
        "## Planning\n\n"
        "Gather context and confirm requirements with the user, then write a "
        "task list. Register it as an artifact of type `task_list` in the "
        "`planning` phase and ask the user to approve it.",
        prompts.artifact_section(project.phase("planning"), "Planning Artifacts"),
    )


def _executing_prompt(project: ProjectView) -> str:
    phase = project.phase("implementation")
    iteration = phase.iteration if phase is not None else 1
    rework = (
        f"\nThis is iteration {iteration}: address the findings of the failed review.\n"
        if iteration > 1
        else ""
    )
    return prompts.compose(
        prompts.header(project),
        "## Implementation\n\n"
        "Break the approved task list into tasks in the `implementation` "
        "phase. When the user approves the breakdown set "
        "`metadata.tasks_approved` to true, then work through the tasks "
        "until every one is completed or abandoned." + rework,
        prompts.task_section(phase, "Tasks"),
    )


def _reviewing_prompt(project: ProjectView) -> str:
    return prompts.compose(
        prompts.header(project),
        "## Review\n\n"
        "Review the implementation against the task list. Add a `review` "
        "artifact to the `review` phase, set its `assessment` to `pass` or "
        "`fail` and get it approved. Advancing then either moves on to "
        "finalization or returns to implementation.",
        prompts.artifact_section(project.phase("review"), "Reviews"),
    )


def _finalize_documentation_prompt(project: ProjectView) -> str:
    return prompts.compose(
        prompts.header(project),
        "## Finalize: documentation\n\n"
        "Update documentation affected by the change, then set "
        "`metadata.documentation_assessed` to true on the `finalize` phase.",
    )


def _finalize_checks_prompt(project: ProjectView) -> str:
    return prompts.compose(
        prompts.header(project),
        "## Finalize: checks\n\n"
        "Run the test suite, linters and formatters and fix what they report. "
        "Set `metadata.checks_assessed` to true on the `finalize` phase when "
        "everything is green.",
    )


def _finalize_delete_prompt(project: ProjectView) -> str:
    phase = project.phase("finalize")
    pr_url = phase.metadata.get("pr_url") if phase is not None else None
    pr_line = f"Pull request: {pr_url}\n\n" if pr_url else ""
    return prompts.compose(
        prompts.header(project),
        "## Finalize: cleanup\n\n"
        + pr_line
        + "Confirm with the user that the project state can be removed, then set "
        "`metadata.project_deleted` to true on the `finalize` phase and advance.",
    )


def _orchestrator_prompt(project: ProjectView) -> str:
    return prompts.compose(
        prompts.header(project),
        "## Standard project lifecycle\n\n"
        "Planning -> Executing -> Reviewing -> FinalizeDocumentation -> "
        "FinalizeChecks -> FinalizeDelete. A failed review returns to "
        "Executing with a new implementation iteration.\n\n"
        "Record every piece of progress with phasegate commands (artifacts, "
        "tasks, metadata) before running `phasegate advance`; transitions are "
        "only allowed once the document shows the required work.",
    )


# =============================================================================
# CONFIGURATION
# =============================================================================


def build() -> ProjectTypeConfig:
    """Build the standard project type."""
    implementation_done = CompositeGuard(
        phase_metadata_flag("implementation", "tasks_approved"),
        phase_has_tasks("implementation"),
        phase_tasks_resolved("implementation"),
        phase_min_completed("implementation", 1),
        name="implementation tasks approved and complete",
    )
    review_approved = phase_latest_artifact_approved("review", REVIEW)

    return (
        ProjectTypeBuilder(NAME, "Plan, implement, review and finalize a change")
        .initial_state(PLANNING)
        .phase("planning", ARTIFACTS_ONLY, start_state=PLANNING)
        .phase(
            "implementation",
            ARTIFACTS_AND_TASKS,
            start_state=EXECUTING,
            metadata_model=ImplementationMetadata,
        )
        .phase("review", ARTIFACTS_ONLY, start_state=REVIEWING, metadata_model=ReviewMetadata)
        .phase(
            "finalize",
            ARTIFACTS_ONLY,
            start_state=FINALIZE_DOCUMENTATION,
            end_state=FINALIZE_DELETE,
            metadata_model=FinalizeMetadata,
        )
        .transition(
            PLANNING,
            EXECUTING,
            COMPLETE_PLANNING,
            guard=phase_latest_artifact_approved("planning", TASK_LIST),
            description="Task list approved; start implementation",
        )
        .transition(
            EXECUTING,
            REVIEWING,
            ALL_TASKS_COMPLETE,
            guard=implementation_done,
            description="All implementation tasks resolved; start review",
        )
        .transition(
            REVIEWING,
            FINALIZE_DOCUMENTATION,
            REVIEW_PASS,
            guard=CompositeGuard(review_approved, _assessment_is("pass")),
            description="Review passed; finalize",
        )
        .transition(
            REVIEWING,
            EXECUTING,
            REVIEW_FAIL,
            guard=CompositeGuard(review_approved, _assessment_is("fail")),
            description="Review failed; rework implementation",
            on_entry=_reset_task_approval,
            failed_phase="review",
        )
        .transition(
            FINALIZE_DOCUMENTATION,
            FINALIZE_CHECKS,
            DOCUMENTATION_DONE,
            guard=phase_metadata_flag("finalize", "documentation_assessed"),
            description="Documentation updated",
        )
        .transition(
            FINALIZE_CHECKS,
            FINALIZE_DELETE,
            CHECKS_DONE,
            guard=phase_metadata_flag("finalize", "checks_assessed"),
            description="Checks pass; open pull request",
            on_entry=_open_pull_request,
        )
        .transition(
            FINALIZE_DELETE,
            NO_PROJECT,
            PROJECT_DELETE,
            guard=phase_metadata_flag("finalize", "project_deleted"),
            description="Remove the project state",
            on_entry=_delete_project,
        )
        .on_advance(PLANNING, COMPLETE_PLANNING)
        .on_advance(EXECUTING, ALL_TASKS_COMPLETE)
        .on_advance(REVIEWING, determine_review_outcome)
        .on_advance(FINALIZE_DOCUMENTATION, DOCUMENTATION_DONE)
        .on_advance(FINALIZE_CHECKS, CHECKS_DONE)
        .on_advance(FINALIZE_DELETE, PROJECT_DELETE)
        .prompt(PLANNING, _planning_prompt)
        .prompt(EXECUTING, _executing_prompt)
        .prompt(REVIEWING, _reviewing_prompt)
        .prompt(FINALIZE_DOCUMENTATION, _finalize_documentation_prompt)
        .prompt(FINALIZE_CHECKS, _finalize_checks_prompt)
        .prompt(FINALIZE_DELETE, _finalize_delete_prompt)
        .orchestrator_prompt(_orchestrator_prompt)
        .build()
    )
