"""Tests for the Project aggregate: save-before-event, phase automation, actions."""

import pytest

from phasegate.application import Project
from phasegate.domain.exceptions import (
    DeterminerError,
    DocumentValidationError,
    FieldPathError,
    GuardFailedError,
    NoTransitionConfiguredError,
    PhaseNotFoundError,
    ProjectDeletedError,
    TransitionActionError,
)
from phasegate.domain.interfaces import CodeHostInterface
from phasegate.domain.models import PhaseStatus


def _approve_tasks(project: Project) -> None:
    implementation = project.phase("implementation")
    implementation.set_field("metadata.tasks_approved", "true")
    if not implementation.list_tasks():
        implementation.add_task("Wire OAuth callback")
    for task in implementation.list_tasks():
        implementation.set_task_status(task.id, "completed")


def _submit_review(project: Project, path: str, assessment: str) -> None:
    review = project.phase("review")
    review.add_artifact(path, type="review")
    review.set_artifact_field(path, "assessment", assessment)
    review.approve_artifact(path)


def _to_finalize_checks(project: Project) -> None:
    _submit_review(project, "review.md", "pass")
    project.advance()
    project.phase("finalize").set_field("metadata.documentation_assessed", "true")
    project.advance()


class ExplodingCodeHost(CodeHostInterface):
    def create_pull_request(self, title: str, body: str, branch: str) -> str:
        raise RuntimeError("unexpected client failure")


class TestCreation:
    def test_initial_document_written_once(self, standard_project, store) -> None:
        assert store.exists()
        assert store.writes == 1
        assert standard_project.dirty is False

    def test_initial_state_and_phase(self, standard_project) -> None:
        assert standard_project.current_state == "Planning"
        assert standard_project.current_phase().name == "planning"
        assert standard_project.phase("planning").status is PhaseStatus.IN_PROGRESS
        assert standard_project.phase("review").status is PhaseStatus.PENDING

    def test_unknown_phase(self, standard_project) -> None:
        with pytest.raises(PhaseNotFoundError, match="phase not found: deploy"):
            standard_project.phase("deploy")


class TestQueries:
    def test_transitions_and_guard_descriptions(self, standard_project) -> None:
        transitions = standard_project.transitions()

        assert [(t.event, t.target) for t in transitions] == [
            ("complete_planning", "Executing")
        ]
        assert transitions[0].guard_description == "latest task_list approved"
        assert standard_project.permitted_events() == []
        assert standard_project.can_fire("complete_planning") is False

    def test_check_reports_missing_work(self, standard_project) -> None:
        result = standard_project.check("complete_planning")

        assert not result.passed
        assert "task_list" in result.feedback

    def test_prompts(self, standard_project) -> None:
        assert "## Planning" in standard_project.prompt()
        assert "## Review" in standard_project.prompt("Reviewing")
        assert "Standard project lifecycle" in standard_project.orchestrator_prompt()

    def test_project_fields(self, standard_project, reload) -> None:
        standard_project.set_field("metadata.owner", "sam")
        standard_project.save()

        assert reload().get_field("metadata.owner") == "sam"


class TestSaveBeforeEvent:
    def test_mutations_only_mark_dirty(self, standard_project, store) -> None:
        standard_project.phase("planning").add_artifact("tasks.md", type="task_list")

        assert standard_project.dirty is True
        assert store.writes == 1

    def test_planning_to_executing(self, executing_project, reload, store) -> None:
        """The guard sees the approval even though save() was never called."""
        reloaded = reload()

        assert reloaded.current_state == "Executing"
        assert reloaded.phase("implementation").list_tasks() == []
        assert reloaded.phase("planning").get_artifact("tasks.md").approved is True
        assert [r.event for r in reloaded.history] == ["complete_planning"]
        assert store.writes == 3
        assert executing_project.dirty is False

    def test_blocked_fire_still_persists_mutations(self, standard_project, reload) -> None:
        standard_project.phase("planning").add_artifact("tasks.md", type="task_list")

        with pytest.raises(GuardFailedError):
            standard_project.advance()

        reloaded = reload()
        assert reloaded.current_state == "Planning"
        assert [a.path for a in reloaded.phase("planning").list_artifacts()] == [
            "tasks.md"
        ]

    def test_invalid_mutation_blocks_the_event(self, executing_project, store) -> None:
        implementation = executing_project.phase("implementation")
        implementation.set_field("metadata.tasks_approved", "yes")
        writes = store.writes

        with pytest.raises(DocumentValidationError) as exc_info:
            executing_project.advance()

        assert store.writes == writes
        assert executing_project.current_state == "Executing"
        assert any("tasks_approved" in e for e in exc_info.value.errors)

    def test_invalid_pr_url_rejected(self, standard_project) -> None:
        standard_project.phase("finalize").set_field("metadata.pr_url", "not-a-url")

        with pytest.raises(DocumentValidationError, match="pr_url"):
            standard_project.save()

    def test_transition_records_history(self, executing_project) -> None:
        record = executing_project.history[-1]

        assert (record.from_state, record.to_state) == ("Planning", "Executing")
        assert executing_project.state.statechart_updated_at == record.timestamp


class TestPhaseAutomation:
    def test_entering_and_leaving_phases(self, executing_project) -> None:
        planning = executing_project.phase("planning").view()
        implementation = executing_project.phase("implementation").view()

        assert planning.status is PhaseStatus.COMPLETED
        assert planning.completed_at is not None
        assert implementation.status is PhaseStatus.IN_PROGRESS
        assert implementation.started_at is not None
        assert implementation.iteration == 1
        assert executing_project.current_phase().name == "implementation"

    def test_guidance_emitted_after_transition(self, executing_project, guidance) -> None:
        assert len(guidance) == 1
        assert "## Implementation" in guidance[0]


class TestImplementationGate:
    def test_requires_approval_flag(self, executing_project) -> None:
        executing_project.phase("implementation").add_task("a")

        with pytest.raises(GuardFailedError) as exc_info:
            executing_project.advance()

        assert exc_info.value.result.guard_name == "implementation.tasks_approved"

    def test_all_abandoned_is_rejected(self, executing_project) -> None:
        implementation = executing_project.phase("implementation")
        implementation.set_field("metadata.tasks_approved", "true")
        implementation.add_task("a")
        implementation.add_task("b")
        implementation.set_task_status("010", "abandoned")
        implementation.set_task_status("020", "abandoned")

        with pytest.raises(GuardFailedError) as exc_info:
            executing_project.advance()

        assert exc_info.value.result.guard_name == "implementation has 1 completed task(s)"

        implementation.set_task_status("020", "completed")
        executing_project.advance()

        assert executing_project.current_state == "Reviewing"

    def test_open_tasks_block(self, executing_project) -> None:
        implementation = executing_project.phase("implementation")
        implementation.set_field("metadata.tasks_approved", "true")
        implementation.add_task("a")
        implementation.add_task("b")
        implementation.set_task_status("010", "completed")
        implementation.set_task_status("020", "needs_review")

        with pytest.raises(GuardFailedError, match="completed or abandoned"):
            executing_project.advance()


class TestReview:
    def test_no_approved_review(self, reviewing_project) -> None:
        reviewing_project.phase("review").add_artifact("review.md", type="review")

        with pytest.raises(DeterminerError, match="no approved review"):
            reviewing_project.advance()

    def test_review_without_assessment(self, reviewing_project) -> None:
        review = reviewing_project.phase("review")
        review.add_artifact("review.md", type="review")
        review.approve_artifact("review.md")

        with pytest.raises(DeterminerError, match="no valid assessment"):
            reviewing_project.advance()
        assert reviewing_project.current_state == "Reviewing"

    def test_metadata_assessment_fallback(self, reviewing_project) -> None:
        review = reviewing_project.phase("review")
        review.add_artifact("review.md", type="review")
        review.approve_artifact("review.md")
        review.set_field("metadata.assessment", "pass")

        assert reviewing_project.advance().event == "review_pass"

    def test_explicit_event_must_match_assessment(self, reviewing_project) -> None:
        _submit_review(reviewing_project, "review.md", "fail")

        with pytest.raises(GuardFailedError, match="review assessment is pass"):
            reviewing_project.fire("review_pass")

    def test_failed_review_loops_back(self, reviewing_project, reload) -> None:
        _submit_review(reviewing_project, "review.md", "fail")

        record = reviewing_project.advance()

        assert record.event == "review_fail"
        assert reviewing_project.current_state == "Executing"
        implementation = reviewing_project.phase("implementation").view()
        review = reviewing_project.phase("review").view()
        assert implementation.iteration == 2
        assert implementation.status is PhaseStatus.IN_PROGRESS
        assert implementation.completed_at is None
        assert "tasks_approved" not in implementation.metadata
        assert review.status is PhaseStatus.FAILED
        assert review.failed_at is not None

        reloaded = reload()
        assert reloaded.phase("implementation").iteration == 2
        assert reloaded.phase("review").status is PhaseStatus.FAILED

    def test_second_round_uses_latest_review(self, reviewing_project) -> None:
        _submit_review(reviewing_project, "review-1.md", "fail")
        reviewing_project.advance()

        with pytest.raises(GuardFailedError):
            reviewing_project.advance()

        _approve_tasks(reviewing_project)
        reviewing_project.advance()
        assert reviewing_project.phase("review").iteration == 2
        assert reviewing_project.phase("review").status is PhaseStatus.IN_PROGRESS

        _submit_review(reviewing_project, "review-2.md", "pass")
        assert reviewing_project.advance().event == "review_pass"
        assert reviewing_project.current_state == "FinalizeDocumentation"


class TestFinalize:
    def test_full_lifecycle(self, reviewing_project, store, code_host) -> None:
        _to_finalize_checks(reviewing_project)
        assert reviewing_project.current_state == "FinalizeChecks"

        finalize = reviewing_project.phase("finalize")
        finalize.set_field("metadata.checks_assessed", "true")
        reviewing_project.advance()

        assert reviewing_project.current_state == "FinalizeDelete"
        assert code_host.calls == [("add-oauth-login", "Add OAuth login", "feat/oauth")]
        assert finalize.get_field("metadata.pr_url") == code_host.url

        finalize.set_field("metadata.project_deleted", "true")
        reviewing_project.advance()

        assert reviewing_project.current_state == "NoProject"
        assert reviewing_project.deleted is True
        assert not store.exists()
        assert reviewing_project.is_terminal()
        assert finalize.status is PhaseStatus.COMPLETED

        with pytest.raises(NoTransitionConfiguredError):
            reviewing_project.advance()
        with pytest.raises(ProjectDeletedError):
            reviewing_project.save()

    def test_pull_request_failure_is_recorded(self, reviewing_project, code_host, reload) -> None:
        _to_finalize_checks(reviewing_project)
        code_host.fail = True

        reviewing_project.phase("finalize").set_field("metadata.checks_assessed", "true")
        reviewing_project.advance()

        assert reviewing_project.current_state == "FinalizeDelete"
        finalize = reload().phase("finalize")
        assert "not authenticated" in finalize.get_field("metadata.pr_error")
        with pytest.raises(FieldPathError, match="pr_url"):
            finalize.get_field("metadata.pr_url")

    def test_existing_pull_request_is_reused(self, reviewing_project, code_host) -> None:
        _to_finalize_checks(reviewing_project)
        finalize = reviewing_project.phase("finalize")
        finalize.set_field("metadata.pr_url", "https://github.com/acme/app/pull/1")
        finalize.set_field("metadata.checks_assessed", "true")

        reviewing_project.advance()

        assert code_host.calls == []

    def test_action_failure_is_not_persisted(self, reviewing_project, reload) -> None:
        _to_finalize_checks(reviewing_project)
        reviewing_project.code_host = ExplodingCodeHost()
        reviewing_project.phase("finalize").set_field("metadata.checks_assessed", "true")

        with pytest.raises(TransitionActionError, match="unexpected client failure"):
            reviewing_project.advance()

        assert reload().current_state == "FinalizeChecks"

    def test_action_failure_restores_in_memory_record(self, reviewing_project) -> None:
        _to_finalize_checks(reviewing_project)
        reviewing_project.phase("finalize").set_field("metadata.checks_assessed", "true")
        reviewing_project.save()
        before = reviewing_project.to_document()
        reviewing_project.code_host = ExplodingCodeHost()

        with pytest.raises(TransitionActionError):
            reviewing_project.advance()

        assert reviewing_project.current_state == "FinalizeChecks"
        assert reviewing_project.machine.state == reviewing_project.current_state
        assert reviewing_project.dirty is False
        assert reviewing_project.to_document() == before

    def test_retry_after_action_failure_records_one_transition(
        self, reviewing_project, code_host, reload
    ) -> None:
        _to_finalize_checks(reviewing_project)
        finalize = reviewing_project.phase("finalize")
        finalize.set_field("metadata.checks_assessed", "true")
        reviewing_project.code_host = ExplodingCodeHost()
        with pytest.raises(TransitionActionError):
            reviewing_project.advance()

        reviewing_project.code_host = code_host
        reviewing_project.advance()

        events = [r.event for r in reload().history]
        assert events.count("checks_done") == 1
        assert reload().current_state == "FinalizeDelete"
        assert finalize.get_field("metadata.pr_url") == code_host.url
