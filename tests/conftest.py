"""Shared pytest fixtures for phasegate tests."""

import pytest

from phasegate.application import Project, ProjectTypeRegistry, create, load
from phasegate.domain.exceptions import CodeHostError
from phasegate.domain.interfaces import CodeHostInterface
from phasegate.domain.models import (
    ArtifactState,
    PhaseState,
    PhaseStatus,
    ProjectState,
    TaskState,
    TaskStatus,
)
from phasegate.infrastructure import FixedClock, InMemoryDocumentStore
from phasegate.projects import default_registry


class FakeCodeHost(CodeHostInterface):
    """Records pull request requests; optionally fails."""

    def __init__(
        self, url: str = "https://github.com/acme/app/pull/7", fail: bool = False
    ):
        self.url = url
        self.fail = fail
        self.calls: list[tuple[str, str, str]] = []

    def create_pull_request(self, title: str, body: str, branch: str) -> str:
        self.calls.append((title, body, branch))
        if self.fail:
            raise CodeHostError("gh pr create failed: not authenticated")
        return self.url


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def registry() -> ProjectTypeRegistry:
    return default_registry()


@pytest.fixture
def code_host() -> FakeCodeHost:
    return FakeCodeHost()


@pytest.fixture
def guidance() -> list[str]:
    """Collects guidance emitted after transitions."""
    return []


@pytest.fixture
def reload(store, registry, clock, code_host):
    """Load a fresh Project from the store, as a new CLI invocation would."""

    def _reload() -> Project:
        return load(store, registry, clock, code_host=code_host)

    return _reload


@pytest.fixture
def standard_project(store, registry, clock, code_host, guidance) -> Project:
    """A freshly created standard project sitting in Planning."""
    return create(
        store,
        registry,
        clock,
        branch="feat/oauth",
        description="Add OAuth login",
        code_host=code_host,
        guidance=guidance.append,
    )


@pytest.fixture
def executing_project(standard_project: Project) -> Project:
    """Standard project advanced to Executing with an approved task list."""
    planning = standard_project.phase("planning")
    planning.add_artifact("tasks.md", type="task_list")
    planning.approve_artifact("tasks.md")
    standard_project.advance()
    return standard_project


@pytest.fixture
def reviewing_project(executing_project: Project) -> Project:
    """Standard project advanced to Reviewing with one completed task."""
    implementation = executing_project.phase("implementation")
    implementation.set_field("metadata.tasks_approved", "true")
    task = implementation.add_task("Wire OAuth callback")
    implementation.set_task_status(task.id, "completed")
    executing_project.advance()
    return executing_project


@pytest.fixture
def exploration_project(store, registry, clock, guidance) -> Project:
    """A freshly created exploration project sitting in Active."""
    return create(
        store,
        registry,
        clock,
        branch="explore/caching",
        description="Caching strategies",
        guidance=guidance.append,
    )


@pytest.fixture
def design_project(store, registry, clock, guidance) -> Project:
    """A freshly created design project sitting in Active."""
    return create(
        store,
        registry,
        clock,
        branch="design/auth",
        description="Auth service design",
        guidance=guidance.append,
    )


@pytest.fixture
def breakdown_project(store, registry, clock, guidance) -> Project:
    """A freshly created breakdown project sitting in Active."""
    return create(
        store,
        registry,
        clock,
        branch="breakdown/auth",
        description="Auth service work units",
        guidance=guidance.append,
    )


@pytest.fixture
def sample_state() -> ProjectState:
    """A hand-built project record with artifacts, tasks and metadata."""
    return ProjectState(
        name="add-oauth-login",
        type="standard",
        branch="feat/oauth",
        description="Add OAuth login",
        created_at="2025-01-01T00:00:00+00:00",
        updated_at="2025-01-01T00:00:05+00:00",
        current_state="Executing",
        statechart_updated_at="2025-01-01T00:00:04+00:00",
        phases={
            "planning": PhaseState(
                created_at="2025-01-01T00:00:00+00:00",
                status=PhaseStatus.COMPLETED,
                started_at="2025-01-01T00:00:00+00:00",
                completed_at="2025-01-01T00:00:04+00:00",
                artifacts=[
                    ArtifactState(
                        path="tasks.md",
                        created_at="2025-01-01T00:00:01+00:00",
                        type="task_list",
                        approved=True,
                    )
                ],
            ),
            "implementation": PhaseState(
                created_at="2025-01-01T00:00:00+00:00",
                status=PhaseStatus.IN_PROGRESS,
                started_at="2025-01-01T00:00:04+00:00",
                tasks=[
                    TaskState(
                        id="010",
                        name="Wire OAuth callback",
                        created_at="2025-01-01T00:00:05+00:00",
                        status=TaskStatus.IN_PROGRESS,
                        artifacts=["src/callback.py"],
                    ),
                    TaskState(
                        id="020",
                        name="Store tokens",
                        created_at="2025-01-01T00:00:05+00:00",
                        dependencies=["010"],
                        metadata={"estimate": 3},
                    ),
                ],
                metadata={"tasks_approved": True, "notes": {"owner": "sam"}},
            ),
        },
    )
