"""
phasegate command line.

Every command follows the same shape: load the project document, mutate
it, save, and optionally advance. Errors are mapped to exit codes in one
place (PhasegateGroup.invoke):

    0  success
    1  transition blocked or invalid, or another domain error
    3  configuration error
    4  document validation error
    5  storage error
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from functools import cached_property
from pathlib import Path
from typing import Any

import click

from phasegate import __version__
from phasegate.application import (
    Phase,
    Project,
    ProjectTypeRegistry,
    create,
    load,
)
from phasegate.config import WORKSPACE_ENV, Settings, load_settings, resolve_workspace
from phasegate.console import (
    console,
    print_artifacts,
    print_blocked,
    print_error,
    print_guidance,
    print_status,
    print_success,
    print_tasks,
)
from phasegate.domain.exceptions import (
    ConfigurationError,
    DocumentValidationError,
    GuardFailedError,
    NoTransitionConfiguredError,
    PhasegateError,
    StorageError,
    TransitionError,
)
from phasegate.domain.interfaces import CodeHostInterface
from phasegate.domain.models import TaskStatus, TransitionRecord
from phasegate.infrastructure import (
    FilesystemDocumentStore,
    GitHubCLIClient,
    SystemClock,
)
from phasegate.logging_setup import setup_logging
from phasegate.projects import default_registry

logger = logging.getLogger(__name__)

EXIT_ERROR = 1
EXIT_CONFIGURATION = 3
EXIT_VALIDATION = 4
EXIT_STORAGE = 5


def exit_code_for(error: PhasegateError) -> int:
    if isinstance(error, ConfigurationError):
        return EXIT_CONFIGURATION
    if isinstance(error, DocumentValidationError):
        return EXIT_VALIDATION
    if isinstance(error, StorageError):
        return EXIT_STORAGE
    return EXIT_ERROR


def report_error(error: PhasegateError) -> None:
    if isinstance(error, GuardFailedError):
        print_blocked(
            str(error).removeprefix("blocked: "),
            hint="record the missing work, then run `phasegate advance` again",
        )
    elif isinstance(error, NoTransitionConfiguredError):
        print_error(str(error), hint="the project has reached the end of its lifecycle")
    elif isinstance(error, TransitionError):
        print_error(
            str(error), hint="run `phasegate status` to see available transitions"
        )
    elif isinstance(error, StorageError):
        print_error(str(error), hint="run `phasegate new` to start a project")
    else:
        print_error(str(error))


class PhasegateGroup(click.Group):
    """Click group that turns domain errors into panels and exit codes."""

    def invoke(self, ctx: click.Context) -> Any:
        try:
            return super().invoke(ctx)
        except PhasegateError as e:
            logger.debug("Command failed", exc_info=True)
            report_error(e)
            ctx.exit(exit_code_for(e))


@dataclass
class AppContext:
    """Per-invocation wiring: settings, store, registry and adapters."""

    workspace: Path
    settings: Settings
    registry: ProjectTypeRegistry = field(default_factory=default_registry)
    clock: SystemClock = field(default_factory=SystemClock)

    @cached_property
    def store(self) -> FilesystemDocumentStore:
        return FilesystemDocumentStore.for_workspace(
            self.workspace, self.settings.state_file
        )

    @cached_property
    def code_host(self) -> CodeHostInterface | None:
        if self.settings.code_host == "gh":
            return GitHubCLIClient(cwd=str(self.workspace))
        return None

    def load(self) -> Project:
        return load(
            self.store,
            self.registry,
            self.clock,
            code_host=self.code_host,
            guidance=print_guidance,
        )


pass_app = click.make_pass_decorator(AppContext)


def _phase(project: Project, name: str | None) -> Phase:
    if name is not None:
        return project.phase(name)
    current = project.current_phase()
    if current is None:
        raise click.UsageError("no phase is in progress; pass --phase")
    return current


_INDEX_REF = re.compile(r"[0-9]+")


def _artifact_ref(phase: Phase, ref: str) -> str | int:
    # An exact path wins; otherwise a plain ASCII number selects by index.
    if any(a.path == ref for a in phase.list_artifacts()):
        return ref
    return int(ref) if _INDEX_REF.fullmatch(ref) else ref


def _format_value(value: Any) -> str:
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, indent=2, sort_keys=True)
    if value is None:
        return ""
    return str(value)


def _report_transition(record: TransitionRecord) -> None:
    print_success(f"{record.from_state} -> {record.to_state} ({record.event})")


def _save_and_maybe_advance(project: Project, advance: bool) -> None:
    project.save()
    if advance:
        _report_transition(project.advance())


advance_option = click.option(
    "--advance",
    "advance",
    is_flag=True,
    help="Advance the project after saving the change",
)
phase_option = click.option(
    "--phase",
    "phase_name",
    default=None,
    help="Phase name (default: the phase in progress)",
)


# =============================================================================
# ROOT
# =============================================================================


@click.group(cls=PhasegateGroup)
@click.version_option(__version__, prog_name="phasegate")
@click.option(
    "--workspace",
    default=None,
    envvar=WORKSPACE_ENV,
    type=click.Path(file_okay=False),
    help=f"Workspace root (default: ${WORKSPACE_ENV} or the current directory)",
)
@click.option(
    "--log-file", default=None, type=click.Path(), help="Append logs to this file"
)
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose (DEBUG) logging")
@click.pass_context
def cli(
    ctx: click.Context, workspace: str | None, log_file: str | None, verbose: bool
) -> None:
    """Guarded lifecycle state machine for multi-phase projects."""
    root = resolve_workspace(workspace)
    settings = load_settings(root)
    log_path = log_file or settings.log_file
    if log_path is not None and not Path(log_path).is_absolute():
        log_path = str(root / log_path)
    setup_logging(log_file=log_path, verbose=verbose or settings.verbose)
    ctx.obj = AppContext(workspace=root, settings=settings)


@cli.command()
@click.option("--branch", required=True, help="Branch the project lives on")
@click.option("--description", required=True, help="What the project is about")
@click.option(
    "--type",
    "project_type",
    default=None,
    help="Project type (default: from branch prefix)",
)
@click.option(
    "--name", default=None, help="Project name (default: derived from description)"
)
@pass_app
def new(
    app: AppContext,
    branch: str,
    description: str,
    project_type: str | None,
    name: str | None,
) -> None:
    """Create a project in this workspace."""
    project = create(
        app.store,
        app.registry,
        app.clock,
        branch=branch,
        description=description,
        project_type=project_type,
        name=name,
        code_host=app.code_host,
    )
    print_success(
        f"Created {project.type} project '{project.name}' at {project.current_state}"
    )
    text = project.prompt()
    if text:
        print_guidance(text)


@cli.command()
@pass_app
def status(app: AppContext) -> None:
    """Show state, phases and available transitions."""
    project = app.load()
    print_status(project.view(), project.transitions(), project.permitted_events())


@cli.command()
@click.option(
    "--event", default=None, help="Fire this event instead of the determined one"
)
@click.option(
    "--dry-run", is_flag=True, help="Only check whether the transition is allowed"
)
@pass_app
def advance(app: AppContext, event: str | None, dry_run: bool) -> None:
    """Move the project to its next state."""
    project = app.load()
    if dry_run:
        if event is None:
            events = project.permitted_events()
            console.print(", ".join(events) if events else "no transition is ready")
            return
        result = project.check(event)
        if not result.passed:
            raise GuardFailedError(project.current_state, event, result)
        console.print(f"{event} is ready")
        return
    record = project.fire(event) if event is not None else project.advance()
    _report_transition(record)


@cli.command()
@click.option(
    "--orchestrator", is_flag=True, help="Show the lifecycle overview instead"
)
@click.option("--state", default=None, help="Render guidance for another state")
@pass_app
def prompt(app: AppContext, orchestrator: bool, state: str | None) -> None:
    """Print guidance for the current state."""
    project = app.load()
    text = project.orchestrator_prompt() if orchestrator else project.prompt(state)
    if text:
        print_guidance(text)
    else:
        console.print("No guidance for this state.")


@cli.command()
@pass_app
def types(app: AppContext) -> None:
    """List registered project types."""
    for config in app.registry:
        prefix = (
            f" (branch prefix: {config.branch_prefix})" if config.branch_prefix else ""
        )
        console.print(f"[cyan]{config.name}[/cyan]: {config.description}{prefix}")


# =============================================================================
# FIELDS
# =============================================================================


def _field_target(
    project: Project,
    phase_name: str | None,
    task_id: str | None,
    artifact: str | None,
) -> tuple[Any, Any]:
    """(getter, setter) pair for the addressed record."""
    if task_id is not None and artifact is not None:
        raise click.UsageError("--task and --artifact are mutually exclusive")
    if phase_name is None and task_id is None and artifact is None:
        return project.get_field, project.set_field
    phase = _phase(project, phase_name)
    if task_id is not None:
        return (
            lambda path: phase.get_task_field(task_id, path),
            lambda path, value: phase.set_task_field(task_id, path, value),
        )
    if artifact is not None:
        ref = _artifact_ref(phase, artifact)
        return (
            lambda path: phase.get_artifact_field(ref, path),
            lambda path, value: phase.set_artifact_field(ref, path, value),
        )
    return phase.get_field, phase.set_field


target_options = [
    click.option("--phase", "phase_name", default=None, help="Address a phase field"),
    click.option("--task", "task_id", default=None, help="Address a task in the phase"),
    click.option(
        "--artifact", default=None, help="Address an artifact (path or index)"
    ),
]


def _with_target_options(func: Any) -> Any:
    for option in reversed(target_options):
        func = option(func)
    return func


@cli.command(name="set")
@click.argument("path")
@click.argument("value")
@_with_target_options
@advance_option
@pass_app
def set_command(
    app: AppContext,
    path: str,
    value: str,
    phase_name: str | None,
    task_id: str | None,
    artifact: str | None,
    advance: bool,
) -> None:
    """Set a field or metadata.<key> path (project level without --phase)."""
    project = app.load()
    _, setter = _field_target(project, phase_name, task_id, artifact)
    setter(path, value)
    _save_and_maybe_advance(project, advance)
    console.print(f"{path} = {value}")


@cli.command(name="get")
@click.argument("path")
@_with_target_options
@pass_app
def get_command(
    app: AppContext,
    path: str,
    phase_name: str | None,
    task_id: str | None,
    artifact: str | None,
) -> None:
    """Read a field or metadata.<key> path."""
    project = app.load()
    getter, _ = _field_target(project, phase_name, task_id, artifact)
    click.echo(_format_value(getter(path)))


# =============================================================================
# ARTIFACTS
# =============================================================================


@cli.group()
def artifact() -> None:
    """Manage phase artifacts."""


@artifact.command(name="add")
@click.argument("path")
@click.option(
    "--type", "artifact_type", default=None, help="Type tag (e.g. task_list, review)"
)
@phase_option
@pass_app
def artifact_add(
    app: AppContext, path: str, artifact_type: str | None, phase_name: str | None
) -> None:
    """Register a produced artifact."""
    project = app.load()
    phase = _phase(project, phase_name)
    phase.add_artifact(path, type=artifact_type)
    project.save()
    console.print(f"Added {path} to {phase.name}")


@artifact.command(name="approve")
@click.argument("ref")
@phase_option
@advance_option
@pass_app
def artifact_approve(
    app: AppContext, ref: str, phase_name: str | None, advance: bool
) -> None:
    """Approve an artifact by path or index."""
    project = app.load()
    phase = _phase(project, phase_name)
    approved = phase.approve_artifact(_artifact_ref(phase, ref))
    console.print(f"Approved {approved.path}")
    _save_and_maybe_advance(project, advance)


@artifact.command(name="list")
@phase_option
@pass_app
def artifact_list(app: AppContext, phase_name: str | None) -> None:
    """List artifacts of a phase."""
    project = app.load()
    print_artifacts(_phase(project, phase_name).list_artifacts())


# =============================================================================
# TASKS
# =============================================================================


@cli.group()
def task() -> None:
    """Manage phase tasks."""


@task.command(name="add")
@click.argument("name")
@click.option(
    "--id", "task_id", default=None, help="Explicit id (three or more digits)"
)
@click.option("--parallel", is_flag=True, help="Task may run in parallel")
@click.option(
    "--depends",
    "dependencies",
    multiple=True,
    help="Id of a task this one depends on",
)
@phase_option
@pass_app
def task_add(
    app: AppContext,
    name: str,
    task_id: str | None,
    parallel: bool,
    dependencies: tuple[str, ...],
    phase_name: str | None,
) -> None:
    """Add a task with a gap-numbered id."""
    project = app.load()
    phase = _phase(project, phase_name)
    added = phase.add_task(
        name, id=task_id, parallel=parallel, dependencies=dependencies
    )
    project.save()
    console.print(f"Added task {added.id} to {phase.name}")


@task.command(name="status")
@click.argument("task_id")
@click.argument("new_status", type=click.Choice([s.value for s in TaskStatus]))
@phase_option
@advance_option
@pass_app
def task_status(
    app: AppContext,
    task_id: str,
    new_status: str,
    phase_name: str | None,
    advance: bool,
) -> None:
    """Set a task's status."""
    project = app.load()
    phase = _phase(project, phase_name)
    updated = phase.set_task_status(task_id, new_status)
    console.print(f"Task {updated.id}: {updated.status.value}")
    _save_and_maybe_advance(project, advance)


@task.command(name="list")
@click.option(
    "--status",
    "status_filter",
    default=None,
    type=click.Choice([s.value for s in TaskStatus]),
)
@phase_option
@pass_app
def task_list(
    app: AppContext, status_filter: str | None, phase_name: str | None
) -> None:
    """List tasks of a phase."""
    project = app.load()
    status_value = TaskStatus(status_filter) if status_filter else None
    print_tasks(_phase(project, phase_name).list_tasks(status_value))


def main() -> None:
    """Console-script entry point."""
    cli(prog_name="phasegate")


if __name__ == "__main__":
    main()
