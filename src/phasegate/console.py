"""Rich console utilities for the phasegate command line."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from phasegate.application.machine import Transition
from phasegate.domain.models import ArtifactView, PhaseView, ProjectView, TaskView

# Shared console instances
console = Console()
error_console = Console(stderr=True)


def print_error(message: str, hint: str | None = None) -> None:
    """Print formatted error message to stderr."""
    content = Text(f"ERROR: {message}", style="bold red")
    if hint:
        content.append(f"\n\nHint: {hint}", style="yellow")
    error_console.print(Panel(content, title="Error", border_style="red"))


def print_blocked(message: str, hint: str | None = None) -> None:
    """Print a transition blocked by an unmet precondition."""
    content = Text(f"blocked: {message}", style="bold yellow")
    if hint:
        content.append(f"\n\nHint: {hint}", style="dim")
    error_console.print(Panel(content, title="Blocked", border_style="yellow"))


def print_success(message: str) -> None:
    """Print success message."""
    console.print(Panel(message, title="Success", border_style="green"))


def print_guidance(text: str) -> None:
    """Render state guidance as markdown."""
    console.print(Markdown(text))


def print_status(
    project: ProjectView,
    transitions: Sequence[Transition],
    permitted: Sequence[str],
) -> None:
    """Print project overview, phase table and available transitions."""
    info = Table(show_header=False, box=None)
    info.add_column("Key", style="cyan")
    info.add_column("Value")
    info.add_row("Project", project.name)
    info.add_row("Type", project.type)
    info.add_row("Branch", project.branch)
    info.add_row("State", project.current_state)
    console.print(info)

    console.print("\n[bold]Phases:[/bold]")
    console.print(phase_table(project.phases.values()))

    console.print("\n[bold]Transitions:[/bold]")
    if not transitions:
        console.print("  (terminal state)")
    for transition in transitions:
        if transition.event in permitted:
            mark = "[green]ready[/green]"
        else:
            mark = "[yellow]blocked[/yellow]"
        guard = (
            f" (requires: {transition.guard_description})" if transition.guard else ""
        )
        console.print(f"  {transition.event} -> {transition.target} {mark}{guard}")


def phase_table(phases: Iterable[PhaseView]) -> Table:
    table = Table(show_header=True, box=None)
    table.add_column("Phase", style="cyan")
    table.add_column("Status")
    table.add_column("Enabled")
    table.add_column("Iteration", justify="right")
    table.add_column("Artifacts", justify="right")
    table.add_column("Tasks", justify="right")
    for phase in phases:
        table.add_row(
            phase.name,
            phase.status.value,
            "yes" if phase.enabled else "no",
            str(phase.iteration),
            str(len(phase.artifacts)),
            str(len(phase.tasks)),
        )
    return table


def print_artifacts(artifacts: Sequence[ArtifactView]) -> None:
    table = Table(show_header=True, box=None)
    table.add_column("#", style="dim", justify="right")
    table.add_column("Path", style="cyan")
    table.add_column("Type")
    table.add_column("Approved")
    table.add_column("Assessment")
    for index, artifact in enumerate(artifacts):
        table.add_row(
            str(index),
            artifact.path,
            artifact.type or "",
            "yes" if artifact.approved else "no",
            artifact.assessment or "",
        )
    console.print(table)


def print_tasks(tasks: Sequence[TaskView]) -> None:
    table = Table(show_header=True, box=None)
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Status")
    table.add_column("Parallel")
    table.add_column("Depends on")
    for task in tasks:
        table.add_row(
            task.id,
            task.name,
            task.status.value,
            "yes" if task.parallel else "no",
            ", ".join(task.dependencies),
        )
    console.print(table)
