"""Rich terminal display for reclaim."""

from __future__ import annotations

import threading
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from reclaim.detectors import SIGNATURES
from reclaim.filtering import artifact_mtime, format_age
from reclaim.models import CleanResult, ProjectCollection, ProjectType
from reclaim.sizes import format_size

console = Console()


class SpinnerProgress:
    """Indeterminate progress for the scan, with a live message."""

    def __init__(self, description: str = "Scanning...", progress: Optional[Progress] = None) -> None:
        self._progress = progress or Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            TimeElapsedColumn(),
            console=console,
            transient=True,
        )
        self._task: TaskID = self._progress.add_task(description, total=None)
        self._lock = threading.Lock()

    def __enter__(self) -> SpinnerProgress:
        self._progress.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self._progress.stop()

    def increment(self, count: int = 1) -> None:
        with self._lock:
            self._progress.advance(self._task, count)

    def set_message(self, text: str) -> None:
        with self._lock:
            self._progress.update(self._task, description=text)

    def finish(self, text: str) -> None:
        with self._lock:
            self._progress.update(self._task, description=text)


class BarProgress(SpinnerProgress):
    """Determinate progress bar for the cleanup, one step per project."""

    def __init__(self, total: int, description: str = "Cleaning...") -> None:
        progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=console,
        )
        super().__init__(description, progress)
        self._progress.update(self._task, total=total)

    def finish(self, text: str) -> None:
        with self._lock:
            task = self._progress.tasks[0]
            self._progress.update(self._task, completed=task.total, description=text)


def show_projects(collection: ProjectCollection) -> None:
    """Display the projects that would be cleaned."""
    table = Table(title="Found projects", show_header=True, header_style="bold")
    table.add_column("", width=3)
    table.add_column("Name")
    table.add_column("Type")
    table.add_column("Size", justify="right")
    table.add_column("Last built", justify="right")
    table.add_column("Path")

    for project in collection:
        table.add_row(
            project.kind.icon,
            project.name or "",
            project.kind.label,
            format_size(project.total_size),
            format_age(artifact_mtime(project)),
            str(project.root_path),
        )

    console.print(table)


def show_type_summary(collection: ProjectCollection) -> None:
    """Per-ecosystem counts and the total reclaimable space."""
    lines = []
    for kind, summary in collection.by_type().items():
        plural = "project" if summary.count == 1 else "projects"
        lines.append(
            f"{kind.icon} [bold]{summary.count}[/bold] {kind.label} {plural} "
            f"({format_size(summary.size)})"
        )
    lines.append(
        f"[bold]Total reclaimable space:[/bold] "
        f"[bold green]{format_size(collection.total_size)}[/bold green]"
    )
    console.print(Panel("\n".join(lines), title="Summary", border_style="blue"))


def show_nothing_to_do(message: str) -> None:
    console.print(f"[green]{message}[/green]")


def show_dry_run(collection: ProjectCollection) -> None:
    console.print(
        f"\n[yellow]DRY RUN complete![/yellow] "
        f"Would free up [bold]{format_size(collection.total_size)}[/bold]"
    )


def show_clean_summary(result: CleanResult) -> None:
    """Display the outcome of a cleanup run."""
    if result.errors:
        console.print("\n[yellow]Some errors occurred during cleanup:[/yellow]")
        for error in result.errors:
            console.print(f"  [red]{error}[/red]")

    console.print()
    console.print("[bold green]Cleanup Complete![/bold green]")

    table = Table(show_header=False)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")

    table.add_row("Projects cleaned", f"[green]{result.success_count}[/green]")
    if result.failure_count > 0:
        table.add_row("[red]Failed[/red]", str(result.failure_count))
    table.add_row("Space freed", f"[bold green]{format_size(result.total_freed)}[/bold green]")
    if result.total_freed != result.estimated_size:
        difference = abs(result.estimated_size - result.total_freed)
        table.add_row("Difference from estimate", f"[yellow]{format_size(difference)}[/yellow]")

    console.print(table)


def show_project_types() -> None:
    """List every supported ecosystem with its detection signature."""
    table = Table(title="Supported project types", show_header=True, header_style="bold")
    table.add_column("", width=3)
    table.add_column("Type")
    table.add_column("Name")
    table.add_column("Marker files")
    table.add_column("Artifact directories")

    for kind in ProjectType:
        markers, artifacts = SIGNATURES[kind]
        table.add_row(kind.icon, kind.value, kind.label, markers, artifacts)

    console.print(table)


def confirm_action(message: str) -> bool:
    """Ask for confirmation."""
    from rich.prompt import Confirm

    return Confirm.ask(message)
