"""CLI interface for reclaim."""

import logging
from pathlib import Path
from typing import NoReturn, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from reclaim import __version__
from reclaim.cleaner import clean_projects
from reclaim.config import (
    FileConfig,
    Settings,
    config_path,
    format_config,
    init_config,
    load_config,
    resolve_settings,
)
from reclaim.display import (
    BarProgress,
    SpinnerProgress,
    confirm_action,
    console,
    show_clean_summary,
    show_dry_run,
    show_nothing_to_do,
    show_project_types,
    show_projects,
    show_type_summary,
)
from reclaim.errors import ConfigError, ReclaimError
from reclaim.filtering import filter_projects, sort_projects
from reclaim.models import ProjectCollection, RemovalStrategy, SortCriterion
from reclaim.output import JsonOutput
from reclaim.pool import WorkerPool
from reclaim.progress import NullProgress
from reclaim.scanner import Scanner
from reclaim.sizes import format_size, parse_size
from reclaim.trash import find_trash_command

log = logging.getLogger(__name__)

err_console = Console(stderr=True)

app = typer.Typer(
    name="reclaim",
    help="Find and remove build artifacts from development projects",
    add_completion=False,
)

config_app = typer.Typer(help="Manage the configuration file.", add_completion=False)
app.add_typer(config_app, name="config")


# =============================================================================
# Shared options
# =============================================================================

DirsArgument = typer.Argument(None, help="Directories to scan (default: current directory)")
ProjectTypeOption = typer.Option(
    None, "--project-type", "-p", help="Only this project type (e.g. rust, node, all)"
)
KeepSizeOption = typer.Option(
    None, "--keep-size", "-s", help="Ignore projects smaller than this (e.g. 50MB, 1GiB)"
)
KeepDaysOption = typer.Option(
    None, "--keep-days", "-d", min=0, help="Ignore projects built within the last N days"
)
SortOption = typer.Option(None, "--sort", help="Sort by size, age, name or type")
ReverseOption = typer.Option(False, "--reverse", help="Reverse the sort order")
ThreadsOption = typer.Option(
    None, "--threads", "-t", help="Worker threads (0 = all CPU cores)"
)
VerboseOption = typer.Option(False, "--verbose", "-v", help="Report unreadable directories")
SkipOption = typer.Option(None, "--skip", help="Directory name to skip (repeatable)")
IgnoreOption = typer.Option(None, "--ignore", help="Directory name to ignore (repeatable)")
MaxDepthOption = typer.Option(None, "--max-depth", min=0, help="Maximum depth to descend")
JsonOption = typer.Option(False, "--json", help="Print a JSON report instead of tables")


def setup_logging(verbose: bool) -> None:
    """Send log records to stderr through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def fail(message: str) -> NoReturn:
    """Print an error and exit with status 1."""
    err_console.print(f"[red]Error: {message}[/red]")
    raise typer.Exit(1)


def load_file_config(json_output: bool) -> FileConfig:
    """Config file values, or defaults with a warning if the file is broken."""
    try:
        return load_config()
    except ConfigError as e:
        if not json_output:
            log.warning("Failed to load config file: %s", e)
        return FileConfig()


def print_json(output: JsonOutput) -> None:
    typer.echo(output.to_json())


def collect_projects(
    settings: Settings, pool: WorkerPool, json_output: bool
) -> tuple[int, ProjectCollection]:
    """Scan, filter and sort; returns the number found before filtering too."""
    if json_output:
        scanner = Scanner(settings.scan, pool, kinds=settings.kinds)
        projects = scanner.scan_directories(settings.dirs)
    else:
        with SpinnerProgress("Scanning...") as progress:
            scanner = Scanner(settings.scan, pool, progress, settings.kinds)
            projects = scanner.scan_directories(settings.dirs)
        console.print(f"Found {len(projects)} projects")

    found = len(projects)
    projects = filter_projects(projects, settings.filter, pool)
    sort_projects(projects, settings.sort)
    return found, ProjectCollection(projects)


def report_nothing(json_output: bool, message: str) -> None:
    if json_output:
        print_json(JsonOutput.from_projects_dry_run([]))
    else:
        show_nothing_to_do(message)


def prepare(
    json_output: bool,
    verbose: bool,
    **cli_values,
) -> Settings:
    """Resolve settings and reject bad usage before any scanning starts."""
    setup_logging(verbose)
    file_config = load_file_config(json_output)

    try:
        settings = resolve_settings(file_config, verbose=verbose, **cli_values)
        parse_size(settings.filter.min_size)
    except ReclaimError as e:
        fail(str(e))

    if json_output and settings.interactive:
        fail("--json and --interactive cannot be used together")

    return settings


def run_scan(settings: Settings, json_output: bool) -> Optional[tuple[ProjectCollection, WorkerPool]]:
    """Build the pool and collect projects; None when there is nothing to do."""
    try:
        pool = WorkerPool(settings.scan.threads)
    except ConfigError as e:
        fail(str(e))

    found, collection = collect_projects(settings, pool, json_output)

    if not collection:
        pool.shutdown()
        if found == 0:
            report_nothing(json_output, "No development directories found!")
        else:
            report_nothing(json_output, "No directories match the specified criteria!")
        return None

    if not json_output:
        console.print()
        show_projects(collection)
        show_type_summary(collection)

    return collection, pool


# =============================================================================
# Commands
# =============================================================================


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"reclaim version {__version__}")
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """reclaim - find and remove build artifacts from development projects."""
    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())
        raise typer.Exit()


@app.command()
def scan(
    dirs: Optional[list[Path]] = DirsArgument,
    project_type: Optional[str] = ProjectTypeOption,
    keep_size: Optional[str] = KeepSizeOption,
    keep_days: Optional[int] = KeepDaysOption,
    sort: Optional[SortCriterion] = SortOption,
    reverse: bool = ReverseOption,
    threads: Optional[int] = ThreadsOption,
    verbose: bool = VerboseOption,
    skip: Optional[list[str]] = SkipOption,
    ignore: Optional[list[str]] = IgnoreOption,
    max_depth: Optional[int] = MaxDepthOption,
    json_output: bool = JsonOption,
) -> None:
    """Find projects with build artifacts and report them. Nothing is deleted."""
    settings = prepare(
        json_output,
        verbose,
        dirs=dirs,
        project_type=project_type,
        keep_size=keep_size,
        keep_days=keep_days,
        sort=sort,
        reverse=reverse,
        threads=threads,
        skip=skip,
        ignore=ignore,
        max_depth=max_depth,
    )

    scanned = run_scan(settings, json_output)
    if scanned is None:
        return
    collection, pool = scanned
    pool.shutdown()

    if json_output:
        print_json(JsonOutput.from_projects_dry_run(collection.projects))
    else:
        console.print("\n[dim]Run [bold]reclaim clean[/bold] with the same options to remove them[/dim]")


@app.command()
def clean(
    dirs: Optional[list[Path]] = DirsArgument,
    project_type: Optional[str] = ProjectTypeOption,
    keep_size: Optional[str] = KeepSizeOption,
    keep_days: Optional[int] = KeepDaysOption,
    sort: Optional[SortCriterion] = SortOption,
    reverse: bool = ReverseOption,
    threads: Optional[int] = ThreadsOption,
    verbose: bool = VerboseOption,
    skip: Optional[list[str]] = SkipOption,
    ignore: Optional[list[str]] = IgnoreOption,
    max_depth: Optional[int] = MaxDepthOption,
    json_output: bool = JsonOption,
    yes: bool = typer.Option(False, "-y", "--yes", help="Skip confirmation prompts"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show what would be freed without deleting"),
    interactive: bool = typer.Option(
        False, "--interactive", "-i", help="Choose projects from an interactive list"
    ),
    keep_executables: bool = typer.Option(
        False, "--keep-executables", "-k", help="Copy compiled executables to <project>/bin first"
    ),
    permanent: bool = typer.Option(
        False, "--permanent", help="Delete permanently instead of moving to the trash"
    ),
) -> None:
    """Remove build artifacts from the projects found."""
    settings = prepare(
        json_output,
        verbose,
        dirs=dirs,
        project_type=project_type,
        keep_size=keep_size,
        keep_days=keep_days,
        sort=sort,
        reverse=reverse,
        threads=threads,
        skip=skip,
        ignore=ignore,
        max_depth=max_depth,
        keep_executables=keep_executables,
        interactive=interactive,
        dry_run=dry_run,
        permanent=permanent,
    )

    if json_output and not (yes or settings.dry_run):
        fail("--json needs --yes (or --dry-run) because it cannot prompt")

    strategy = RemovalStrategy.from_use_trash(settings.use_trash)
    if strategy == RemovalStrategy.TRASH and not settings.dry_run and find_trash_command() is None:
        fail("No trash command found. Install trash-cli, or pass --permanent.")

    scanned = run_scan(settings, json_output)
    if scanned is None:
        return
    collection, pool = scanned

    with pool:
        keep = settings.keep_executables

        if settings.interactive:
            try:
                from reclaim.tui import select_projects
            except ImportError:
                console.print("[red]Interactive selection not available.[/red]")
                console.print("Install with: [bold]pip install reclaim[tui][/bold]")
                raise typer.Exit(1)

            collection = select_projects(collection)
            if not collection:
                show_nothing_to_do("No projects selected for cleaning!")
                return
            if not keep:
                keep = confirm_action("Keep compiled executables before cleaning?")

        if settings.dry_run:
            if json_output:
                print_json(JsonOutput.from_projects_dry_run(collection.projects))
            else:
                show_dry_run(collection)
            return

        if not yes and not settings.interactive:
            console.print()
            verb = "Move" if strategy == RemovalStrategy.TRASH else "Permanently delete"
            prompt = (
                f"{verb} build artifacts of {len(collection)} projects "
                f"({format_size(collection.total_size)})?"
            )
            if not confirm_action(prompt):
                console.print("[yellow]Cancelled[/yellow]")
                raise typer.Exit(0)

        projects = collection.projects
        if json_output:
            result = clean_projects(projects, keep, strategy, pool, NullProgress())
            print_json(JsonOutput.from_projects_cleanup(projects, result))
        else:
            with BarProgress(len(projects)) as progress:
                result = clean_projects(projects, keep, strategy, pool, progress)
            show_clean_summary(result)


@app.command()
def types() -> None:
    """List the supported project types."""
    show_project_types()


@config_app.command("path")
def config_path_command() -> None:
    """Print where the config file is read from."""
    typer.echo(str(config_path()))


@config_app.command("show")
def config_show() -> None:
    """Show the effective configuration."""
    path = config_path()
    try:
        file_config = load_config(path)
    except ConfigError as e:
        fail(str(e))

    state = "" if path.exists() else " [dim](not found, using defaults)[/dim]"
    console.print(f"[bold]Config file:[/bold] {path}{state}\n")
    console.print(format_config(file_config), markup=False, highlight=False)


@config_app.command("init")
def config_init() -> None:
    """Write a commented config file with every default."""
    path = config_path()
    try:
        written = init_config(path)
    except OSError as e:
        fail(f"Failed to write config file {path}: {e}")

    if written:
        console.print(f"[green]Config file written to: {path}[/green]")
    else:
        console.print(f"Config file already exists at: {path}")
        console.print("Remove it first if you want to regenerate it.")


if __name__ == "__main__":
    app()
