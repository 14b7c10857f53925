"""Parallel removal of build artifacts."""

from __future__ import annotations

import logging
import shutil
import threading
from pathlib import Path
from typing import Callable, Optional

from reclaim.executables import preserve_executables
from reclaim.models import CleanResult, PreservedFile, Project, RemovalStrategy
from reclaim.pool import ErrorLog, WorkerPool
from reclaim.progress import NullProgress, ProgressSink
from reclaim.sizes import dir_size
from reclaim.trash import move_to_trash

log = logging.getLogger(__name__)

PreserveHook = Callable[[Project], list[PreservedFile]]


def remove_directory(path: Path, strategy: RemovalStrategy) -> None:
    """Remove a directory tree permanently or by moving it to the trash."""
    if strategy == RemovalStrategy.TRASH:
        move_to_trash(path)
    else:
        shutil.rmtree(path)


def delete_path(path: Path, strategy: RemovalStrategy) -> tuple[int, Optional[str]]:
    """
    Measure and delete one artifact directory.

    Args:
        path: Artifact directory
        strategy: Permanent removal or trash

    Returns:
        Tuple of (bytes_freed, error_message); a directory that no longer
        exists frees 0 bytes without error
    """
    try:
        if not path.exists():
            return 0, None
        size = dir_size(path)
        remove_directory(path, strategy)
    except OSError as e:
        return 0, f"Failed to clean {path}: {e}"

    return size, None


class _CleanTotals:
    """Byte counter shared by the cleanup workers."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.freed = 0
        self.failed_projects = 0

    def add(self, freed: int, failed: bool) -> None:
        with self._lock:
            self.freed += freed
            if failed:
                self.failed_projects += 1


def clean_single_project(
    project: Project,
    keep_executables: bool,
    strategy: RemovalStrategy,
    errors: ErrorLog,
    preserve: PreserveHook = preserve_executables,
) -> tuple[int, bool]:
    """
    Clean every artifact of one project.

    Args:
        project: Project to clean
        keep_executables: Run the preservation hook first
        strategy: Permanent removal or trash
        errors: Shared log receiving one message per failed artifact
        preserve: Hook copying outputs worth keeping

    Returns:
        Tuple of (bytes_freed, succeeded)
    """
    if keep_executables:
        try:
            preserve(project)
        except OSError as e:
            log.warning("Failed to preserve executables for %s: %s", project.root_path, e)

    freed = 0
    succeeded = True
    for artifact in project.artifacts:
        size, error = delete_path(artifact.path, strategy)
        freed += size
        if error:
            errors.append(error)
            succeeded = False

    return freed, succeeded


def clean_projects(
    projects: list[Project],
    keep_executables: bool,
    strategy: RemovalStrategy,
    pool: WorkerPool,
    progress: Optional[ProgressSink] = None,
    preserve: PreserveHook = preserve_executables,
) -> CleanResult:
    """
    Delete the artifacts of every project in parallel.

    A failure in one project never stops the others.

    Args:
        projects: Projects to clean
        keep_executables: Preserve compiled outputs before deleting
        strategy: Permanent removal or trash
        pool: Worker pool to run on
        progress: Sink advanced once per finished project
        preserve: Hook used when ``keep_executables`` is set

    Returns:
        CleanResult with counts, freed bytes and error messages
    """
    progress = progress or NullProgress()
    errors = ErrorLog()
    totals = _CleanTotals()
    estimated_size = sum(p.total_size for p in projects)

    def clean_one(project: Project) -> None:
        progress.set_message(f"Cleaning {project.root_path}")
        freed, succeeded = clean_single_project(
            project, keep_executables, strategy, errors, preserve
        )
        totals.add(freed, not succeeded)
        progress.increment()

    pool.map(clean_one, projects)
    progress.finish("Cleanup complete")

    return CleanResult(
        success_count=len(projects) - totals.failed_projects,
        failure_count=totals.failed_projects,
        total_freed=totals.freed,
        estimated_size=estimated_size,
        errors=errors.messages(),
    )
