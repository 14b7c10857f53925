"""Post-scan filtering and sorting of projects."""

from __future__ import annotations

import time
from datetime import datetime, timedelta
from typing import Optional

from reclaim.models import FilterOptions, Project, ProjectType, SortCriterion, SortOptions
from reclaim.pool import WorkerPool
from reclaim.sizes import parse_size

SECONDS_PER_DAY = 24 * 60 * 60

# Alphabetical by enum value, used when sorting by type.
TYPE_ORDER: dict[ProjectType, int] = {
    kind: index for index, kind in enumerate(sorted(ProjectType, key=lambda k: k.value))
}


def artifact_mtime(project: Project) -> Optional[float]:
    """Modification time of the project's primary artifact, or None if unreadable."""
    artifact = project.primary_artifact
    if artifact is None:
        return None
    try:
        return artifact.path.stat().st_mtime
    except OSError:
        return None


def meets_size_criteria(project: Project, min_size: int) -> bool:
    return project.total_size >= min_size


def meets_age_criteria(project: Project, min_age_days: int, now: Optional[float] = None) -> bool:
    """
    Check whether a project's artifacts are old enough to be cleaned.

    Projects whose modification time cannot be read are kept.
    """
    if min_age_days == 0:
        return True

    mtime = artifact_mtime(project)
    if mtime is None:
        return True

    now = time.time() if now is None else now
    return mtime <= now - min_age_days * SECONDS_PER_DAY


def filter_projects(
    projects: list[Project],
    filter_options: FilterOptions,
    pool: Optional[WorkerPool] = None,
) -> list[Project]:
    """
    Keep the projects that meet the size and age thresholds.

    Args:
        projects: Scanned projects
        filter_options: Minimum size and age
        pool: Evaluate the predicates on this pool when given

    Returns:
        Matching projects in their original order

    Raises:
        InvalidSizeFormat: If ``min_size`` cannot be parsed
        SizeOverflow: If ``min_size`` is too large
    """
    min_size = parse_size(filter_options.min_size)
    min_age_days = filter_options.min_age_days
    now = time.time()

    def keep(project: Project) -> bool:
        return meets_size_criteria(project, min_size) and meets_age_criteria(
            project, min_age_days, now
        )

    if pool is not None:
        verdicts = pool.map(keep, projects)
    else:
        verdicts = [keep(p) for p in projects]

    return [p for p, kept in zip(projects, verdicts) if kept]


def sort_projects(projects: list[Project], sort_options: SortOptions) -> None:
    """Sort projects in place by the selected criterion."""
    criterion = sort_options.criterion
    if criterion is None:
        return

    if criterion == SortCriterion.SIZE:
        projects.sort(key=lambda p: p.total_size, reverse=True)
    elif criterion == SortCriterion.AGE:
        # Read every mtime once; unreadable ones sort as the oldest.
        decorated = [(artifact_mtime(p) or 0.0, i, p) for i, p in enumerate(projects)]
        decorated.sort(key=lambda item: (item[0], item[1]))
        projects[:] = [p for _, _, p in decorated]
    elif criterion == SortCriterion.NAME:
        projects.sort(key=lambda p: (p.name or "").lower())
    elif criterion == SortCriterion.TYPE:
        projects.sort(key=lambda p: TYPE_ORDER[p.kind])

    if sort_options.reverse:
        projects.reverse()


def format_age(mtime: Optional[float]) -> str:
    """Human-readable age of a modification time, e.g. '3 days ago'."""
    if mtime is None:
        return "unknown"
    age = datetime.now() - datetime.fromtimestamp(mtime)
    if age < timedelta(days=1):
        return "today"
    days = age.days
    if days < 30:
        return f"{days} day{'s' if days != 1 else ''} ago"
    if days < 365:
        months = days // 30
        return f"{months} month{'s' if months != 1 else ''} ago"
    years = days // 365
    return f"{years} year{'s' if years != 1 else ''} ago"
