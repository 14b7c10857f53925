"""Directory walking and project discovery for reclaim.

A scan runs in two stages on the shared worker pool:

1. Discovery walks the tree with ``os.scandir``, pruning directories that
   can never hold a project, and classifies every surviving directory.
2. Sizing measures every artifact found in stage one and drops projects
   whose artifacts turn out to be empty.
"""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from typing import Iterable, Optional

from reclaim.detectors import classify
from reclaim.models import BuildArtifact, Project, ProjectType, ScanOptions
from reclaim.pool import ErrorLog, WorkerPool
from reclaim.progress import NullProgress, ProgressSink
from reclaim.sizes import dir_size

log = logging.getLogger(__name__)


# Directories never entered during discovery (build outputs, VCS metadata,
# virtual environments, temp dirs, dependency caches).
EXCLUDED_DIRECTORIES = frozenset(
    {
        "target",
        "build",
        "dist",
        "out",
        ".git",
        ".svn",
        ".hg",
        "__pycache__",
        "venv",
        ".venv",
        "env",
        ".env",
        "temp",
        "tmp",
        "vendor",
        ".pytest_cache",
        ".tox",
        ".eggs",
        ".coverage",
        "node_modules",
        "obj",
        "_build",
        ".stack-work",
        "dist-newstyle",
        ".dart_tool",
        ".zig-cache",
        "zig-cache",
        "zig-out",
    }
)

# Hidden directories that may still contain projects.
HIDDEN_ALLOWED = frozenset({".cargo"})


def is_path_in_skip_list(relative_parts: tuple[str, ...], skip: Iterable[str]) -> bool:
    """Whether any component of a path (relative to the scan root) is skipped."""
    skip_set = set(skip)
    return any(part in skip_set for part in relative_parts)


def is_inside_node_modules(relative_parts: tuple[str, ...]) -> bool:
    return "node_modules" in relative_parts[:-1]


def is_hidden_directory_to_skip(name: str) -> bool:
    return name.startswith(".") and name not in HIDDEN_ALLOWED


def is_excluded_directory(name: str) -> bool:
    return name in EXCLUDED_DIRECTORIES


def should_descend(relative_parts: tuple[str, ...], skip: Iterable[str]) -> bool:
    """
    Decide whether a child directory is worth visiting.

    Args:
        relative_parts: Path components of the child relative to the scan root
        skip: User-supplied directory names to skip

    Returns:
        False if the directory is pruned (neither classified nor descended)
    """
    name = relative_parts[-1]
    if is_path_in_skip_list(relative_parts, skip):
        return False
    if is_inside_node_modules(relative_parts):
        return False
    if is_hidden_directory_to_skip(name):
        return False
    if is_excluded_directory(name):
        return False
    return True


class Scanner:
    """Finds projects with build artifacts under one or more roots."""

    def __init__(
        self,
        options: ScanOptions,
        pool: WorkerPool,
        progress: Optional[ProgressSink] = None,
        kinds: Optional[set[ProjectType]] = None,
    ) -> None:
        self.options = options
        self.pool = pool
        self.progress = progress or NullProgress()
        self.kinds = kinds
        self.error_log = ErrorLog()
        self._found_lock = threading.Lock()
        self._found = 0

    @property
    def errors(self) -> list[str]:
        return self.error_log.messages()

    def scan_directory(self, root: Path) -> list[Project]:
        """
        Scan a single root directory.

        Args:
            root: Directory to walk, made absolute before walking

        Returns:
            Projects with non-empty artifacts, in discovery order
        """
        root = Path(root).resolve()
        candidates = self._discover(root)

        classified = self.pool.map(self._classify_one, candidates)
        projects = [p for p in classified if p is not None]

        return self._size_projects(projects)

    def scan_directories(self, roots: Iterable[Path]) -> list[Project]:
        """Scan several roots, reporting each project root once."""
        projects: list[Project] = []
        seen: set[Path] = set()

        for root in roots:
            for project in self.scan_directory(root):
                if project.root_path in seen:
                    continue
                seen.add(project.root_path)
                projects.append(project)

        self.progress.finish(f"Found {len(projects)} projects")
        self.report_errors()
        return projects

    def report_errors(self) -> None:
        """Log recorded errors when running verbose."""
        if not self.options.verbose:
            return
        for message in self.error_log.messages():
            log.warning(message)

    def _discover(self, root: Path) -> list[Path]:
        """Collect the root and every unpruned directory below it."""
        candidates = [root]
        max_depth = self.options.max_depth
        pending: list[tuple[Path, int]] = [(root, 0)]

        while pending:
            current, depth = pending.pop()
            if max_depth is not None and depth >= max_depth:
                continue

            children = []
            try:
                with os.scandir(current) as entries:
                    for entry in entries:
                        try:
                            if entry.is_dir(follow_symlinks=False):
                                children.append(Path(entry.path))
                        except OSError:
                            continue
            except OSError as e:
                self.error_log.append(f"Error reading {current}: {e}")
                continue

            for child in sorted(children):
                relative_parts = child.relative_to(root).parts
                if not should_descend(relative_parts, self.options.skip):
                    continue
                candidates.append(child)
                pending.append((child, depth + 1))

        return candidates

    def _classify_one(self, path: Path) -> Optional[Project]:
        project = classify(
            path,
            error_log=self.error_log,
            verbose=self.options.verbose,
            kinds=self.kinds,
        )
        self.progress.increment()
        if project is not None:
            with self._found_lock:
                self._found += 1
                self.progress.set_message(f"Scanning... {self._found} projects found")
        return project

    def _size_projects(self, projects: list[Project]) -> list[Project]:
        unsized = [a for p in projects for a in p.artifacts if a.size is None]
        self.pool.map(_measure_artifact, unsized)
        return [p for p in projects if p.total_size > 0]


def _measure_artifact(artifact: BuildArtifact) -> None:
    artifact.size = dir_size(artifact.path)
