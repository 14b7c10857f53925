"""Copy compiled outputs out of artifact directories before they are deleted."""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

from reclaim.models import PreservedFile, Project, ProjectType

log = logging.getLogger(__name__)

RUST_PROFILES = ("release", "debug")

# Build by-products that share the target/ directory with real binaries.
RUST_EXCLUDED_EXTENSIONS = frozenset({"d", "rmeta", "rlib", "a", "so", "dylib", "dll", "pdb"})

PYTHON_EXTENSION_SUFFIXES = (".so", ".pyd")


def is_executable(path: Path) -> bool:
    return path.is_file() and os.access(path, os.X_OK)


def preserve_rust_executables(project: Project) -> list[PreservedFile]:
    """Copy binaries from target/<profile>/ into bin/<profile>/."""
    preserved: list[PreservedFile] = []
    target_dir = project.root_path / "target"

    for profile in RUST_PROFILES:
        profile_dir = target_dir / profile
        if not profile_dir.is_dir():
            continue

        dest_dir = project.root_path / "bin" / profile
        for source in sorted(profile_dir.iterdir()):
            extension = source.suffix.lstrip(".")
            if extension in RUST_EXCLUDED_EXTENSIONS or not is_executable(source):
                continue

            dest_dir.mkdir(parents=True, exist_ok=True)
            destination = dest_dir / source.name
            shutil.copy2(source, destination)
            preserved.append(PreservedFile(source=source, destination=destination))

    return preserved


def preserve_python_executables(project: Project) -> list[PreservedFile]:
    """Copy wheels from dist/ and compiled extensions from build/ into bin/."""
    sources: list[Path] = []

    dist_dir = project.root_path / "dist"
    if dist_dir.is_dir():
        sources.extend(sorted(dist_dir.glob("*.whl")))

    build_dir = project.root_path / "build"
    if build_dir.is_dir():
        sources.extend(
            sorted(p for p in build_dir.rglob("*") if p.suffix in PYTHON_EXTENSION_SUFFIXES)
        )

    preserved: list[PreservedFile] = []
    dest_dir = project.root_path / "bin"
    for source in sources:
        if not source.is_file():
            continue
        dest_dir.mkdir(parents=True, exist_ok=True)
        destination = dest_dir / source.name
        shutil.copy2(source, destination)
        preserved.append(PreservedFile(source=source, destination=destination))

    return preserved


def preserve_executables(project: Project) -> list[PreservedFile]:
    """
    Save the useful outputs of a project before its artifacts are deleted.

    Only Rust and Python projects have anything worth keeping; every other
    ecosystem returns an empty list.

    Args:
        project: Project about to be cleaned

    Returns:
        Files that were copied

    Raises:
        OSError: If a copy fails
    """
    if project.kind == ProjectType.RUST:
        preserved = preserve_rust_executables(project)
    elif project.kind == ProjectType.PYTHON:
        preserved = preserve_python_executables(project)
    else:
        return []

    for item in preserved:
        log.debug("Preserved %s -> %s", item.source, item.destination)
    return preserved
