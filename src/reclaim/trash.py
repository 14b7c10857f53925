"""Recoverable deletion through the platform's trash command."""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path
from typing import Optional

from reclaim.errors import TrashUnavailable

TRASH_TIMEOUT = 120

# Tried in order; the first one on PATH is used.
TRASH_COMMANDS: list[tuple[str, ...]] = [
    ("trash",),
    ("trash-put",),
    ("gio", "trash"),
    ("kioclient5", "move"),
]


def find_trash_command() -> Optional[tuple[str, ...]]:
    """First available trash command, or None."""
    for command in TRASH_COMMANDS:
        if shutil.which(command[0]):
            return command
    return None


def build_trash_args(command: tuple[str, ...], path: Path) -> list[str]:
    args = [*command, str(path)]
    if command[0] == "kioclient5":
        args.append("trash:/")
    return args


def move_to_trash(path: Path) -> None:
    """
    Move a directory to the trash.

    Args:
        path: Directory to move

    Raises:
        TrashUnavailable: If no trash command is installed
        OSError: If the trash command fails
    """
    command = find_trash_command()
    if command is None:
        raise TrashUnavailable(
            "No trash command found (install trash-cli, or use --permanent)"
        )

    try:
        result = subprocess.run(
            build_trash_args(command, path),
            capture_output=True,
            text=True,
            timeout=TRASH_TIMEOUT,
        )
    except subprocess.TimeoutExpired as e:
        raise OSError(f"{command[0]} timed out after {TRASH_TIMEOUT}s") from e

    if result.returncode != 0:
        message = result.stderr.strip() or f"exit status {result.returncode}"
        raise OSError(f"{command[0]} failed: {message}")
