"""Shared fixtures for reclaim tests."""

from pathlib import Path

import pytest

from reclaim.pool import WorkerPool


def write_bytes(path: Path, size: int) -> Path:
    """Create a file of exactly ``size`` bytes, creating parents as needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"x" * size)
    return path


@pytest.fixture
def pool():
    with WorkerPool(4) as worker_pool:
        yield worker_pool
