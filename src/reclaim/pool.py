"""Worker pool and shared state for the parallel scan, filter and clean stages."""

from __future__ import annotations

import os
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable, TypeVar

from reclaim.errors import ConfigError

T = TypeVar("T")
R = TypeVar("R")


def resolve_thread_count(threads: int) -> int:
    """Map a configured thread count to a worker count (0 means all cores)."""
    if threads < 0:
        raise ConfigError(f"Thread count must be zero or positive, got {threads}")
    if threads == 0:
        return os.cpu_count() or 1
    return threads


class WorkerPool:
    """Fixed-size thread pool built once by the entry point and passed down.

    Every stage is a bounded fan-out/fan-in: ``map`` returns only after all
    items are processed, so stages never overlap.
    """

    def __init__(self, threads: int = 0) -> None:
        self.size = resolve_thread_count(threads)
        self._executor = ThreadPoolExecutor(
            max_workers=self.size, thread_name_prefix="reclaim"
        )

    def map(self, fn: Callable[[T], R], items: Iterable[T]) -> list[R]:
        """Apply ``fn`` to every item in parallel; results keep input order."""
        return list(self._executor.map(fn, items))

    def shutdown(self) -> None:
        self._executor.shutdown(wait=True)

    def __enter__(self) -> WorkerPool:
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown()


class ErrorLog:
    """Append-only list of messages shared between worker threads."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._messages: list[str] = []

    def append(self, message: str) -> None:
        with self._lock:
            self._messages.append(message)

    def messages(self) -> list[str]:
        """Snapshot of the recorded messages."""
        with self._lock:
            return list(self._messages)

    def __len__(self) -> int:
        with self._lock:
            return len(self._messages)
