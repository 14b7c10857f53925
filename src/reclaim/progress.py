"""Progress reporting interface used by the scanner and cleaner."""

from typing import Protocol


class ProgressSink(Protocol):
    """Receives progress updates from worker threads.

    Implementations must tolerate calls from several threads at once.
    """

    def increment(self, count: int = 1) -> None: ...

    def set_message(self, text: str) -> None: ...

    def finish(self, text: str) -> None: ...


class NullProgress:
    """Progress sink that discards everything (quiet and JSON runs)."""

    def increment(self, count: int = 1) -> None:
        pass

    def set_message(self, text: str) -> None:
        pass

    def finish(self, text: str) -> None:
        pass
