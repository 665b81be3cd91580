"""Thread-safe holder of the load test completion percentage."""

from __future__ import annotations

import threading
from dataclasses import dataclass


@dataclass(frozen=True)
class ProgressState:
    """Point-in-time view of load test progress.

    Attributes:
        percent: Completion percentage in [0, 100].
        completed: True once the final value has been committed.
    """

    percent: int
    completed: bool = False


class ProgressTracker:
    """Synchronized cell holding a single progress percentage.

    The orchestrator's progress task is the only writer; renderers read it
    from other tasks or threads. A ``threading.Lock`` guards every access so
    a reader always sees one committed value. ``set`` overwrites
    unconditionally; values outside [0, 100] are clamped.
    """

    def __init__(self) -> None:
        """Initialize the tracker at 0%."""
        self._percent = 0
        self._lock = threading.Lock()
        self._finished = threading.Event()

    def set(self, percent: int) -> None:
        """Commit a new progress value.

        Args:
            percent: New completion percentage.
        """
        value = max(0, min(100, int(percent)))
        with self._lock:
            self._percent = value

    def get(self) -> int:
        """Return the last committed progress value."""
        with self._lock:
            return self._percent

    def snapshot(self) -> ProgressState:
        """Return the current value together with the completion flag."""
        with self._lock:
            return ProgressState(percent=self._percent, completed=self._finished.is_set())

    def finish(self) -> None:
        """Commit 100% and raise the completion signal."""
        with self._lock:
            self._percent = 100
            self._finished.set()

    @property
    def finished(self) -> bool:
        """Return True once ``finish()`` has been called."""
        return self._finished.is_set()

    def wait_finished(self, timeout: float | None = None) -> bool:
        """Block until ``finish()`` is called or ``timeout`` expires.

        Args:
            timeout: Maximum seconds to wait. None waits forever.

        Returns:
            True if the tracker finished, False on timeout.
        """
        return self._finished.wait(timeout)

    def reset(self) -> None:
        """Return the tracker to 0% and clear the completion signal."""
        with self._lock:
            self._percent = 0
            self._finished.clear()
