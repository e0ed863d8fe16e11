"""Elapsed recording time that only advances while running."""

import time
import threading
from typing import Callable, Optional


class ElapsedTimer:
    """Accumulates the duration of running intervals.

    Args:
        clock: Monotonic time source in seconds (injectable for tests)
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self.clock = clock
        self.lock = threading.Lock()
        self._accumulated = 0.0
        self._running_since: Optional[float] = None

    @property
    def is_running(self) -> bool:
        return self._running_since is not None

    def reset(self) -> None:
        with self.lock:
            self._accumulated = 0.0
            self._running_since = None

    def start(self) -> None:
        with self.lock:
            if self._running_since is None:
                self._running_since = self.clock()

    def freeze(self) -> None:
        with self.lock:
            if self._running_since is not None:
                self._accumulated += max(0.0, self.clock() - self._running_since)
                self._running_since = None

    def elapsed(self) -> float:
        with self.lock:
            total = self._accumulated
            if self._running_since is not None:
                total += max(0.0, self.clock() - self._running_since)
            return total

    def elapsed_seconds(self) -> int:
        """Whole seconds recorded so far."""
        return int(self.elapsed())
