"""
Completion tracker: the shared success counter and the progress cadence.
"""

from __future__ import annotations

import math
import threading
import time
from typing import Callable, Optional

from pgdbgen.pipeline.events import LoadEventSink, ProgressEvent

MIN_ELAPSED = 0.001


def log_step(target: int, pcent: int) -> int:
    """
    Successful records between progress events.

    `round(target * pcent / 100)` with halves rounded up, never below 1.
    """
    if target <= 0:
        return 0
    return max(1, math.floor(target * pcent / 100.0 + 0.5))


class CompletionTracker:
    """
    Counts committed records and decides when the load is done.

    `record_success` increments and reads the counter in one step, so the
    value it returns is unique to the caller even under contention.
    """

    def __init__(
        self,
        target: int,
        step: int,
        sink: Optional[LoadEventSink] = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.target = target
        self.step = step
        self._sink = sink
        self._clock = clock
        self._lock = threading.Lock()
        self._inserted = 0
        self._duplicates = 0
        self._start = clock()

    @property
    def inserted(self) -> int:
        with self._lock:
            return self._inserted

    @property
    def duplicates(self) -> int:
        with self._lock:
            return self._duplicates

    @property
    def reached(self) -> bool:
        return self.inserted >= self.target

    def elapsed(self) -> float:
        return max(self._clock() - self._start, MIN_ELAPSED)

    def rate(self, count: Optional[int] = None) -> float:
        if count is None:
            count = self.inserted
        return count / self.elapsed()

    def record_duplicate(self) -> int:
        with self._lock:
            self._duplicates += 1
            return self._duplicates

    def record_success(self) -> int:
        """
        Count one committed record and return the new total.

        Emits a progress event when the total lands on a multiple of the step.
        The event is sent outside the lock.
        """
        with self._lock:
            self._inserted += 1
            count = self._inserted

        if self._sink is not None and self.step > 0 and count % self.step == 0:
            elapsed = self.elapsed()
            self._sink.progress(
                ProgressEvent(
                    inserted=count,
                    target=self.target,
                    percent=100.0 * count / self.target,
                    rate_per_sec=count / elapsed,
                    elapsed_seconds=elapsed,
                )
            )
        return count


__all__ = ["CompletionTracker", "log_step"]
