"""
Bounded job queue between the single producer and the workers.

Closing puts one sentinel that every consumer hands back before exiting, so
close never needs a free slot per worker. Blocking calls poll the stop signal
so nobody waits forever on a queue whose other side has gone away.
"""

from __future__ import annotations

import queue
from typing import Optional

from pgdbgen.pipeline.context import OperationContext

_CLOSED = object()
POLL_SECONDS = 0.05


class JobQueue:
    def __init__(self, capacity: int, context: OperationContext) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self._queue: "queue.Queue[object]" = queue.Queue(maxsize=capacity)
        self._context = context

    def qsize(self) -> int:
        return self._queue.qsize()

    def _put(self, item: object) -> bool:
        while not self._context.stopped:
            try:
                self._queue.put(item, timeout=POLL_SECONDS)
                return True
            except queue.Full:
                continue
        return False

    def put(self, token: int) -> bool:
        """Block while full. Returns False, without enqueuing, once stopped."""
        return self._put(token)

    def close(self) -> None:
        """No more tokens; consumers drain what is left, then see the end."""
        self._put(_CLOSED)

    def get(self) -> Optional[int]:
        """
        Next token, or None when the queue is closed and drained or the load
        has been stopped.
        """
        while not self._context.stopped:
            try:
                item = self._queue.get(timeout=POLL_SECONDS)
            except queue.Empty:
                continue
            if item is _CLOSED:
                # pass it on to the next consumer; a slot was just freed
                self._queue.put_nowait(_CLOSED)
                return None
            return item  # type: ignore[return-value]
        return None


__all__ = ["JobQueue"]
