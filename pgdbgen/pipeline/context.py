"""
Cancellable operation context shared by one load.

`stop()` is cooperative: workers stop pulling jobs and in-flight transactions
finish on their own. `cancel()` additionally asks the server to cancel every
statement currently running on a bound connection.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Any, Generator, Set

import psycopg

from pgdbgen.utils.logging import get_logger

log = get_logger(__name__)


class OperationContext:
    def __init__(self) -> None:
        self._stopped = threading.Event()
        self._lock = threading.Lock()
        self._active: Set[Any] = set()

    @property
    def stopped(self) -> bool:
        return self._stopped.is_set()

    def stop(self) -> None:
        self._stopped.set()

    def cancel(self) -> None:
        """Stop, then cancel the statements running on all bound connections."""
        self._stopped.set()
        with self._lock:
            active = list(self._active)
        for conn in active:
            try:
                conn.cancel_safe()
            except psycopg.Error as exc:
                log.debug("Cancel request failed", extra={"error": str(exc)})

    @contextmanager
    def bind(self, conn: Any) -> Generator[Any, None, None]:
        """Register `conn` as in flight until the block exits."""
        with self._lock:
            self._active.add(conn)
        try:
            yield conn
        finally:
            with self._lock:
                self._active.discard(conn)

    @property
    def active_connections(self) -> int:
        with self._lock:
            return len(self._active)


__all__ = ["OperationContext"]
