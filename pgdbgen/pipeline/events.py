"""
Load events and the sinks that receive them.

The worker pool and orchestrator report through a `LoadEventSink` instead of
logging directly, so tests can capture progress without touching global
logging state. `LoggingEventSink` is the default and writes structured log
lines.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Optional, Protocol, runtime_checkable

from pgdbgen.utils.logging import get_logger


@dataclass(frozen=True)
class ProgressEvent:
    inserted: int
    target: int
    percent: float
    rate_per_sec: float
    elapsed_seconds: float


@dataclass(frozen=True)
class LoadResult:
    """Outcome of a completed load."""

    inserted: int
    requested: int
    duplicates: int
    duration_seconds: float
    throughput_rows_per_sec: float


@runtime_checkable
class LoadEventSink(Protocol):
    """Receiver of load events. Called concurrently from worker threads."""

    def started(self, workers: int, target: int) -> None: ...

    def progress(self, event: ProgressEvent) -> None: ...

    def duplicate(self, worker_id: int, table: str) -> None: ...

    def failed(self, worker_id: int, error: BaseException, first: bool) -> None: ...

    def completed(self, result: LoadResult) -> None: ...


class LoggingEventSink:
    """Write load events to a logger."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self.log = logger or get_logger("pgdbgen.load")

    def started(self, workers: int, target: int) -> None:
        self.log.info(
            f"[LOAD START] workers={workers} records={target}",
            extra={"workers": workers, "target": target},
        )

    def progress(self, event: ProgressEvent) -> None:
        self.log.info(
            f"progress: {event.inserted}/{event.target} ({event.percent:.1f}%) "
            f"rate={event.rate_per_sec:.0f} rec/s elapsed={event.elapsed_seconds:.3f}s",
            extra=asdict(event),
        )

    def duplicate(self, worker_id: int, table: str) -> None:
        self.log.debug(
            "Duplicate key, job discarded", extra={"worker": worker_id, "table": table}
        )

    def failed(self, worker_id: int, error: BaseException, first: bool) -> None:
        if first:
            self.log.error(
                f"[WORKER FAILED] worker {worker_id}: {error}",
                extra={"worker": worker_id, "error": str(error)},
            )
        else:
            self.log.warning(
                f"Dropping later failure from worker {worker_id}: {error}",
                extra={"worker": worker_id, "error": str(error)},
            )

    def completed(self, result: LoadResult) -> None:
        self.log.info(
            f"inserted {result.inserted} records in {result.duration_seconds:.3f}s "
            f"({result.throughput_rows_per_sec:.0f} rec/s)",
            extra=asdict(result),
        )


__all__ = ["LoadEventSink", "LoadResult", "LoggingEventSink", "ProgressEvent"]
