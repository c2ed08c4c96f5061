"""
Load workers.

Each worker pulls job tokens, synthesizes a record with its own random
generator and hands it to the `RecordWriter`. Duplicate keys discard the job;
any other failure is recorded in the shared `FailureSlot`, stops the load and
ends the worker.
"""

from __future__ import annotations

import random
import threading
import time
from typing import Callable, Optional

from faker import Faker

from pgdbgen.config import SynthesisConfig
from pgdbgen.domain.errors import UniqueConflictError
from pgdbgen.domain.models import Record
from pgdbgen.domain.synthesizer import generate_record, make_faker
from pgdbgen.infrastructure.writer import RecordWriter
from pgdbgen.pipeline.context import OperationContext
from pgdbgen.pipeline.events import LoadEventSink
from pgdbgen.pipeline.jobs import JobQueue
from pgdbgen.pipeline.tracker import CompletionTracker

Synthesize = Callable[[random.Random, SynthesisConfig, Faker], Record]


def worker_seed(worker_id: int) -> int:
    return time.time_ns() + worker_id * 1000


class FailureSlot:
    """Holds the first fatal error reported by any worker; later ones are dropped."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._error: Optional[BaseException] = None

    def capture(self, error: BaseException) -> bool:
        """Store `error` if the slot is empty. Returns True when it was stored."""
        with self._lock:
            if self._error is not None:
                return False
            self._error = error
            return True

    @property
    def error(self) -> Optional[BaseException]:
        with self._lock:
            return self._error


class LoadWorker(threading.Thread):
    def __init__(
        self,
        worker_id: int,
        jobs: JobQueue,
        writer: RecordWriter,
        tracker: CompletionTracker,
        failures: FailureSlot,
        context: OperationContext,
        sink: LoadEventSink,
        config: SynthesisConfig,
        faker_locale: str = "en_US",
        seed: Optional[int] = None,
        synthesize: Synthesize = generate_record,
    ) -> None:
        super().__init__(name=f"pgdbgen-worker-{worker_id}", daemon=True)
        self.worker_id = worker_id
        self.jobs = jobs
        self.writer = writer
        self.tracker = tracker
        self.failures = failures
        self.context = context
        self.sink = sink
        self.config = config
        self.rng = random.Random(worker_seed(worker_id) if seed is None else seed)
        self.faker = make_faker(self.rng, faker_locale)
        self.synthesize = synthesize

    def run(self) -> None:
        try:
            self._loop()
        except Exception as exc:  # noqa: BLE001 - thread boundary, reported via the failure slot
            self._fail(exc)

    def _loop(self) -> None:
        while not self.context.stopped:
            token = self.jobs.get()
            if token is None:
                return
            if self.tracker.reached:
                return

            record = self.synthesize(self.rng, self.config, self.faker)
            try:
                self.writer.write(record)
            except UniqueConflictError as exc:
                self.tracker.record_duplicate()
                self.sink.duplicate(self.worker_id, exc.table)
                continue

            if self.tracker.record_success() >= self.tracker.target:
                return

    def _fail(self, error: BaseException) -> None:
        first = self.failures.capture(error)
        self.context.stop()
        self.sink.failed(self.worker_id, error, first)


__all__ = ["FailureSlot", "LoadWorker", "worker_seed"]
