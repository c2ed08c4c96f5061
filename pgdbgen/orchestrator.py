"""
Load orchestrator: pool, queue, workers and the final accounting.

Usage (example from CLI):
    from pgdbgen.orchestrator import load

    result = load(settings)
    print(result.inserted, result.throughput_rows_per_sec)

Exactly `settings.db_records` job tokens are fed. Duplicate-key discards use
up tokens without producing rows, so a run can end short of its target; that
is reported as `ShortfallError` rather than papered over with extra jobs.
"""

from __future__ import annotations

import time
from typing import Any, Callable, List, Optional

from pgdbgen.config import Settings
from pgdbgen.domain.errors import ShortfallError
from pgdbgen.domain.models import Record
from pgdbgen.domain.synthesizer import generate_record, sample_records
from pgdbgen.infrastructure.db_factory import open_pool, ping
from pgdbgen.infrastructure.writer import InsertStatements, RecordWriter
from pgdbgen.pipeline.context import OperationContext
from pgdbgen.pipeline.events import LoadEventSink, LoadResult, LoggingEventSink
from pgdbgen.pipeline.jobs import JobQueue
from pgdbgen.pipeline.tracker import CompletionTracker, log_step
from pgdbgen.pipeline.worker import FailureSlot, LoadWorker, Synthesize
from pgdbgen.utils.logging import get_logger

log = get_logger(__name__)

PoolFactory = Callable[[Settings, int], Any]
JOIN_POLL_SECONDS = 0.2


def _round_float(value: float, decimals: int = 2) -> float:
    """Round a float to specified decimal places for human-readable output."""
    return round(value, decimals)


def _join_all(workers: List[LoadWorker], context: OperationContext) -> None:
    """
    Wait for every worker. A KeyboardInterrupt cancels in-flight statements
    before propagating.
    """
    try:
        for worker in workers:
            while worker.is_alive():
                worker.join(JOIN_POLL_SECONDS)
    except KeyboardInterrupt:
        log.warning("Interrupted; cancelling in-flight statements")
        context.cancel()
        for worker in workers:
            worker.join()
        raise


def _feed(jobs: JobQueue, target: int, context: OperationContext) -> int:
    fed = 0
    for token in range(target):
        if not jobs.put(token):
            break
        fed += 1
    jobs.close()
    if context.stopped:
        log.debug("Feeding stopped early", extra={"fed": fed, "target": target})
    return fed


def run_load(
    settings: Settings,
    pool: Any,
    sink: LoadEventSink,
    clock: Callable[[], float] = time.perf_counter,
    context: Optional[OperationContext] = None,
    synthesize: Synthesize = generate_record,
) -> LoadResult:
    """
    Run the worker pool against an already open, reachable pool.

    Raises
    ------
    WriteError, ConnectivityError
        The first fatal worker error.
    ShortfallError
        The tokens ran out before `settings.db_records` records were committed.
    """
    target = settings.db_records
    context = context or OperationContext()
    tracker = CompletionTracker(
        target=target,
        step=log_step(target, settings.pcent_output),
        sink=sink,
        clock=clock,
    )
    failures = FailureSlot()
    jobs = JobQueue(settings.queue_capacity, context)
    writer = RecordWriter(pool, InsertStatements(), scope=context)
    config = settings.synthesis()

    workers = [
        LoadWorker(
            worker_id=worker_id,
            jobs=jobs,
            writer=writer,
            tracker=tracker,
            failures=failures,
            context=context,
            sink=sink,
            config=config,
            faker_locale=settings.faker_locale,
            synthesize=synthesize,
        )
        for worker_id in range(settings.num_workers)
    ]

    sink.started(settings.num_workers, target)
    for worker in workers:
        worker.start()

    try:
        _feed(jobs, target, context)
    except KeyboardInterrupt:
        log.warning("Interrupted while feeding; cancelling in-flight statements")
        context.cancel()
        raise
    finally:
        _join_all(workers, context)

    if failures.error is not None:
        raise failures.error

    inserted = tracker.inserted
    if inserted < target:
        raise ShortfallError(inserted=inserted, requested=target)

    elapsed = tracker.elapsed()
    result = LoadResult(
        inserted=inserted,
        requested=target,
        duplicates=tracker.duplicates,
        duration_seconds=_round_float(elapsed, 3),
        throughput_rows_per_sec=_round_float(inserted / elapsed),
    )
    sink.completed(result)
    return result


def load(
    settings: Settings,
    *,
    pool_factory: PoolFactory = open_pool,
    sink: Optional[LoadEventSink] = None,
    clock: Callable[[], float] = time.perf_counter,
    context: Optional[OperationContext] = None,
) -> LoadResult:
    """
    Insert `settings.db_records` synthetic records using `settings.num_workers`
    concurrent workers.

    Parameters
    ----------
    settings : Settings
        Validated load and connection settings.
    pool_factory : callable
        Opens the connection pool given the settings and a size; the pool is
        closed here once the load ends.
    sink : LoadEventSink, optional
        Receives progress/duplicate/failure/completion events. Defaults to
        logging.
    clock : callable
        Monotonic clock used for elapsed time and rates.
    context : OperationContext, optional
        Lets a caller cancel the run from another thread.

    Returns
    -------
    LoadResult
        Counts, elapsed seconds and throughput of a fully successful load.

    Raises
    ------
    ConnectivityError
        The pool could not be opened or the database did not answer.
    WriteError
        The first non-duplicate insert/commit failure from any worker.
    ShortfallError
        Fewer than the requested records were committed.
    """
    sink = sink or LoggingEventSink()
    pool = pool_factory(settings, settings.pool_size)
    try:
        ping(pool)
        return run_load(settings, pool, sink, clock=clock, context=context)
    finally:
        pool.close()


def run_faker_only(settings: Settings) -> List[Record]:
    """
    Generate and log a handful of sample records without touching the database.
    """
    records = sample_records(settings)
    for index, record in enumerate(records):
        log.info(
            f"faker[{index}]: acct={record.account.uuid} email={record.account.email} "
            f"product={record.product.uuid} price={record.product.price:.2f} "
            f"qty={record.buying_stat.quantity} total={record.buying_stat.total_amount:.2f} "
            f"payment={record.payment.md5}",
            extra={"sample": index},
        )
    log.info(
        f"runOnlyFaker: generated {len(records)} sample records "
        "(set runOnlyFaker=false to load DB)",
        extra={"samples": len(records)},
    )
    return records


__all__ = ["load", "run_faker_only", "run_load"]
