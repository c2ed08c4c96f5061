"""
Load pipeline package for pgdbgen.

Re-exports the job queue, completion tracker, workers and event types so
downstream code can import from `pgdbgen.pipeline` directly.
"""

from pgdbgen.pipeline.context import OperationContext
from pgdbgen.pipeline.events import LoadEventSink, LoadResult, LoggingEventSink, ProgressEvent
from pgdbgen.pipeline.jobs import JobQueue
from pgdbgen.pipeline.tracker import CompletionTracker, log_step
from pgdbgen.pipeline.worker import FailureSlot, LoadWorker

__all__ = [
    "OperationContext",
    "JobQueue",
    "CompletionTracker",
    "log_step",
    "FailureSlot",
    "LoadWorker",
    "LoadEventSink",
    "LoadResult",
    "LoggingEventSink",
    "ProgressEvent",
]
