"""
pgdbgen - populate PostgreSQL with synthetic, referentially consistent test data.

A bounded pool of worker threads generates account/product/payment/buying-stat
records and commits each one atomically, tolerating duplicate keys, until the
requested number of records has been inserted:

- Record synthesis with Faker and a per-worker random generator
- Bounded job queue with backpressure
- Exact success accounting and percentage-based progress events
- Typed error classification at the storage boundary
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from pgdbgen.config import Settings, SynthesisConfig, get_settings, load_settings
from pgdbgen.domain.errors import (
    ConfigurationError,
    ConnectivityError,
    DbgenError,
    ShortfallError,
    UniqueConflictError,
    WriteError,
)
from pgdbgen.domain.models import Record
from pgdbgen.domain.synthesizer import generate_record, sample_records
from pgdbgen.orchestrator import load, run_faker_only
from pgdbgen.pipeline.events import LoadEventSink, LoadResult, ProgressEvent
from pgdbgen.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "SynthesisConfig",
    "get_settings",
    "load_settings",
    # Errors
    "DbgenError",
    "ConfigurationError",
    "ConnectivityError",
    "UniqueConflictError",
    "WriteError",
    "ShortfallError",
    # Synthesis
    "Record",
    "generate_record",
    "sample_records",
    # Orchestration
    "load",
    "run_faker_only",
    "LoadEventSink",
    "LoadResult",
    "ProgressEvent",
    # Logging
    "configure_logging",
    "get_logger",
]
