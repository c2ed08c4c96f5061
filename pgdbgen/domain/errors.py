"""
Error taxonomy for the loader.

Storage-specific exceptions are translated into these types at the storage
boundary (`pgdbgen.infrastructure.writer`), so the worker pool and the
orchestrator never inspect driver error text.
"""

from __future__ import annotations

from typing import Optional


class DbgenError(Exception):
    """Base class for all loader errors."""


class ConfigurationError(DbgenError):
    """Invalid settings; raised before any connection is opened."""


class ConnectivityError(DbgenError):
    """The database cannot be reached or refused the session."""


class UniqueConflictError(DbgenError):
    """
    A generated key collided with an existing row.

    Expected and recoverable: the record's transaction has been rolled back and
    the job is discarded.
    """

    def __init__(self, table: str, message: Optional[str] = None) -> None:
        self.table = table
        super().__init__(message or f"duplicate key in {table}")


class WriteError(DbgenError):
    """Any non-uniqueness failure while inserting or committing a record."""

    def __init__(self, table: str, message: str) -> None:
        self.table = table
        super().__init__(f"{table}: {message}")


class ShortfallError(DbgenError):
    """The job supply ran out before the success target was met."""

    def __init__(self, inserted: int, requested: int) -> None:
        self.inserted = inserted
        self.requested = requested
        super().__init__(
            f"only inserted {inserted}/{requested} records (duplicate keys likely); "
            "try increasing dbRecords2Process"
        )


__all__ = [
    "DbgenError",
    "ConfigurationError",
    "ConnectivityError",
    "UniqueConflictError",
    "WriteError",
    "ShortfallError",
]
