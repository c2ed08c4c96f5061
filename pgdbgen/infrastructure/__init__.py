"""
Infrastructure package for pgdbgen.

Centralizes database concerns (connection pool, schema bootstrap, the record
writer that classifies driver errors). Keep this layer focused on I/O,
decoupled from worker/orchestrator logic.
"""

from pgdbgen.infrastructure.db_factory import build_dsn, get_sync_connection, open_pool, ping
from pgdbgen.infrastructure.schema import ensure_database_and_schema
from pgdbgen.infrastructure.writer import InsertStatements, RecordWriter

__all__ = [
    "build_dsn",
    "get_sync_connection",
    "open_pool",
    "ping",
    "ensure_database_and_schema",
    "InsertStatements",
    "RecordWriter",
]
