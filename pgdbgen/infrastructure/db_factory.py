"""
Database connection factory utilities for pgdbgen.

Builds DSNs from settings and opens the psycopg connection pool shared by the
load workers. Connectivity failures surface as `ConnectivityError` right away;
the loader never retries a connection.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import psycopg
from psycopg import Connection
from psycopg.conninfo import make_conninfo
from psycopg_pool import ConnectionPool, PoolTimeout

from pgdbgen.config import Settings, get_settings
from pgdbgen.domain.errors import ConnectivityError
from pgdbgen.utils.logging import get_logger

log = get_logger(__name__)


def build_dsn(settings: Optional[Settings] = None, dbname: Optional[str] = None) -> str:
    """
    Compose a libpq conninfo string from settings.

    `dbname` overrides the configured database, e.g. to reach the maintenance
    database before the target one exists. Values are quoted by psycopg, so
    credentials may contain any character.
    """
    settings = settings or get_settings()
    return make_conninfo(
        host=settings.db_host,
        port=settings.db_port,
        user=settings.db_user,
        password=settings.db_password,
        dbname=dbname or settings.db_name,
    )


def connection_kwargs(settings: Settings) -> Dict[str, Any]:
    """Extra libpq parameters applied to every connection."""
    kwargs: Dict[str, Any] = {"connect_timeout": max(1, int(settings.db_connect_timeout))}
    if settings.db_statement_timeout_ms > 0:
        kwargs["options"] = f"-c statement_timeout={settings.db_statement_timeout_ms}"
    return kwargs


def get_sync_connection(
    settings: Optional[Settings] = None,
    dbname: Optional[str] = None,
    autocommit: bool = False,
) -> Connection:
    """
    Open a dedicated connection for one-off work such as schema bootstrap.

    Raises
    ------
    ConnectivityError
        If the server cannot be reached or rejects the credentials.
    """
    settings = settings or get_settings()
    try:
        return psycopg.connect(
            build_dsn(settings, dbname),
            autocommit=autocommit,
            **connection_kwargs(settings),
        )
    except psycopg.OperationalError as exc:
        raise ConnectivityError(f"cannot connect to {settings.db_host}:{settings.db_port}: {exc}") from exc


def open_pool(settings: Settings, max_size: int) -> ConnectionPool:
    """
    Open a connection pool of `max_size` connections and wait until it is filled.

    Parameters
    ----------
    settings : Settings
        Connection parameters.
    max_size : int
        Both the idle floor and the ceiling of the pool.

    Returns
    -------
    ConnectionPool
        An open pool; the caller owns it and must close it.

    Raises
    ------
    ConnectivityError
        If the connections cannot be established within `db_connect_timeout`.
    """
    pool = ConnectionPool(
        conninfo=build_dsn(settings),
        min_size=max_size,
        max_size=max_size,
        kwargs=connection_kwargs(settings),
        open=False,
        name="pgdbgen",
    )
    try:
        pool.open(wait=True, timeout=settings.db_connect_timeout)
    except (PoolTimeout, psycopg.OperationalError) as exc:
        pool.close()
        raise ConnectivityError(
            f"cannot open pool to {settings.db_host}:{settings.db_port}/{settings.db_name}: {exc}"
        ) from exc

    log.debug("Connection pool opened", extra={"pool_size": max_size, "db": settings.db_name})
    return pool


def ping(pool: Any) -> None:
    """
    Verify the pool can run a statement.

    Raises
    ------
    ConnectivityError
        On any driver error.
    """
    try:
        with pool.connection() as conn:
            conn.execute("SELECT 1")
    except psycopg.Error as exc:
        raise ConnectivityError(f"database unreachable: {exc}") from exc


__all__ = [
    "build_dsn",
    "connection_kwargs",
    "get_sync_connection",
    "open_pool",
    "ping",
]
