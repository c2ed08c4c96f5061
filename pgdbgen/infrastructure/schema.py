"""
Database and table bootstrap.

Creates the target database when it is missing and the four tables the loader
writes to. Everything is create-if-missing; existing objects are left alone.
"""

from __future__ import annotations

from typing import List, Optional

import psycopg
from psycopg import sql

from pgdbgen.config import Settings, get_settings
from pgdbgen.domain.errors import WriteError
from pgdbgen.infrastructure.db_factory import get_sync_connection
from pgdbgen.utils.logging import get_logger

log = get_logger(__name__)

TABLES: List[str] = ["accounts", "products", "payments", "buying_stats"]

SCHEMA_STATEMENTS: List[str] = [
    """
    CREATE TABLE IF NOT EXISTS accounts (
        a_uuid CHAR(36) PRIMARY KEY,
        a_username VARCHAR(64) NOT NULL,
        a_email VARCHAR(255) NOT NULL,
        a_password VARCHAR(128) NOT NULL,
        a_created_epoch BIGINT NOT NULL,
        a_last_login_epoch BIGINT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_accounts_email ON accounts (a_email)",
    "CREATE INDEX IF NOT EXISTS idx_accounts_created ON accounts (a_created_epoch)",
    """
    CREATE TABLE IF NOT EXISTS products (
        pr_uuid CHAR(36) PRIMARY KEY,
        pr_name VARCHAR(255) NOT NULL,
        pr_authors VARCHAR(512) NOT NULL,
        pr_price DECIMAL(10,2) NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_products_price ON products (pr_price)",
    """
    CREATE TABLE IF NOT EXISTS payments (
        p_md5 CHAR(32) PRIMARY KEY,
        p_amount DECIMAL(10,2) NOT NULL,
        p_epoch BIGINT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_payments_epoch ON payments (p_epoch)",
    """
    CREATE TABLE IF NOT EXISTS buying_stats (
        bs_account_uuid CHAR(36) NOT NULL,
        bs_product_uuid CHAR(36) NOT NULL,
        bs_quantity INT NOT NULL,
        bs_total_amount DECIMAL(10,2) NOT NULL,
        bs_epoch BIGINT NOT NULL,
        CONSTRAINT fk_bs_account FOREIGN KEY (bs_account_uuid)
            REFERENCES accounts (a_uuid) ON DELETE CASCADE,
        CONSTRAINT fk_bs_product FOREIGN KEY (bs_product_uuid)
            REFERENCES products (pr_uuid) ON DELETE CASCADE
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_bs_epoch ON buying_stats (bs_epoch)",
    "CREATE INDEX IF NOT EXISTS idx_bs_account ON buying_stats (bs_account_uuid)",
    "CREATE INDEX IF NOT EXISTS idx_bs_product ON buying_stats (bs_product_uuid)",
]


def ensure_database(settings: Settings) -> bool:
    """
    Create `settings.db_name` from the maintenance database if it is missing.

    Returns True when the database was created.
    """
    with get_sync_connection(settings, dbname=settings.db_maintenance_db, autocommit=True) as conn:
        row = conn.execute(
            "SELECT 1 FROM pg_database WHERE datname = %s", (settings.db_name,)
        ).fetchone()
        if row:
            return False
        conn.execute(sql.SQL("CREATE DATABASE {}").format(sql.Identifier(settings.db_name)))

    log.info("Database created", extra={"db": settings.db_name})
    return True


def ensure_schema(settings: Settings) -> None:
    """Create the four tables and their indexes if missing."""
    with get_sync_connection(settings) as conn:
        with conn.transaction():
            for statement in SCHEMA_STATEMENTS:
                conn.execute(statement)


def ensure_database_and_schema(settings: Optional[Settings] = None) -> None:
    """
    Bootstrap the database and tables.

    Raises
    ------
    ConnectivityError
        If the server cannot be reached.
    WriteError
        If a DDL statement fails.
    """
    settings = settings or get_settings()
    try:
        ensure_database(settings)
        ensure_schema(settings)
    except psycopg.Error as exc:
        raise WriteError("schema", str(exc).strip() or type(exc).__name__) from exc
    log.info("Schema ready", extra={"db": settings.db_name, "tables": TABLES})


__all__ = [
    "SCHEMA_STATEMENTS",
    "TABLES",
    "ensure_database",
    "ensure_database_and_schema",
    "ensure_schema",
]
