"""
Pytest configuration for pgdbgen.

Provides fixtures for:
- Database connection management
- Schema bootstrap and table cleanup
- Settings override for integration tests
"""

from __future__ import annotations

import os
from typing import Generator

import psycopg
import pytest

from pgdbgen.config import Settings
from pgdbgen.infrastructure.db_factory import build_dsn
from pgdbgen.infrastructure.schema import TABLES, ensure_database_and_schema


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        _env_file=None,
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "pgdbgen_test"),
        log_level="DEBUG",
        db_connect_timeout=5,
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for tests.
    """
    return build_dsn(test_settings)


@pytest.fixture(scope="session")
def db_connection_available(test_settings: Settings) -> bool:
    """
    Check if the server is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(
            build_dsn(test_settings, test_settings.db_maintenance_db), connect_timeout=5
        ) as conn:
            conn.execute("SELECT 1;").fetchone()
        return True
    except psycopg.Error:
        return False


@pytest.fixture(scope="session")
def db_schema_initialized(test_settings: Settings, db_connection_available: bool) -> bool:
    """
    Ensure the test database and its tables exist.
    """
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")
    ensure_database_and_schema(test_settings)
    return True


@pytest.fixture(scope="session")
def db_connection(
    test_dsn: str, db_schema_initialized: bool
) -> Generator[psycopg.Connection, None, None]:
    """
    Provide a session-scoped autocommit connection for assertions.
    """
    conn = psycopg.connect(test_dsn, autocommit=True)
    try:
        yield conn
    finally:
        conn.close()


def _truncate(conn: psycopg.Connection) -> None:
    conn.execute("TRUNCATE TABLE " + ", ".join(TABLES) + " CASCADE;")


@pytest.fixture(scope="function")
def clean_tables(db_connection: psycopg.Connection):
    """
    Empty the four tables before and after each test function.
    """
    _truncate(db_connection)
    yield db_connection
    _truncate(db_connection)
