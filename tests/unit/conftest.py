"""
In-memory stand-ins for the psycopg pool used by the unit tests.

`FakeDatabase` keeps committed rows per table, enforces primary keys and the
buying_stats foreign keys, and raises real psycopg exception types so the
writer's classification is exercised as it is against PostgreSQL.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Any, Dict, Generator, List, Optional, Tuple

import psycopg
import pytest
from psycopg import errors as pg_errors

from pgdbgen.config import Settings
from pgdbgen.pipeline.events import LoadResult, ProgressEvent

KEYED_TABLES = ("accounts", "products", "payments")


class FakeDatabase:
    def __init__(
        self,
        duplicate_every: int = 0,
        fail_on_insert: int = 0,
        fail_commit: bool = False,
    ) -> None:
        self.lock = threading.Lock()
        self.rows: Dict[str, Dict[Any, Tuple[Any, ...]]] = {t: {} for t in KEYED_TABLES}
        self.buying_stats: List[Tuple[Any, ...]] = []
        self.duplicate_every = duplicate_every
        self.fail_on_insert = fail_on_insert
        self.fail_commit = fail_commit
        self.account_inserts = 0
        self.inserts = 0
        self.rollbacks = 0
        self.commits = 0

    def count(self, table: str) -> int:
        with self.lock:
            if table == "buying_stats":
                return len(self.buying_stats)
            return len(self.rows[table])

    def pool(self, max_size: int = 4) -> "FakePool":
        return FakePool(self, max_size)


class FakeConnection:
    def __init__(self, db: FakeDatabase) -> None:
        self.db = db
        self.pending: Optional[List[Tuple[str, Tuple[Any, ...]]]] = None
        self.executed: List[Tuple[str, bool]] = []
        self.cancel_calls = 0

    @staticmethod
    def _table(sql: str) -> str:
        return sql.split()[2]

    def execute(self, sql: str, params: Tuple[Any, ...] = (), prepare: Optional[bool] = None):
        self.executed.append((sql, bool(prepare)))
        if sql.startswith("SELECT"):
            return self
        assert self.pending is not None, "insert outside a transaction"

        table = self._table(sql)
        db = self.db
        with db.lock:
            db.inserts += 1
            if db.fail_on_insert and db.inserts == db.fail_on_insert:
                raise psycopg.OperationalError("server closed the connection unexpectedly")
            if table == "accounts":
                db.account_inserts += 1
                if db.duplicate_every and db.account_inserts % db.duplicate_every == 0:
                    raise pg_errors.UniqueViolation(
                        'duplicate key value violates unique constraint "accounts_pkey"'
                    )
            if table in KEYED_TABLES:
                key = params[0]
                staged = any(t == table and p[0] == key for t, p in self.pending)
                if key in db.rows[table] or staged:
                    raise pg_errors.UniqueViolation(f"duplicate key in {table}")
            else:
                account, product = params[0], params[1]
                known_accounts = {p[0] for t, p in self.pending if t == "accounts"}
                known_products = {p[0] for t, p in self.pending if t == "products"}
                if account not in known_accounts and account not in db.rows["accounts"]:
                    raise pg_errors.ForeignKeyViolation("fk_bs_account")
                if product not in known_products and product not in db.rows["products"]:
                    raise pg_errors.ForeignKeyViolation("fk_bs_product")
        self.pending.append((table, tuple(params)))
        return self

    def fetchone(self) -> Tuple[int]:
        return (1,)

    @contextmanager
    def transaction(self) -> Generator[None, None, None]:
        self.pending = []
        try:
            yield
        except BaseException:
            with self.db.lock:
                self.db.rollbacks += 1
            self.pending = None
            raise
        pending, self.pending = self.pending, None
        with self.db.lock:
            if self.db.fail_commit:
                self.db.rollbacks += 1
                raise psycopg.OperationalError("could not commit")
            for table, params in pending:
                if table == "buying_stats":
                    self.db.buying_stats.append(params)
                else:
                    self.db.rows[table][params[0]] = params
            self.db.commits += 1

    def cancel_safe(self) -> None:
        self.cancel_calls += 1


class FakePool:
    def __init__(self, db: FakeDatabase, max_size: int) -> None:
        self.db = db
        self.max_size = max_size
        self.closed = False
        self.connections: List[FakeConnection] = []
        self._slots = threading.BoundedSemaphore(max_size)

    @contextmanager
    def connection(self) -> Generator[FakeConnection, None, None]:
        if self.closed:
            raise psycopg.OperationalError("the pool is closed")
        with self._slots:
            conn = FakeConnection(self.db)
            self.connections.append(conn)
            yield conn

    def close(self) -> None:
        self.closed = True


class RecordingSink:
    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.progress_events: List[ProgressEvent] = []
        self.duplicates: List[Tuple[int, str]] = []
        self.failures: List[Tuple[int, BaseException, bool]] = []
        self.results: List[LoadResult] = []
        self.started_with: Optional[Tuple[int, int]] = None

    def started(self, workers: int, target: int) -> None:
        self.started_with = (workers, target)

    def progress(self, event: ProgressEvent) -> None:
        with self.lock:
            self.progress_events.append(event)

    def duplicate(self, worker_id: int, table: str) -> None:
        with self.lock:
            self.duplicates.append((worker_id, table))

    def failed(self, worker_id: int, error: BaseException, first: bool) -> None:
        with self.lock:
            self.failures.append((worker_id, error, first))

    def completed(self, result: LoadResult) -> None:
        self.results.append(result)


@pytest.fixture
def make_db():
    return FakeDatabase


@pytest.fixture
def fake_db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def recording_sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def make_settings():
    def _make(**overrides: Any) -> Settings:
        values: Dict[str, Any] = {
            "num_workers": 3,
            "db_records": 50,
            "pcent_output": 10,
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make
