"""
Storage boundary for record inserts.

`RecordWriter.write` commits one `Record` as four inserts inside a single
transaction and translates driver errors into the loader's own taxonomy:

- `psycopg.errors.UniqueViolation` -> `UniqueConflictError`
- any other `psycopg.Error` -> `WriteError`

Callers above this module never see psycopg exceptions.
"""

from __future__ import annotations

from contextlib import nullcontext
from dataclasses import dataclass
from typing import Any, ContextManager, Iterator, Optional, Protocol, Tuple

import psycopg
from psycopg import errors as pg_errors

from pgdbgen.domain.errors import UniqueConflictError, WriteError
from pgdbgen.domain.models import Record


class OperationScope(Protocol):
    """Binds a connection to a cancellable operation for its lifetime."""

    def bind(self, conn: Any) -> ContextManager[Any]: ...


@dataclass(frozen=True)
class InsertStatements:
    """
    Parameterised insert statements, built once and shared read-only.

    psycopg prepares each on the server the first time a connection runs it.
    """

    account: str = (
        "INSERT INTO accounts "
        "(a_uuid, a_username, a_email, a_password, a_created_epoch, a_last_login_epoch) "
        "VALUES (%s, %s, %s, %s, %s, %s)"
    )
    product: str = (
        "INSERT INTO products (pr_uuid, pr_name, pr_authors, pr_price) "
        "VALUES (%s, %s, %s, %s)"
    )
    payment: str = "INSERT INTO payments (p_md5, p_amount, p_epoch) VALUES (%s, %s, %s)"
    buying_stat: str = (
        "INSERT INTO buying_stats "
        "(bs_account_uuid, bs_product_uuid, bs_quantity, bs_total_amount, bs_epoch) "
        "VALUES (%s, %s, %s, %s, %s)"
    )

    def for_record(self, record: Record) -> Iterator[Tuple[str, str, Tuple[Any, ...]]]:
        """
        Yield (table, sql, params) in insert order.

        Account and Product come before BuyingStat so its foreign keys see
        rows inserted earlier in the same transaction.
        """
        yield "accounts", self.account, record.account.params()
        yield "products", self.product, record.product.params()
        yield "payments", self.payment, record.payment.params()
        yield "buying_stats", self.buying_stat, record.buying_stat.params()


class RecordWriter:
    """
    Write records through a connection pool, one transaction per record.

    A pooled connection is held only for the duration of one record.
    """

    def __init__(
        self,
        pool: Any,
        statements: Optional[InsertStatements] = None,
        scope: Optional[OperationScope] = None,
    ) -> None:
        self.pool = pool
        self.statements = statements or InsertStatements()
        self._scope = scope

    def write(self, record: Record) -> None:
        """
        Insert the record's four rows atomically.

        Raises
        ------
        UniqueConflictError
            A key already exists; nothing was written.
        WriteError
            Any other insert or commit failure; nothing was written.
        """
        table = "connection"
        try:
            with self.pool.connection() as conn:
                bound = self._scope.bind(conn) if self._scope else nullcontext(conn)
                with bound:
                    with conn.transaction():
                        for table, sql, params in self.statements.for_record(record):
                            conn.execute(sql, params, prepare=True)
                        table = "commit"
        except pg_errors.UniqueViolation as exc:
            # deferred constraints only fire at commit, which is always fatal
            if table == "commit":
                raise WriteError(table, str(exc).strip() or type(exc).__name__) from exc
            raise UniqueConflictError(table, str(exc).strip() or None) from exc
        except psycopg.Error as exc:
            raise WriteError(table, str(exc).strip() or type(exc).__name__) from exc


__all__ = ["InsertStatements", "OperationScope", "RecordWriter"]
