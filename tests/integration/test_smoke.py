"""
Integration tests for the loader against a real PostgreSQL instance.

These tests verify that:
1. A load commits exactly the requested number of records
2. Every buying stat references an account and a product from its record
3. Amounts agree across tables and re-runs never overwrite existing rows

Run with: RUN_INTEGRATION_TESTS=1 pytest tests/integration/
"""

from __future__ import annotations

import os

import pytest

from pgdbgen.domain.errors import ConnectivityError, ShortfallError
from pgdbgen.orchestrator import load

# Test configuration constants
DEFAULT_TARGET = 50
DEFAULT_WORKERS = 5
MANY_WORKERS = 20

pytestmark = pytest.mark.skipif(
    os.getenv("RUN_INTEGRATION_TESTS", "0") != "1",
    reason="Integration tests require RUN_INTEGRATION_TESTS=1 and reachable Postgres",
)


def _counts(conn) -> dict:
    counts = {}
    for table in ("accounts", "products", "payments", "buying_stats"):
        counts[table] = conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
    return counts


class TestLoad:
    def test_load_commits_target_records(self, test_settings, clean_tables):
        settings = test_settings.model_copy(
            update={"num_workers": DEFAULT_WORKERS, "db_records": DEFAULT_TARGET}
        )
        result = load(settings)

        assert result.inserted == DEFAULT_TARGET
        assert _counts(clean_tables) == {
            "accounts": DEFAULT_TARGET,
            "products": DEFAULT_TARGET,
            "payments": DEFAULT_TARGET,
            "buying_stats": DEFAULT_TARGET,
        }

    def test_foreign_keys_resolve(self, test_settings, clean_tables):
        load(test_settings.model_copy(update={"num_workers": DEFAULT_WORKERS, "db_records": 20}))
        orphans = clean_tables.execute(
            """
            SELECT COUNT(*) FROM buying_stats bs
            LEFT JOIN accounts a ON a.a_uuid = bs.bs_account_uuid
            LEFT JOIN products p ON p.pr_uuid = bs.bs_product_uuid
            WHERE a.a_uuid IS NULL OR p.pr_uuid IS NULL
            """
        ).fetchone()[0]
        assert orphans == 0

    def test_amounts_and_epochs_are_consistent(self, test_settings, clean_tables):
        load(test_settings.model_copy(update={"num_workers": DEFAULT_WORKERS, "db_records": 20}))
        mismatches = clean_tables.execute(
            """
            SELECT COUNT(*) FROM buying_stats bs
            JOIN products p ON p.pr_uuid = bs.bs_product_uuid
            WHERE bs.bs_total_amount <> ROUND(p.pr_price * bs.bs_quantity, 2)
            """
        ).fetchone()[0]
        assert mismatches == 0
        bad_logins = clean_tables.execute(
            "SELECT COUNT(*) FROM accounts WHERE a_last_login_epoch < a_created_epoch"
        ).fetchone()[0]
        assert bad_logins == 0

    @pytest.mark.parametrize("workers", [1, MANY_WORKERS])
    def test_worker_count_does_not_change_counts(self, test_settings, clean_tables, workers):
        load(test_settings.model_copy(update={"num_workers": workers, "db_records": DEFAULT_TARGET}))
        assert set(_counts(clean_tables).values()) == {DEFAULT_TARGET}

    def test_rerun_appends_without_touching_existing_rows(self, test_settings, clean_tables):
        settings = test_settings.model_copy(update={"num_workers": 3, "db_records": 10})
        load(settings)
        before = clean_tables.execute("SELECT a_uuid, a_email FROM accounts ORDER BY a_uuid").fetchall()

        load(settings)

        after = dict(clean_tables.execute("SELECT a_uuid, a_email FROM accounts").fetchall())
        assert len(after) == 20
        for uuid, email in before:
            assert after[uuid] == email

    def test_duplicate_payment_hash_causes_shortfall(self, test_settings, clean_tables, monkeypatch):
        from pgdbgen.domain import synthesizer

        monkeypatch.setattr(synthesizer, "random_md5", lambda rng: "0" * 32)
        with pytest.raises(ShortfallError) as excinfo:
            load(test_settings.model_copy(update={"num_workers": 4, "db_records": 10}))

        assert excinfo.value.inserted == 1
        assert _counts(clean_tables)["payments"] == 1


def test_unreachable_server_raises_connectivity_error(test_settings):
    settings = test_settings.model_copy(update={"db_port": 1, "db_connect_timeout": 1})
    with pytest.raises(ConnectivityError):
        load(settings)
