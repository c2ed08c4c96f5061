from __future__ import annotations

import pytest
from psycopg.conninfo import conninfo_to_dict

from pgdbgen.config import Settings
from pgdbgen.infrastructure.db_factory import build_dsn, connection_kwargs


@pytest.mark.parametrize(
    "password",
    ["p@ss/w:rd#1", "with space", "quote'and\\slash", "?x=1&y=2"],
)
def test_build_dsn_keeps_reserved_characters_in_credentials(password: str) -> None:
    settings = Settings(
        _env_file=None,
        db_host="localhost",
        db_port=5432,
        db_name="mytestdb",
        db_user="app@ops",
        db_password=password,
    )

    params = conninfo_to_dict(build_dsn(settings))

    assert params["password"] == password
    assert params["user"] == "app@ops"
    assert params["host"] == "localhost"
    assert params["port"] == "5432"
    assert params["dbname"] == "mytestdb"


def test_build_dsn_dbname_override() -> None:
    settings = Settings(_env_file=None, db_name="target")
    assert conninfo_to_dict(build_dsn(settings, "postgres"))["dbname"] == "postgres"
    assert conninfo_to_dict(build_dsn(settings))["dbname"] == "target"


def test_connection_kwargs_statement_timeout() -> None:
    assert "options" not in connection_kwargs(Settings(_env_file=None))
    kwargs = connection_kwargs(Settings(_env_file=None, db_statement_timeout_ms=1500))
    assert kwargs["options"] == "-c statement_timeout=1500"
    assert kwargs["connect_timeout"] == 30
