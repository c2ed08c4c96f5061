"""
Configuration settings for pgdbgen.

Uses Pydantic Settings to load environment variables (and `.env`) for the
database connection, logging and load parameters. A YAML file using the
camelCase keys (`numWorkers`, `dbRecords2Process`, ...) can be
layered on top with `load_settings`, followed by explicit overrides from the
CLI.

Offsets named `*_days` are expressed in seconds, as in the YAML files this
tool has always read.
"""
from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from pgdbgen.domain.errors import ConfigurationError

DAY = 24 * 60 * 60

# YAML key -> Settings field
YAML_KEYS: Dict[str, str] = {
    "host": "db_host",
    "port": "db_port",
    "user": "db_user",
    "password": "db_password",
    "dbname": "db_name",
    "runOnlyFaker": "run_only_faker",
    "numWorkers": "num_workers",
    "dbRecords2Process": "db_records",
    "pcentOutput": "pcent_output",
    "minDays": "min_days",
    "maxDays": "max_days",
    "delayLastLogin": "delay_last_login",
    "fakerLocale": "faker_locale",
    "statementTimeoutMs": "db_statement_timeout_ms",
}


@dataclass(frozen=True)
class SynthesisConfig:
    """Numeric/time ranges consumed by the record synthesizer."""

    min_days: int = 3 * DAY
    max_days: int = 365 * DAY
    delay_last_login: int = 500


class Settings(BaseSettings):
    # Database
    db_host: str = Field("localhost", alias="DB_HOST")
    db_port: int = Field(5432, alias="DB_PORT")
    db_user: str = Field("postgres", alias="DB_USER")
    db_password: str = Field("postgres", alias="DB_PASSWORD")
    db_name: str = Field("mytestdb", alias="DB_NAME")
    db_maintenance_db: str = Field("postgres", alias="DB_MAINTENANCE_DB")
    db_connect_timeout: float = Field(30.0, alias="DB_CONNECT_TIMEOUT", gt=0)
    db_statement_timeout_ms: int = Field(0, alias="DB_STATEMENT_TIMEOUT_MS", ge=0)

    # Application
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    # Load
    run_only_faker: bool = Field(False, alias="RUN_ONLY_FAKER")
    num_workers: int = Field(3, alias="NUM_WORKERS", ge=1)
    db_records: int = Field(100, alias="DB_RECORDS", ge=1)
    pcent_output: int = Field(10, alias="PCENT_OUTPUT", ge=1, le=100)
    min_days: int = Field(3 * DAY, alias="MIN_DAYS", ge=0)
    max_days: int = Field(365 * DAY, alias="MAX_DAYS", ge=0)
    delay_last_login: int = Field(500, alias="DELAY_LAST_LOGIN", ge=0)
    faker_locale: str = Field("en_US", alias="FAKER_LOCALE")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @model_validator(mode="after")
    def _check_ranges(self) -> "Settings":
        if self.max_days < self.min_days:
            raise ValueError("maxDays must be >= minDays")
        return self

    @property
    def pool_size(self) -> int:
        return max(4, self.num_workers * 2)

    @property
    def queue_capacity(self) -> int:
        return self.num_workers * 4

    def synthesis(self) -> SynthesisConfig:
        return SynthesisConfig(
            min_days=self.min_days,
            max_days=self.max_days,
            delay_last_login=self.delay_last_login,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


def read_yaml_config(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Read a YAML config file and map its keys onto Settings field names.

    Unknown keys are ignored; field names themselves are accepted as well.
    """
    config_path = Path(path)
    try:
        with config_path.open("r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except OSError as exc:
        raise ConfigurationError(f"failed to read config {str(config_path)!r}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"failed to parse config {str(config_path)!r}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigurationError(f"config {str(config_path)!r} must be a mapping")

    fields = set(Settings.model_fields)
    values: Dict[str, Any] = {}
    for key, value in raw.items():
        name = YAML_KEYS.get(key, key)
        if name in fields:
            values[name] = value
    return values


def load_settings(config_path: Optional[Union[str, Path]] = None, **overrides: Any) -> Settings:
    """
    Build validated Settings from env, an optional YAML file and overrides.

    Overrides set to None are ignored so CLI options can be passed through
    unconditionally.

    Raises
    ------
    ConfigurationError
        If the file cannot be read or any value is out of range.
    """
    values: Dict[str, Any] = {}
    if config_path:
        values.update(read_yaml_config(config_path))
    values.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return Settings(**values)
    except ValidationError as exc:
        raise ConfigurationError(str(exc)) from exc


__all__ = [
    "Settings",
    "SynthesisConfig",
    "get_settings",
    "load_settings",
    "read_yaml_config",
]
