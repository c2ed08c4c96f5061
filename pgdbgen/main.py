from __future__ import annotations

import random
import sys
import time
from pathlib import Path
from typing import List, Optional

import typer

from pgdbgen.config import Settings, load_settings
from pgdbgen.domain.errors import ConfigurationError, DbgenError, ShortfallError
from pgdbgen.infrastructure.schema import ensure_database_and_schema
from pgdbgen.orchestrator import load, run_faker_only
from pgdbgen.reporter import print_result, print_samples, print_settings
from pgdbgen.utils.logging import configure_logging, get_logger

app = typer.Typer(help="Populate PostgreSQL with synthetic, referentially consistent test data.")
log = get_logger("pgdbgen")

EXIT_FAILURE = 1
EXIT_SHORTFALL = 2

ConfigOption = typer.Option(
    None,
    "--config",
    "-c",
    exists=True,
    dir_okay=False,
    help="Path to a YAML config file (optional).",
)


def _settings(config: Optional[Path], **overrides) -> Settings:
    try:
        return load_settings(config, **overrides)
    except ConfigurationError as exc:
        typer.echo(f"Invalid configuration: {exc}", err=True)
        raise typer.Exit(code=EXIT_FAILURE) from exc


@app.command()
def info(config: Optional[Path] = ConfigOption) -> None:
    """
    Show effective configuration values.
    """
    print_settings(_settings(config))


@app.command()
def schema(config: Optional[Path] = ConfigOption) -> None:
    """
    Create the database and tables if they are missing.
    """
    settings = _settings(config)
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    try:
        ensure_database_and_schema(settings)
    except DbgenError as exc:
        typer.echo(f"setup failed: {exc}", err=True)
        raise typer.Exit(code=EXIT_FAILURE) from exc


@app.command()
def run(
    config: Optional[Path] = ConfigOption,
    host: Optional[str] = typer.Option(None, "--host", help="PostgreSQL host."),
    port: Optional[int] = typer.Option(None, "--port", help="PostgreSQL port."),
    user: Optional[str] = typer.Option(None, "--user", help="PostgreSQL user."),
    password: Optional[str] = typer.Option(None, "--password", help="PostgreSQL password."),
    dbname: Optional[str] = typer.Option(None, "--dbname", help="Database to create/populate."),
    run_only_faker: bool = typer.Option(
        False,
        "--run-only-faker",
        help="Generate a few sample records without writing to the database.",
    ),
    num_workers: Optional[int] = typer.Option(
        None, "--num-workers", "-w", help="Number of concurrent workers inserting rows."
    ),
    records: Optional[int] = typer.Option(
        None, "--records", "-r", help="Number of logical records to create."
    ),
    pcent_output: Optional[int] = typer.Option(
        None, "--pcent-output", help="Progress output every X percent."
    ),
    min_days: Optional[int] = typer.Option(
        None, "--min-days", help="Minimum account age, in seconds."
    ),
    max_days: Optional[int] = typer.Option(
        None, "--max-days", help="Maximum account age, in seconds."
    ),
    delay_last_login: Optional[int] = typer.Option(
        None, "--delay-last-login", help="Random last-login delay, in seconds."
    ),
    skip_schema: bool = typer.Option(
        False, "--skip-schema", help="Assume the database and tables already exist."
    ),
) -> None:
    """
    Bootstrap the schema and load synthetic records with a pool of workers.
    """
    settings = _settings(
        config,
        db_host=host,
        db_port=port,
        db_user=user,
        db_password=password,
        db_name=dbname,
        run_only_faker=run_only_faker or None,
        num_workers=num_workers,
        db_records=records,
        pcent_output=pcent_output,
        min_days=min_days,
        max_days=max_days,
        delay_last_login=delay_last_login,
    )
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    log.info(
        f"pgdbgen: host={settings.db_host} port={settings.db_port} user={settings.db_user} "
        f"dbname={settings.db_name} workers={settings.num_workers} records={settings.db_records} "
        f"config={str(config or '')!r} runOnlyFaker={settings.run_only_faker}"
    )

    if settings.run_only_faker:
        print_samples(run_faker_only(settings))
        return

    try:
        if not skip_schema:
            ensure_database_and_schema(settings)
        result = load(settings)
    except ShortfallError as exc:
        typer.echo(f"load failed: {exc}", err=True)
        raise typer.Exit(code=EXIT_SHORTFALL) from exc
    except DbgenError as exc:
        typer.echo(f"load failed: {exc}", err=True)
        raise typer.Exit(code=EXIT_FAILURE) from exc

    print_result(result)
    log.info("done")


def _config_files(directory: Path) -> List[Path]:
    return sorted([*directory.glob("*.yaml"), *directory.glob("*.yml")])


@app.command()
def loop(
    dbname: str = typer.Option("mytestdb", "--dbname", help="Database every iteration loads into."),
    config_dir: Path = typer.Option(
        Path("."),
        "--config-dir",
        file_okay=False,
        help="Directory searched for *.yaml/*.yml configs on every iteration.",
    ),
    min_records: int = typer.Option(
        250, "--min-records", envvar="MIN_RECORDS", min=1, help="Smallest record count per load."
    ),
    max_records: int = typer.Option(
        2500, "--max-records", envvar="MAX_RECORDS", min=1, help="Largest record count per load."
    ),
    sleep_min: int = typer.Option(
        2, "--sleep-min", envvar="SLEEP_MIN", min=0, help="Shortest pause between loads, in seconds."
    ),
    sleep_max: int = typer.Option(
        10, "--sleep-max", envvar="SLEEP_MAX", min=0, help="Longest pause between loads, in seconds."
    ),
    iterations: int = typer.Option(
        0, "--iterations", "-n", min=0, help="Stop after N loads (0 runs until interrupted)."
    ),
    seed: Optional[int] = typer.Option(None, "--seed", help="Seed for config, count and pause picks."),
    skip_schema: bool = typer.Option(
        False, "--skip-schema", help="Assume the database and tables already exist."
    ),
) -> None:
    """
    Keep loading: random config, random record count, random pause, repeat.

    Shortfalls are logged and the loop goes on; any other failure ends it.
    """
    if min_records > max_records or sleep_min > sleep_max:
        typer.echo(
            f"Invalid range: records {min_records}..{max_records}, sleep {sleep_min}..{sleep_max}",
            err=True,
        )
        raise typer.Exit(code=EXIT_FAILURE)

    rng = random.Random(seed)
    logging_ready = False
    iteration = 0
    while not iterations or iteration < iterations:
        iteration += 1
        configs = _config_files(config_dir)
        if not configs:
            typer.echo(f"No *.yaml/*.yml configs in {config_dir.resolve()}", err=True)
            raise typer.Exit(code=EXIT_FAILURE)

        config = rng.choice(configs)
        count = rng.randint(min_records, max_records)
        settings = _settings(config, db_name=dbname, db_records=count)
        if not logging_ready:
            configure_logging(level=settings.log_level, json_logs=settings.log_json)
            logging_ready = True
        log.info(
            f"=== iteration {iteration}: cfg={config.name} db={dbname} records={count}",
            extra={"iteration": iteration, "config": str(config), "records": count},
        )

        if settings.run_only_faker:
            print_samples(run_faker_only(settings))
        else:
            try:
                if not skip_schema:
                    ensure_database_and_schema(settings)
                print_result(load(settings))
            except ShortfallError as exc:
                log.warning(f"iteration {iteration}: {exc}", extra={"iteration": iteration})
            except DbgenError as exc:
                typer.echo(f"load failed: {exc}", err=True)
                raise typer.Exit(code=EXIT_FAILURE) from exc

        if iterations and iteration >= iterations:
            break
        pause = rng.randint(sleep_min, sleep_max)
        log.info(f"sleep {pause}s")
        time.sleep(pause)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
