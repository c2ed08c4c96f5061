from __future__ import annotations

from typing import Optional, Sequence

from rich import box
from rich.console import Console
from rich.table import Table

from pgdbgen.config import Settings
from pgdbgen.domain.models import Record
from pgdbgen.pipeline.events import LoadResult


def settings_table(settings: Settings) -> Table:
    """Effective configuration, password masked."""
    table = Table(title="pgdbgen configuration", box=box.ROUNDED, show_header=False)
    table.add_column("Setting", style="cyan", no_wrap=True)
    table.add_column("Value", style="magenta")

    table.add_row(
        "database",
        f"{settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name}",
    )
    table.add_row("password", "***" if settings.db_password else "(empty)")
    table.add_row("workers", str(settings.num_workers))
    table.add_row("records", f"{settings.db_records:,}")
    table.add_row("progress every", f"{settings.pcent_output}%")
    table.add_row("account age (s)", f"{settings.min_days:,} .. {settings.max_days:,}")
    table.add_row("last login delay (s)", f"0 .. {settings.delay_last_login:,}")
    table.add_row("statement timeout (ms)", str(settings.db_statement_timeout_ms or "none"))
    table.add_row("run only faker", str(settings.run_only_faker))
    return table


def samples_table(records: Sequence[Record]) -> Table:
    table = Table(
        title="Sample records",
        box=box.ROUNDED,
        caption="runOnlyFaker: nothing was written",
    )
    table.add_column("#", justify="right", style="dim")
    table.add_column("Account", style="cyan", no_wrap=True)
    table.add_column("Email")
    table.add_column("Product", style="cyan", no_wrap=True)
    table.add_column("Price", justify="right", style="green")
    table.add_column("Qty", justify="right")
    table.add_column("Total", justify="right", style="bold green")
    table.add_column("Payment", style="yellow", no_wrap=True)

    for index, record in enumerate(records):
        table.add_row(
            str(index),
            record.account.uuid,
            record.account.email,
            record.product.uuid,
            f"{record.product.price:.2f}",
            str(record.buying_stat.quantity),
            f"{record.buying_stat.total_amount:.2f}",
            record.payment.md5,
        )
    return table


def result_table(result: LoadResult) -> Table:
    table = Table(title="Load summary", box=box.ROUNDED)
    table.add_column("Inserted", justify="right", style="magenta")
    table.add_column("Requested", justify="right")
    table.add_column("Duplicates", justify="right", style="yellow")
    table.add_column("Duration (s)", justify="right", style="green")
    table.add_column("Throughput (rec/s)", justify="right", style="bold green")
    table.add_row(
        f"{result.inserted:,}",
        f"{result.requested:,}",
        f"{result.duplicates:,}",
        f"{result.duration_seconds:.3f}",
        f"{result.throughput_rows_per_sec:,.2f}",
    )
    return table


def print_settings(settings: Settings, console: Optional[Console] = None) -> None:
    (console or Console()).print(settings_table(settings))


def print_samples(records: Sequence[Record], console: Optional[Console] = None) -> None:
    console = console or Console()
    if not records:
        console.print("[yellow]No records generated.[/yellow]")
        return
    console.print(samples_table(records))


def print_result(result: LoadResult, console: Optional[Console] = None) -> None:
    (console or Console()).print(result_table(result))


__all__ = [
    "print_result",
    "print_samples",
    "print_settings",
    "result_table",
    "samples_table",
    "settings_table",
]
