"""History command implementation."""

from pathlib import Path
from typing import Optional

import pendulum
import typer
from rich.console import Console
from rich.table import Table

from ..db import Ledger, LedgerError
from .options import config_option, load_config_or_exit

console = Console()


def history_command(
    limit: int = typer.Option(10, "--limit", "-n", min=1, help="Runs to show"),
    feeds: bool = typer.Option(False, "--feeds", help="Show per-source rows of recent runs"),
    config_path: Optional[Path] = config_option(),
) -> None:
    """Show recent runs recorded in the ledger."""
    config = load_config_or_exit(config_path)

    try:
        ledger = Ledger.open(config.get_db_config())
    except LedgerError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    try:
        with ledger:
            runs = ledger.recent_digest_runs(limit)
            seen = ledger.seen_count()
            feed_runs = ledger.recent_feed_runs(limit * 10) if feeds else []
    except LedgerError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    if not runs:
        console.print("[yellow]No runs recorded yet.[/yellow]")
        return

    table = Table(title=f"Recent Runs ({seen} URLs remembered)")
    table.add_column("Generated", style="cyan")
    table.add_column("Feeds", style="green")
    table.add_column("New", style="bold")
    table.add_column("Published", style="bold")
    table.add_column("Duplicates", style="yellow")
    table.add_column("Evicted", style="dim")

    for run in runs:
        table.add_row(
            pendulum.instance(run.generated_at).format("YYYY-MM-DD HH:mm"),
            f"{run.succeeded_sources}/{run.total_sources}",
            str(run.new_item_count),
            str(run.published_item_count),
            str(run.duplicate_count),
            str(run.evicted_count),
        )

    console.print(table)

    if feed_runs:
        feed_table = Table(title="Recent Feed Fetches")
        feed_table.add_column("Run", style="cyan")
        feed_table.add_column("Source", style="magenta")
        feed_table.add_column("Status")
        feed_table.add_column("Fetched")
        feed_table.add_column("New")
        feed_table.add_column("Error", style="dim")

        for row in feed_runs:
            feed_table.add_row(
                pendulum.instance(row.run_at).format("YYYY-MM-DD HH:mm"),
                row.source_name,
                "[green]✓[/green]" if row.succeeded else "[red]✗[/red]",
                str(row.items_fetched),
                str(row.items_new),
                row.error_detail or "",
            )

        console.print(feed_table)
