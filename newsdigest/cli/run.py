"""Run command implementation."""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from ..pipeline import PipelineOrchestrator
from .options import config_option, load_config_or_exit

console = Console()


def run_command(
    config_path: Optional[Path] = config_option(),
    max_items_per_feed: Optional[int] = typer.Option(
        None,
        "--max-items-per-feed",
        min=0,
        help="Items considered per feed. Default: newsletter.max_items_per_feed",
    ),
    max_total_items: Optional[int] = typer.Option(
        None,
        "--max-total-items",
        min=0,
        help="Items published in the digest. Default: newsletter.max_total_items",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Render the digest without changing the ledger",
    ),
) -> None:
    """Fetch all enabled feeds and render a digest of the items not published before."""
    config = load_config_or_exit(config_path)

    try:
        orchestrator = PipelineOrchestrator(config)
        success = orchestrator.run(
            max_items_per_feed=max_items_per_feed,
            max_total_items=max_total_items,
            dry_run=dry_run,
        )
    except KeyboardInterrupt:
        console.print("\n[yellow]Run interrupted by user[/yellow]")
        raise typer.Exit(1)
    except Exception as e:
        console.print(f"[red]Run failed: {e}[/red]")
        raise typer.Exit(1)

    if not success:
        raise typer.Exit(1)
