"""Sources management commands."""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from ..config import Config, FeedSource
from ..ingestion import RSSFetcher, print_feed_summary
from .options import config_option, load_config_or_exit

console = Console()
sources_app = typer.Typer(help="Manage feed sources")


def _find_source(config: Config, name: str) -> FeedSource:
    for source in config.config.feeds:
        if source.name == name:
            return source
    console.print(f"[red]Source '{name}' not found.[/red]")
    raise typer.Exit(1)


@sources_app.command("list")
def sources_list(config_path: Optional[Path] = config_option()) -> None:
    """List all configured sources."""
    config = load_config_or_exit(config_path)
    feeds = config.config.feeds

    if not feeds:
        console.print("[yellow]No sources configured.[/yellow]")
        return

    table = Table(title="Configured Sources")
    table.add_column("Name", style="cyan")
    table.add_column("Category", style="magenta")
    table.add_column("Enabled", style="yellow")
    table.add_column("URL", style="blue")

    for source in feeds:
        table.add_row(
            source.name,
            source.category,
            "✓" if source.enabled else "✗",
            source.url,
        )

    console.print(table)


@sources_app.command("add")
def sources_add(
    name: str = typer.Option(..., "--name", "-n", help="Source name"),
    url: str = typer.Option(..., "--url", "-u", help="RSS/Atom feed URL"),
    category: str = typer.Option("Uncategorized", "--category", help="Display category"),
    disabled: bool = typer.Option(False, "--disabled", help="Add the source disabled"),
    config_path: Optional[Path] = config_option(),
) -> None:
    """Add a new feed source."""
    config = load_config_or_exit(config_path)
    feeds = config.config.feeds

    if any(s.name == name or s.url == url for s in feeds):
        console.print(f"[red]Source '{name}' or URL already exists.[/red]")
        raise typer.Exit(1)

    feeds.append(FeedSource(name=name, url=url, category=category, enabled=not disabled))
    config.save()

    console.print(f"[green]✅ Added source: {name}[/green]")


@sources_app.command("remove")
def sources_remove(
    name: str = typer.Argument(..., help="Source name to remove"),
    config_path: Optional[Path] = config_option(),
) -> None:
    """Remove a source."""
    config = load_config_or_exit(config_path)
    source = _find_source(config, name)

    config.config.feeds.remove(source)
    config.save()
    console.print(f"[green]✅ Removed source: {name}[/green]")


def _set_enabled(name: str, enabled: bool, config_path: Optional[Path]) -> None:
    config = load_config_or_exit(config_path)
    source = _find_source(config, name)

    source.enabled = enabled
    config.save()
    state = "enabled" if enabled else "disabled"
    console.print(f"[green]✅ Source '{name}' {state}[/green]")


@sources_app.command("enable")
def sources_enable(
    name: str = typer.Argument(..., help="Source name"),
    config_path: Optional[Path] = config_option(),
) -> None:
    """Enable a source."""
    _set_enabled(name, True, config_path)


@sources_app.command("disable")
def sources_disable(
    name: str = typer.Argument(..., help="Source name"),
    config_path: Optional[Path] = config_option(),
) -> None:
    """Disable a source; it is skipped before any fetch."""
    _set_enabled(name, False, config_path)


@sources_app.command("test")
def sources_test(
    name: Optional[str] = typer.Argument(None, help="Source name to test (or test all)"),
    config_path: Optional[Path] = config_option(),
) -> None:
    """Fetch feeds once and report what they return; nothing is recorded."""
    config = load_config_or_exit(config_path)
    feeds = config.config.feeds

    if name:
        feeds = [_find_source(config, name)]

    for source in feeds:
        if not source.enabled:
            console.print(f"[yellow]⚠️  {source.name}: Disabled[/yellow]")

    fetcher = RSSFetcher.from_config(config.config.fetch)
    outcomes = fetcher.fetch_feeds_sync(feeds)
    print_feed_summary(outcomes)

    if any(not o.succeeded for o in outcomes):
        raise typer.Exit(1)
