"""Init command implementation."""

from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.panel import Panel

from ..config import ConfigModel, FeedSource, default_config_path, save_config
from ..db import init_database, validate_connection

console = Console()


def create_default_feeds() -> List[FeedSource]:
    """Create a starter set of feeds."""
    return [
        FeedSource(
            name="Hacker News",
            url="https://hnrss.org/frontpage",
            category="Tech News",
        ),
        FeedSource(
            name="Ars Technica",
            url="https://feeds.arstechnica.com/arstechnica/index",
            category="Technology",
        ),
        FeedSource(
            name="Python Insider",
            url="https://pythoninsider.blogspot.com/feeds/posts/default",
            category="Development",
        ),
        FeedSource(
            name="Krebs on Security",
            url="https://krebsonsecurity.com/feed/",
            category="Security",
        ),
        FeedSource(
            name="Quanta Magazine",
            url="https://www.quantamagazine.org/feed/",
            category="Science",
            enabled=False,
        ),
    ]


def init_command(
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Where to write config.yaml. Default: ~/.config/newsdigest/config.yaml",
    ),
    output_dir: Path = typer.Option(
        Path.home() / "newsdigest" / "output",
        "--output",
        "-o",
        help="Directory for rendered HTML",
    ),
    title: str = typer.Option("Daily Digest", "--title", help="Digest title"),
    db_host: str = typer.Option("localhost", "--db-host", help="Postgres host"),
    db_port: int = typer.Option(5432, "--db-port", help="Postgres port"),
    db_name: str = typer.Option("newsdigest", "--db-name", help="Database name"),
    db_user: str = typer.Option("newsdigest", "--db-user", help="Database user"),
    seed_sources: bool = typer.Option(
        True,
        "--seed-sources/--no-seed-sources",
        help="Seed a starter set of feeds",
    ),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing config"),
) -> None:
    """Write a default configuration and create the database schema."""
    console.print(Panel.fit("newsdigest - Initialization", style="bold blue"))

    if config_path is None:
        config_path = default_config_path()

    if config_path.exists() and not force:
        console.print(f"[red]Config already exists: {config_path} (use --force to overwrite)[/red]")
        raise typer.Exit(1)

    config = ConfigModel(
        output_dir=str(output_dir),
        newsletter={"title": title},
        postgres={
            "host": db_host,
            "port": db_port,
            "database": db_name,
            "user": db_user,
            "password_env": "NEWSDIGEST_DB_PASSWORD",
        },
        feeds=create_default_feeds() if seed_sources else [],
    )

    save_config(config, config_path)
    console.print(f"✅ Created config: {config_path} ({len(config.feeds)} feeds)")

    output_dir.expanduser().mkdir(parents=True, exist_ok=True)
    console.print(f"✅ Created output directory: {output_dir}")

    # Validate database connection
    console.print("\n[bold]Testing database connection...[/bold]")
    db_config = config.postgres.model_dump()

    if not validate_connection(db_config):
        console.print(
            "[red]❌ Database connection failed![/red]\n"
            "Please ensure Postgres is running and credentials are correct.\n"
            "Set the password via environment variable: "
            "[bold]export NEWSDIGEST_DB_PASSWORD=your_password[/bold]"
        )
        raise typer.Exit(1)

    console.print("✅ Database connection successful")

    console.print("\n[bold]Initializing database schema...[/bold]")
    try:
        init_database(db_config)
    except Exception as e:
        console.print(f"[red]❌ Failed to initialize database: {e}[/red]")
        raise typer.Exit(1)

    console.print(
        Panel(
            f"[green]✅ newsdigest initialized[/green]\n\n"
            f"Configuration: {config_path}\n"
            f"Output: {output_dir}\n\n"
            f"Next steps:\n"
            f"1. Review feeds: [bold]newsdigest sources list[/bold]\n"
            f"2. Run: [bold]newsdigest run[/bold]",
            style="green",
        )
    )
