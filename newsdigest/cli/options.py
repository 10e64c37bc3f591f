"""Options shared by several commands."""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from ..config import CONFIG_ENV_VAR, Config

console = Console()


def config_option():
    """--config option, also read from NEWSDIGEST_CONFIG."""
    return typer.Option(
        None,
        "--config",
        "-c",
        envvar=CONFIG_ENV_VAR,
        help="Path to config.yaml. Default: ~/.config/newsdigest/config.yaml",
    )


def load_config_or_exit(config_path: Optional[Path]) -> Config:
    """Load config eagerly; a missing or invalid file ends the command."""
    config = Config(config_path)
    try:
        config.config
    except FileNotFoundError:
        console.print(f"[red]Config file not found: {config.config_path}. Run 'newsdigest init' first.[/red]")
        raise typer.Exit(1)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    return config
