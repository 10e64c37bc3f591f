"""Open command implementation."""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from ..rendering.renderer import ARCHIVE_INDEX_FILENAME, LATEST_FILENAME
from .options import config_option, load_config_or_exit

console = Console()


def open_command(
    archive: bool = typer.Option(False, "--archive", help="Open the archive index instead"),
    config_path: Optional[Path] = config_option(),
) -> None:
    """Open the latest digest in the default browser."""
    config = load_config_or_exit(config_path)
    filename = ARCHIVE_INDEX_FILENAME if archive else LATEST_FILENAME
    path = config.output_dir / filename

    if not path.exists():
        console.print("[red]No digest found. Run 'newsdigest run' first.[/red]")
        raise typer.Exit(1)

    console.print(f"Opening: {path}")
    typer.launch(str(path))
