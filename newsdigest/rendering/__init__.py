"""HTML digest rendering."""

from .renderer import ArchiveEntry, DigestRenderer, RenderError, archive_filename, time_ago

__all__ = ["ArchiveEntry", "DigestRenderer", "RenderError", "archive_filename", "time_ago"]
