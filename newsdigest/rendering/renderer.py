"""Static HTML digest rendering."""

import re
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import pendulum
from jinja2 import Environment, PackageLoader, TemplateError, select_autoescape
from pydantic import BaseModel, Field
from rich.console import Console

from ..config import NewsletterConfig
from ..ingestion.models import FeedItem, FetchOutcome
from ..models import DigestRunStat

console = Console()

LATEST_FILENAME = "index.html"
PREVIEW_FILENAME = "preview.html"
ARCHIVE_INDEX_FILENAME = "archive.html"
ARCHIVE_FILENAME_RE = re.compile(r"^newsletter-(\d{4}-\d{2}-\d{2})\.html$")
ITEM_MARKER = '<article class="news-item">'
DEFAULT_CATEGORY = "Uncategorized"

CATEGORY_ICONS = {
    "Tech News": "📰",
    "Technology": "💻",
    "Development": "🛠️",
    "Web Development": "🌐",
    "AI & Machine Learning": "🤖",
    "Cloud & DevOps": "☁️",
    "Security": "🔒",
    "Business": "📊",
    "Science": "🔬",
    "Gaming": "🎮",
}
DEFAULT_ICON = "📌"


class RenderError(Exception):
    """The digest could not be rendered or written."""


class ArchiveEntry(BaseModel):
    """One dated digest in the archive index."""

    date: str = Field(..., description="Digest date (YYYY-MM-DD)")
    filename: str = Field(..., description="File name relative to the output directory")
    item_count: int = Field(0, description="Articles in the digest")


def archive_filename(when: datetime) -> str:
    """Dated archive file name for a run."""
    return f"newsletter-{pendulum.instance(when).format('YYYY-MM-DD')}.html"


def category_icon(category: str) -> str:
    return CATEGORY_ICONS.get(category, DEFAULT_ICON)


def long_date(value: datetime) -> str:
    return pendulum.instance(value).format("dddd, MMMM D, YYYY")


def short_time(value: datetime) -> str:
    return pendulum.instance(value).format("HH:mm z")


def time_ago(value: datetime, now: datetime) -> str:
    """Compact relative age such as '5m ago' or 'Yesterday'."""
    minutes = int((now - value).total_seconds() // 60)
    hours = minutes // 60
    days = hours // 24

    if minutes < 60:
        return f"{max(minutes, 0)}m ago"
    if hours < 24:
        return f"{hours}h ago"
    if days == 1:
        return "Yesterday"
    if days < 7:
        return f"{days}d ago"
    return pendulum.instance(value).format("MMM D")


class DigestRenderer:
    """Render selected items into the latest digest, a dated copy and the archive index."""

    def __init__(
        self,
        newsletter: NewsletterConfig,
        output_dir: Path,
        category_order: Optional[Sequence[str]] = None,
    ) -> None:
        """
        Initialize renderer.

        Args:
            newsletter: Title, description and author shown in the page
            output_dir: Directory the HTML files are written to
            category_order: Categories listed first, in this order
        """
        self.newsletter = newsletter
        self.output_dir = output_dir
        self.category_order = list(category_order or [])

        self.env = Environment(
            loader=PackageLoader("newsdigest", "rendering/templates"),
            autoescape=select_autoescape(["html"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["category_icon"] = category_icon
        self.env.filters["long_date"] = long_date
        self.env.filters["short_time"] = short_time
        self.env.filters["time_ago"] = time_ago

    def group_by_category(self, items: Sequence[FeedItem]) -> List[Tuple[str, List[FeedItem]]]:
        """
        Group items by category without reordering items inside a group.

        Configured categories come first in their configured order, the rest
        follow in order of first appearance.
        """
        grouped: Dict[str, List[FeedItem]] = {}
        for item in items:
            grouped.setdefault(item.category or DEFAULT_CATEGORY, []).append(item)

        ordered = [c for c in self.category_order if c in grouped]
        ordered.extend(c for c in grouped if c not in ordered)
        return [(category, grouped[category]) for category in ordered]

    def render_digest(
        self,
        items: Sequence[FeedItem],
        stats: DigestRunStat,
        outcomes: Sequence[FetchOutcome],
        now: Optional[datetime] = None,
    ) -> str:
        """Render the digest page."""
        if now is None:
            now = pendulum.now("UTC")

        try:
            template = self.env.get_template("digest.html")
            return template.render(
                newsletter=self.newsletter,
                sections=self.group_by_category(items),
                stats=stats,
                outcomes=outcomes,
                now=now,
            )
        except TemplateError as e:
            raise RenderError(f"Digest template failed: {e}") from e

    def list_archives(self) -> List[ArchiveEntry]:
        """Dated digests in the output directory, newest first."""
        if not self.output_dir.exists():
            return []

        entries = []
        for path in sorted(self.output_dir.iterdir(), reverse=True):
            match = ARCHIVE_FILENAME_RE.match(path.name)
            if not match or not path.is_file():
                continue
            try:
                content = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                raise RenderError(f"Could not read archive {path.name}: {e}") from e
            entries.append(
                ArchiveEntry(
                    date=match.group(1),
                    filename=path.name,
                    item_count=content.count(ITEM_MARKER),
                )
            )
        return entries

    def render_archive_index(
        self,
        archives: Sequence[ArchiveEntry],
        now: Optional[datetime] = None,
    ) -> str:
        """Render the archive index page."""
        if now is None:
            now = pendulum.now("UTC")

        try:
            template = self.env.get_template("archive.html")
            return template.render(newsletter=self.newsletter, archives=archives, now=now)
        except TemplateError as e:
            raise RenderError(f"Archive template failed: {e}") from e

    def write_digest(
        self,
        items: Sequence[FeedItem],
        stats: DigestRunStat,
        outcomes: Sequence[FetchOutcome],
        now: Optional[datetime] = None,
    ) -> Path:
        """
        Write index.html, the dated archive copy and archive.html.

        A second run on the same day replaces that day's archive copy.

        Returns:
            Path of the latest digest

        Raises:
            RenderError: If rendering or writing fails
        """
        if now is None:
            now = pendulum.now("UTC")

        html = self.render_digest(items, stats, outcomes, now)

        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)

            latest_path = self.output_dir / LATEST_FILENAME
            latest_path.write_text(html, encoding="utf-8")
            console.print(f"Digest written to: {latest_path}")

            dated_path = self.output_dir / archive_filename(now)
            dated_path.write_text(html, encoding="utf-8")
            console.print(f"Archive copy written to: {dated_path}")

            archive_html = self.render_archive_index(self.list_archives(), now)
            (self.output_dir / ARCHIVE_INDEX_FILENAME).write_text(archive_html, encoding="utf-8")
        except OSError as e:
            raise RenderError(f"Could not write digest files: {e}") from e

        return latest_path

    def write_preview(
        self,
        items: Sequence[FeedItem],
        stats: DigestRunStat,
        outcomes: Sequence[FetchOutcome],
        now: Optional[datetime] = None,
    ) -> Path:
        """Write the digest to preview.html only; the latest digest and archive are left alone."""
        html = self.render_digest(items, stats, outcomes, now)

        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            preview_path = self.output_dir / PREVIEW_FILENAME
            preview_path.write_text(html, encoding="utf-8")
        except OSError as e:
            raise RenderError(f"Could not write preview: {e}") from e

        console.print(f"Preview written to: {preview_path}")
        return preview_path
