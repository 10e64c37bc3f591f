"""RSS/Atom feed fetcher with bounded concurrency."""

import asyncio
import calendar
import hashlib
import time
from datetime import datetime
from typing import Any, List, Optional, Union

import feedparser
import httpx
import pendulum
from rich.console import Console

from ..config import FeedSource, FetchConfig
from .models import FeedItem, FetchOutcome
from .text import strip_markup

console = Console()

ACCEPT_HEADER = "application/rss+xml, application/atom+xml, application/xml, text/xml, */*"


class RSSFetcher:
    """Fetch and parse RSS feeds."""

    def __init__(
        self,
        timeout: float = 30.0,
        max_concurrent: int = 1,
        request_delay: float = 0.5,
        user_agent: str = "newsdigest/1.0 (RSS digest generator)",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize RSS fetcher.

        Args:
            timeout: Upper bound in seconds for one feed, connect to parse
            max_concurrent: Feeds in flight at once (1 means sequential)
            request_delay: Politeness pause after each request
            user_agent: User-Agent header sent to feed hosts
            transport: Optional httpx transport, mainly for tests
        """
        self.timeout = timeout
        self.max_concurrent = max_concurrent
        self.request_delay = request_delay
        self.user_agent = user_agent
        self.transport = transport

    @classmethod
    def from_config(
        cls,
        fetch_config: FetchConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "RSSFetcher":
        """Build a fetcher from the fetch section of the config."""
        return cls(
            timeout=fetch_config.timeout,
            max_concurrent=fetch_config.max_concurrent,
            request_delay=fetch_config.request_delay,
            user_agent=fetch_config.user_agent,
            transport=transport,
        )

    def _item_id(self, entry: Any, source_name: str) -> str:
        """Fingerprint an entry from its guid, link, or title and date."""
        unique = (
            entry.get("id")
            or entry.get("link")
            or f"{source_name}-{entry.get('title', '')}-{entry.get('published', '')}"
        )
        return hashlib.md5(unique.encode("utf-8")).hexdigest()

    def _entry_published(self, entry: Any, fallback: datetime) -> datetime:
        """Publication time of an entry, or fallback when the feed omits it."""
        parsed = entry.get("published_parsed") or entry.get("updated_parsed")
        if parsed:
            try:
                # feedparser normalizes dates to UTC struct_time
                return pendulum.from_timestamp(calendar.timegm(parsed))
            except (TypeError, ValueError, OverflowError):
                pass
        return fallback

    def _entry_description(self, entry: Any) -> str:
        """Plain-text description from summary or content."""
        raw = entry.get("summary")
        if not raw and entry.get("content"):
            raw = entry["content"][0].get("value")
        return strip_markup(raw)

    def parse_feed(
        self,
        content: Union[bytes, str],
        source: FeedSource,
        fetched_at: Optional[datetime] = None,
    ) -> List[FeedItem]:
        """
        Parse a feed document into normalized items.

        Raises:
            ValueError: If the document is not a readable feed
        """
        if fetched_at is None:
            fetched_at = pendulum.now("UTC")

        feed = feedparser.parse(content)

        # feedparser flags recoverable problems too; only give up when nothing parsed
        if feed.bozo and not feed.entries:
            raise ValueError(f"Invalid feed: {feed.get('bozo_exception')}")

        feed_title = feed.feed.get("title")
        items = []
        for entry in feed.entries:
            link = (entry.get("link") or "").strip()
            if not link:
                continue

            items.append(
                FeedItem(
                    id=self._item_id(entry, source.name),
                    title=(entry.get("title") or "").strip() or "Untitled",
                    link=link,
                    description=self._entry_description(entry),
                    published_at=self._entry_published(entry, fetched_at),
                    source_name=source.name,
                    category=source.category,
                    author=entry.get("author") or feed_title,
                )
            )

        return items

    async def _download_and_parse(
        self,
        client: httpx.AsyncClient,
        source: FeedSource,
    ) -> List[FeedItem]:
        """Download one feed and parse it."""
        response = await client.get(source.url)
        response.raise_for_status()
        return self.parse_feed(response.content, source)

    async def fetch_feed(self, client: httpx.AsyncClient, source: FeedSource) -> FetchOutcome:
        """Fetch and parse a single feed; never raises."""
        start = time.monotonic()

        def failed(error: str) -> FetchOutcome:
            return FetchOutcome(
                source_name=source.name,
                source_url=source.url,
                category=source.category,
                succeeded=False,
                error_detail=error,
                elapsed=time.monotonic() - start,
            )

        try:
            items = await asyncio.wait_for(
                self._download_and_parse(client, source),
                timeout=self.timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            return failed(f"Request timed out after {self.timeout:g}s")
        except httpx.HTTPStatusError as e:
            return failed(f"HTTP {e.response.status_code}")
        except httpx.HTTPError as e:
            return failed(f"HTTP error: {e}")
        except ValueError as e:
            return failed(str(e))
        except Exception as e:
            return failed(f"Unexpected error: {e}")

        return FetchOutcome(
            source_name=source.name,
            source_url=source.url,
            category=source.category,
            succeeded=True,
            items=items,
            elapsed=time.monotonic() - start,
        )

    async def fetch_all_feeds(self, sources: List[FeedSource]) -> List[FetchOutcome]:
        """Fetch all enabled feeds; outcomes keep the configured source order."""
        enabled_sources = [s for s in sources if s.enabled]

        if not enabled_sources:
            return []

        semaphore = asyncio.Semaphore(self.max_concurrent)
        headers = {"User-Agent": self.user_agent, "Accept": ACCEPT_HEADER}

        async with httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            headers=headers,
            transport=self.transport,
        ) as client:

            async def fetch_with_semaphore(source: FeedSource) -> FetchOutcome:
                async with semaphore:
                    console.print(f"[dim]Fetching {source.name} ({source.url})[/dim]")
                    outcome = await self.fetch_feed(client, source)
                    if outcome.succeeded:
                        console.print(f"  [green]{outcome.item_count} items[/green] from {source.name}")
                    else:
                        console.print(f"  [red]Failed {source.name}: {outcome.error_detail}[/red]")
                    if self.request_delay > 0:
                        await asyncio.sleep(self.request_delay)
                    return outcome

            tasks = [fetch_with_semaphore(source) for source in enabled_sources]
            results = await asyncio.gather(*tasks)

        return list(results)

    def fetch_feeds_sync(self, sources: List[FeedSource]) -> List[FetchOutcome]:
        """Synchronous wrapper for fetch_all_feeds."""
        return asyncio.run(self.fetch_all_feeds(sources))


def print_feed_summary(outcomes: List[FetchOutcome]) -> None:
    """Print summary of feed fetch results."""
    total_items = sum(o.item_count for o in outcomes)
    successful = sum(1 for o in outcomes if o.succeeded)
    failed = len(outcomes) - successful

    console.print("\n[bold]Feed Fetch Summary:[/bold]")
    console.print(f"  Sources fetched: {len(outcomes)}")
    console.print(f"  Successful: [green]{successful}[/green]")
    console.print(f"  Failed: [red]{failed}[/red]")
    console.print(f"  Total items: {total_items}")

    if failed > 0:
        console.print("\n[bold red]Failed feeds:[/bold red]")
        for outcome in outcomes:
            if not outcome.succeeded:
                console.print(f"  - {outcome.source_name}: {outcome.error_detail}")
