"""Feed ingestion."""

from .models import FeedItem, FetchOutcome
from .rss_fetcher import RSSFetcher, print_feed_summary
from .text import strip_markup

__all__ = [
    "RSSFetcher",
    "FeedItem",
    "FetchOutcome",
    "print_feed_summary",
    "strip_markup",
]
