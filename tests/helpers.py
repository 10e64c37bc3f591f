"""Test helpers: item factory and an in-memory ledger."""

from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Set

import pendulum

from newsdigest.ingestion.models import FeedItem
from newsdigest.models import DigestRunStat, FeedRunStat, SeenRecord

# A Monday
MONDAY = pendulum.datetime(2024, 6, 3, 9, 0, tz="UTC")


def make_item(
    source: str,
    link: str,
    published_at: datetime,
    title: Optional[str] = None,
    category: str = "Tech News",
) -> FeedItem:
    return FeedItem(
        id=link,
        link=link,
        title=title or link,
        published_at=published_at,
        source_name=source,
        category=category,
    )


class MemoryLedger:
    """In-memory stand-in with the Ledger contract."""

    def __init__(self, records: Optional[Iterable[SeenRecord]] = None) -> None:
        self.records: Dict[str, SeenRecord] = {r.url: r for r in records or []}
        self.feed_stats: List[FeedRunStat] = []
        self.digest_stats: List[DigestRunStat] = []
        self.closed = False
        self.fail_record_seen = False
        self.calls: List[str] = []

    def __enter__(self) -> "MemoryLedger":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def is_seen(self, url: str) -> bool:
        return url in self.records

    def load_seen_set(self, newer_than: Optional[datetime] = None) -> Set[str]:
        self.calls.append("load_seen_set")
        return {
            url for url, r in self.records.items()
            if newer_than is None or r.first_seen_at >= newer_than
        }

    def record_seen(self, items: Iterable[FeedItem], seen_at: Optional[datetime] = None) -> int:
        from newsdigest.db import LedgerWriteError

        self.calls.append("record_seen")
        if self.fail_record_seen:
            raise LedgerWriteError("disk full")
        seen_at = seen_at or pendulum.now("UTC")
        inserted = 0
        for item in items:
            if item.link not in self.records:
                self.records[item.link] = SeenRecord(
                    url=item.link,
                    source_name=item.source_name,
                    first_seen_at=seen_at,
                    title=item.title,
                )
                inserted += 1
        return inserted

    def evict_older_than(self, retention_days: int, now: Optional[datetime] = None) -> int:
        self.calls.append("evict_older_than")
        cutoff = (now or pendulum.now("UTC")) - timedelta(days=retention_days)
        stale = [url for url, r in self.records.items() if r.first_seen_at < cutoff]
        for url in stale:
            del self.records[url]
        return len(stale)

    def record_feed_run_stat(self, stat: FeedRunStat) -> None:
        self.feed_stats.append(stat)

    def record_digest_run_stat(self, stat: DigestRunStat) -> None:
        self.digest_stats.append(stat)

    def seen_count(self) -> int:
        return len(self.records)

    def recent_digest_runs(self, limit: int = 10) -> List[DigestRunStat]:
        return list(reversed(self.digest_stats))[:limit]

    def recent_feed_runs(self, limit: int = 20) -> List[FeedRunStat]:
        return list(reversed(self.feed_stats))[:limit]

    def close(self) -> None:
        self.closed = True

