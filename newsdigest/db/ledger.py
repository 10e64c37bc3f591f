"""Persistent record of published URLs and run statistics."""

from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Set

import pendulum
import psycopg
from psycopg import Connection
from rich.console import Console

from ..ingestion.models import FeedItem
from ..models import DigestRunStat, FeedRunStat, SeenRecord
from .connection import connect
from .init import SCHEMA_SQL

console = Console()


class LedgerError(Exception):
    """Base error for ledger failures."""


class LedgerOpenError(LedgerError):
    """The ledger storage could not be opened."""


class LedgerWriteError(LedgerError):
    """Seen URLs could not be persisted."""


class Ledger:
    """
    Owns the seen-URL table and the append-only run statistics.

    A ledger wraps one exclusively owned connection for the length of a run.
    Use it as a context manager: pending work is committed on a clean exit,
    rolled back on an error exit, and the connection is always closed.
    """

    def __init__(self, conn: Connection) -> None:
        """Wrap an open connection."""
        self.conn = conn
        self._closed = False

    @classmethod
    def open(cls, db_config: Dict[str, Any], ensure_schema: bool = True) -> "Ledger":
        """
        Connect and make sure the schema exists.

        Raises:
            LedgerOpenError: If the database is unreachable or the schema
                cannot be created
        """
        try:
            conn = connect(db_config)
        except psycopg.Error as e:
            raise LedgerOpenError(f"Cannot open ledger database: {e}") from e

        ledger = cls(conn)
        if ensure_schema:
            try:
                with conn.cursor() as cur:
                    cur.execute(SCHEMA_SQL)
                conn.commit()
            except psycopg.Error as e:
                ledger.close()
                raise LedgerOpenError(f"Cannot prepare ledger schema: {e}") from e
        return ledger

    def __enter__(self) -> "Ledger":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if exc_type is None:
                self.conn.commit()
            else:
                self._rollback()
        finally:
            self.close()

    def _rollback(self) -> None:
        try:
            self.conn.rollback()
        except psycopg.Error as e:
            console.print(f"[yellow]Ledger rollback failed: {e}[/yellow]")

    def is_seen(self, url: str) -> bool:
        """Check one URL by primary key."""
        with self.conn.cursor() as cur:
            cur.execute("SELECT 1 AS hit FROM seen_urls WHERE url = %s", (url,))
            return cur.fetchone() is not None

    def load_seen_set(self, newer_than: Optional[datetime] = None) -> Set[str]:
        """
        Load every known URL in one query.

        Args:
            newer_than: Only URLs first seen at or after this instant
        """
        try:
            with self.conn.cursor() as cur:
                if newer_than is None:
                    cur.execute("SELECT url FROM seen_urls")
                else:
                    cur.execute(
                        "SELECT url FROM seen_urls WHERE first_seen_at >= %s",
                        (newer_than,),
                    )
                return {row["url"] for row in cur.fetchall()}
        except psycopg.Error as e:
            self._rollback()
            raise LedgerError(f"Cannot load seen URLs: {e}") from e

    def get_seen_record(self, url: str) -> Optional[SeenRecord]:
        """Fetch the stored record for a URL."""
        with self.conn.cursor() as cur:
            cur.execute(
                """
                SELECT url, source_name, first_seen_at, title
                FROM seen_urls
                WHERE url = %s
                """,
                (url,),
            )
            row = cur.fetchone()
        return SeenRecord(**row) if row else None

    def seen_count(self) -> int:
        """Number of URLs currently remembered."""
        try:
            with self.conn.cursor() as cur:
                cur.execute("SELECT COUNT(*) AS count FROM seen_urls")
                return cur.fetchone()["count"]
        except psycopg.Error as e:
            self._rollback()
            raise LedgerError(f"Cannot count seen URLs: {e}") from e

    def record_seen(self, items: Iterable[FeedItem], seen_at: Optional[datetime] = None) -> int:
        """
        Remember the links of published items.

        URLs already present are left untouched, so the first-seen time and
        metadata of an earlier run win.

        Returns:
            Number of URLs newly stored

        Raises:
            LedgerWriteError: If the insert fails; nothing is stored then
        """
        if seen_at is None:
            seen_at = pendulum.now("UTC")

        urls: List[str] = []
        sources: List[str] = []
        titles: List[Optional[str]] = []
        for item in items:
            urls.append(item.link)
            sources.append(item.source_name)
            titles.append(item.title)

        if not urls:
            return 0

        try:
            with self.conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO seen_urls (url, source_name, first_seen_at, title)
                    SELECT u, s, %s, t
                    FROM unnest(%s::text[], %s::text[], %s::text[]) AS x(u, s, t)
                    ON CONFLICT (url) DO NOTHING
                    """,
                    (seen_at, urls, sources, titles),
                )
                inserted = cur.rowcount
            self.conn.commit()
        except psycopg.Error as e:
            self._rollback()
            raise LedgerWriteError(f"Failed to record {len(urls)} seen URLs: {e}") from e

        return inserted

    def evict_older_than(self, retention_days: int, now: Optional[datetime] = None) -> int:
        """
        Forget URLs first seen more than retention_days before now.

        Returns:
            Number of records deleted
        """
        if now is None:
            now = pendulum.now("UTC")
        cutoff = now - timedelta(days=retention_days)

        try:
            with self.conn.cursor() as cur:
                cur.execute("DELETE FROM seen_urls WHERE first_seen_at < %s", (cutoff,))
                removed = cur.rowcount
            self.conn.commit()
        except psycopg.Error as e:
            self._rollback()
            raise LedgerError(f"Failed to evict old seen URLs: {e}") from e

        if removed > 0:
            console.print(f"[dim]Evicted {removed} seen URLs older than {retention_days} days[/dim]")
        return removed

    def record_feed_run_stat(self, stat: FeedRunStat) -> None:
        """Append per-source counters; failures are reported, not raised."""
        try:
            with self.conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO feed_run_stats (
                        run_at, source_name, items_fetched, items_new,
                        succeeded, error_detail
                    ) VALUES (%s, %s, %s, %s, %s, %s)
                    """,
                    (
                        stat.run_at,
                        stat.source_name,
                        stat.items_fetched,
                        stat.items_new,
                        stat.succeeded,
                        stat.error_detail,
                    ),
                )
            self.conn.commit()
        except psycopg.Error as e:
            self._rollback()
            console.print(f"[yellow]Warning: could not record stats for {stat.source_name}: {e}[/yellow]")

    def record_digest_run_stat(self, stat: DigestRunStat) -> None:
        """Append run totals; failures are reported, not raised."""
        try:
            with self.conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO digest_run_stats (
                        generated_at, total_sources, succeeded_sources,
                        failed_sources, new_item_count, published_item_count,
                        duplicate_count, evicted_count
                    ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                    """,
                    (
                        stat.generated_at,
                        stat.total_sources,
                        stat.succeeded_sources,
                        stat.failed_sources,
                        stat.new_item_count,
                        stat.published_item_count,
                        stat.duplicate_count,
                        stat.evicted_count,
                    ),
                )
            self.conn.commit()
        except psycopg.Error as e:
            self._rollback()
            console.print(f"[yellow]Warning: could not record run statistics: {e}[/yellow]")

    def recent_digest_runs(self, limit: int = 10) -> List[DigestRunStat]:
        """Most recent runs first."""
        try:
            with self.conn.cursor() as cur:
                cur.execute(
                    """
                    SELECT * FROM digest_run_stats
                    ORDER BY generated_at DESC, id DESC
                    LIMIT %s
                    """,
                    (limit,),
                )
                return [DigestRunStat(**row) for row in cur.fetchall()]
        except psycopg.Error as e:
            self._rollback()
            raise LedgerError(f"Cannot read run history: {e}") from e

    def recent_feed_runs(self, limit: int = 20) -> List[FeedRunStat]:
        """Most recent per-source rows first."""
        try:
            with self.conn.cursor() as cur:
                cur.execute(
                    """
                    SELECT * FROM feed_run_stats
                    ORDER BY run_at DESC, id DESC
                    LIMIT %s
                    """,
                    (limit,),
                )
                return [FeedRunStat(**row) for row in cur.fetchall()]
        except psycopg.Error as e:
            self._rollback()
            raise LedgerError(f"Cannot read feed history: {e}") from e

    def close(self) -> None:
        """Release the connection."""
        if self._closed:
            return
        self._closed = True
        self.conn.close()
