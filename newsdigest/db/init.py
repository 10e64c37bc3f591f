"""Database initialization and schema management."""

from typing import Any, Dict

from psycopg.errors import DatabaseError
from rich.console import Console

from .connection import get_connection

console = Console()


SCHEMA_SQL = """
-- URLs already published in a digest
CREATE TABLE IF NOT EXISTS seen_urls (
    url TEXT PRIMARY KEY,
    source_name TEXT NOT NULL,
    first_seen_at TIMESTAMPTZ NOT NULL,
    title TEXT
);

-- Per-source counters, one row per source per run
CREATE TABLE IF NOT EXISTS feed_run_stats (
    id SERIAL PRIMARY KEY,
    run_at TIMESTAMPTZ NOT NULL,
    source_name TEXT NOT NULL,
    items_fetched INTEGER NOT NULL DEFAULT 0,
    items_new INTEGER NOT NULL DEFAULT 0,
    succeeded BOOLEAN NOT NULL DEFAULT TRUE,
    error_detail TEXT
);

-- Per-run totals
CREATE TABLE IF NOT EXISTS digest_run_stats (
    id SERIAL PRIMARY KEY,
    generated_at TIMESTAMPTZ NOT NULL,
    total_sources INTEGER NOT NULL DEFAULT 0,
    succeeded_sources INTEGER NOT NULL DEFAULT 0,
    failed_sources INTEGER NOT NULL DEFAULT 0,
    new_item_count INTEGER NOT NULL DEFAULT 0,
    published_item_count INTEGER NOT NULL DEFAULT 0,
    duplicate_count INTEGER NOT NULL DEFAULT 0,
    evicted_count INTEGER NOT NULL DEFAULT 0
);

-- Create indexes
CREATE INDEX IF NOT EXISTS idx_seen_urls_first_seen_at ON seen_urls(first_seen_at);
CREATE INDEX IF NOT EXISTS idx_feed_run_stats_run_at ON feed_run_stats(run_at);
CREATE INDEX IF NOT EXISTS idx_digest_run_stats_generated_at ON digest_run_stats(generated_at);
"""


def validate_connection(config: Dict[str, Any]) -> bool:
    """Validate database connection."""
    try:
        with get_connection(config) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1 AS ok")
                result = cur.fetchone()
                return result is not None and result["ok"] == 1
    except Exception as e:
        console.print(f"[red]Database connection failed: {e}[/red]")
        return False


def init_database(config: Dict[str, Any]) -> None:
    """Initialize database schema."""
    try:
        with get_connection(config) as conn:
            with conn.cursor() as cur:
                cur.execute(SCHEMA_SQL)
            conn.commit()
            console.print("Database schema initialized successfully")
    except DatabaseError as e:
        console.print(f"[red]Failed to initialize database schema: {e}[/red]")
        raise
