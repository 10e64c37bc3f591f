"""Pipeline orchestrator that runs one digest generation end to end."""

import json
import time
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Set

import pendulum
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from ..config import Config
from ..db import Ledger, LedgerError, LedgerWriteError
from ..ingestion import FetchOutcome, RSSFetcher
from ..models import DigestRunStat, FeedRunStat
from ..rendering import DigestRenderer, RenderError
from ..selection import SelectionResult, select_items

console = Console()

RUN_STATS_FILENAME = "run_stats.json"

LedgerFactory = Callable[[Dict[str, Any]], Ledger]


class PipelineStage:
    """Represents a pipeline stage."""

    def __init__(self, name: str, description: str):
        self.name = name
        self.description = description
        self.start_time: Optional[float] = None
        self.end_time: Optional[float] = None
        self.success = False
        self.skipped = False
        self.error: Optional[str] = None
        self.stats: Dict = {}

    def start(self):
        """Mark stage as started."""
        self.start_time = time.time()

    def complete(self, stats: Optional[Dict] = None):
        """Mark stage as completed successfully."""
        self.end_time = time.time()
        self.success = True
        if stats:
            self.stats.update(stats)

    def skip(self, reason: str):
        """Mark stage as intentionally not run."""
        self.skipped = True
        self.success = True
        self.stats["skipped"] = reason

    def fail(self, error: str):
        """Mark stage as failed."""
        self.end_time = time.time()
        self.success = False
        self.error = error

    @property
    def duration(self) -> float:
        """Get stage duration in seconds."""
        if self.start_time and self.end_time:
            return self.end_time - self.start_time
        return 0.0


class PipelineOrchestrator:
    """Orchestrates one digest run: history, fetch, select, render, persist."""

    def __init__(
        self,
        config: Config,
        fetcher: Optional[RSSFetcher] = None,
        renderer: Optional[DigestRenderer] = None,
        ledger_factory: Optional[LedgerFactory] = None,
    ):
        """
        Initialize pipeline orchestrator.

        Args:
            config: Loaded configuration
            fetcher: Feed fetcher; built from the fetch config when omitted
            renderer: Digest renderer; built from the newsletter config when omitted
            ledger_factory: Opens the ledger from a db config dict
        """
        self.config = config
        self.fetcher = fetcher or RSSFetcher.from_config(config.config.fetch)
        self.renderer = renderer or DigestRenderer(
            config.config.newsletter,
            config.output_dir,
            category_order=config.config.categories,
        )
        self.ledger_factory = ledger_factory or Ledger.open
        self.stages = [
            PipelineStage("ledger", "Opening ledger"),
            PipelineStage("history", "Retiring old history and loading seen URLs"),
            PipelineStage("fetch", "Fetching feeds"),
            PipelineStage("select", "Selecting new items"),
            PipelineStage("render", "Rendering digest"),
            PipelineStage("persist", "Recording published URLs"),
            PipelineStage("stats", "Recording run statistics"),
        ]
        self.total_start_time: Optional[float] = None
        self.started_at: Optional[datetime] = None
        self.outcomes: List[FetchOutcome] = []
        self.selection: Optional[SelectionResult] = None
        self.digest_stat: Optional[DigestRunStat] = None
        self.output_path: Optional[Path] = None

    def stage(self, name: str) -> PipelineStage:
        """Look up a stage by name."""
        for stage in self.stages:
            if stage.name == name:
                return stage
        raise KeyError(name)

    def run(
        self,
        max_items_per_feed: Optional[int] = None,
        max_total_items: Optional[int] = None,
        dry_run: bool = False,
    ) -> bool:
        """
        Run the complete pipeline.

        Returns:
            True if the digest was rendered and persisted, False otherwise
        """
        self.total_start_time = time.time()
        self.started_at = pendulum.now("UTC")

        newsletter = self.config.config.newsletter
        if max_items_per_feed is None:
            max_items_per_feed = newsletter.max_items_per_feed
        if max_total_items is None:
            max_total_items = newsletter.max_total_items

        console.print(Panel.fit(
            f"{newsletter.title}\n"
            f"Feeds: {len(self.config.config.enabled_feeds)} enabled • "
            f"Per feed: {max_items_per_feed} • Total: {max_total_items} • "
            f"Retention: {newsletter.retention_days} days"
            + (" • [yellow]dry run[/yellow]" if dry_run else ""),
            style="bold blue",
        ))

        stage = self.stage("ledger")
        stage.start()
        try:
            try:
                ledger = self.ledger_factory(self.config.get_db_config())
            except LedgerError as e:
                stage.fail(str(e))
                return False
            stage.complete()

            with ledger:
                return self._execute_pipeline(
                    ledger, max_items_per_feed, max_total_items, dry_run
                )
        finally:
            self._save_run_stats()
            self._print_summary()

    def _execute_pipeline(
        self,
        ledger: Ledger,
        max_items_per_feed: int,
        max_total_items: int,
        dry_run: bool,
    ) -> bool:
        """Execute the stages after the ledger is open."""
        newsletter = self.config.config.newsletter
        seen_urls: Set[str] = set()
        evicted = 0

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            TimeElapsedColumn(),
            console=console,
            transient=True,
        ) as progress:

            # Eviction happens before loading so one run never rejects an item
            # with a record it considers expired.
            stage = self.stage("history")
            task = progress.add_task(stage.description, total=1)
            stage.start()
            try:
                if dry_run:
                    cutoff = self.started_at - timedelta(days=newsletter.retention_days)
                    seen_urls = ledger.load_seen_set(newer_than=cutoff)
                else:
                    evicted = ledger.evict_older_than(newsletter.retention_days, now=self.started_at)
                    seen_urls = ledger.load_seen_set()
                stage.complete({"evicted": evicted, "seen": len(seen_urls)})
                progress.advance(task, 1)
            except LedgerError as e:
                stage.fail(str(e))
                return False

            stage = self.stage("fetch")
            progress.remove_task(task)
            task = progress.add_task(stage.description, total=1)
            stage.start()
            self.outcomes = self.fetcher.fetch_feeds_sync(self.config.config.enabled_feeds)
            all_items = [item for outcome in self.outcomes for item in outcome.items]
            succeeded = sum(1 for o in self.outcomes if o.succeeded)
            stage.complete({
                "total_feeds": len(self.outcomes),
                "successful_feeds": succeeded,
                "total_items": len(all_items),
            })
            progress.advance(task, 1)

            stage = self.stage("select")
            progress.remove_task(task)
            task = progress.add_task(stage.description, total=1)
            stage.start()
            self.selection = select_items(all_items, seen_urls, max_items_per_feed, max_total_items)
            self.digest_stat = DigestRunStat(
                generated_at=self.started_at,
                total_sources=len(self.outcomes),
                succeeded_sources=succeeded,
                failed_sources=len(self.outcomes) - succeeded,
                new_item_count=self.selection.new_count,
                published_item_count=self.selection.published_count,
                duplicate_count=self.selection.duplicate_count,
                evicted_count=evicted,
            )
            stage.complete({
                "candidates": self.selection.candidate_count,
                "new": self.selection.new_count,
                "published": self.selection.published_count,
                "duplicates": self.selection.duplicate_count,
                "repeats": self.selection.repeat_count,
            })
            progress.advance(task, 1)

            stage = self.stage("render")
            progress.remove_task(task)
            task = progress.add_task(stage.description, total=1)
            stage.start()
            try:
                # Dry runs must not replace the latest digest or add to the archive
                write = self.renderer.write_preview if dry_run else self.renderer.write_digest
                self.output_path = write(
                    self.selection.items, self.digest_stat, self.outcomes, now=self.started_at
                )
                stage.complete({"output": str(self.output_path)})
                progress.advance(task, 1)
            except RenderError as e:
                stage.fail(str(e))
                return False

            stage = self.stage("persist")
            progress.remove_task(task)
            task = progress.add_task(stage.description, total=1)
            if dry_run:
                stage.skip("dry run")
            else:
                stage.start()
                try:
                    inserted = ledger.record_seen(self.selection.items, seen_at=self.started_at)
                    stage.complete({"recorded": inserted})
                except LedgerWriteError as e:
                    # The digest is already on disk; next run may repeat these items.
                    stage.fail(str(e))
                    console.print(Panel(
                        f"[red]Published items were NOT recorded as seen.[/red]\n{e}\n"
                        "The next run may publish them again.",
                        style="red",
                    ))
                    return False
            progress.advance(task, 1)

            stage = self.stage("stats")
            progress.remove_task(task)
            task = progress.add_task(stage.description, total=1)
            if dry_run:
                stage.skip("dry run")
            else:
                stage.start()
                for outcome in self.outcomes:
                    ledger.record_feed_run_stat(FeedRunStat(
                        run_at=self.started_at,
                        source_name=outcome.source_name,
                        items_fetched=outcome.item_count,
                        items_new=self.selection.new_by_source.get(outcome.source_name, 0),
                        succeeded=outcome.succeeded,
                        error_detail=outcome.error_detail,
                    ))
                ledger.record_digest_run_stat(self.digest_stat)
                stage.complete({"sources": len(self.outcomes)})
            progress.advance(task, 1)

        return all(stage.success for stage in self.stages)

    def _save_run_stats(self) -> None:
        """Write run statistics next to the rendered output."""
        stats = {
            "pipeline": {
                "started_at": self.started_at.isoformat() if self.started_at else None,
                "total_duration": time.time() - self.total_start_time if self.total_start_time else 0,
                "completed_at": pendulum.now("UTC").isoformat(),
            },
            "digest": self.digest_stat.model_dump(mode="json") if self.digest_stat else None,
            "sources": [
                {
                    "name": o.source_name,
                    "succeeded": o.succeeded,
                    "items": o.item_count,
                    "error": o.error_detail,
                    "elapsed": round(o.elapsed, 3),
                }
                for o in self.outcomes
            ],
            "stages": {},
        }

        for stage in self.stages:
            stats["stages"][stage.name] = {
                "duration": stage.duration,
                "success": stage.success,
                "error": stage.error,
                "stats": stage.stats,
            }

        try:
            stats_file = self.renderer.output_dir / RUN_STATS_FILENAME
            stats_file.parent.mkdir(parents=True, exist_ok=True)
            with open(stats_file, "w", encoding="utf-8") as f:
                json.dump(stats, f, indent=2)
        except OSError as e:
            console.print(f"[yellow]Warning: could not write {RUN_STATS_FILENAME}: {e}[/yellow]")

    def _stage_details(self, stage: PipelineStage) -> str:
        if not stage.success:
            return stage.error or "Failed"
        if stage.skipped:
            return f"skipped ({stage.stats.get('skipped')})"
        if stage.name == "history":
            return f"{stage.stats.get('evicted', 0)} evicted, {stage.stats.get('seen', 0)} remembered"
        if stage.name == "fetch":
            return (
                f"{stage.stats.get('successful_feeds', 0)}/{stage.stats.get('total_feeds', 0)} feeds, "
                f"{stage.stats.get('total_items', 0)} items"
            )
        if stage.name == "select":
            return (
                f"{stage.stats.get('published', 0)} published, {stage.stats.get('new', 0)} new, "
                f"{stage.stats.get('duplicates', 0)} duplicates, "
                f"{stage.stats.get('repeats', 0)} cross-feed repeats"
            )
        if stage.name == "persist":
            return f"{stage.stats.get('recorded', 0)} URLs recorded"
        return ""

    def _print_summary(self) -> None:
        """Print pipeline execution summary."""
        total_duration = time.time() - self.total_start_time if self.total_start_time else 0

        table = Table(title="Pipeline Summary")
        table.add_column("Stage", style="cyan")
        table.add_column("Status", style="bold")
        table.add_column("Duration", style="yellow")
        table.add_column("Details", style="dim")

        for stage in self.stages:
            if stage.start_time is None and not stage.skipped:
                status = "[dim]-[/dim]"
            elif stage.success:
                status = "[green]✓[/green]"
            else:
                status = "[red]✗[/red]"
            duration = f"{stage.duration:.1f}s" if stage.duration > 0 else "-"
            table.add_row(stage.name.title(), status, duration, self._stage_details(stage))

        console.print("\n")
        console.print(table)

        failed_sources = [o for o in self.outcomes if not o.succeeded]
        if failed_sources:
            console.print("[bold yellow]Failed feeds:[/bold yellow]")
            for outcome in failed_sources:
                console.print(f"  - {outcome.source_name}: {outcome.error_detail}")

        if all(stage.success for stage in self.stages):
            console.print(Panel(
                f"[green]Digest generated[/green]\n\n"
                f"Duration: {total_duration:.1f} seconds\n"
                f"Output: {self.output_path}",
                style="green",
            ))
        else:
            failed_stages = [s.name for s in self.stages if s.error]
            console.print(Panel(
                f"[red]Run failed[/red]\n\n"
                f"Failed stages: {', '.join(failed_stages)}\n"
                f"Duration: {total_duration:.1f} seconds",
                style="red",
            ))
