"""Run statistics models."""

from datetime import datetime
from typing import Optional

from pydantic import Field

from .base import DBModel


class FeedRunStat(DBModel):
    """Per-source counters for one run."""

    run_at: datetime = Field(..., description="Start of the run")
    source_name: str = Field(..., description="Source name")
    items_fetched: int = Field(0, description="Items returned by the feed", ge=0)
    items_new: int = Field(0, description="Items that survived deduplication", ge=0)
    succeeded: bool = Field(..., description="Whether the fetch succeeded")
    error_detail: Optional[str] = Field(None, description="Error message if failed")


class DigestRunStat(DBModel):
    """Totals for one run."""

    generated_at: datetime = Field(..., description="Start of the run")
    total_sources: int = Field(0, description="Sources attempted", ge=0)
    succeeded_sources: int = Field(0, description="Sources fetched successfully", ge=0)
    failed_sources: int = Field(0, description="Sources that failed", ge=0)
    new_item_count: int = Field(0, description="Unseen items before the total cap", ge=0)
    published_item_count: int = Field(0, description="Items in the rendered digest", ge=0)
    duplicate_count: int = Field(0, description="Items dropped as already seen", ge=0)
    evicted_count: int = Field(0, description="Seen records retired at run start", ge=0)
