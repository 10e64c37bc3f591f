"""Data models for ingestion."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class FeedItem(BaseModel):
    """Normalized feed entry."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Content fingerprint (diagnostic only)")
    link: str = Field(..., description="Canonical URL, the deduplication key", min_length=1)
    title: str = Field("Untitled", description="Entry title")
    description: str = Field("", description="Plain-text summary")
    published_at: datetime = Field(..., description="Publication timestamp")
    source_name: str = Field(..., description="Configured source name")
    category: str = Field("Uncategorized", description="Source category")
    author: Optional[str] = Field(None, description="Entry author or feed title")


class FetchOutcome(BaseModel):
    """Result of fetching one feed."""

    source_name: str = Field(..., description="Source name")
    source_url: str = Field("", description="Feed URL")
    category: str = Field("Uncategorized", description="Source category")
    succeeded: bool = Field(..., description="Whether the fetch succeeded")
    items: List[FeedItem] = Field(default_factory=list, description="Parsed feed items")
    error_detail: Optional[str] = Field(None, description="Error message if failed")
    elapsed: float = Field(0.0, description="Fetch duration in seconds")

    @model_validator(mode="after")
    def check_error_detail(self) -> "FetchOutcome":
        """A failed outcome carries an error and no items."""
        if self.succeeded:
            if self.error_detail is not None:
                raise ValueError("successful outcome cannot carry error_detail")
        else:
            if not self.error_detail:
                raise ValueError("failed outcome requires error_detail")
            if self.items:
                raise ValueError("failed outcome cannot carry items")
        return self

    @property
    def item_count(self) -> int:
        """Number of items fetched."""
        return len(self.items)
