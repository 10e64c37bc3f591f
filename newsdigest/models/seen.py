"""Seen-URL record."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class SeenRecord(BaseModel):
    """A URL that has been published in some digest."""

    url: str = Field(..., description="Canonical URL (unique)")
    source_name: str = Field(..., description="Source that first published it")
    first_seen_at: datetime = Field(..., description="When it was first published; drives retention")
    title: Optional[str] = Field(None, description="Title at first publication")
