"""Selection models."""

from typing import Dict, List

from pydantic import BaseModel, Field

from ..ingestion.models import FeedItem


class SelectionResult(BaseModel):
    """Outcome of selecting items for one digest."""

    items: List[FeedItem] = Field(default_factory=list, description="Published items, newest first")
    new_count: int = Field(0, description="Unseen items before the total cap", ge=0)
    duplicate_count: int = Field(0, description="Candidates dropped as already seen", ge=0)
    repeat_count: int = Field(
        0,
        description="New items not published because another source carried the same link",
        ge=0,
    )
    candidate_count: int = Field(0, description="Items left after the per-feed cap", ge=0)
    new_by_source: Dict[str, int] = Field(
        default_factory=dict,
        description="Unseen items per source before the total cap",
    )

    @property
    def published_count(self) -> int:
        """Number of items that made it into the digest."""
        return len(self.items)
