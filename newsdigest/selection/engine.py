"""Select the items that go into a digest.

Everything here is pure: no database, no network. The ledger supplies the
set of already-published URLs and the orchestrator persists the result.
"""

from collections import Counter
from typing import AbstractSet, Dict, Iterable, List

from ..ingestion.models import FeedItem
from .models import SelectionResult


def _newest_first(items: Iterable[FeedItem]) -> List[FeedItem]:
    # sorted() is stable with reverse=True, so equal timestamps keep input order
    return sorted(items, key=lambda item: item.published_at, reverse=True)


def group_by_source(items: Iterable[FeedItem]) -> Dict[str, List[FeedItem]]:
    """Group items by source name, groups in order of first appearance."""
    groups: Dict[str, List[FeedItem]] = {}
    for item in items:
        groups.setdefault(item.source_name, []).append(item)
    return groups


def cap_per_source(items: Iterable[FeedItem], per_feed_cap: int) -> List[FeedItem]:
    """
    Keep the newest per_feed_cap items of every source.

    Returns the capped groups concatenated in group order.
    """
    if per_feed_cap <= 0:
        return []

    candidates: List[FeedItem] = []
    for group in group_by_source(items).values():
        candidates.extend(_newest_first(group)[:per_feed_cap])
    return candidates
def select_items(
    all_items: Iterable[FeedItem],
    seen_urls: AbstractSet[str],
    per_feed_cap: int,
    total_cap: int,
) -> SelectionResult:
    """
    Choose the items for this run's digest.

    Each source is trimmed to its per_feed_cap newest items before history is
    consulted. Candidates whose link is in seen_urls are duplicates; every
    other candidate counts as new. New items are ordered newest first, a link
    carried by several sources keeps only its newest copy (counted in
    repeat_count), and the rest is cut to total_cap.

    Args:
        all_items: Items from every source, in fetch order
        seen_urls: Links already published in earlier digests
        per_feed_cap: Most items any one source may contribute as candidates
        total_cap: Most items in the digest

    Returns:
        SelectionResult whose new_count is the survivor count before the
        total cap, while items holds only what is published
    """
    candidates = cap_per_source(all_items, per_feed_cap)

    survivors = [item for item in candidates if item.link not in seen_urls]
    duplicate_count = len(candidates) - len(survivors)
    survivors = _newest_first(survivors)

    unique: List[FeedItem] = []
    claimed = set()
    for item in survivors:
        if item.link in claimed:
            continue
        claimed.add(item.link)
        unique.append(item)

    published = unique[: max(total_cap, 0)]

    return SelectionResult(
        items=published,
        new_count=len(survivors),
        duplicate_count=duplicate_count,
        repeat_count=len(survivors) - len(unique),
        candidate_count=len(candidates),
        new_by_source=dict(Counter(item.source_name for item in survivors)),
    )
