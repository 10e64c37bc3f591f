"""Item selection: per-feed caps, deduplication and ordering."""

from .engine import cap_per_source, group_by_source, select_items
from .models import SelectionResult

__all__ = ["SelectionResult", "cap_per_source", "group_by_source", "select_items"]
