"""Ledger record models."""

from .base import DBModel
from .seen import SeenRecord
from .stats import DigestRunStat, FeedRunStat

__all__ = ["DBModel", "DigestRunStat", "FeedRunStat", "SeenRecord"]
