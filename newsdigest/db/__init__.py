"""Database management for the news digest."""

from .connection import connect, get_connection
from .init import init_database, validate_connection
from .ledger import Ledger, LedgerError, LedgerOpenError, LedgerWriteError

__all__ = [
    "Ledger",
    "LedgerError",
    "LedgerOpenError",
    "LedgerWriteError",
    "connect",
    "get_connection",
    "init_database",
    "validate_connection",
]
