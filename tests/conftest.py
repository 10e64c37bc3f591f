"""Shared fixtures."""

import pytest

from tests.helpers import MemoryLedger


@pytest.fixture
def memory_ledger() -> MemoryLedger:
    return MemoryLedger()
