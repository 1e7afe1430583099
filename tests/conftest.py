"""Shared fixtures for the tradelog test suite."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from tradelog.core.clock import SimClock
from tradelog.mirror.memory import InMemorySheetBook
from tradelog.storage.kv import MemoryKeyValueStore
from tradelog.storage.state import StatePersistence

from factories import SPREADSHEET_ID


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------

@pytest.fixture
def sim_clock() -> SimClock:
    """Clock frozen at 2024-03-15 12:00 UTC."""
    return SimClock(datetime(2024, 3, 15, 12, 0, 0, tzinfo=timezone.utc))


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------

@pytest.fixture
def sheet_book() -> InMemorySheetBook:
    """In-memory spreadsheet with no tabs yet."""
    book = InMemorySheetBook()
    book.create_spreadsheet(SPREADSHEET_ID)
    return book


@pytest.fixture
def kv_store() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def persistence(kv_store: MemoryKeyValueStore) -> StatePersistence:
    return StatePersistence(kv_store)
