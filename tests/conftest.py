"""
Pytest configuration for Asset Ledger.

Provides fixtures for:
- A controllable clock, so update timestamps are predictable
- In-memory ledger backends
- Stores and catalogs wired together the way the ledger wires them
"""

from datetime import datetime, timedelta, timezone

import pytest

from asset_ledger.orchestrator import AssetLedger
from asset_ledger.services.catalog import SourceCatalog
from asset_ledger.services.storage import AssetStore, MemoryStateBackend


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: int = 60) -> None:
        self.now = self.now + timedelta(seconds=seconds)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 1, 15, 9, 30, tzinfo=timezone.utc))


@pytest.fixture
def january() -> datetime:
    return datetime(2024, 1, 1)


@pytest.fixture
def store(clock: FakeClock) -> AssetStore:
    """Record store without persistence."""
    return AssetStore(clock=clock)


@pytest.fixture
def catalog(store: AssetStore) -> SourceCatalog:
    """Catalog over the full builtin list."""
    return SourceCatalog(store)


@pytest.fixture
def backend() -> MemoryStateBackend:
    return MemoryStateBackend()


@pytest.fixture
def ledger(backend: MemoryStateBackend, clock: FakeClock) -> AssetLedger:
    """Fresh ledger over an empty in-memory backend (nothing to load)."""
    return AssetLedger(backend=backend, clock=clock)
