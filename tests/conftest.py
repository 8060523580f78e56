"""
Global test configuration and fixtures for the session store.

Provides a throwaway SQLite database per test, store factories that clean up
their background work, and a controllable clock.
"""

import pytest
import pytest_asyncio

from sessionstore.core.config import StoreSettings
from sessionstore.core.session_store import SessionStore
from sessionstore.core.utils import timeutils
from sessionstore.db.session import create_session_engine


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def engine(tmp_path):
    """Create a file-backed SQLite engine for each test function"""
    engine = create_session_engine(f"sqlite:///{tmp_path / 'sessions.db'}")
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def base_settings():
    """Settings that ignore the developer's environment and .env file"""
    return StoreSettings(_env_file=None)


# ============================================================================
# Store Fixtures
# ============================================================================

@pytest_asyncio.fixture(scope="function")
async def make_store(engine, base_settings):
    """Factory for stores that syncs the table and disables sampled GC by default"""
    stores = []

    def _make(**overrides):
        overrides.setdefault("sync", True)
        overrides.setdefault("gc_frequency", 0)
        store = SessionStore(engine, base_settings, **overrides)
        stores.append(store)
        return store

    yield _make

    for store in stores:
        await store.close()


@pytest_asyncio.fixture(scope="function")
async def store(make_store):
    """A ready store with default settings"""
    store = make_store()
    await store.collect()  # passes the readiness gate
    return store


# ============================================================================
# Clock Fixtures
# ============================================================================

class FrozenClock:
    """Stands in for timeutils.current_timestamp"""

    def __init__(self, now: int):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


@pytest.fixture(scope="function")
def clock(monkeypatch):
    """Freeze the store's clock at a fixed epoch second"""
    frozen = FrozenClock(1_700_000_000)
    monkeypatch.setattr(timeutils, "current_timestamp", frozen)
    return frozen


