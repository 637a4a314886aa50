from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

import pytest

from solar_portal.core.config import Settings
from solar_portal.store import DataStore


class FakeClock:
    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture()
def clock():
    return FakeClock(datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc))


@pytest.fixture()
def store_settings(tmp_path):
    return Settings(
        DATABASE_URL=f"sqlite+aiosqlite:///{(tmp_path / 'portal.db').as_posix()}",
        FALLBACK_STORAGE_DIR=str(tmp_path / "fallback"),
        STARTUP_GRACE_SECONDS=10.0,
    )


@pytest.fixture()
def fallback_only_settings(tmp_path):
    return Settings(
        STRUCTURED_STORE_ENABLED=False,
        FALLBACK_STORAGE_DIR=str(tmp_path / "fallback"),
        STARTUP_GRACE_SECONDS=10.0,
    )


@pytest.fixture()
def open_store(store_settings, clock):
    """Factory for an initialized store that is shut down on exit."""

    @asynccontextmanager
    async def _open(app_settings=None):
        store = DataStore(app_settings or store_settings, clock=clock)
        await store.initialize()
        try:
            yield store
        finally:
            await store.shutdown()

    return _open
