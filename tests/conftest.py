"""Pytest configuration and fixtures."""

from pathlib import Path

import pytest

from figcache.core.config import Config, PartitionConfig
from figcache.core.types import IndexedPage
from figcache.store.cache_store import CacheStore
from figcache.store.database import Database
from tests.fakes import FakeClock, FakeDesignSource

_ENV_VARS = (
    "FIGCACHE_CONFIG",
    "FIGMA_CACHE_DIR",
    "FIGMA_INDEX_PATH",
    "FIGCACHE_STALE_SECONDS",
    "FIGCACHE_RETRY_SECONDS",
    "FIGCACHE_INVALIDATION_THRESHOLD",
    "FIGCACHE_TRACING",
    "FIGCACHE_PHOENIX_ENDPOINT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the developer's environment out of configuration tests."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def test_db_path(tmp_path: Path) -> Path:
    """Provide a temporary database path for tests."""
    return tmp_path / "test.db"


@pytest.fixture
def db(test_db_path: Path) -> Database:
    """Provide a connected, migrated database instance."""
    database = Database(test_db_path)
    database.connect()
    yield database
    database.close()


@pytest.fixture
def store(db: Database) -> CacheStore:
    """Provide a CacheStore over the test database."""
    return CacheStore(db)


@pytest.fixture
def config(tmp_path: Path) -> Config:
    """Provide a Config whose cache directory lives in tmp_path."""
    cfg = Config()
    cfg.partition = PartitionConfig(cache_dir=tmp_path / "cache")
    return cfg


@pytest.fixture
def source() -> FakeDesignSource:
    return FakeDesignSource()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sample_page(store: CacheStore) -> IndexedPage:
    """Insert a page that nodes can reference."""
    page = IndexedPage(id="1:1", name="Landing")
    store.pages.upsert(page)
    return page
