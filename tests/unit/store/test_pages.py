"""Tests for PageRepository."""

from figcache.core.types import IndexedPage
from figcache.store.cache_store import CacheStore


class TestPageRepository:
    def test_upsert_round_trip(self, store: CacheStore):
        store.pages.upsert(
            IndexedPage(id="1:1", name="Landing", frame_count=2, main_sections=["Hero", "Footer"])
        )

        page = store.pages.get("1:1")

        assert page.frame_count == 2
        assert page.main_sections == ["Hero", "Footer"]

    def test_ensure_skeletons_keeps_existing_counts(self, store: CacheStore):
        store.pages.upsert(IndexedPage(id="1:1", name="Landing", node_count=12))

        written = store.pages.ensure_skeletons([("1:1", "Landing v2"), ("2:1", "Checkout")])

        assert written == 2
        landing = store.pages.get("1:1")
        assert landing.name == "Landing v2"
        assert landing.node_count == 12
        assert store.pages.get("2:1").node_count == 0

    def test_find_by_id_or_name(self, store: CacheStore):
        store.pages.bulk_upsert([IndexedPage(id="1:1", name="Landing"), IndexedPage(id="2:1", name="1:1")])

        assert store.pages.find("1:1").id == "1:1"
        assert store.pages.find("Landing").id == "1:1"
        assert store.pages.find("Missing") is None
