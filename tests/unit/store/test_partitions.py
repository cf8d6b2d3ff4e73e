"""Tests for per-document database partitions."""

from pathlib import Path

import pytest

from figcache.core.config import PartitionConfig
from figcache.store.cache_store import CacheStore
from figcache.store.partitions import PartitionManager, safe_document_id
from tests.fakes import make_node


@pytest.fixture
def partitions(tmp_path: Path) -> PartitionManager:
    manager = PartitionManager(PartitionConfig(cache_dir=tmp_path / "cache"))
    yield manager
    manager.close()


def _seed(manager: PartitionManager, name: str) -> None:
    store = CacheStore(manager.database)
    store.pages.ensure_skeletons([("1:1", "Landing")])
    store.nodes.upsert(make_node("10:1", name))


class TestSafeId:
    @pytest.mark.parametrize(
        "document_id,expected",
        [
            ("abc123", "abc123"),
            ("my-doc_1", "my-doc_1"),
            ("a/b:c", "a_b_c"),
            ("../etc", "___etc"),
        ],
    )
    def test_replaces_unsafe_characters(self, document_id, expected):
        assert safe_document_id(document_id) == expected

    def test_path_for_document(self, partitions: PartitionManager, tmp_path: Path):
        assert partitions.path_for("a/b") == tmp_path / "cache" / "figma-index-a_b.db"

    def test_path_without_document_is_legacy(self, partitions: PartitionManager, tmp_path: Path):
        assert partitions.path_for(None) == tmp_path / "cache" / "figma-index.db"


class TestActivation:
    def test_documents_are_isolated(self, partitions: PartitionManager):
        partitions.activate("doc-a")
        _seed(partitions, "Alpha")

        partitions.activate("doc-b")
        assert CacheStore(partitions.database).has_nodes() is False
        _seed(partitions, "Beta")

        partitions.activate("doc-a")
        node = CacheStore(partitions.database).nodes.get("10:1")

        assert node.name == "Alpha"
        assert partitions.switch_count == 3

    def test_reactivating_same_document_is_noop(self, partitions: PartitionManager):
        assert partitions.activate("doc-a") is True
        db = partitions.database

        assert partitions.activate("doc-a") is False
        assert partitions.database is db
        assert partitions.switch_count == 1

    def test_database_defaults_to_legacy_path(self, partitions: PartitionManager):
        assert partitions.database.path == partitions.path_for(None)
        assert partitions.active_document_id is None

    def test_previous_database_is_closed(self, partitions: PartitionManager):
        partitions.activate("doc-a")
        first = partitions.database

        partitions.activate("doc-b")

        assert first.is_connected is False
        assert partitions.active_document_id == "doc-b"


class TestCachedDocuments:
    def test_empty_cache_dir(self, partitions: PartitionManager):
        assert partitions.list_cached_documents() == []

    def test_lists_document_databases(self, partitions: PartitionManager):
        partitions.activate("doc-a")
        partitions.activate("doc-b")
        partitions.database  # noqa: B018

        documents = {d.document_id: d for d in partitions.list_cached_documents()}

        assert set(documents) == {"doc-a", "doc-b"}
        assert documents["doc-a"].size > 0
        assert documents["doc-a"].path.endswith("figma-index-doc-a.db")

    def test_remove_deletes_database_files(self, partitions: PartitionManager):
        partitions.activate("doc-a")
        _seed(partitions, "Alpha")
        path = partitions.path_for("doc-a")

        assert partitions.remove("doc-a") is True

        assert not path.exists()
        assert not Path(f"{path}-wal").exists()
        assert not Path(f"{path}-shm").exists()
        assert partitions.is_open is False

    def test_remove_unknown_document(self, partitions: PartitionManager):
        assert partitions.remove("missing") is False
