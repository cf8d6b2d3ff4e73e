"""Access layer grouping every repository of one per-document index."""

from loguru import logger

from ..core.types import IndexStats
from .components import ComponentRepository
from .database import Database
from .nodes import NodeRepository
from .pages import PageRepository
from .search import FTS5SearchRepository
from .sync_meta import DOCUMENT_NAME, LAST_FULL_SYNC, SCHEMA_VERSION, SyncMetaRepository
from .variables import (
    VariableBindingRepository,
    VariableCollectionRepository,
    VariableRepository,
)


class CacheStore:
    """Typed access to one connected index database.

    No other component writes to the tables directly.

    Attributes:
        db: The connected database.
        nodes: Node repository.
        components: Component repository.
        pages: Page repository.
        collections: Variable collection repository.
        variables: Variable and mode value repository.
        bindings: Variable binding repository.
        meta: Sync metadata repository.
        search: Full-text search repository.
    """

    def __init__(self, db: Database):
        self.db = db
        self.nodes = NodeRepository(db)
        self.components = ComponentRepository(db)
        self.pages = PageRepository(db)
        self.collections = VariableCollectionRepository(db)
        self.variables = VariableRepository(db)
        self.bindings = VariableBindingRepository(db)
        self.meta = SyncMetaRepository(db)
        self.search = FTS5SearchRepository(db)

    def has_nodes(self) -> bool:
        cursor = self.db.execute("SELECT EXISTS(SELECT 1 FROM nodes) AS present")
        return bool(cursor.fetchone()["present"])

    def get_stats(self) -> IndexStats:
        """Aggregate row counts and sync bookkeeping."""
        cursor = self.db.execute(
            """
            SELECT
                (SELECT COUNT(*) FROM nodes) AS node_count,
                (SELECT COUNT(*) FROM components) AS component_count,
                (SELECT COUNT(*) FROM pages) AS page_count,
                (SELECT COUNT(*) FROM variables) AS variable_count,
                (SELECT COUNT(*) FROM variable_collections) AS collection_count,
                (SELECT COUNT(*) FROM variable_bindings) AS binding_count
            """
        )
        row = cursor.fetchone()
        return IndexStats(
            node_count=row["node_count"],
            component_count=row["component_count"],
            page_count=row["page_count"],
            variable_count=row["variable_count"],
            collection_count=row["collection_count"],
            binding_count=row["binding_count"],
            last_synced=self.meta.get(LAST_FULL_SYNC) or None,
            document_name=self.meta.get(DOCUMENT_NAME),
            schema_version=self.meta.get(SCHEMA_VERSION),
        )

    def clear_all(self) -> None:
        """Delete every indexed record and reset the last sync time.

        Children are deleted before their parents so foreign keys hold
        throughout.
        """
        with self.db.transaction() as cursor:
            cursor.execute("DELETE FROM variable_bindings")
            cursor.execute("DELETE FROM variable_mode_values")
            cursor.execute("DELETE FROM nodes")
            cursor.execute("DELETE FROM components")
            cursor.execute("DELETE FROM pages")
            cursor.execute("DELETE FROM variables")
            cursor.execute("DELETE FROM variable_collections")
            cursor.execute(
                """
                INSERT INTO sync_meta (key, value, updated_at)
                VALUES (?, '', CURRENT_TIMESTAMP)
                ON CONFLICT(key) DO UPDATE SET value = '', updated_at = CURRENT_TIMESTAMP
                """,
                (LAST_FULL_SYNC,),
            )
        logger.info(f"Cleared index: {self.db.path}")
