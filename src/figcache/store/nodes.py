"""Node storage and retrieval."""

import json
import sqlite3
from typing import Iterable

from ..core.types import IndexedNode
from ..utils.clock import utcnow_iso
from .database import Database
from .filters import NodeFilters, PredicateBuilder

# Mutable columns written by an upsert, in parameter order
NODE_COLUMNS = (
    "figma_id",
    "name",
    "type",
    "parent_id",
    "page_id",
    "path",
    "depth",
    "component_key",
    "component_name",
    "daisyui_class",
    "daisyui_component",
    "daisyui_variant",
    "daisyui_size",
    "tailwind_classes",
    "data_testid",
    "x",
    "y",
    "width",
    "height",
    "content_hash",
    "last_synced",
)

_UPSERT_SQL = f"""
    INSERT INTO nodes ({", ".join(NODE_COLUMNS)})
    VALUES ({", ".join("?" for _ in NODE_COLUMNS)})
    ON CONFLICT(figma_id) DO UPDATE SET
    {", ".join(f"{c} = excluded.{c}" for c in NODE_COLUMNS if c != "figma_id")}
"""


class NodeRepository:
    """Repository for document tree nodes keyed by their external id."""

    def __init__(self, db: Database):
        """Initialize with database connection.

        Args:
            db: Database instance to use for operations.
        """
        self.db = db

    def upsert(self, node: IndexedNode) -> None:
        """Insert or update a node, refreshing its last_synced timestamp.

        The node's page must already exist.

        Raises:
            DatabaseError: If the write fails (e.g. unknown page_id).
        """
        with self.db.transaction() as cursor:
            self._upsert(cursor, node, utcnow_iso())

    def bulk_upsert(self, nodes: Iterable[IndexedNode]) -> int:
        """Upsert many nodes in a single transaction.

        Either every node lands or none does.

        Returns:
            Number of nodes written.
        """
        count = 0
        with self.db.transaction() as cursor:
            for node in nodes:
                self._upsert(cursor, node, utcnow_iso())
                count += 1
        return count

    def _upsert(self, cursor: sqlite3.Cursor, node: IndexedNode, now: str) -> None:
        cursor.execute(
            _UPSERT_SQL,
            (
                node.figma_id,
                node.name,
                node.type,
                node.parent_id,
                node.page_id,
                node.path,
                node.depth,
                node.component_key,
                node.component_name,
                node.daisyui_class,
                node.daisyui_component,
                node.daisyui_variant,
                node.daisyui_size,
                json.dumps(node.tailwind_classes) if node.tailwind_classes else None,
                node.data_testid,
                node.x,
                node.y,
                node.width,
                node.height,
                node.content_hash,
                now,
            ),
        )

    def get(self, figma_id: str) -> IndexedNode | None:
        """Look up a node by external id."""
        cursor = self.db.execute("SELECT * FROM nodes WHERE figma_id = ?", (figma_id,))
        row = cursor.fetchone()
        return self._row_to_node(row) if row else None

    def list_by_type(
        self, node_type: str, page_id: str | None = None, limit: int = 100
    ) -> list[IndexedNode]:
        """List nodes of a type, optionally restricted to one page."""
        return self.find(NodeFilters(type=node_type, page_id=page_id), limit=limit)

    def list_by_page(self, page_id: str, limit: int = 10000) -> list[IndexedNode]:
        return self.find(NodeFilters(page_id=page_id), limit=limit)

    def list_by_component(self, component: str | None = None, limit: int = 50) -> list[IndexedNode]:
        """List classified nodes, optionally of one UI component category."""
        builder = PredicateBuilder().is_not_null("daisyui_class")
        builder.equals("daisyui_component", component)
        where, params = builder.build()
        cursor = self.db.execute(
            f"SELECT * FROM nodes {where} ORDER BY name LIMIT ?",
            (*params, limit),
        )
        return [self._row_to_node(row) for row in cursor.fetchall()]

    def find(self, filters: NodeFilters | None = None, limit: int = 10000) -> list[IndexedNode]:
        """List nodes matching filters, shallowest first."""
        builder = (filters or NodeFilters()).apply(PredicateBuilder(), alias="")
        where, params = builder.build()
        cursor = self.db.execute(
            f"SELECT * FROM nodes {where} ORDER BY depth, id LIMIT ?",
            (*params, limit),
        )
        return [self._row_to_node(row) for row in cursor.fetchall()]

    def list_all(self, limit: int = 10000) -> list[IndexedNode]:
        return self.find(limit=limit)

    def count(self, page_id: str | None = None, node_type: str | None = None) -> int:
        """Count nodes, optionally per page and/or type."""
        where, params = NodeFilters(type=node_type, page_id=page_id).apply(
            PredicateBuilder(), alias=""
        ).build()
        cursor = self.db.execute(f"SELECT COUNT(*) AS count FROM nodes {where}", tuple(params))
        return cursor.fetchone()["count"]

    def top_level_names(self, page_id: str, node_type: str = "FRAME") -> list[str]:
        """Names of depth-1 nodes of a type on a page, in document order."""
        cursor = self.db.execute(
            "SELECT name FROM nodes WHERE page_id = ? AND depth = 1 AND type = ? ORDER BY id",
            (page_id, node_type),
        )
        return [row["name"] for row in cursor.fetchall()]

    def _row_to_node(self, row: sqlite3.Row) -> IndexedNode:
        return IndexedNode(
            id=row["id"],
            figma_id=row["figma_id"],
            name=row["name"],
            type=row["type"],
            parent_id=row["parent_id"],
            page_id=row["page_id"],
            path=row["path"],
            depth=row["depth"],
            component_key=row["component_key"],
            component_name=row["component_name"],
            daisyui_class=row["daisyui_class"],
            daisyui_component=row["daisyui_component"],
            daisyui_variant=row["daisyui_variant"],
            daisyui_size=row["daisyui_size"],
            tailwind_classes=json.loads(row["tailwind_classes"]) if row["tailwind_classes"] else [],
            data_testid=row["data_testid"],
            x=row["x"],
            y=row["y"],
            width=row["width"],
            height=row["height"],
            content_hash=row["content_hash"],
            last_synced=row["last_synced"],
        )
