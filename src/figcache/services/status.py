"""Read-only health view over the active index partition."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from loguru import logger

from ..core.types import IndexStats

if TYPE_CHECKING:
    from .container import ServiceContainer


class StatusService:
    """Counts and sync state for whichever document is active.

    Example:

        async with ServiceContainer(config, source=client) as services:
            stats = services.status.get_stats()
            print(f"Nodes: {stats.node_count}")
    """

    def __init__(self, container: "ServiceContainer"):
        self._container = container

    def get_stats(self) -> IndexStats:
        """Row counts and sync bookkeeping of the active store."""
        stats = self._container.store.get_stats()
        logger.debug(
            f"Index stats: nodes={stats.node_count}, components={stats.component_count}, "
            f"variables={stats.variable_count}"
        )
        return stats

    def get_full_status(self) -> dict[str, Any]:
        """Stats plus partition and sync state."""
        container = self._container
        stats = self.get_stats()
        db_path = container.partitions.database.path
        try:
            index_size_bytes = db_path.stat().st_size
        except OSError:
            index_size_bytes = 0

        sync_state = None
        if container.has_source:
            sync_state = container.sync.state().value

        return {
            "document_id": container.partitions.active_document_id,
            "document_name": stats.document_name,
            "database_path": str(db_path),
            "index_size_bytes": index_size_bytes,
            "schema_version": stats.schema_version,
            "last_synced": stats.last_synced,
            "sync_state": sync_state,
            "nodes": stats.node_count,
            "components": stats.component_count,
            "pages": stats.page_count,
            "variables": stats.variable_count,
            "collections": stats.collection_count,
            "bindings": stats.binding_count,
        }
