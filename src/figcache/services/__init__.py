"""Service layer for figcache.

High-level services orchestrating sync, queries and partition switching
on top of the store, for tool and command handlers.

Example usage:

    from figcache.services import ServiceContainer

    async with ServiceContainer(config, source=client) as services:
        services.index.set_active_document("abc123")

        # Query (auto-syncs when empty, stale or invalidated)
        result = await services.index.search_nodes("login card")

        # Force a rebuild
        result = await services.index.rebuild(force=True)

        # Get status
        stats = services.status.get_stats()
"""

from .container import ServiceContainer
from .index import IndexService
from .status import StatusService
from .sync import SyncController, SyncState

__all__ = [
    "ServiceContainer",
    "IndexService",
    "StatusService",
    "SyncController",
    "SyncState",
]
