"""Index service: the public boundary for tool and command handlers.

Every operation returns an OperationResult. Query operations first make
sure the index is ready (auto-syncing when empty, stale or invalidated),
then read from the active store only. Exceptions never escape; they are
logged and converted into failed results.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable

from loguru import logger

from ..core.instrumentation import traced_request
from ..core.types import OperationResult
from ..store.filters import ComponentFilters, NodeFilters, VariableFilters
from ..workflows.contracts import IngestionRequest

if TYPE_CHECKING:
    from ..core.types import ReadyState
    from .container import ServiceContainer
    from .sync import SyncController


class IndexService:
    """Query, rebuild and partition operations over the local index.

    Example:

        async with ServiceContainer(config, source=client) as services:
            result = await services.index.search_nodes("login card", node_type="FRAME")
            if result.success:
                for hit in result.data:
                    print(hit.record.path, hit.relevance)
    """

    def __init__(self, container: "ServiceContainer", controller: "SyncController | None" = None):
        """Initialize IndexService.

        Args:
            container: Service container with the active store.
            controller: Sync controller; taken from the container when omitted.
        """
        self._container = container
        self._controller = controller

    @classmethod
    def from_container(cls, container: "ServiceContainer") -> "IndexService":
        return cls(container)

    @property
    def controller(self) -> "SyncController":
        if self._controller is None:
            self._controller = self._container.sync
        return self._controller

    @property
    def _limits(self):
        return self._container.config.search

    async def _query(self, operation: str, fetch: Callable[[], Any]) -> OperationResult:
        """Ensure readiness, then run a read against the active store."""
        try:
            with traced_request(operation):
                state = await self.controller.ensure_ready()
                if not state.ready:
                    return OperationResult.fail(state.message or "Index not ready")
                data = fetch()
            return OperationResult.ok(data, message=state.message, stale=state.stale)
        except Exception as e:
            logger.error(f"{operation} failed: {e}")
            return OperationResult.fail(str(e))

    async def _lookup(self, operation: str, fetch: Callable[[], Any], missing: str) -> OperationResult:
        result = await self._query(operation, fetch)
        if result.success and result.data is None:
            return OperationResult.fail(missing)
        return result

    async def ensure_ready(self) -> OperationResult:
        """Check readiness, auto-syncing if needed.

        Returns:
            OperationResult whose data is the ReadyState.
        """
        try:
            state: ReadyState = await self.controller.ensure_ready()
        except Exception as e:
            logger.error(f"ensure_ready failed: {e}")
            return OperationResult.fail(str(e))
        return OperationResult(success=state.ready, message=state.message, data=state, stale=state.stale)

    async def search_nodes(
        self,
        query: str,
        node_type: str | None = None,
        page_id: str | None = None,
        category: str | None = None,
        limit: int | None = None,
    ) -> OperationResult:
        """Full-text search over nodes; data is a list of SearchHit."""
        filters = NodeFilters(type=node_type, page_id=page_id, category=category)
        return await self._query(
            "search_nodes",
            lambda: self._container.store.search.search_nodes(
                query, filters, limit=limit or self._limits.default_limit
            ),
        )

    async def search_components(
        self, query: str, category: str | None = None, limit: int | None = None
    ) -> OperationResult:
        filters = ComponentFilters(category=category)
        return await self._query(
            "search_components",
            lambda: self._container.store.search.search_components(
                query, filters, limit=limit or self._limits.default_limit
            ),
        )

    async def search_variables(
        self,
        query: str,
        resolved_type: str | None = None,
        collection_id: str | None = None,
        token_type: str | None = None,
        limit: int | None = None,
    ) -> OperationResult:
        filters = VariableFilters(
            resolved_type=resolved_type, collection_id=collection_id, token_type=token_type
        )
        return await self._query(
            "search_variables",
            lambda: self._container.store.search.search_variables(
                query, filters, limit=limit or self._limits.default_limit
            ),
        )

    async def get_by_type(
        self, node_type: str, page_id: str | None = None, limit: int | None = None
    ) -> OperationResult:
        """List nodes of a type (e.g. FRAME), optionally on one page."""
        return await self._query(
            "get_by_type",
            lambda: self._container.store.nodes.list_by_type(
                node_type, page_id=page_id, limit=limit or self._limits.type_limit
            ),
        )

    async def get_by_category(self, category: str, limit: int | None = None) -> OperationResult:
        """List components of a category, most used first."""
        return await self._query(
            "get_by_category",
            lambda: self._container.store.components.list_by_category(
                category, limit=limit or self._limits.default_limit
            ),
        )

    async def get_by_class(self, component: str | None = None, limit: int | None = None) -> OperationResult:
        """List nodes tagged with a UI class, optionally of one component."""
        return await self._query(
            "get_by_class",
            lambda: self._container.store.nodes.list_by_component(
                component, limit=limit or self._limits.class_limit
            ),
        )

    async def get_by_key(self, key: str) -> OperationResult:
        """Look up a component by key."""
        return await self._lookup(
            "get_by_key",
            lambda: self._container.store.components.get(key),
            f"Component not found: {key}",
        )

    async def get_node(self, figma_id: str) -> OperationResult:
        return await self._lookup(
            "get_node",
            lambda: self._container.store.nodes.get(figma_id),
            f"Node not found: {figma_id}",
        )

    async def get_variable(self, variable_id: str) -> OperationResult:
        """Look up a variable; data is ``{"variable", "mode_values"}``."""

        def fetch() -> dict[str, Any] | None:
            variables = self._container.store.variables
            variable = variables.get(variable_id)
            if variable is None:
                return None
            return {"variable": variable, "mode_values": variables.get_mode_values(variable_id)}

        return await self._lookup("get_variable", fetch, f"Variable not found: {variable_id}")

    async def get_variable_by_daisyui_name(self, name: str) -> OperationResult:
        return await self._lookup(
            "get_variable_by_daisyui_name",
            lambda: self._container.store.variables.get_by_daisyui_name(name),
            f"No variable mapped to DaisyUI color: {name}",
        )

    async def list_variables(
        self,
        resolved_type: str | None = None,
        collection_id: str | None = None,
        token_type: str | None = None,
        limit: int | None = None,
    ) -> OperationResult:
        filters = VariableFilters(
            resolved_type=resolved_type, collection_id=collection_id, token_type=token_type
        )
        return await self._query(
            "list_variables",
            lambda: self._container.store.variables.find(
                filters, limit=limit or self._limits.list_limit
            ),
        )

    async def list_pages(self) -> OperationResult:
        return await self._query("list_pages", lambda: self._container.store.pages.list_all())

    def record_usage(self, key: str) -> OperationResult:
        """Increment a component's usage counter."""
        try:
            if not self._container.store.components.increment_usage(key):
                return OperationResult.fail(f"Component not found: {key}")
        except Exception as e:
            logger.error(f"record_usage failed: {e}")
            return OperationResult.fail(str(e))
        return OperationResult.ok(message=f"Recorded usage of {key}")

    def get_stats(self) -> OperationResult:
        """Counts and sync bookkeeping for the active store, without syncing."""
        try:
            return OperationResult.ok(self._container.store.get_stats())
        except Exception as e:
            logger.error(f"get_stats failed: {e}")
            return OperationResult.fail(str(e))

    async def rebuild(self, pages: list[str] | None = None, force: bool = False) -> OperationResult:
        """Run a sync now, regardless of staleness.

        Args:
            pages: Page names to sync; None syncs every page.
            force: Clear the index before syncing.

        Returns:
            OperationResult whose data is ``{"result", "stats"}``.
        """
        request = IngestionRequest(pages=pages, force_rebuild=force)
        try:
            result = await self.controller.sync(request, reason="manual rebuild")
            stats = self._container.store.get_stats()
        except Exception as e:
            logger.error(f"rebuild failed: {e}")
            return OperationResult.fail(str(e))
        return OperationResult.ok(
            {"result": result, "stats": stats},
            message=f"Indexed {result.nodes_indexed} nodes across {len(result.pages_synced)} page(s)",
        )

    def set_active_document(self, document_id: str) -> OperationResult:
        """Switch the active partition to a document's database.

        Refused while a sync is running, since the sync writes to the
        database that a switch would close.
        """
        if self._container.has_source and self.controller.is_syncing:
            return OperationResult.fail("Sync already in progress")
        partitions = self._container.partitions
        try:
            switched = partitions.activate(document_id)
        except Exception as e:
            logger.error(f"set_active_document failed: {e}")
            return OperationResult.fail(str(e))

        if switched:
            self._container.reset_sync_state()
            if self._controller is not None:
                self._controller.reset()
        path = partitions.path_for(document_id)
        message = f"Switched to {path}" if switched else f"Already using {path}"
        return OperationResult.ok(
            {"document_id": document_id, "path": str(path), "switched": switched},
            message=message,
        )

    def list_cached_documents(self) -> OperationResult:
        try:
            return OperationResult.ok(self._container.partitions.list_cached_documents())
        except Exception as e:
            logger.error(f"list_cached_documents failed: {e}")
            return OperationResult.fail(str(e))
