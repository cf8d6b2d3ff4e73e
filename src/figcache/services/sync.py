"""Sync and invalidation controller.

Decides when a query should pull fresh data from the remote source:

- UNSYNCED (no nodes): sync on the next query if connected
- FRESH: serve directly
- STALE (last full sync older than the staleness window): sync, at most once
  per retry interval counted from the last attempt
- INVALIDATED (a structural change notification arrived): sync immediately
- SYNCING: concurrent queries are told a sync is in progress

When the source is unreachable, existing rows are served with a staleness
warning; an empty index is reported as not ready.
"""

from __future__ import annotations

import time
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Callable

from loguru import logger

from ..core.config import SyncConfig
from ..core.exceptions import SourceUnavailableError, SyncInProgressError
from ..core.instrumentation import record_counts, traced_request
from ..core.types import ReadyState
from ..sources.base import ChangeNotification, ChangeType
from ..store.sync_meta import INDEX_INVALIDATED, INVALIDATION_REASON, LAST_FULL_SYNC
from ..utils.clock import parse_iso, utcnow
from ..workflows.contracts import IngestionRequest, IngestionResult
from ..workflows.pipelines.ingestion import IngestionPipeline

if TYPE_CHECKING:
    from ..core.classification import NodeClassifier, VariableClassifier
    from ..sources.base import ChangeFeed, DesignSource
    from .container import ServiceContainer

Clock = Callable[[], datetime]

NOT_CONNECTED_MESSAGE = "Not connected to Figma. Connect to a document first."
CACHED_WHILE_DISCONNECTED_MESSAGE = "Using cached index (not connected to Figma)"


class SyncState(Enum):
    """Observable state of the active index."""

    UNSYNCED = "unsynced"
    FRESH = "fresh"
    STALE = "stale"
    INVALIDATED = "invalidated"
    SYNCING = "syncing"


class SyncController:
    """Owns the sync lifecycle for the active document.

    One controller is created per process and shared by every caller that
    needs to trigger or inspect sync state. It holds the reentrancy guard,
    the time of the last sync attempt and the in-memory invalidation flag.
    The invalidation flag is also persisted in sync metadata so it survives
    restarts.

    Example:
        controller = SyncController(container, source)
        feed.subscribe(controller.handle_change)

        state = await controller.ensure_ready()
        if state.ready:
            ...
    """

    def __init__(
        self,
        container: "ServiceContainer",
        source: "DesignSource",
        config: SyncConfig | None = None,
        clock: Clock = utcnow,
        node_classifier: "NodeClassifier | None" = None,
        variable_classifier: "VariableClassifier | None" = None,
    ):
        """Initialize SyncController.

        Args:
            container: Service container providing the active store.
            source: Remote design source.
            config: Staleness, retry and invalidation settings.
            clock: Returns the current UTC time; injectable for tests.
            node_classifier: Passed through to the ingestion pipeline.
            variable_classifier: Passed through to the ingestion pipeline.
        """
        self._container = container
        self._source = source
        self._config = config or container.config.sync
        self._clock = clock
        self._node_classifier = node_classifier
        self._variable_classifier = variable_classifier

        self._syncing = False
        self._last_attempt: datetime | None = None
        self._invalidated = False
        self._invalidation_epoch = 0

    @property
    def is_syncing(self) -> bool:
        return self._syncing

    @property
    def last_attempt(self) -> datetime | None:
        return self._last_attempt

    def _seconds_since(self, moment: datetime | None) -> float | None:
        if moment is None:
            return None
        return (self._clock() - moment).total_seconds()

    def _is_stale(self, last_full_sync: str | None) -> bool:
        age = self._seconds_since(parse_iso(last_full_sync))
        return age is None or age > self._config.stale_after_seconds

    def _retry_allowed(self) -> bool:
        elapsed = self._seconds_since(self._last_attempt)
        return elapsed is None or elapsed >= self._config.retry_interval_seconds

    def _stale_message(self) -> str:
        if not self._source.is_connected():
            return CACHED_WHILE_DISCONNECTED_MESSAGE
        elapsed = self._seconds_since(self._last_attempt) or 0.0
        wait = max(0, int(self._config.retry_interval_seconds - elapsed))
        return f"Serving stale index, next sync attempt in {wait}s"

    def state(self) -> SyncState:
        """Classify the active index without triggering a sync."""
        if self._syncing:
            return SyncState.SYNCING
        store = self._container.store
        if not store.has_nodes():
            return SyncState.UNSYNCED
        if self._invalidated or store.meta.is_invalidated():
            return SyncState.INVALIDATED
        if self._is_stale(store.meta.get(LAST_FULL_SYNC)):
            return SyncState.STALE
        return SyncState.FRESH

    async def ensure_ready(self) -> ReadyState:
        """Make the index ready to serve a query, syncing if needed.

        Returns:
            ReadyState describing whether queries can be served, whether a
            sync ran, and whether the data may be stale.
        """
        if self._syncing:
            return ReadyState(ready=False, message="Sync already in progress")

        store = self._container.store
        has_nodes = store.has_nodes()
        invalidated = self._invalidated or store.meta.is_invalidated()
        stale = self._is_stale(store.meta.get(LAST_FULL_SYNC))

        should_sync = not has_nodes or invalidated or (stale and self._retry_allowed())
        if not should_sync:
            return ReadyState(ready=True, stale=stale, message=self._stale_message() if stale else "")

        if not self._source.is_connected():
            if has_nodes:
                logger.debug("Remote source unavailable, serving cached index")
                return ReadyState(ready=True, message=CACHED_WHILE_DISCONNECTED_MESSAGE, stale=True)
            return ReadyState(ready=False, message=NOT_CONNECTED_MESSAGE)

        if invalidated:
            reason = "document changes detected"
        elif not has_nodes:
            reason = "empty index"
        else:
            reason = "stale index"
        logger.info(f"Auto-building index (reason: {reason})")

        try:
            result = await self.sync(reason=reason)
        except Exception as e:
            logger.error(f"Auto-sync failed ({reason}): {e}")
            return ReadyState(ready=has_nodes, message=str(e), stale=has_nodes)

        return ReadyState(
            ready=True,
            auto_synced=True,
            message=f"Auto-indexed {result.nodes_indexed} nodes ({reason})",
        )

    async def sync(
        self,
        request: IngestionRequest | None = None,
        reason: str = "manual",
    ) -> IngestionResult:
        """Run the ingestion pipeline against the active store.

        Invalidation is cleared on success unless another change notification
        arrived while the sync was running.

        Args:
            request: Ingestion options; defaults to a full incremental sync.
            reason: Why the sync runs, for logs and traces.

        Returns:
            IngestionResult from the pipeline.

        Raises:
            SyncInProgressError: If another sync is already running.
            SourceUnavailableError: If the remote source is not connected.
        """
        if self._syncing:
            raise SyncInProgressError()
        if not self._source.is_connected():
            raise SourceUnavailableError("Not connected to Figma")

        request = request or IngestionRequest()
        self._syncing = True
        self._last_attempt = self._clock()
        epoch = self._invalidation_epoch
        start_time = time.perf_counter()

        try:
            store = self._container.store
            with traced_request(
                "sync",
                attributes={"figcache.reason": reason, "figcache.force_rebuild": request.force_rebuild},
            ) as span:
                pipeline = IngestionPipeline(
                    store,
                    self._source,
                    clock=self._clock,
                    node_classifier=self._node_classifier,
                    variable_classifier=self._variable_classifier,
                )
                result = await pipeline.execute(request)
                record_counts(span, nodes_indexed=result.nodes_indexed)

            if self._invalidation_epoch == epoch:
                self._invalidated = False
                store.meta.set_many({INDEX_INVALIDATED: "false", INVALIDATION_REASON: ""})
            else:
                logger.info("Document changed during sync, keeping index invalidated")
        finally:
            self._syncing = False

        elapsed = (time.perf_counter() - start_time) * 1000
        logger.info(
            f"Sync complete ({reason}): {result.nodes_indexed} nodes, "
            f"{result.components_found} components, {elapsed:.1f}ms"
        )
        return result

    def should_invalidate(self, notification: ChangeNotification) -> bool:
        """Whether a notification indicates structural drift."""
        if notification.change_type is not ChangeType.DOCUMENT_CHANGE:
            return False
        details = notification.details
        return (
            details.node_creations > 0
            or details.node_deletions > 0
            or details.property_changes > self._config.invalidation_property_threshold
        )

    def handle_change(self, notification: ChangeNotification) -> bool:
        """Invalidate the index when a notification indicates structural drift.

        Storage failures while persisting the flag are logged; the in-memory
        flag is set regardless.

        Returns:
            True if the index was invalidated.
        """
        if not self.should_invalidate(notification):
            return False

        details = notification.details
        logger.info(
            f"Index invalidated due to document change: {details.node_creations} creations, "
            f"{details.node_deletions} deletions, {details.property_changes} property changes"
        )
        self._invalidated = True
        self._invalidation_epoch += 1

        try:
            self._container.store.meta.set_many(
                {
                    INDEX_INVALIDATED: "true",
                    INVALIDATION_REASON: f"document_change:{notification.timestamp}",
                }
            )
        except Exception as e:
            logger.error(f"Failed to mark index as invalidated: {e}")
        return True

    def attach(self, feed: "ChangeFeed") -> Callable[[], None]:
        """Subscribe to a change feed.

        Returns:
            A callable that detaches the controller again.
        """
        return feed.subscribe(self.handle_change)

    def reset(self) -> None:
        """Forget in-memory sync state, e.g. after switching documents."""
        self._invalidated = False
        self._last_attempt = None
