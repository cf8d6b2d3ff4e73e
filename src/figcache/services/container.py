"""Wires the active index partition to the services that use it."""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from ..core.config import Config
from ..core.exceptions import SourceError
from ..store.cache_store import CacheStore
from ..store.database import Database
from ..store.partitions import PartitionManager

if TYPE_CHECKING:
    from ..core.classification import NodeClassifier, VariableClassifier
    from ..sources.base import DesignSource
    from .index import IndexService
    from .status import StatusService
    from .sync import Clock, SyncController


class ServiceContainer:
    """Manages the active index partition and the services built on it.

    The container owns the PartitionManager, so exactly one index database
    is open at a time. The CacheStore is rebuilt whenever the active
    database changes, and services always read it through ``store``.

    As an async context manager:

        async with ServiceContainer(config, source=client) as services:
            services.index.set_active_document("abc123")
            result = await services.index.search_nodes("login button")

    Or opened and closed by hand:

        services = ServiceContainer(config)
        services.connect()
        try:
            stats = services.status.get_stats()
        finally:
            await services.close()

    Attributes:
        config: Loaded figcache configuration.
        partitions: Per-document database manager.
    """

    def __init__(
        self,
        config: Config,
        source: "DesignSource | None" = None,
        clock: "Clock | None" = None,
        node_classifier: "NodeClassifier | None" = None,
        variable_classifier: "VariableClassifier | None" = None,
    ):
        """Collect dependencies; nothing is opened until connect().

        Args:
            config: Loaded figcache configuration.
            source: Remote design source; required for syncing.
            clock: Optional clock for the sync controller.
            node_classifier: Optional node classifier for ingestion.
            variable_classifier: Optional variable classifier for ingestion.
        """
        self.config = config
        self.partitions = PartitionManager(config.partition)
        self._source = source
        self._clock = clock
        self._node_classifier = node_classifier
        self._variable_classifier = variable_classifier

        self._store: CacheStore | None = None
        self._store_db: Database | None = None

        # built on first access
        self._sync: SyncController | None = None
        self._index: IndexService | None = None
        self._status: StatusService | None = None

    def connect(self) -> None:
        """Open the active (or legacy default) index database."""
        _ = self.partitions.database
        logger.debug(f"ServiceContainer connected to {self.partitions.database.path}")

    async def close(self) -> None:
        """Close the active database."""
        if self.partitions.is_open:
            self.partitions.close()
            logger.debug("Released active index partition")
        self._store = None
        self._store_db = None

    async def __aenter__(self) -> "ServiceContainer":
        self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    @property
    def has_source(self) -> bool:
        return self._source is not None

    def reset_sync_state(self) -> None:
        """Forget in-memory sync state after the active document changed."""
        if self._sync is not None:
            self._sync.reset()

    @property
    def source(self) -> "DesignSource":
        if self._source is None:
            raise SourceError("No design source configured")
        return self._source

    @property
    def store(self) -> CacheStore:
        """CacheStore over the currently active database."""
        db = self.partitions.database
        if self._store is None or self._store_db is not db:
            self._store = CacheStore(db)
            self._store_db = db
        return self._store

    # services

    @property
    def sync(self) -> "SyncController":
        """Get SyncController instance.

        Raises:
            SourceError: If the container has no design source.
        """
        if self._sync is None:
            from ..utils.clock import utcnow
            from .sync import SyncController

            self._sync = SyncController(
                self,
                self.source,
                config=self.config.sync,
                clock=self._clock or utcnow,
                node_classifier=self._node_classifier,
                variable_classifier=self._variable_classifier,
            )
        return self._sync

    @property
    def index(self) -> "IndexService":
        """Get IndexService instance."""
        if self._index is None:
            from .index import IndexService

            self._index = IndexService.from_container(self)
        return self._index

    @property
    def status(self) -> "StatusService":
        """Get StatusService instance."""
        if self._status is None:
            from .status import StatusService

            self._status = StatusService(self)
        return self._status
