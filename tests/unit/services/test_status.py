"""Tests for StatusService."""

import pytest

from figcache.core.config import Config
from figcache.services import ServiceContainer


class TestStatusService:
    def test_full_status_before_sync(self, container: ServiceContainer):
        status = container.status.get_full_status()

        assert status["nodes"] == 0
        assert status["sync_state"] == "unsynced"
        assert status["schema_version"] == "2"
        assert status["document_id"] is None

    def test_full_status_without_source(self, config: Config):
        container = ServiceContainer(config)
        container.connect()
        try:
            status = container.status.get_full_status()
        finally:
            container.partitions.close()

        assert status["sync_state"] is None

    @pytest.mark.asyncio
    async def test_full_status_after_sync(self, container: ServiceContainer):
        container.index.set_active_document("doc-a")
        await container.sync.sync()

        status = container.status.get_full_status()

        assert status["document_id"] == "doc-a"
        assert status["document_name"] == "Test Document"
        assert status["nodes"] == 3
        assert status["variables"] == 1
        assert status["sync_state"] == "fresh"
        assert status["database_path"].endswith("figma-index-doc-a.db")
