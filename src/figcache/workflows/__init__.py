"""Workflow pipelines for mirroring the remote document into the index.

The ingestion workflow runs in phases (pages -> nodes -> aggregates ->
variables) against a CacheStore and a DesignSource. Both are injected, so
tests drive the pipeline with an in-memory fake source.

Example:
    from figcache.workflows import IngestionPipeline, IngestionRequest

    pipeline = IngestionPipeline(store, source)
    result = await pipeline.execute(IngestionRequest(pages=["Landing"]))
"""

from figcache.workflows.contracts import (
    IngestionRequest,
    IngestionResult,
    ProgressCallback,
)
from figcache.workflows.pipelines.ingestion import IngestionPipeline

__all__ = [
    "IngestionRequest",
    "IngestionResult",
    "ProgressCallback",
    "IngestionPipeline",
]
