"""Workflow pipeline implementations.

- IngestionPipeline: Remote document to local index
"""

from figcache.workflows.pipelines.ingestion import IngestionPipeline

__all__ = [
    "IngestionPipeline",
]
