"""Data access layer for figcache.

This package provides the persistence layer of a per-document index:
- Database: SQLite connection (WAL, foreign keys) and migrations
- Repositories: Typed upsert/get/list access per entity
- FTS5SearchRepository: Ranked full-text search
- CacheStore: All repositories for one open database
- PartitionManager: One database file per remote document

Example:
    from figcache.store import CacheStore, PartitionManager

    partitions = PartitionManager(config.partition)
    partitions.activate("abc123")
    store = CacheStore(partitions.database)
    hits = store.search.search_nodes("login")
"""

from .cache_store import CacheStore
from .components import ComponentRepository
from .database import Database
from .filters import ComponentFilters, NodeFilters, PredicateBuilder, VariableFilters
from .nodes import NodeRepository
from .pages import PageRepository
from .partitions import PartitionManager, safe_document_id
from .search import FTS5SearchRepository, SearchHit, build_match_expression
from .sync_meta import SyncMetaRepository
from .variables import (
    VariableBindingRepository,
    VariableCollectionRepository,
    VariableRepository,
)

__all__ = [
    "CacheStore",
    "ComponentFilters",
    "ComponentRepository",
    "Database",
    "FTS5SearchRepository",
    "NodeFilters",
    "NodeRepository",
    "PageRepository",
    "PartitionManager",
    "PredicateBuilder",
    "SearchHit",
    "SyncMetaRepository",
    "VariableBindingRepository",
    "VariableCollectionRepository",
    "VariableFilters",
    "VariableRepository",
    "build_match_expression",
    "safe_document_id",
]
