"""Core configuration, types and errors for figcache."""

from .classification import (
    ColorSystem,
    DefaultVariableClassifier,
    NodeClassification,
    NodeClassifier,
    NullNodeClassifier,
    SemanticRole,
    TokenType,
    VariableClassification,
    VariableClassifier,
    classify_variable,
)
from .config import Config, PartitionConfig, SearchConfig, SyncConfig
from .exceptions import (
    ConfigError,
    DatabaseError,
    FigCacheError,
    MigrationError,
    SourceError,
    SourceUnavailableError,
    SyncError,
    SyncInProgressError,
)
from .types import (
    CachedDocument,
    IndexedComponent,
    IndexedNode,
    IndexedPage,
    IndexedVariable,
    IndexStats,
    OperationResult,
    ReadyState,
    ResolvedType,
    VariableBinding,
    VariableCollection,
    VariableMode,
    VariableModeValue,
)

__all__ = [
    "Config",
    "PartitionConfig",
    "SyncConfig",
    "SearchConfig",
    "FigCacheError",
    "ConfigError",
    "DatabaseError",
    "MigrationError",
    "SourceError",
    "SourceUnavailableError",
    "SyncError",
    "SyncInProgressError",
    "TokenType",
    "ColorSystem",
    "SemanticRole",
    "VariableClassification",
    "VariableClassifier",
    "DefaultVariableClassifier",
    "NodeClassification",
    "NodeClassifier",
    "NullNodeClassifier",
    "classify_variable",
    "ResolvedType",
    "IndexedNode",
    "IndexedComponent",
    "IndexedPage",
    "VariableMode",
    "VariableCollection",
    "IndexedVariable",
    "VariableModeValue",
    "VariableBinding",
    "IndexStats",
    "CachedDocument",
    "ReadyState",
    "OperationResult",
]
