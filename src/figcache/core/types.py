"""Type definitions for figcache."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from .classification import VariableClassification


class ResolvedType(Enum):
    """Value type of a design variable as reported by the remote source."""

    COLOR = "COLOR"
    FLOAT = "FLOAT"
    STRING = "STRING"
    BOOLEAN = "BOOLEAN"

    @classmethod
    def parse(cls, value: str) -> "ResolvedType":
        """Parse a remote type string, defaulting to STRING for unknown types."""
        try:
            return cls(str(value).upper())
        except ValueError:
            return cls.STRING


@dataclass
class IndexedNode:
    """A node of the remote document tree as stored in the index.

    Pages themselves are not nodes, so a page's top-level children (depth 1)
    carry their page's id in ``parent_id``, the same value as ``page_id``.
    ``parent_id`` is None only for rows written without tree context.
    """

    figma_id: str
    name: str
    type: str
    page_id: str
    parent_id: Optional[str] = None
    path: Optional[str] = None
    depth: int = 0
    component_key: Optional[str] = None
    component_name: Optional[str] = None
    # Classification tags supplied by a NodeClassifier
    daisyui_class: Optional[str] = None
    daisyui_component: Optional[str] = None
    daisyui_variant: Optional[str] = None
    daisyui_size: Optional[str] = None
    tailwind_classes: list[str] = field(default_factory=list)
    data_testid: Optional[str] = None
    x: Optional[float] = None
    y: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None
    content_hash: Optional[str] = None
    id: Optional[int] = None
    last_synced: Optional[str] = None


@dataclass
class IndexedComponent:
    """A reusable component keyed by its stable key."""

    key: str
    name: str
    category: str
    subcategory: Optional[str] = None
    figma_id: Optional[str] = None
    daisyui_class: Optional[str] = None
    tailwind_base: Optional[str] = None
    variants: Optional[dict[str, Any]] = None
    description: Optional[str] = None
    usage_hint: Optional[str] = None
    usage_count: int = 0
    last_used: Optional[str] = None
    id: Optional[int] = None
    last_synced: Optional[str] = None


@dataclass
class IndexedPage:
    """A top-level page with derived aggregate counts."""

    id: str
    name: str
    node_count: int = 0
    component_count: int = 0
    frame_count: int = 0
    summary: Optional[str] = None
    main_sections: list[str] = field(default_factory=list)
    last_synced: Optional[str] = None


@dataclass(frozen=True)
class VariableMode:
    """One mode (e.g. Light or Dark) of a variable collection."""

    mode_id: str
    name: str


@dataclass
class VariableCollection:
    """A group of variables sharing a set of modes."""

    id: str
    name: str
    modes: list[VariableMode] = field(default_factory=list)
    default_mode_id: Optional[str] = None
    variable_count: int = 0
    last_synced: Optional[str] = None

    def mode_name(self, mode_id: str) -> Optional[str]:
        """Look up the display name of a mode."""
        for mode in self.modes:
            if mode.mode_id == mode_id:
                return mode.name
        return None


@dataclass
class IndexedVariable:
    """A design token with one raw value per mode.

    Color representations (hex, rgb, hsl) are resolved for the default mode
    only. Aliases are recorded, never resolved.
    """

    id: str
    name: str
    collection_id: str
    resolved_type: ResolvedType
    values_by_mode: dict[str, Any] = field(default_factory=dict)
    description: Optional[str] = None
    scopes: list[str] = field(default_factory=list)
    hex: Optional[str] = None
    rgb: Optional[str] = None
    hsl: Optional[str] = None
    classification: VariableClassification = field(default_factory=VariableClassification)
    is_alias: bool = False
    alias_target_id: Optional[str] = None
    last_synced: Optional[str] = None


@dataclass
class VariableModeValue:
    """Resolved scalar of one variable in one mode."""

    variable_id: str
    mode_id: str
    mode_name: Optional[str] = None
    raw_value: Any = None
    hex: Optional[str] = None
    rgb: Optional[str] = None
    hsl: Optional[str] = None
    float_value: Optional[float] = None
    string_value: Optional[str] = None
    boolean_value: Optional[bool] = None
    is_alias: bool = False
    alias_variable_id: Optional[str] = None


@dataclass
class VariableBinding:
    """A node property slot bound to a variable."""

    node_id: str
    variable_id: str
    property: str
    property_index: int = 0
    field: str = ""
    id: Optional[int] = None


@dataclass
class IndexStats:
    """Row counts and sync bookkeeping for the active store."""

    node_count: int
    component_count: int
    page_count: int
    variable_count: int
    collection_count: int
    binding_count: int
    last_synced: Optional[str] = None
    document_name: Optional[str] = None
    schema_version: Optional[str] = None


@dataclass
class CachedDocument:
    """A per-document database file found in the cache directory."""

    document_id: str
    path: str
    size: int
    modified: str


@dataclass
class ReadyState:
    """Outcome of a readiness check before serving a query."""

    ready: bool
    """Whether queries can be served from the store."""

    auto_synced: bool = False
    """Whether a sync ran as part of this check."""

    message: str = ""
    """Human-readable explanation."""

    stale: bool = False
    """Whether the served data may be out of date."""


@dataclass
class OperationResult:
    """Structured result returned by every public index operation."""

    success: bool
    message: str = ""
    data: Any = None
    stale: bool = False
    """Set when data came from an index that could not be refreshed."""

    @classmethod
    def ok(cls, data: Any = None, message: str = "", stale: bool = False) -> "OperationResult":
        return cls(success=True, message=message, data=data, stale=stale)

    @classmethod
    def fail(cls, message: str) -> "OperationResult":
        return cls(success=False, message=message)
