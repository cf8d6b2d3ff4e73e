"""Remote design source contract and change notifications.

The index never talks to the design tool directly. It consumes a
DesignSource (document info, node subtrees, variables, connectivity) and
receives ChangeNotification events through a ChangeFeed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Protocol, runtime_checkable

from loguru import logger


@dataclass(frozen=True)
class PageRef:
    """A page listed in the document info."""

    id: str
    name: str


@dataclass
class DocumentInfo:
    """Document identity and its pages, in document order."""

    id: str | None
    name: str
    pages: list[PageRef] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "DocumentInfo":
        """Build from a raw ``get_document_info`` response.

        Pages are read from ``pages``, falling back to PAGE children.
        """
        raw_pages = payload.get("pages")
        if raw_pages is None:
            raw_pages = [
                child
                for child in payload.get("children") or []
                if child.get("type", "PAGE") == "PAGE"
            ]
        return cls(
            id=payload.get("id"),
            name=payload.get("name") or "Unknown",
            pages=[PageRef(id=str(p["id"]), name=p.get("name", "")) for p in raw_pages],
        )


@runtime_checkable
class DesignSource(Protocol):
    """Client for the remote design document.

    Implementations raise SourceError (or a subclass) on transport failures.
    """

    def is_connected(self) -> bool:
        """Whether the remote source is currently reachable."""
        ...

    async def get_document_info(self) -> DocumentInfo:
        ...

    async def get_node_info(self, node_id: str) -> dict[str, Any]:
        """Full subtree rooted at a node, as a nested dict with ``children``."""
        ...

    async def get_variable_collections(self) -> list[dict[str, Any]]:
        ...

    async def get_local_variables(self) -> list[dict[str, Any]]:
        ...


class ChangeType(Enum):
    """Kind of change reported by the design tool."""

    DOCUMENT_CHANGE = "document_change"
    SELECTION_CHANGE = "selection_change"
    PAGE_CHANGE = "current_page_change"
    OTHER = "other"

    @classmethod
    def parse(cls, value: str | None) -> "ChangeType":
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER


@dataclass(frozen=True)
class ChangeDetails:
    """Aggregated counts carried by a document change."""

    node_creations: int = 0
    node_deletions: int = 0
    property_changes: int = 0


@dataclass(frozen=True)
class ChangeNotification:
    """A change event pushed by the design tool."""

    change_type: ChangeType
    details: ChangeDetails = field(default_factory=ChangeDetails)
    timestamp: str | int | float | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "ChangeNotification":
        """Build from a raw ``{changeType, details, timestamp}`` message."""
        details = payload.get("details") or {}
        return cls(
            change_type=ChangeType.parse(payload.get("changeType")),
            details=ChangeDetails(
                node_creations=int(details.get("nodeCreations") or 0),
                node_deletions=int(details.get("nodeDeletions") or 0),
                property_changes=int(details.get("propertyChanges") or 0),
            ),
            timestamp=payload.get("timestamp"),
        )


ChangeHandler = Callable[[ChangeNotification], None]


class ChangeFeed:
    """Fan-out of change notifications to subscribed handlers.

    A failing handler is logged and does not stop delivery to the others.
    """

    def __init__(self) -> None:
        self._handlers: list[ChangeHandler] = []

    def subscribe(self, handler: ChangeHandler) -> Callable[[], None]:
        """Register a handler.

        Returns:
            A callable that removes the handler again.
        """
        self._handlers.append(handler)
        return lambda: self.unsubscribe(handler)

    def unsubscribe(self, handler: ChangeHandler) -> None:
        if handler in self._handlers:
            self._handlers.remove(handler)

    def publish(self, notification: ChangeNotification | dict[str, Any]) -> None:
        """Deliver a notification (or raw payload) to every handler."""
        if isinstance(notification, dict):
            notification = ChangeNotification.from_payload(notification)
        for handler in list(self._handlers):
            try:
                handler(notification)
            except Exception as e:
                logger.error(f"Change handler failed for {notification.change_type.value}: {e}")
