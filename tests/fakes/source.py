"""In-memory DesignSource for testing without a live design tool.

Usage:
    from tests.fakes import FakeDesignSource, frame

    source = FakeDesignSource(document_name="Marketing")
    source.add_page("1:1", "Landing", [frame("10:1", "Login Card")])

    pipeline = IngestionPipeline(store, source)
"""

from __future__ import annotations

import asyncio
from typing import Any

from figcache.core.exceptions import SourceError
from figcache.sources.base import DocumentInfo, PageRef


def node(node_id: str, name: str, node_type: str, children: list[dict] | None = None, **extra) -> dict:
    """Build a raw node payload."""
    payload: dict[str, Any] = {
        "id": node_id,
        "name": name,
        "type": node_type,
        "x": extra.pop("x", 0),
        "y": extra.pop("y", 0),
        "width": extra.pop("width", 100),
        "height": extra.pop("height", 40),
        "children": children or [],
    }
    payload.update(extra)
    return payload


def frame(node_id: str, name: str, children: list[dict] | None = None, **extra) -> dict:
    return node(node_id, name, "FRAME", children, **extra)


def text(node_id: str, name: str, **extra) -> dict:
    return node(node_id, name, "TEXT", **extra)


def component(node_id: str, name: str, key: str | None = None, **extra) -> dict:
    if key is not None:
        extra["key"] = key
    return node(node_id, name, "COMPONENT", **extra)


def alias(variable_id: str) -> dict:
    return {"type": "VARIABLE_ALIAS", "id": variable_id}


def color(r: float, g: float, b: float, a: float = 1.0) -> dict:
    return {"r": r, "g": g, "b": b, "a": a}


class FakeDesignSource:
    """In-memory implementation of DesignSource for testing.

    Records every call so tests can assert how often the remote source was
    hit. Failures and a blocking gate can be injected.

    Example:
        >>> source = FakeDesignSource()
        >>> source.add_page("1:1", "Landing", [frame("10:1", "Hero")])
        >>> source.fail_with(SourceError("timeout"))
    """

    def __init__(self, document_id: str | None = "doc-1", document_name: str = "Test Document"):
        self.document_id = document_id
        self.document_name = document_name
        self.connected = True
        self.pages: list[PageRef] = []
        self.trees: dict[str, list[dict]] = {}
        self.collections: list[dict] = []
        self.variables: list[dict] = []

        self.calls: list[str] = []
        self._error: Exception | None = None
        self._variable_error: Exception | None = None
        self._failing_page: str | None = None
        self.gate: asyncio.Event | None = None
        self.entered: asyncio.Event | None = None

    def add_page(self, page_id: str, name: str, children: list[dict] | None = None) -> None:
        self.pages.append(PageRef(id=page_id, name=name))
        self.trees[page_id] = children or []

    def add_collection(self, collection_id: str, name: str, modes: list[tuple[str, str]]) -> None:
        self.collections.append(
            {
                "id": collection_id,
                "name": name,
                "modes": [{"modeId": mode_id, "name": mode_name} for mode_id, mode_name in modes],
                "defaultModeId": modes[0][0] if modes else None,
            }
        )

    def add_variable(
        self,
        variable_id: str,
        name: str,
        collection_id: str,
        resolved_type: str,
        values_by_mode: dict[str, Any],
    ) -> None:
        self.variables.append(
            {
                "id": variable_id,
                "name": name,
                "variableCollectionId": collection_id,
                "resolvedType": resolved_type,
                "valuesByMode": values_by_mode,
            }
        )

    def fail_with(self, error: Exception | None) -> None:
        """Make every subsequent document call raise ``error`` (None clears)."""
        self._error = error

    def fail_variables_with(self, error: Exception | None) -> None:
        self._variable_error = error

    def fail_on_page(self, page_id: str | None) -> None:
        """Make ``get_node_info`` fail for one page only."""
        self._failing_page = page_id

    def block(self) -> None:
        """Make ``get_document_info`` wait until ``release()`` is called."""
        self.gate = asyncio.Event()
        self.entered = asyncio.Event()

    def release(self) -> None:
        if self.gate is not None:
            self.gate.set()

    def call_count(self, name: str) -> int:
        return self.calls.count(name)

    # --- DesignSource ---

    def is_connected(self) -> bool:
        return self.connected

    async def get_document_info(self) -> DocumentInfo:
        self.calls.append("get_document_info")
        if self.entered is not None:
            self.entered.set()
        if self.gate is not None:
            await self.gate.wait()
        if self._error is not None:
            raise self._error
        return DocumentInfo(id=self.document_id, name=self.document_name, pages=list(self.pages))

    async def get_node_info(self, node_id: str) -> dict[str, Any]:
        self.calls.append("get_node_info")
        if self._error is not None:
            raise self._error
        if node_id == self._failing_page:
            raise SourceError(f"Timed out fetching {node_id}")
        return {"id": node_id, "type": "PAGE", "children": self.trees.get(node_id, [])}

    async def get_variable_collections(self) -> list[dict[str, Any]]:
        self.calls.append("get_variable_collections")
        if self._variable_error is not None:
            raise self._variable_error
        return list(self.collections)

    async def get_local_variables(self) -> list[dict[str, Any]]:
        self.calls.append("get_local_variables")
        if self._variable_error is not None:
            raise self._variable_error
        return list(self.variables)
