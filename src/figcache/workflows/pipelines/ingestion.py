"""Ingestion pipeline mirroring the remote document into the index.

The pipeline runs in explicit phases so that every node is written against
an existing page:

1. Pages - upsert a skeletal row for every target page
2. Nodes - walk each page's tree depth-first, upserting nodes one at a time
3. Aggregates - recompute per-page counts, summary and main sections
4. Variables - best effort: collections, variables, per-mode values and
   node bindings; failures are logged and swallowed

Design notes:
- Nodes are upserted individually so a failure on a later page leaves the
  earlier pages durably indexed
- Aliases between variables are recorded, never resolved
"""

from __future__ import annotations

import json
import time
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable, Iterator

from loguru import logger

from figcache.core.classification import (
    DefaultVariableClassifier,
    NodeClassifier,
    NullNodeClassifier,
    VariableClassifier,
)
from figcache.core.colors import hex_to_hsl, hsl_to_string, rgb_to_hex, rgb_to_string
from figcache.core.instrumentation import record_counts, traced_request
from figcache.core.types import (
    IndexedComponent,
    IndexedNode,
    IndexedPage,
    IndexedVariable,
    ResolvedType,
    VariableBinding,
    VariableCollection,
    VariableMode,
    VariableModeValue,
)
from figcache.store.sync_meta import DOCUMENT_ID, DOCUMENT_NAME, LAST_FULL_SYNC
from figcache.utils.clock import utcnow
from figcache.utils.hashing import fingerprint
from figcache.workflows.contracts import IngestionRequest, IngestionResult

if TYPE_CHECKING:
    from figcache.sources.base import DesignSource, PageRef
    from figcache.store.cache_store import CacheStore

ALIAS_MARKER = "VARIABLE_ALIAS"
TESTID_MAX_LENGTH = 64

TAILWIND_RADIUS = {
    0: "rounded-none",
    2: "rounded-sm",
    4: "rounded",
    6: "rounded-md",
    8: "rounded-lg",
    12: "rounded-xl",
    16: "rounded-2xl",
    24: "rounded-3xl",
    9999: "rounded-full",
}

# Tailwind spacing steps in px (step = px / 4)
TAILWIND_SPACING = (0, 2, 4, 6, 8, 10, 12, 14, 16, 20, 24, 28, 32, 36, 40, 44, 48, 56, 64, 80, 96)


def make_test_id(path: str) -> str:
    """Derive a ``data-testid`` slug from a node path."""
    slug = "".join(ch if ch.isascii() and ch.isalnum() else "-" for ch in path.lower())
    while "--" in slug:
        slug = slug.replace("--", "-")
    return slug.strip("-")[:TESTID_MAX_LENGTH]


def radius_class(radius: float) -> str:
    """Nearest Tailwind ``rounded-*`` class for a corner radius."""
    closest = min(TAILWIND_RADIUS, key=lambda step: abs(step - radius))
    return TAILWIND_RADIUS[closest]


def gap_class(spacing: float) -> str:
    """Nearest Tailwind ``gap-*`` class for an auto-layout item spacing."""
    closest = min(TAILWIND_SPACING, key=lambda step: abs(step - spacing))
    step = closest / 4
    return f"gap-{int(step) if step.is_integer() else step}"


def layout_hints(node: dict[str, Any]) -> list[str]:
    """Utility classes implied by auto-layout and corner radius."""
    classes: list[str] = []
    layout_mode = node.get("layoutMode")
    if layout_mode == "HORIZONTAL":
        classes.extend(["flex", "flex-row"])
    elif layout_mode == "VERTICAL":
        classes.extend(["flex", "flex-col"])
    spacing = node.get("itemSpacing")
    if layout_mode in ("HORIZONTAL", "VERTICAL") and isinstance(spacing, (int, float)) and spacing > 0:
        classes.append(gap_class(spacing))
    radius = node.get("cornerRadius")
    if isinstance(radius, (int, float)) and radius > 0:
        classes.append(radius_class(radius))
    return classes


def node_fingerprint(node: dict[str, Any]) -> str:
    return fingerprint(
        {
            "name": node.get("name"),
            "type": node.get("type"),
            "x": round(node.get("x") or 0),
            "y": round(node.get("y") or 0),
            "w": round(node.get("width") or 0),
            "h": round(node.get("height") or 0),
        }
    )


def is_alias(value: Any) -> bool:
    return isinstance(value, dict) and value.get("type") == ALIAS_MARKER


def iter_bindings(node_id: str, bound: dict[str, Any] | None) -> Iterator[VariableBinding]:
    """Expand a node's ``boundVariables`` map into binding rows.

    Handles direct aliases, lists of aliases (one per paint slot) and
    per-field maps of aliases.
    """
    for prop, value in (bound or {}).items():
        if is_alias(value):
            yield VariableBinding(node_id=node_id, variable_id=value["id"], property=prop)
        elif isinstance(value, list):
            for index, item in enumerate(value):
                if is_alias(item):
                    yield VariableBinding(
                        node_id=node_id, variable_id=item["id"], property=prop, property_index=index
                    )
        elif isinstance(value, dict):
            for field_name, item in value.items():
                if is_alias(item):
                    yield VariableBinding(
                        node_id=node_id, variable_id=item["id"], property=prop, field=field_name
                    )


def _as_list(payload: Any, key: str) -> list[dict[str, Any]]:
    if isinstance(payload, dict):
        payload = payload.get(key) or []
    return list(payload or [])


class IngestionPipeline:
    """Pipeline for mirroring a remote document into a CacheStore.

    Example:
        pipeline = IngestionPipeline(store, source)
        result = await pipeline.execute(IngestionRequest(force_rebuild=True))
        print(f"Indexed {result.nodes_indexed} nodes")
    """

    def __init__(
        self,
        store: "CacheStore",
        source: "DesignSource",
        node_classifier: NodeClassifier | None = None,
        variable_classifier: VariableClassifier | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        """Initialize IngestionPipeline.

        Args:
            store: Target store for the active document.
            source: Remote design source.
            node_classifier: Supplies UI component tags for nodes.
            variable_classifier: Supplies classification for variables.
            clock: Timestamps the completed sync.
        """
        self._store = store
        self._source = source
        self._node_classifier = node_classifier or NullNodeClassifier()
        self._variable_classifier = variable_classifier or DefaultVariableClassifier()
        self._clock = clock

    async def execute(self, request: IngestionRequest) -> IngestionResult:
        """Execute the ingestion pipeline.

        Args:
            request: Page selection and rebuild options.

        Returns:
            IngestionResult with counts per phase.

        Raises:
            SourceError: If the remote source fails during the node phases.
            DatabaseError: If a node-phase write fails. Pages completed before
                the failure stay indexed.
        """
        logger.info(
            f"IngestionPipeline.execute: pages={request.pages!r}, "
            f"force_rebuild={request.force_rebuild}"
        )
        start_time = time.perf_counter()
        result = IngestionResult()

        if request.force_rebuild:
            self._store.clear_all()

        document = await self._source.get_document_info()
        result.document_name = document.name
        targets = [
            page
            for page in document.pages
            if request.pages is None or page.name in request.pages
        ]

        with traced_request("ingest.pages", attributes={"figcache.page_count": len(targets)}):
            self._store.pages.ensure_skeletons((page.id, page.name) for page in targets)

        bindings: list[VariableBinding] = []
        with traced_request("ingest.nodes") as span:
            for done, page in enumerate(targets, start=1):
                await self._ingest_page(page, result, bindings)
                result.pages_synced.append(page.name)
                if request.progress_callback:
                    request.progress_callback(done, len(targets), page.name)
            record_counts(
                span,
                nodes_indexed=result.nodes_indexed,
                components_found=result.components_found,
            )

        with traced_request("ingest.aggregates"):
            for page in targets:
                self._store.pages.upsert(self._aggregate_page(page))

        if request.include_variables:
            await self._ingest_variables(result, bindings)

        meta = {LAST_FULL_SYNC: self._clock().isoformat(), DOCUMENT_NAME: document.name}
        if document.id:
            meta[DOCUMENT_ID] = document.id
        self._store.meta.set_many(meta)

        result.elapsed_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            f"IngestionPipeline complete: document={document.name!r}, "
            f"pages={len(result.pages_synced)}, nodes={result.nodes_indexed}, "
            f"components={result.components_found}, variables={result.variables_indexed}, "
            f"{result.elapsed_ms:.1f}ms"
        )
        return result

    async def _ingest_page(
        self,
        page: "PageRef",
        result: IngestionResult,
        bindings: list[VariableBinding],
    ) -> None:
        page_data = await self._source.get_node_info(page.id)
        before = result.nodes_indexed
        for child in page_data.get("children") or []:
            self._ingest_node(child, page, page.id, page.name, 1, result, bindings)
        logger.debug(f"Indexed page {page.name!r}: {result.nodes_indexed - before} nodes")

    def _ingest_node(
        self,
        raw: dict[str, Any],
        page: "PageRef",
        parent_id: str,
        parent_path: str,
        depth: int,
        result: IngestionResult,
        bindings: list[VariableBinding],
    ) -> None:
        node = self._build_node(raw, page, parent_id, parent_path, depth)
        self._store.nodes.upsert(node)
        result.nodes_indexed += 1

        if node.type == "COMPONENT":
            self._store.components.upsert(self._build_component(raw, node))
            result.components_found += 1

        bindings.extend(iter_bindings(node.figma_id, raw.get("boundVariables")))

        for child in raw.get("children") or []:
            self._ingest_node(child, page, node.figma_id, node.path or "", depth + 1, result, bindings)

    def _build_node(
        self,
        raw: dict[str, Any],
        page: "PageRef",
        parent_id: str,
        parent_path: str,
        depth: int,
    ) -> IndexedNode:
        name = raw.get("name") or ""
        path = f"{parent_path}/{name}" if parent_path else name
        parent_name = parent_path.rsplit("/", 1)[-1] if parent_path else None
        tags = self._node_classifier.classify(raw, parent_name)

        tailwind = layout_hints(raw)
        if tags:
            tailwind.extend(c for c in tags.tailwind_classes if c not in tailwind)

        main_component = raw.get("mainComponent") or {}
        node_type = raw.get("type") or "UNKNOWN"
        if node_type == "COMPONENT":
            component_name = name
        else:
            component_name = main_component.get("name") or raw.get("componentName")

        return IndexedNode(
            figma_id=str(raw["id"]),
            name=name,
            type=node_type,
            parent_id=parent_id,
            page_id=page.id,
            path=path,
            depth=depth,
            component_key=main_component.get("key") or raw.get("componentId"),
            component_name=component_name,
            daisyui_class=tags.ui_class if tags else None,
            daisyui_component=tags.component if tags else None,
            daisyui_variant=tags.variant if tags else None,
            daisyui_size=tags.size if tags else None,
            tailwind_classes=tailwind,
            data_testid=make_test_id(path),
            x=raw.get("x"),
            y=raw.get("y"),
            width=raw.get("width"),
            height=raw.get("height"),
            content_hash=node_fingerprint(raw),
        )

    def _build_component(self, raw: dict[str, Any], node: IndexedNode) -> IndexedComponent:
        definitions = raw.get("componentPropertyDefinitions")
        return IndexedComponent(
            key=raw.get("key") or node.figma_id,
            name=node.name,
            category=node.daisyui_component or "uncategorized",
            subcategory=node.daisyui_variant,
            figma_id=node.figma_id,
            daisyui_class=node.daisyui_class,
            variants=definitions if isinstance(definitions, dict) else None,
            description=raw.get("description") or None,
        )

    def _aggregate_page(self, page: "PageRef") -> IndexedPage:
        nodes = self._store.nodes
        frame_count = nodes.count(page_id=page.id, node_type="FRAME")
        component_count = nodes.count(page_id=page.id, node_type="COMPONENT")
        return IndexedPage(
            id=page.id,
            name=page.name,
            node_count=nodes.count(page_id=page.id),
            component_count=component_count,
            frame_count=frame_count,
            summary=f"Page with {frame_count} frames and {component_count} components",
            main_sections=nodes.top_level_names(page.id),
        )

    async def _ingest_variables(
        self, result: IngestionResult, bindings: list[VariableBinding]
    ) -> None:
        try:
            with traced_request("ingest.variables") as span:
                raw_collections = _as_list(
                    await self._source.get_variable_collections(), "collections"
                )
                raw_variables = _as_list(await self._source.get_local_variables(), "variables")

                collections = {
                    c.id: c for c in (self._build_collection(raw) for raw in raw_collections)
                }
                variables: list[IndexedVariable] = []
                mode_values: list[VariableModeValue] = []
                for raw in raw_variables:
                    collection_id = str(raw.get("variableCollectionId") or "")
                    if collection_id not in collections:
                        collections[collection_id] = VariableCollection(
                            id=collection_id, name=collection_id or "Unknown"
                        )
                    variable, values = self._build_variable(raw, collections[collection_id])
                    variables.append(variable)
                    mode_values.extend(values)

                store = self._store
                result.collections_indexed = store.collections.bulk_upsert(collections.values())
                result.variables_indexed = store.variables.bulk_upsert(variables)
                store.variables.upsert_mode_values(mode_values)
                store.collections.refresh_variable_counts()

                known = store.variables.list_ids()
                resolvable = [b for b in bindings if b.variable_id in known]
                if len(resolvable) < len(bindings):
                    logger.debug(
                        f"Skipped {len(bindings) - len(resolvable)} binding(s) to unknown variables"
                    )
                result.bindings_indexed = store.bindings.bulk_upsert(resolvable)
                record_counts(
                    span,
                    collections_indexed=result.collections_indexed,
                    variables_indexed=result.variables_indexed,
                    bindings_indexed=result.bindings_indexed,
                )
        except Exception as e:
            result.variable_error = str(e)
            logger.warning(f"Variable ingestion failed, continuing without variables: {e}")

    def _build_collection(self, raw: dict[str, Any]) -> VariableCollection:
        modes = [
            VariableMode(mode_id=str(m.get("modeId")), name=m.get("name") or "")
            for m in raw.get("modes") or []
        ]
        default_mode_id = raw.get("defaultModeId") or (modes[0].mode_id if modes else None)
        return VariableCollection(
            id=str(raw["id"]),
            name=raw.get("name") or "",
            modes=modes,
            default_mode_id=default_mode_id,
            variable_count=len(raw.get("variableIds") or []),
        )

    def _build_variable(
        self, raw: dict[str, Any], collection: VariableCollection
    ) -> tuple[IndexedVariable, list[VariableModeValue]]:
        variable_id = str(raw["id"])
        resolved_type = ResolvedType.parse(raw.get("resolvedType"))
        values_by_mode: dict[str, Any] = raw.get("valuesByMode") or {}

        mode_values = [
            self._build_mode_value(variable_id, mode_id, collection.mode_name(mode_id), value, resolved_type)
            for mode_id, value in values_by_mode.items()
        ]

        default_mode_id = collection.default_mode_id
        if default_mode_id not in values_by_mode and values_by_mode:
            default_mode_id = next(iter(values_by_mode))
        default = next((mv for mv in mode_values if mv.mode_id == default_mode_id), None)

        aliases = [mv for mv in mode_values if mv.is_alias]
        alias_target = None
        if default is not None and default.is_alias:
            alias_target = default.alias_variable_id
        elif aliases:
            alias_target = aliases[0].alias_variable_id

        hex_value = default.hex if default is not None else None
        name = raw.get("name") or ""
        variable = IndexedVariable(
            id=variable_id,
            name=name,
            collection_id=collection.id,
            resolved_type=resolved_type,
            values_by_mode=values_by_mode,
            description=raw.get("description") or None,
            scopes=list(raw.get("scopes") or []),
            hex=hex_value,
            rgb=default.rgb if default is not None else None,
            hsl=default.hsl if default is not None else None,
            classification=self._variable_classifier.classify(name, resolved_type.value, hex_value),
            is_alias=bool(aliases),
            alias_target_id=alias_target,
        )
        return variable, mode_values

    def _build_mode_value(
        self,
        variable_id: str,
        mode_id: str,
        mode_name: str | None,
        value: Any,
        resolved_type: ResolvedType,
    ) -> VariableModeValue:
        mode_value = VariableModeValue(
            variable_id=variable_id,
            mode_id=str(mode_id),
            mode_name=mode_name,
            raw_value=value,
        )
        if is_alias(value):
            mode_value.is_alias = True
            mode_value.alias_variable_id = value.get("id")
        elif resolved_type is ResolvedType.COLOR and isinstance(value, dict):
            hex_value = rgb_to_hex(value)
            mode_value.hex = hex_value
            mode_value.rgb = rgb_to_string(hex_value)
            mode_value.hsl = hsl_to_string(hex_to_hsl(hex_value))
        elif resolved_type is ResolvedType.FLOAT and isinstance(value, (int, float)):
            mode_value.float_value = float(value)
        elif resolved_type is ResolvedType.BOOLEAN and isinstance(value, bool):
            mode_value.boolean_value = value
        elif value is not None and not isinstance(value, (dict, list)):
            mode_value.string_value = json.dumps(value) if not isinstance(value, str) else value
        return mode_value
