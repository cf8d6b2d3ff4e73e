"""Tests for IngestionPipeline."""

import pytest

from figcache.core.classification import NodeClassification, TokenType
from figcache.core.exceptions import SourceError
from figcache.core.types import ResolvedType
from figcache.store.cache_store import CacheStore
from figcache.store.sync_meta import DOCUMENT_ID, DOCUMENT_NAME, LAST_FULL_SYNC
from figcache.workflows.contracts import IngestionRequest
from figcache.workflows.pipelines.ingestion import (
    IngestionPipeline,
    gap_class,
    iter_bindings,
    layout_hints,
    make_test_id,
    radius_class,
)
from tests.fakes import FakeDesignSource, alias, color, component, frame, node, text

PRIMARY = color(87 / 255, 13 / 255, 248 / 255)


@pytest.fixture
def marketing(source: FakeDesignSource) -> FakeDesignSource:
    """A two-page document with a component and bound variables."""
    source.add_page(
        "1:1",
        "Landing",
        [
            frame(
                "10:1",
                "Login Card",
                [
                    node(
                        "10:2",
                        "Primary Button",
                        "INSTANCE",
                        mainComponent={"name": "Button", "key": "btn-key"},
                        boundVariables={"fills": [alias("v1")], "itemSpacing": alias("v2")},
                    ),
                    text("10:3", "Title"),
                ],
                layoutMode="VERTICAL",
                itemSpacing=16,
                cornerRadius=8,
            ),
            frame("10:4", "Footer"),
        ],
    )
    source.add_page("2:1", "Components", [component("20:1", "Button", key="btn-key")])
    source.add_collection("c1", "Theme", [("m1", "Light"), ("m2", "Dark")])
    source.add_variable("v1", "colors/primary", "c1", "COLOR", {"m1": PRIMARY, "m2": color(0, 0, 0)})
    source.add_variable("v2", "spacing/md", "c1", "FLOAT", {"m1": 16, "m2": 16})
    source.add_variable("v3", "colors/brand-alias", "c1", "COLOR", {"m1": alias("v1"), "m2": alias("v1")})
    return source


async def _run(store: CacheStore, source: FakeDesignSource, **kwargs):
    return await IngestionPipeline(store, source).execute(IngestionRequest(**kwargs))


class TestHelpers:
    @pytest.mark.parametrize(
        "path,expected",
        [
            ("Landing/Login Card", "landing-login-card"),
            ("Landing / Hero  (v2)", "landing-hero-v2"),
            ("Café/Menu", "caf-menu"),
        ],
    )
    def test_make_test_id(self, path, expected):
        assert make_test_id(path) == expected

    def test_test_id_is_capped(self):
        assert len(make_test_id("x" * 200)) == 64

    @pytest.mark.parametrize(
        "radius,expected", [(1, "rounded-none"), (8, "rounded-lg"), (10, "rounded-lg"), (500, "rounded-3xl")]
    )
    def test_radius_class(self, radius, expected):
        assert radius_class(radius) == expected

    @pytest.mark.parametrize("spacing,expected", [(16, "gap-4"), (2, "gap-0.5"), (15, "gap-3.5")])
    def test_gap_class(self, spacing, expected):
        assert gap_class(spacing) == expected

    def test_layout_hints(self):
        assert layout_hints({"layoutMode": "HORIZONTAL", "itemSpacing": 8, "cornerRadius": 4}) == [
            "flex",
            "flex-row",
            "gap-2",
            "rounded",
        ]

    def test_spacing_without_auto_layout_is_ignored(self):
        assert layout_hints({"layoutMode": "NONE", "itemSpacing": 8}) == []

    def test_iter_bindings_shapes(self):
        bindings = list(
            iter_bindings(
                "10:1",
                {
                    "fills": [alias("a"), {"type": "SOLID"}, alias("b")],
                    "width": alias("c"),
                    "componentProperties": {"label": alias("d")},
                },
            )
        )

        assert [(b.variable_id, b.property, b.property_index, b.field) for b in bindings] == [
            ("a", "fills", 0, ""),
            ("b", "fills", 2, ""),
            ("c", "width", 0, ""),
            ("d", "componentProperties", 0, "label"),
        ]


@pytest.mark.asyncio
class TestNodePhase:
    async def test_paths_depth_and_parents(self, store: CacheStore, marketing):
        result = await _run(store, marketing)

        button = store.nodes.get("10:2")
        assert result.nodes_indexed == 5
        assert result.pages_synced == ["Landing", "Components"]
        assert button.path == "Landing/Login Card/Primary Button"
        assert button.depth == 2
        assert button.parent_id == "10:1"
        assert store.nodes.get("10:1").parent_id == "1:1"
        assert store.nodes.get("10:1").page_id == "1:1"
        assert button.data_testid == "landing-login-card-primary-button"

    async def test_instance_component_reference(self, store: CacheStore, marketing):
        await _run(store, marketing)

        button = store.nodes.get("10:2")
        assert button.component_name == "Button"
        assert button.component_key == "btn-key"

    async def test_layout_hints_stored(self, store: CacheStore, marketing):
        await _run(store, marketing)

        assert store.nodes.get("10:1").tailwind_classes == ["flex", "flex-col", "gap-4", "rounded-lg"]

    async def test_component_nodes_become_components(self, store: CacheStore, marketing):
        result = await _run(store, marketing)

        component_record = store.components.get("btn-key")
        assert result.components_found == 1
        assert component_record.name == "Button"
        assert component_record.category == "uncategorized"
        assert component_record.figma_id == "20:1"

    async def test_node_classifier_tags(self, store: CacheStore, marketing):
        class ButtonClassifier:
            def classify(self, node, parent_name=None):
                if "Button" in node.get("name", ""):
                    return NodeClassification(
                        ui_class="btn btn-primary",
                        component="button",
                        category="actions",
                        variant="primary",
                    )
                return None

        await IngestionPipeline(store, marketing, node_classifier=ButtonClassifier()).execute(
            IngestionRequest()
        )

        assert store.nodes.get("10:2").daisyui_component == "button"
        assert store.components.get("btn-key").category == "button"
        assert [n.figma_id for n in store.nodes.list_by_component("button")] == ["20:1", "10:2"]

    async def test_page_aggregates(self, store: CacheStore, marketing):
        await _run(store, marketing)

        landing = store.pages.get("1:1")
        assert landing.node_count == 4
        assert landing.frame_count == 2
        assert landing.summary == "Page with 2 frames and 0 components"
        assert landing.main_sections == ["Login Card", "Footer"]
        assert store.pages.get("2:1").component_count == 1

    async def test_page_filter(self, store: CacheStore, marketing):
        result = await _run(store, marketing, pages=["Components"])

        assert result.pages_synced == ["Components"]
        assert store.pages.get("1:1") is None
        assert store.nodes.get("20:1") is not None

    async def test_no_pages(self, store: CacheStore, source: FakeDesignSource):
        result = await _run(store, source)

        assert result.nodes_indexed == 0
        assert result.pages_synced == []
        assert store.meta.get(LAST_FULL_SYNC)

    async def test_progress_callback(self, store: CacheStore, marketing):
        progress = []

        await _run(store, marketing, progress_callback=lambda d, t, n: progress.append((d, t, n)))

        assert progress == [(1, 2, "Landing"), (2, 2, "Components")]

    async def test_force_rebuild_clears_removed_nodes(self, store: CacheStore, marketing):
        await _run(store, marketing)
        marketing.trees["1:1"] = [frame("10:1", "Login Card")]

        await _run(store, marketing)
        assert store.nodes.get("10:4") is not None

        await _run(store, marketing, force_rebuild=True)
        assert store.nodes.get("10:4") is None
        assert store.nodes.get("10:1") is not None

    async def test_partial_failure_keeps_earlier_pages(self, store: CacheStore, marketing):
        marketing.fail_on_page("2:1")

        with pytest.raises(SourceError):
            await _run(store, marketing)

        assert store.nodes.get("10:1") is not None
        assert store.nodes.get("20:1") is None
        assert store.meta.get(LAST_FULL_SYNC) is None

    async def test_sync_meta_written(self, store: CacheStore, marketing):
        result = await _run(store, marketing)

        assert result.document_name == "Test Document"
        assert store.meta.get(DOCUMENT_NAME) == "Test Document"
        assert store.meta.get(DOCUMENT_ID) == "doc-1"


@pytest.mark.asyncio
class TestVariablePhase:
    async def test_variables_and_mode_values(self, store: CacheStore, marketing):
        result = await _run(store, marketing)

        primary = store.variables.get("v1")
        modes = {mv.mode_name: mv for mv in store.variables.get_mode_values("v1")}
        assert result.collections_indexed == 1
        assert result.variables_indexed == 3
        assert primary.hex == "#570df8"
        assert primary.resolved_type is ResolvedType.COLOR
        assert primary.classification.daisyui_name == "primary"
        assert modes["Dark"].hex == "#000000"
        assert store.collections.get("c1").variable_count == 3

    async def test_float_values(self, store: CacheStore, marketing):
        await _run(store, marketing)

        spacing = store.variables.get("v2")
        assert spacing.classification.token_type is TokenType.SPACING
        assert {mv.float_value for mv in store.variables.get_mode_values("v2")} == {16.0}

    async def test_aliases_are_recorded_not_resolved(self, store: CacheStore, marketing):
        await _run(store, marketing)

        aliased = store.variables.get("v3")
        values = store.variables.get_mode_values("v3")
        assert aliased.is_alias is True
        assert aliased.alias_target_id == "v1"
        assert aliased.hex is None
        assert all(mv.is_alias and mv.alias_variable_id == "v1" for mv in values)

    async def test_bindings(self, store: CacheStore, marketing):
        result = await _run(store, marketing)

        bindings = {(b.variable_id, b.property) for b in store.bindings.list_for_node("10:2")}
        assert result.bindings_indexed == 2
        assert bindings == {("v1", "fills"), ("v2", "itemSpacing")}

    async def test_bindings_to_unknown_variables_skipped(self, store: CacheStore, marketing):
        marketing.trees["1:1"].append(frame("10:9", "Orphan", boundVariables={"fills": [alias("gone")]}))

        result = await _run(store, marketing)

        assert result.bindings_indexed == 2
        assert store.bindings.list_for_node("10:9") == []

    async def test_unknown_collection_gets_placeholder(self, store: CacheStore, source: FakeDesignSource):
        source.add_variable("v9", "colors/error", "c-missing", "COLOR", {"m1": PRIMARY})

        result = await _run(store, source)

        assert result.variables_indexed == 1
        assert store.collections.get("c-missing") is not None

    async def test_variable_failure_is_swallowed(self, store: CacheStore, marketing):
        marketing.fail_variables_with(SourceError("variables unavailable"))

        result = await _run(store, marketing)

        assert result.nodes_indexed == 5
        assert result.variables_indexed == 0
        assert result.variable_error == "variables unavailable"
        assert store.meta.get(LAST_FULL_SYNC)

    async def test_skip_variables(self, store: CacheStore, marketing):
        result = await _run(store, marketing, include_variables=False)

        assert result.variables_indexed == 0
        assert marketing.call_count("get_local_variables") == 0
