"""Tests for variable, mode value and binding repositories."""

import pytest

from figcache.core.classification import TokenType, classify_variable
from figcache.core.exceptions import DatabaseError
from figcache.core.types import (
    IndexedVariable,
    ResolvedType,
    VariableBinding,
    VariableCollection,
    VariableMode,
    VariableModeValue,
)
from figcache.store.cache_store import CacheStore
from tests.fakes import make_node


@pytest.fixture
def collection(store: CacheStore) -> VariableCollection:
    collection = VariableCollection(
        id="c1",
        name="Theme",
        modes=[VariableMode("m1", "Light"), VariableMode("m2", "Dark")],
        default_mode_id="m1",
    )
    store.collections.upsert(collection)
    return collection


def _color_variable(variable_id: str, name: str, hex_value: str) -> IndexedVariable:
    return IndexedVariable(
        id=variable_id,
        name=name,
        collection_id="c1",
        resolved_type=ResolvedType.COLOR,
        values_by_mode={"m1": {"r": 1, "g": 1, "b": 1, "a": 1}},
        hex=hex_value,
        classification=classify_variable(name, "COLOR", hex_value),
    )


@pytest.mark.usefixtures("collection")
class TestVariableRepository:
    def test_collection_modes_round_trip(self, store: CacheStore):
        collection = store.collections.get("c1")

        assert [m.name for m in collection.modes] == ["Light", "Dark"]
        assert collection.mode_name("m2") == "Dark"

    def test_upsert_and_classification_round_trip(self, store: CacheStore):
        store.variables.upsert(_color_variable("v1", "colors/primary", "#570df8"))

        variable = store.variables.get("v1")

        assert variable.resolved_type is ResolvedType.COLOR
        assert variable.classification.token_type is TokenType.COLOR
        assert variable.classification.daisyui_name == "primary"
        assert variable.values_by_mode["m1"]["r"] == 1

    def test_get_by_daisyui_name(self, store: CacheStore):
        store.variables.bulk_upsert(
            [
                _color_variable("v1", "colors/primary", "#570df8"),
                _color_variable("v2", "colors/error", "#f87272"),
            ]
        )

        assert store.variables.get_by_daisyui_name("primary").id == "v1"
        assert store.variables.get_by_daisyui_name("accent") is None

    def test_unknown_collection_rejected(self, store: CacheStore):
        variable = _color_variable("v1", "colors/primary", "#570df8")
        variable.collection_id = "missing"

        with pytest.raises(DatabaseError):
            store.variables.upsert(variable)

    def test_list_by_type_and_ids(self, store: CacheStore):
        store.variables.bulk_upsert(
            [
                _color_variable("v1", "colors/primary", "#570df8"),
                IndexedVariable(
                    id="v2",
                    name="spacing/md",
                    collection_id="c1",
                    resolved_type=ResolvedType.FLOAT,
                    classification=classify_variable("spacing/md", "FLOAT"),
                ),
            ]
        )

        assert [v.id for v in store.variables.list_colors()] == ["v1"]
        assert [v.id for v in store.variables.list_by_token_type(TokenType.SPACING)] == ["v2"]
        assert store.variables.list_ids() == {"v1", "v2"}

    def test_refresh_variable_counts(self, store: CacheStore):
        store.variables.bulk_upsert(
            [_color_variable("v1", "a", "#000000"), _color_variable("v2", "b", "#ffffff")]
        )

        store.collections.refresh_variable_counts()

        assert store.collections.get("c1").variable_count == 2


class TestCascades:
    """Deleting a variable removes its mode values and bindings."""

    @pytest.fixture(autouse=True)
    def _graph(self, store: CacheStore, collection, sample_page):
        store.variables.upsert(_color_variable("v1", "colors/primary", "#570df8"))
        store.variables.upsert(_color_variable("v2", "colors/error", "#f87272"))
        store.nodes.upsert(make_node("10:1", "Button"))
        store.variables.upsert_mode_values(
            [
                VariableModeValue("v1", "m1", "Light", hex="#570df8"),
                VariableModeValue("v1", "m2", "Dark", hex="#661ae6"),
                VariableModeValue("v2", "m1", "Light", hex="#f87272"),
            ]
        )
        store.bindings.bulk_upsert(
            [
                VariableBinding("10:1", "v1", "fills", 0),
                VariableBinding("10:1", "v1", "strokes", 0),
                VariableBinding("10:1", "v2", "fills", 1),
            ]
        )

    def test_delete_cascades(self, store: CacheStore):
        assert store.variables.delete("v1") is True

        assert store.variables.get_mode_values("v1") == []
        assert store.bindings.list_for_variable("v1") == []
        assert [b.variable_id for b in store.bindings.list_for_node("10:1")] == ["v2"]
        orphans = store.db.execute(
            "SELECT COUNT(*) FROM variable_bindings WHERE variable_id NOT IN (SELECT id FROM variables)"
        ).fetchone()[0]
        assert orphans == 0

    def test_upsert_does_not_cascade(self, store: CacheStore):
        store.variables.upsert(_color_variable("v1", "colors/primary", "#4506cb"))

        assert len(store.variables.get_mode_values("v1")) == 2
        assert len(store.bindings.list_for_variable("v1")) == 2

    def test_mode_values_unique_per_mode(self, store: CacheStore):
        store.variables.upsert_mode_values([VariableModeValue("v1", "m1", "Light", hex="#000000")])

        values = {v.mode_id: v for v in store.variables.get_mode_values("v1")}

        assert len(values) == 2
        assert values["m1"].hex == "#000000"

    def test_binding_unique_per_slot(self, store: CacheStore):
        store.bindings.upsert(VariableBinding("10:1", "v2", "fills", 0))

        fills = [b for b in store.bindings.list_for_node("10:1") if b.property == "fills"]

        assert {(b.property_index, b.variable_id) for b in fills} == {(0, "v2"), (1, "v2")}

    def test_delete_unknown_variable(self, store: CacheStore):
        assert store.variables.delete("missing") is False
