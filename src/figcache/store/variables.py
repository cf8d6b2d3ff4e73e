"""Design variable storage: collections, variables, per-mode values and bindings."""

import json
import sqlite3
from enum import Enum
from typing import Any, Iterable, TypeVar

from ..core.classification import (
    ColorSystem,
    SemanticRole,
    TokenType,
    VariableClassification,
)
from ..core.types import (
    IndexedVariable,
    ResolvedType,
    VariableBinding,
    VariableCollection,
    VariableMode,
    VariableModeValue,
)
from ..utils.clock import utcnow_iso
from .database import Database
from .filters import PredicateBuilder, VariableFilters

E = TypeVar("E", bound=Enum)


def _enum_or_none(kind: type[E], value: str | None) -> E | None:
    if value is None:
        return None
    try:
        return kind(value)
    except ValueError:
        return None


def _enum_value(member: Enum | None) -> str | None:
    return member.value if member is not None else None


class VariableCollectionRepository:
    """Repository for variable collections and their modes."""

    def __init__(self, db: Database):
        self.db = db

    def upsert(self, collection: VariableCollection) -> None:
        with self.db.transaction() as cursor:
            self._upsert(cursor, collection, utcnow_iso())

    def bulk_upsert(self, collections: Iterable[VariableCollection]) -> int:
        count = 0
        with self.db.transaction() as cursor:
            for collection in collections:
                self._upsert(cursor, collection, utcnow_iso())
                count += 1
        return count

    def _upsert(self, cursor: sqlite3.Cursor, collection: VariableCollection, now: str) -> None:
        modes = [{"modeId": m.mode_id, "name": m.name} for m in collection.modes]
        cursor.execute(
            """
            INSERT INTO variable_collections (
                id, name, modes, default_mode_id, variable_count, last_synced
            )
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                name = excluded.name,
                modes = excluded.modes,
                default_mode_id = excluded.default_mode_id,
                variable_count = excluded.variable_count,
                last_synced = excluded.last_synced
            """,
            (
                collection.id,
                collection.name,
                json.dumps(modes),
                collection.default_mode_id,
                collection.variable_count,
                now,
            ),
        )

    def get(self, collection_id: str) -> VariableCollection | None:
        cursor = self.db.execute(
            "SELECT * FROM variable_collections WHERE id = ?", (collection_id,)
        )
        row = cursor.fetchone()
        return self._row_to_collection(row) if row else None

    def list_all(self) -> list[VariableCollection]:
        cursor = self.db.execute("SELECT * FROM variable_collections ORDER BY name")
        return [self._row_to_collection(row) for row in cursor.fetchall()]

    def refresh_variable_counts(self) -> None:
        """Recompute variable_count for every collection from stored variables."""
        with self.db.transaction() as cursor:
            cursor.execute(
                """
                UPDATE variable_collections SET variable_count = (
                    SELECT COUNT(*) FROM variables v
                    WHERE v.collection_id = variable_collections.id
                )
                """
            )

    def _row_to_collection(self, row: sqlite3.Row) -> VariableCollection:
        modes = json.loads(row["modes"]) if row["modes"] else []
        return VariableCollection(
            id=row["id"],
            name=row["name"],
            modes=[VariableMode(mode_id=m["modeId"], name=m["name"]) for m in modes],
            default_mode_id=row["default_mode_id"],
            variable_count=row["variable_count"] or 0,
            last_synced=row["last_synced"],
        )


class VariableRepository:
    """Repository for design variables and their per-mode values.

    Deleting a variable cascades to its mode values and node bindings.
    """

    def __init__(self, db: Database):
        self.db = db

    def upsert(self, variable: IndexedVariable) -> None:
        with self.db.transaction() as cursor:
            self._upsert(cursor, variable, utcnow_iso())

    def bulk_upsert(self, variables: Iterable[IndexedVariable]) -> int:
        """Upsert many variables in a single transaction.

        Every variable's collection must already exist.
        """
        count = 0
        with self.db.transaction() as cursor:
            for variable in variables:
                self._upsert(cursor, variable, utcnow_iso())
                count += 1
        return count

    def _upsert(self, cursor: sqlite3.Cursor, variable: IndexedVariable, now: str) -> None:
        c = variable.classification
        cursor.execute(
            """
            INSERT INTO variables (
                id, name, collection_id, resolved_type, daisyui_name, daisyui_category,
                values_by_mode, hex, rgb, hsl, description, scopes,
                token_type, color_system, semantic_role, tailwind_name, tailwind_shade,
                tailwind_class, css_variable, is_alias, alias_target_id, last_synced
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                name = excluded.name,
                collection_id = excluded.collection_id,
                resolved_type = excluded.resolved_type,
                daisyui_name = excluded.daisyui_name,
                daisyui_category = excluded.daisyui_category,
                values_by_mode = excluded.values_by_mode,
                hex = excluded.hex,
                rgb = excluded.rgb,
                hsl = excluded.hsl,
                description = excluded.description,
                scopes = excluded.scopes,
                token_type = excluded.token_type,
                color_system = excluded.color_system,
                semantic_role = excluded.semantic_role,
                tailwind_name = excluded.tailwind_name,
                tailwind_shade = excluded.tailwind_shade,
                tailwind_class = excluded.tailwind_class,
                css_variable = excluded.css_variable,
                is_alias = excluded.is_alias,
                alias_target_id = excluded.alias_target_id,
                last_synced = excluded.last_synced
            """,
            (
                variable.id,
                variable.name,
                variable.collection_id,
                variable.resolved_type.value,
                c.daisyui_name,
                c.daisyui_category,
                json.dumps(variable.values_by_mode),
                variable.hex,
                variable.rgb,
                variable.hsl,
                variable.description,
                json.dumps(variable.scopes),
                c.token_type.value,
                _enum_value(c.color_system),
                _enum_value(c.semantic_role),
                c.tailwind_name,
                c.tailwind_shade,
                c.tailwind_class,
                c.css_variable,
                int(variable.is_alias),
                variable.alias_target_id,
                now,
            ),
        )

    def get(self, variable_id: str) -> IndexedVariable | None:
        cursor = self.db.execute("SELECT * FROM variables WHERE id = ?", (variable_id,))
        row = cursor.fetchone()
        return self._row_to_variable(row) if row else None

    def get_by_daisyui_name(self, daisyui_name: str) -> IndexedVariable | None:
        """Look up the color variable classified under a DaisyUI name."""
        cursor = self.db.execute(
            """
            SELECT * FROM variables WHERE daisyui_name = ?
            ORDER BY resolved_type = 'COLOR' DESC, name LIMIT 1
            """,
            (daisyui_name,),
        )
        row = cursor.fetchone()
        return self._row_to_variable(row) if row else None

    def find(self, filters: VariableFilters | None = None, limit: int = 10000) -> list[IndexedVariable]:
        where, params = (filters or VariableFilters()).apply(PredicateBuilder(), alias="").build()
        cursor = self.db.execute(
            f"SELECT * FROM variables {where} ORDER BY name LIMIT ?",
            (*params, limit),
        )
        return [self._row_to_variable(row) for row in cursor.fetchall()]

    def list_by_collection(self, collection_id: str, limit: int = 10000) -> list[IndexedVariable]:
        return self.find(VariableFilters(collection_id=collection_id), limit=limit)

    def list_by_type(self, resolved_type: ResolvedType | str, limit: int = 10000) -> list[IndexedVariable]:
        kind = resolved_type.value if isinstance(resolved_type, ResolvedType) else resolved_type
        return self.find(VariableFilters(resolved_type=kind), limit=limit)

    def list_by_token_type(self, token_type: TokenType, limit: int = 10000) -> list[IndexedVariable]:
        return self.find(VariableFilters(token_type=token_type.value), limit=limit)

    def list_colors(self, limit: int = 10000) -> list[IndexedVariable]:
        return self.list_by_type(ResolvedType.COLOR, limit=limit)

    def list_all(self, limit: int = 10000) -> list[IndexedVariable]:
        return self.find(limit=limit)

    def list_ids(self) -> set[str]:
        cursor = self.db.execute("SELECT id FROM variables")
        return {row["id"] for row in cursor.fetchall()}

    def delete(self, variable_id: str) -> bool:
        """Delete a variable with its mode values and bindings.

        Returns:
            True if a variable was deleted.
        """
        with self.db.transaction() as cursor:
            cursor.execute("DELETE FROM variables WHERE id = ?", (variable_id,))
            return cursor.rowcount > 0

    def upsert_mode_values(self, values: Iterable[VariableModeValue]) -> int:
        """Upsert per-mode values in a single transaction."""
        count = 0
        with self.db.transaction() as cursor:
            for value in values:
                cursor.execute(
                    """
                    INSERT INTO variable_mode_values (
                        variable_id, mode_id, mode_name, raw_value, hex, rgb, hsl,
                        float_value, string_value, boolean_value, is_alias, alias_variable_id
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(variable_id, mode_id) DO UPDATE SET
                        mode_name = excluded.mode_name,
                        raw_value = excluded.raw_value,
                        hex = excluded.hex,
                        rgb = excluded.rgb,
                        hsl = excluded.hsl,
                        float_value = excluded.float_value,
                        string_value = excluded.string_value,
                        boolean_value = excluded.boolean_value,
                        is_alias = excluded.is_alias,
                        alias_variable_id = excluded.alias_variable_id
                    """,
                    (
                        value.variable_id,
                        value.mode_id,
                        value.mode_name,
                        json.dumps(value.raw_value),
                        value.hex,
                        value.rgb,
                        value.hsl,
                        value.float_value,
                        value.string_value,
                        None if value.boolean_value is None else int(value.boolean_value),
                        int(value.is_alias),
                        value.alias_variable_id,
                    ),
                )
                count += 1
        return count

    def get_mode_values(self, variable_id: str) -> list[VariableModeValue]:
        cursor = self.db.execute(
            "SELECT * FROM variable_mode_values WHERE variable_id = ? ORDER BY id",
            (variable_id,),
        )
        return [self._row_to_mode_value(row) for row in cursor.fetchall()]

    def _row_to_mode_value(self, row: sqlite3.Row) -> VariableModeValue:
        boolean_value = row["boolean_value"]
        return VariableModeValue(
            variable_id=row["variable_id"],
            mode_id=row["mode_id"],
            mode_name=row["mode_name"],
            raw_value=json.loads(row["raw_value"]) if row["raw_value"] else None,
            hex=row["hex"],
            rgb=row["rgb"],
            hsl=row["hsl"],
            float_value=row["float_value"],
            string_value=row["string_value"],
            boolean_value=None if boolean_value is None else bool(boolean_value),
            is_alias=bool(row["is_alias"]),
            alias_variable_id=row["alias_variable_id"],
        )

    def _row_to_variable(self, row: sqlite3.Row) -> IndexedVariable:
        classification = VariableClassification(
            token_type=_enum_or_none(TokenType, row["token_type"]) or TokenType.UNKNOWN,
            color_system=_enum_or_none(ColorSystem, row["color_system"]),
            semantic_role=_enum_or_none(SemanticRole, row["semantic_role"]),
            daisyui_name=row["daisyui_name"],
            daisyui_category=row["daisyui_category"],
            tailwind_name=row["tailwind_name"],
            tailwind_shade=row["tailwind_shade"],
            tailwind_class=row["tailwind_class"],
            css_variable=row["css_variable"],
        )
        return IndexedVariable(
            id=row["id"],
            name=row["name"],
            collection_id=row["collection_id"],
            resolved_type=ResolvedType.parse(row["resolved_type"]),
            values_by_mode=json.loads(row["values_by_mode"]) if row["values_by_mode"] else {},
            description=row["description"],
            scopes=json.loads(row["scopes"]) if row["scopes"] else [],
            hex=row["hex"],
            rgb=row["rgb"],
            hsl=row["hsl"],
            classification=classification,
            is_alias=bool(row["is_alias"]),
            alias_target_id=row["alias_target_id"],
            last_synced=row["last_synced"],
        )


class VariableBindingRepository:
    """Repository for node property slots bound to variables."""

    def __init__(self, db: Database):
        self.db = db

    def upsert(self, binding: VariableBinding) -> None:
        self.bulk_upsert([binding])

    def bulk_upsert(self, bindings: Iterable[VariableBinding]) -> int:
        """Upsert bindings keyed by (node, property, index, field)."""
        count = 0
        with self.db.transaction() as cursor:
            now = utcnow_iso()
            for binding in bindings:
                cursor.execute(
                    """
                    INSERT INTO variable_bindings (
                        node_id, variable_id, property, property_index, field, last_synced
                    )
                    VALUES (?, ?, ?, ?, ?, ?)
                    ON CONFLICT(node_id, property, property_index, field) DO UPDATE SET
                        variable_id = excluded.variable_id,
                        last_synced = excluded.last_synced
                    """,
                    (
                        binding.node_id,
                        binding.variable_id,
                        binding.property,
                        binding.property_index,
                        binding.field,
                        now,
                    ),
                )
                count += 1
        return count

    def list_for_node(self, node_id: str) -> list[VariableBinding]:
        return self._select("node_id", node_id)

    def list_for_variable(self, variable_id: str) -> list[VariableBinding]:
        return self._select("variable_id", variable_id)

    def _select(self, column: str, value: Any) -> list[VariableBinding]:
        where, params = PredicateBuilder().equals(column, value).build()
        cursor = self.db.execute(
            f"SELECT * FROM variable_bindings {where} ORDER BY property, property_index, field",
            tuple(params),
        )
        return [
            VariableBinding(
                id=row["id"],
                node_id=row["node_id"],
                variable_id=row["variable_id"],
                property=row["property"],
                property_index=row["property_index"],
                field=row["field"],
            )
            for row in cursor.fetchall()
        ]
