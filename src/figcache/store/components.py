"""Component library storage."""

import json
import sqlite3
from typing import Iterable

from ..core.types import IndexedComponent
from ..utils.clock import utcnow_iso
from .database import Database

_UPSERT_SQL = """
    INSERT INTO components (
        key, name, category, subcategory, figma_id, daisyui_class,
        tailwind_base, variants, description, usage_hint, last_synced
    )
    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
    ON CONFLICT(key) DO UPDATE SET
        name = excluded.name,
        category = excluded.category,
        subcategory = excluded.subcategory,
        figma_id = excluded.figma_id,
        daisyui_class = excluded.daisyui_class,
        tailwind_base = excluded.tailwind_base,
        variants = excluded.variants,
        description = excluded.description,
        usage_hint = excluded.usage_hint,
        last_synced = excluded.last_synced
"""


class ComponentRepository:
    """Repository for reusable components keyed by their stable key.

    Usage statistics are owned by consumers: upserts never touch
    ``usage_count`` or ``last_used``.
    """

    def __init__(self, db: Database):
        self.db = db

    def upsert(self, component: IndexedComponent) -> None:
        with self.db.transaction() as cursor:
            self._upsert(cursor, component, utcnow_iso())

    def bulk_upsert(self, components: Iterable[IndexedComponent]) -> int:
        """Upsert many components in a single transaction."""
        count = 0
        with self.db.transaction() as cursor:
            for component in components:
                self._upsert(cursor, component, utcnow_iso())
                count += 1
        return count

    def _upsert(self, cursor: sqlite3.Cursor, component: IndexedComponent, now: str) -> None:
        cursor.execute(
            _UPSERT_SQL,
            (
                component.key,
                component.name,
                component.category,
                component.subcategory,
                component.figma_id,
                component.daisyui_class,
                component.tailwind_base,
                json.dumps(component.variants) if component.variants is not None else None,
                component.description,
                component.usage_hint,
                now,
            ),
        )

    def get(self, key: str) -> IndexedComponent | None:
        cursor = self.db.execute("SELECT * FROM components WHERE key = ?", (key,))
        row = cursor.fetchone()
        return self._row_to_component(row) if row else None

    def get_by_class(self, daisyui_class: str) -> IndexedComponent | None:
        """Most used component carrying a UI class."""
        cursor = self.db.execute(
            "SELECT * FROM components WHERE daisyui_class = ? ORDER BY usage_count DESC LIMIT 1",
            (daisyui_class,),
        )
        row = cursor.fetchone()
        return self._row_to_component(row) if row else None

    def list_by_category(self, category: str, limit: int = 20) -> list[IndexedComponent]:
        cursor = self.db.execute(
            """
            SELECT * FROM components WHERE category = ?
            ORDER BY usage_count DESC, name LIMIT ?
            """,
            (category, limit),
        )
        return [self._row_to_component(row) for row in cursor.fetchall()]

    def list_all(self, limit: int = 10000) -> list[IndexedComponent]:
        cursor = self.db.execute(
            "SELECT * FROM components ORDER BY category, name LIMIT ?", (limit,)
        )
        return [self._row_to_component(row) for row in cursor.fetchall()]

    def increment_usage(self, key: str) -> bool:
        """Bump the usage counter and last-used time.

        Returns:
            True if the component exists.
        """
        with self.db.transaction() as cursor:
            cursor.execute(
                """
                UPDATE components
                SET usage_count = usage_count + 1, last_used = ?
                WHERE key = ?
                """,
                (utcnow_iso(), key),
            )
            return cursor.rowcount > 0

    def _row_to_component(self, row: sqlite3.Row) -> IndexedComponent:
        return IndexedComponent(
            id=row["id"],
            key=row["key"],
            name=row["name"],
            category=row["category"],
            subcategory=row["subcategory"],
            figma_id=row["figma_id"],
            daisyui_class=row["daisyui_class"],
            tailwind_base=row["tailwind_base"],
            variants=json.loads(row["variants"]) if row["variants"] else None,
            description=row["description"],
            usage_hint=row["usage_hint"],
            usage_count=row["usage_count"] or 0,
            last_used=row["last_used"],
            last_synced=row["last_synced"],
        )
