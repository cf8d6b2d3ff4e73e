"""Page storage."""

import json
import sqlite3
from typing import Iterable

from ..core.types import IndexedPage
from ..utils.clock import utcnow_iso
from .database import Database

_UPSERT_SQL = """
    INSERT INTO pages (
        id, name, node_count, component_count, frame_count,
        summary, main_sections, last_synced
    )
    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
    ON CONFLICT(id) DO UPDATE SET
        name = excluded.name,
        node_count = excluded.node_count,
        component_count = excluded.component_count,
        frame_count = excluded.frame_count,
        summary = excluded.summary,
        main_sections = excluded.main_sections,
        last_synced = excluded.last_synced
"""


class PageRepository:
    """Repository for top-level pages."""

    def __init__(self, db: Database):
        self.db = db

    def upsert(self, page: IndexedPage) -> None:
        with self.db.transaction() as cursor:
            self._upsert(cursor, page, utcnow_iso())

    def bulk_upsert(self, pages: Iterable[IndexedPage]) -> int:
        """Upsert many pages in a single transaction."""
        count = 0
        with self.db.transaction() as cursor:
            for page in pages:
                self._upsert(cursor, page, utcnow_iso())
                count += 1
        return count

    def ensure_skeletons(self, pages: Iterable[tuple[str, str]]) -> int:
        """Create missing pages from ``(id, name)`` pairs, renaming existing ones.

        Aggregates of existing pages are left untouched so nodes can be
        written against them before counts are recomputed.

        Returns:
            Number of pages written.
        """
        count = 0
        with self.db.transaction() as cursor:
            now = utcnow_iso()
            for page_id, name in pages:
                cursor.execute(
                    """
                    INSERT INTO pages (id, name, main_sections, last_synced)
                    VALUES (?, ?, '[]', ?)
                    ON CONFLICT(id) DO UPDATE SET name = excluded.name
                    """,
                    (page_id, name, now),
                )
                count += 1
        return count

    def _upsert(self, cursor: sqlite3.Cursor, page: IndexedPage, now: str) -> None:
        cursor.execute(
            _UPSERT_SQL,
            (
                page.id,
                page.name,
                page.node_count,
                page.component_count,
                page.frame_count,
                page.summary,
                json.dumps(page.main_sections),
                now,
            ),
        )

    def get(self, page_id: str) -> IndexedPage | None:
        cursor = self.db.execute("SELECT * FROM pages WHERE id = ?", (page_id,))
        row = cursor.fetchone()
        return self._row_to_page(row) if row else None

    def find(self, id_or_name: str) -> IndexedPage | None:
        """Look up a page by id, falling back to an exact name match."""
        cursor = self.db.execute(
            "SELECT * FROM pages WHERE id = ? OR name = ? ORDER BY id = ? DESC LIMIT 1",
            (id_or_name, id_or_name, id_or_name),
        )
        row = cursor.fetchone()
        return self._row_to_page(row) if row else None

    def list_all(self) -> list[IndexedPage]:
        cursor = self.db.execute("SELECT * FROM pages ORDER BY name")
        return [self._row_to_page(row) for row in cursor.fetchall()]

    def _row_to_page(self, row: sqlite3.Row) -> IndexedPage:
        return IndexedPage(
            id=row["id"],
            name=row["name"],
            node_count=row["node_count"] or 0,
            component_count=row["component_count"] or 0,
            frame_count=row["frame_count"] or 0,
            summary=row["summary"],
            main_sections=json.loads(row["main_sections"]) if row["main_sections"] else [],
            last_synced=row["last_synced"],
        )
