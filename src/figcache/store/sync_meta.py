"""Key/value sync bookkeeping."""

from .database import Database

LAST_FULL_SYNC = "last_full_sync"
DOCUMENT_NAME = "document_name"
DOCUMENT_ID = "document_id"
SCHEMA_VERSION = "schema_version"
INDEX_INVALIDATED = "index_invalidated"
INVALIDATION_REASON = "invalidation_reason"


class SyncMetaRepository:
    """Generic key/value store for out-of-band sync state."""

    def __init__(self, db: Database):
        self.db = db

    def get(self, key: str) -> str | None:
        cursor = self.db.execute("SELECT value FROM sync_meta WHERE key = ?", (key,))
        row = cursor.fetchone()
        return row["value"] if row else None

    def set(self, key: str, value: str) -> None:
        with self.db.transaction() as cursor:
            cursor.execute(
                """
                INSERT INTO sync_meta (key, value, updated_at)
                VALUES (?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                (key, value),
            )

    def set_many(self, values: dict[str, str]) -> None:
        """Write several keys in one transaction."""
        with self.db.transaction() as cursor:
            for key, value in values.items():
                cursor.execute(
                    """
                    INSERT INTO sync_meta (key, value, updated_at)
                    VALUES (?, ?, CURRENT_TIMESTAMP)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = excluded.updated_at
                    """,
                    (key, value),
                )

    def delete(self, key: str) -> bool:
        with self.db.transaction() as cursor:
            cursor.execute("DELETE FROM sync_meta WHERE key = ?", (key,))
            return cursor.rowcount > 0

    def all(self) -> dict[str, str]:
        cursor = self.db.execute("SELECT key, value FROM sync_meta ORDER BY key")
        return {row["key"]: row["value"] for row in cursor.fetchall()}

    def is_invalidated(self) -> bool:
        return self.get(INDEX_INVALIDATED) == "true"
