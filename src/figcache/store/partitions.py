"""Per-document database partitions.

Each remote document gets its own database file in the cache directory,
named ``<prefix>-<safe-id>.<ext>``. At most one partition is open at a time;
switching documents closes the previous connection before opening the next.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

import fsspec
from loguru import logger

from ..core.types import CachedDocument
from .database import Database

if TYPE_CHECKING:
    from ..core.config import PartitionConfig

_UNSAFE_RE = re.compile(r"[^a-zA-Z0-9_-]")


def safe_document_id(document_id: str) -> str:
    """Map a document id onto a filesystem-safe identifier."""
    return _UNSAFE_RE.sub("_", document_id)


class PartitionManager:
    """Owns the single open index database and switches it per document.

    Example:
        partitions = PartitionManager(config.partition)
        partitions.activate("abc123")
        store = CacheStore(partitions.database)
    """

    def __init__(self, config: "PartitionConfig"):
        """Initialize PartitionManager.

        Args:
            config: Cache directory and file naming settings.
        """
        self._config = config
        self._cache_dir = Path(config.cache_dir).expanduser()
        self._fs = fsspec.filesystem("file")
        self._db: Database | None = None
        self._active_document_id: str | None = None
        self.switch_count = 0

    def safe_id(self, document_id: str) -> str:
        return safe_document_id(document_id)

    @property
    def cache_dir(self) -> Path:
        return self._cache_dir

    @property
    def active_document_id(self) -> str | None:
        return self._active_document_id

    @property
    def is_open(self) -> bool:
        return self._db is not None

    def path_for(self, document_id: str | None) -> Path:
        """Database path for a document; the legacy path when no id is given."""
        if not document_id:
            return Path(self._config.resolved_default_path()).expanduser()
        name = f"{self._config.prefix}-{safe_document_id(document_id)}.{self._config.extension}"
        return self._cache_dir / name

    @property
    def database(self) -> Database:
        """The open database, opening the legacy default when nothing is active."""
        if self._db is None:
            self._open(self.path_for(None), None)
        assert self._db is not None
        return self._db

    def activate(self, document_id: str | None) -> bool:
        """Make a document's partition the active one.

        Args:
            document_id: Remote document id; None selects the legacy path.

        Returns:
            True if the active database changed, False if it was already open.

        Raises:
            DatabaseError: If the new database cannot be opened.
        """
        path = self.path_for(document_id)
        if self._db is not None and self._db.path == path:
            self._active_document_id = document_id
            return False

        self._open(path, document_id)
        self.switch_count += 1
        logger.info(f"Switched index partition to {document_id or 'default'}: {path}")
        return True

    def _open(self, path: Path, document_id: str | None) -> None:
        self.close()
        db = Database(path)
        db.connect()
        self._db = db
        self._active_document_id = document_id

    def close(self) -> None:
        """Close the active database, if any."""
        if self._db is not None:
            db, self._db = self._db, None
            db.close()
        self._active_document_id = None

    def list_cached_documents(self) -> list[CachedDocument]:
        """List every per-document database in the cache directory.

        Returns:
            CachedDocument entries sorted by most recently modified.
        """
        if not self._fs.exists(str(self._cache_dir)):
            return []

        prefix = f"{self._config.prefix}-"
        suffix = f".{self._config.extension}"
        pattern = str(self._cache_dir / f"{prefix}*{suffix}")

        documents = []
        for path in self._fs.glob(pattern):
            name = Path(path).name
            info = self._fs.info(path)
            modified = datetime.fromtimestamp(info.get("mtime", 0), tz=timezone.utc)
            documents.append(
                CachedDocument(
                    document_id=name[len(prefix) : -len(suffix)],
                    path=str(path),
                    size=int(info.get("size", 0)),
                    modified=modified.isoformat(),
                )
            )

        documents.sort(key=lambda d: d.modified, reverse=True)
        logger.debug(f"Found {len(documents)} cached document(s) in {self._cache_dir}")
        return documents

    def remove(self, document_id: str) -> bool:
        """Delete a document's database files, closing it first if active.

        Returns:
            True if the main database file existed.
        """
        path = self.path_for(document_id)
        if self._db is not None and self._db.path == path:
            self.close()

        existed = self._fs.exists(str(path))
        for candidate in (path, Path(f"{path}-wal"), Path(f"{path}-shm")):
            if self._fs.exists(str(candidate)):
                self._fs.rm(str(candidate))
        if existed:
            logger.info(f"Removed cached index for {document_id}: {path}")
        return existed
