"""One SQLite file per indexed document."""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from loguru import logger

from ..core.exceptions import DatabaseError, MigrationError
from .migrations import MigrationRunner

_CONNECT_PRAGMAS = (
    "PRAGMA journal_mode = WAL",
    "PRAGMA foreign_keys = ON",
)


class Database:
    """Owns the connection to a partition's index file.

    ``connect()`` creates the parent directory if needed, switches the file to
    WAL, enforces foreign keys and upgrades the schema before anything else
    touches it. Stores share one ``Database`` and write through
    ``transaction()``.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._connection: sqlite3.Connection | None = None

    @property
    def is_connected(self) -> bool:
        return self._connection is not None

    def _require(self) -> sqlite3.Connection:
        if self._connection is None:
            raise DatabaseError(f"Database not connected: {self.path}")
        return self._connection

    def connect(self) -> None:
        """Open the file and migrate it.

        Raises:
            MigrationError: A schema upgrade failed; the connection is dropped.
            DatabaseError: The file could not be opened or configured.
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self.path))
            self._connection = conn
            conn.row_factory = sqlite3.Row
            for pragma in _CONNECT_PRAGMAS:
                conn.execute(pragma)
            MigrationRunner(conn).run()
        except MigrationError:
            self._drop()
            raise
        except Exception as e:
            self._drop()
            raise DatabaseError(f"Failed to connect to {self.path}: {e}") from e
        logger.debug(f"Opened index {self.path}")

    def close(self) -> None:
        conn, self._connection = self._connection, None
        if conn is None:
            return
        try:
            conn.close()
        except Exception as e:
            raise DatabaseError(f"Failed to close {self.path}: {e}") from e
        logger.debug(f"Closed index {self.path}")

    def _drop(self) -> None:
        conn, self._connection = self._connection, None
        if conn is not None:
            conn.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Cursor]:
        """Yield a cursor whose statements commit together.

        Any exception inside the block rolls everything back and surfaces as
        DatabaseError.
        """
        conn = self._require()
        cursor = conn.cursor()
        try:
            yield cursor
            conn.commit()
        except Exception as e:
            conn.rollback()
            raise DatabaseError(f"Transaction failed: {e}") from e
        finally:
            cursor.close()

    def execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        """Run one statement outside an explicit transaction, usually a read."""
        conn = self._require()
        try:
            return conn.execute(sql, params)
        except sqlite3.Error as e:
            raise DatabaseError(f"Query failed: {e}") from e

    def executescript(self, sql: str) -> None:
        conn = self._require()
        try:
            conn.executescript(sql)
        except sqlite3.Error as e:
            raise DatabaseError(f"Script failed: {e}") from e
