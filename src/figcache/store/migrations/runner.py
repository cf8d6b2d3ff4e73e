"""Versioned schema upgrades for the per-document index.

Each module in the versions package declares ``VERSION``, ``DESCRIPTION``
and ``up(conn)``. The applied level lives in ``PRAGMA user_version`` and is
copied to ``sync_meta.schema_version`` so status reporting can read it with
an ordinary query. Every ``up`` is written to be safe on a store that already
has its changes.
"""

from __future__ import annotations

import importlib
import pkgutil
import sqlite3
from dataclasses import dataclass
from typing import Callable

from loguru import logger

from ...core.exceptions import MigrationError

VERSIONS_PACKAGE = "figcache.store.migrations.versions"

_RECORD_VERSION_SQL = """
INSERT INTO sync_meta (key, value, updated_at)
VALUES ('schema_version', ?, CURRENT_TIMESTAMP)
ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
"""


@dataclass
class Migration:
    version: int
    description: str
    up: Callable[[sqlite3.Connection], None]

    def __repr__(self) -> str:
        return f"Migration({self.version}, {self.description!r})"


def discover_migrations(package_name: str = VERSIONS_PACKAGE) -> list[Migration]:
    """Load every migration module of a package, ordered by version."""
    package = importlib.import_module(package_name)
    found: list[Migration] = []
    for info in pkgutil.iter_modules(package.__path__):
        if info.ispkg:
            continue
        module = importlib.import_module(f"{package_name}.{info.name}")
        version = getattr(module, "VERSION", None)
        up = getattr(module, "up", None)
        if version is None or up is None:
            logger.warning(f"Ignoring {info.name}: no VERSION or up()")
            continue
        found.append(Migration(version, getattr(module, "DESCRIPTION", info.name), up))
    return sorted(found, key=lambda m: m.version)


class MigrationRunner:
    """Brings one SQLite connection up to the latest schema.

    Example:
        runner = MigrationRunner(connection)
        runner.run()
        assert runner.is_up_to_date()
    """

    def __init__(self, connection: sqlite3.Connection, package: str = VERSIONS_PACKAGE):
        self.conn = connection
        self._package = package
        self._migrations: list[Migration] | None = None

    def get_version(self) -> int:
        return self.conn.execute("PRAGMA user_version").fetchone()[0]

    def get_migrations(self) -> list[Migration]:
        """Available migrations, loaded once per runner."""
        if self._migrations is None:
            self._migrations = discover_migrations(self._package)
        return self._migrations

    @property
    def latest_version(self) -> int:
        migrations = self.get_migrations()
        return migrations[-1].version if migrations else 0

    def is_up_to_date(self) -> bool:
        return self.get_version() >= self.latest_version

    def pending(self) -> list[Migration]:
        current = self.get_version()
        return [m for m in self.get_migrations() if m.version > current]

    def run(self) -> int:
        """Apply pending migrations, committing after each one.

        Returns:
            How many migrations ran.

        Raises:
            MigrationError: When a migration fails. It is rolled back; the
                ones before it in this run stay committed.
        """
        todo = self.pending()
        if not todo:
            logger.debug(f"Index schema is current (version {self.get_version()})")
            return 0

        for migration in todo:
            self._apply(migration)
        logger.info(f"Index schema upgraded to version {self.get_version()} ({len(todo)} step(s))")
        return len(todo)

    def _apply(self, migration: Migration) -> None:
        logger.info(f"Migrating index to version {migration.version}: {migration.description}")
        try:
            migration.up(self.conn)
            # PRAGMA cannot be parameterized
            self.conn.execute(f"PRAGMA user_version = {int(migration.version)}")
            self.conn.execute(_RECORD_VERSION_SQL, (str(migration.version),))
            self.conn.commit()
        except Exception as e:
            self.conn.rollback()
            logger.error(f"Migration to version {migration.version} failed: {e}")
            raise MigrationError(migration.version, str(e)) from e
