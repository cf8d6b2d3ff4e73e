"""Schema migrations for the per-document index.

Versions are tracked with SQLite's PRAGMA user_version and mirrored to the
``schema_version`` key of the sync_meta table.

Example:
    from figcache.store.migrations import MigrationRunner

    runner = MigrationRunner(connection)
    applied = runner.run()
"""

from .runner import Migration, MigrationRunner

__all__ = [
    "Migration",
    "MigrationRunner",
]
