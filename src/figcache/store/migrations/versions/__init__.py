"""Migration version modules.

Each module in this package represents a schema migration.
Modules must define:
    VERSION: int - The version number (must be unique and sequential)
    DESCRIPTION: str - Human-readable description
    up(conn): Function that applies the migration

Every migration must be safe to re-apply: use IF NOT EXISTS guards and
check PRAGMA table_info before adding columns.
"""
