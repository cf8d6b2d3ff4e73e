"""Custom exceptions for figcache."""


class FigCacheError(Exception):
    """Base exception for all figcache errors."""

    pass


class ConfigError(FigCacheError):
    """Configuration could not be loaded or is invalid."""

    pass


class DatabaseError(FigCacheError):
    """Database operation failed."""

    pass


class MigrationError(DatabaseError):
    """Schema migration failed."""

    def __init__(self, version: int, reason: str):
        """Initialize exception with the failing migration version.

        Args:
            version: Version number of the migration that failed.
            reason: Underlying error message.
        """
        self.version = version
        self.reason = reason
        super().__init__(f"Migration {version} failed: {reason}")


class SourceError(FigCacheError):
    """Remote design source operation failed."""

    pass


class SourceUnavailableError(SourceError):
    """Remote design source is not connected."""

    pass


class SyncError(FigCacheError):
    """Index synchronization failed."""

    pass


class SyncInProgressError(SyncError):
    """A sync is already running in this process."""

    def __init__(self) -> None:
        super().__init__("Sync already in progress")
