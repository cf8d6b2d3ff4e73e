"""Configuration management for figcache."""

import os
import tomllib
from dataclasses import dataclass, field, fields, is_dataclass
from pathlib import Path
from typing import Any

from .exceptions import ConfigError
from .instrumentation import TracingConfig


def _default_cache_dir() -> Path:
    """Get default cache directory for per-document databases."""
    cache_root = Path(os.environ.get("XDG_CACHE_HOME", Path.home() / ".cache"))
    return cache_root / "figcache"


@dataclass
class PartitionConfig:
    """Per-document database file layout."""

    cache_dir: Path = field(default_factory=_default_cache_dir)
    # Used only when no document id has ever been supplied
    default_path: Path | None = None
    prefix: str = "figma-index"
    extension: str = "db"

    def resolved_default_path(self) -> Path:
        """Legacy single-document database path."""
        if self.default_path is not None:
            return self.default_path
        return self.cache_dir / f"{self.prefix}.{self.extension}"


@dataclass
class SyncConfig:
    """Staleness and invalidation policy."""

    stale_after_seconds: float = 300.0
    retry_interval_seconds: float = 60.0
    # Invalidate when aggregated property changes exceed this count
    invalidation_property_threshold: int = 5


@dataclass
class SearchConfig:
    """Result caps for queries."""

    default_limit: int = 20
    type_limit: int = 100
    class_limit: int = 50
    list_limit: int = 10000


@dataclass
class Config:
    """Main application configuration."""

    partition: PartitionConfig = field(default_factory=PartitionConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    tracing: TracingConfig = field(default_factory=TracingConfig)

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        config = cls()
        config.apply_env()
        return config

    @classmethod
    def from_file(cls, path: Path | str) -> "Config":
        """Load configuration from a TOML file, then apply env overrides.

        Args:
            path: Path to the TOML file.

        Raises:
            ConfigError: If the file cannot be read or parsed.
        """
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise ConfigError(f"Failed to load config file {path}: {e}") from e

        config = cls()
        for section in fields(config):
            table = data.get(section.name)
            if isinstance(table, dict):
                _apply_table(getattr(config, section.name), table)
        config.apply_env()
        return config

    @classmethod
    def from_env_or_file(cls, path: Path | str | None = None) -> "Config":
        """Load from an explicit file, FIGCACHE_CONFIG, or the environment."""
        config_path = path or os.environ.get("FIGCACHE_CONFIG")
        if config_path:
            return cls.from_file(config_path)
        return cls.from_env()

    def apply_env(self) -> None:
        """Apply environment variable overrides in place."""
        if cache_dir := os.environ.get("FIGMA_CACHE_DIR"):
            self.partition.cache_dir = Path(cache_dir)
        if index_path := os.environ.get("FIGMA_INDEX_PATH"):
            self.partition.default_path = Path(index_path)

        if stale := os.environ.get("FIGCACHE_STALE_SECONDS"):
            self.sync.stale_after_seconds = _parse_number("FIGCACHE_STALE_SECONDS", stale, float)
        if retry := os.environ.get("FIGCACHE_RETRY_SECONDS"):
            self.sync.retry_interval_seconds = _parse_number("FIGCACHE_RETRY_SECONDS", retry, float)
        if threshold := os.environ.get("FIGCACHE_INVALIDATION_THRESHOLD"):
            self.sync.invalidation_property_threshold = _parse_number(
                "FIGCACHE_INVALIDATION_THRESHOLD", threshold, int
            )

        if tracing := os.environ.get("FIGCACHE_TRACING"):
            self.tracing.enabled = tracing.lower() in ("1", "true", "yes", "on")
        if endpoint := os.environ.get("FIGCACHE_PHOENIX_ENDPOINT"):
            self.tracing.phoenix_endpoint = endpoint


def _parse_number(name: str, value: str, kind: type) -> Any:
    try:
        return kind(value)
    except ValueError as e:
        raise ConfigError(f"Invalid value for {name}: {value!r}") from e


def _apply_table(target: Any, table: dict[str, Any]) -> None:
    """Copy known keys from a TOML table onto a config dataclass."""
    if not is_dataclass(target):
        return
    for f in fields(target):
        if f.name not in table:
            continue
        value = table[f.name]
        current = getattr(target, f.name)
        if isinstance(current, Path) or f.name.endswith(("_dir", "_path")):
            value = Path(value).expanduser()
        setattr(target, f.name, value)
