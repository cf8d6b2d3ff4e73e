"""Hashing utilities for figcache."""

import hashlib
import json
from typing import Any


def sha256_hash(content: str) -> str:
    """Calculate SHA256 hash of content.

    Args:
        content: Text content to hash.

    Returns:
        Hexadecimal SHA256 hash string.
    """
    return hashlib.sha256(content.encode()).hexdigest()


def fingerprint(fields: dict[str, Any], length: int = 16) -> str:
    """Short, stable fingerprint of a JSON-serializable mapping.

    Used for cheap change detection only; not an integrity check.

    Args:
        fields: Values that identify the visual state of a record.
        length: Number of hex characters to keep.

    Returns:
        Truncated SHA256 hex digest of the canonical JSON encoding.
    """
    canonical = json.dumps(fields, sort_keys=True, separators=(",", ":"), default=str)
    return sha256_hash(canonical)[:length]
