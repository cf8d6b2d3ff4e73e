"""Remote design source contract consumed by the index."""

from .base import (
    ChangeDetails,
    ChangeFeed,
    ChangeHandler,
    ChangeNotification,
    ChangeType,
    DesignSource,
    DocumentInfo,
    PageRef,
)

__all__ = [
    "ChangeDetails",
    "ChangeFeed",
    "ChangeHandler",
    "ChangeNotification",
    "ChangeType",
    "DesignSource",
    "DocumentInfo",
    "PageRef",
]
