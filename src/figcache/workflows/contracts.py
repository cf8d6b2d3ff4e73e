"""Workflow contracts and data types.

Inputs and outputs of the ingestion pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

ProgressCallback = Callable[[int, int, str], None]
"""Called as ``(pages_done, pages_total, page_name)`` after each page."""

__all__ = [
    "IngestionRequest",
    "IngestionResult",
    "ProgressCallback",
]


@dataclass
class IngestionRequest:
    """Options for one ingestion run.

    Attributes:
        pages: Page names to ingest; None ingests every page.
        force_rebuild: Clear the whole index before ingesting.
        include_variables: Run the best-effort variable phase.
        progress_callback: Optional per-page progress hook.
    """

    pages: list[str] | None = None
    force_rebuild: bool = False
    include_variables: bool = True
    progress_callback: ProgressCallback | None = None


@dataclass
class IngestionResult:
    """Result of an ingestion run."""

    nodes_indexed: int = 0
    """Number of nodes upserted."""

    components_found: int = 0
    """Number of COMPONENT nodes upserted as components."""

    pages_synced: list[str] = field(default_factory=list)
    """Names of the pages whose nodes were walked."""

    collections_indexed: int = 0
    variables_indexed: int = 0
    bindings_indexed: int = 0

    variable_error: str | None = None
    """Error swallowed by the variable phase, if any."""

    document_name: str | None = None
    elapsed_ms: float = 0.0
