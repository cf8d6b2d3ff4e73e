"""Full-text search over nodes, components and variables.

Queries are turned into a disjunctive prefix expression: each whitespace
token becomes ``"token"*`` and tokens are joined with ``OR``. Punctuation is
stripped rather than escaped, so malformed input degrades to fewer matches
instead of an FTS5 syntax error.

    >>> build_match_expression("primary button")
    '"primary"* OR "button"*'

Results are ranked with ``bm25()``; lower scores are more relevant.
"""

import re
from dataclasses import dataclass
from typing import Generic, TypeVar

from loguru import logger

from ..core.types import IndexedComponent, IndexedNode, IndexedVariable
from .components import ComponentRepository
from .database import Database
from .filters import ComponentFilters, NodeFilters, PredicateBuilder, VariableFilters
from .nodes import NodeRepository
from .variables import VariableRepository

T = TypeVar("T")

_STRIP_RE = re.compile(r"[^\w\s]", re.UNICODE)


def build_match_expression(query: str) -> str | None:
    """Build an FTS5 MATCH expression from free text.

    Args:
        query: Raw user query.

    Returns:
        OR-joined prefix expression, or None when no tokens remain.
    """
    cleaned = _STRIP_RE.sub(" ", query or "")
    tokens = [token for token in cleaned.split() if token]
    if not tokens:
        return None
    return " OR ".join(f'"{token}"*' for token in tokens)


@dataclass
class SearchHit(Generic[T]):
    """A search match with its bm25 relevance (lower is better)."""

    record: T
    relevance: float


class FTS5SearchRepository:
    """BM25 full-text search joined back to the primary tables.

    Example:
        >>> repo = FTS5SearchRepository(db)
        >>> hits = repo.search_nodes("login card", NodeFilters(type="FRAME"))
        >>> hits[0].record.figma_id
    """

    def __init__(self, db: Database):
        """Initialize with database connection.

        Args:
            db: Database instance to use for operations.
        """
        self.db = db
        self._nodes = NodeRepository(db)
        self._components = ComponentRepository(db)
        self._variables = VariableRepository(db)

    def search_nodes(
        self,
        query: str,
        filters: NodeFilters | None = None,
        limit: int = 20,
    ) -> list[SearchHit[IndexedNode]]:
        """Search node names, paths, UI classes and test ids."""
        expression = build_match_expression(query)
        if expression is None:
            return []

        builder = PredicateBuilder(["nodes_fts MATCH ?"], [expression])
        where, params = (filters or NodeFilters()).apply(builder, alias="n").build()
        cursor = self.db.execute(
            f"""
            SELECT n.*, bm25(nodes_fts) AS relevance
            FROM nodes_fts
            JOIN nodes n ON nodes_fts.rowid = n.id
            {where}
            ORDER BY relevance
            LIMIT ?
            """,
            (*params, limit),
        )
        rows = cursor.fetchall()
        logger.debug(f"Node search {expression!r}: {len(rows)} hit(s)")
        return [SearchHit(self._nodes._row_to_node(row), row["relevance"]) for row in rows]

    def search_components(
        self,
        query: str,
        filters: ComponentFilters | None = None,
        limit: int = 20,
    ) -> list[SearchHit[IndexedComponent]]:
        """Search component names, categories, classes and usage hints.

        Ties in relevance go to the most used component.
        """
        expression = build_match_expression(query)
        if expression is None:
            return []

        builder = PredicateBuilder(["components_fts MATCH ?"], [expression])
        where, params = (filters or ComponentFilters()).apply(builder, alias="c").build()
        cursor = self.db.execute(
            f"""
            SELECT c.*, bm25(components_fts) AS relevance
            FROM components_fts
            JOIN components c ON components_fts.rowid = c.id
            {where}
            ORDER BY relevance, c.usage_count DESC
            LIMIT ?
            """,
            (*params, limit),
        )
        return [
            SearchHit(self._components._row_to_component(row), row["relevance"])
            for row in cursor.fetchall()
        ]

    def search_variables(
        self,
        query: str,
        filters: VariableFilters | None = None,
        limit: int = 20,
    ) -> list[SearchHit[IndexedVariable]]:
        """Search variable names and classification tags."""
        expression = build_match_expression(query)
        if expression is None:
            return []

        builder = PredicateBuilder(["variables_fts MATCH ?"], [expression])
        where, params = (filters or VariableFilters()).apply(builder, alias="v").build()
        cursor = self.db.execute(
            f"""
            SELECT v.*, bm25(variables_fts) AS relevance
            FROM variables_fts
            JOIN variables v ON variables_fts.rowid = v.rowid
            {where}
            ORDER BY relevance
            LIMIT ?
            """,
            (*params, limit),
        )
        return [
            SearchHit(self._variables._row_to_variable(row), row["relevance"])
            for row in cursor.fetchall()
        ]
