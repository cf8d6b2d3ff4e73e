"""Typed filters and parameterized predicate composition.

Column names always come from the filter classes below, never from callers;
only values are bound as parameters.
"""

from dataclasses import dataclass
from typing import Any, Optional


class PredicateBuilder:
    """Accumulates ``AND``-joined predicates with their parameters.

    Example:
        builder = PredicateBuilder(["nodes_fts MATCH ?"], [expression])
        builder.equals("n.type", filters.type)
        where, params = builder.build()
    """

    def __init__(self, clauses: list[str] | None = None, params: list[Any] | None = None):
        self._clauses = list(clauses or [])
        self._params = list(params or [])

    def equals(self, column: str, value: Any) -> "PredicateBuilder":
        """Add ``column = ?`` unless value is None."""
        if value is not None:
            self._clauses.append(f"{column} = ?")
            self._params.append(value)
        return self

    def is_not_null(self, column: str) -> "PredicateBuilder":
        self._clauses.append(f"{column} IS NOT NULL")
        return self

    def build(self) -> tuple[str, list[Any]]:
        """Return ``(where_clause, params)``; the clause is empty when unfiltered."""
        if not self._clauses:
            return "", list(self._params)
        return "WHERE " + " AND ".join(self._clauses), list(self._params)


@dataclass
class NodeFilters:
    """Optional filters for node queries."""

    type: Optional[str] = None
    page_id: Optional[str] = None
    category: Optional[str] = None

    def apply(self, builder: PredicateBuilder, alias: str = "n") -> PredicateBuilder:
        prefix = f"{alias}." if alias else ""
        builder.equals(f"{prefix}type", self.type)
        builder.equals(f"{prefix}page_id", self.page_id)
        builder.equals(f"{prefix}daisyui_component", self.category)
        return builder


@dataclass
class ComponentFilters:
    """Optional filters for component queries."""

    category: Optional[str] = None

    def apply(self, builder: PredicateBuilder, alias: str = "c") -> PredicateBuilder:
        prefix = f"{alias}." if alias else ""
        builder.equals(f"{prefix}category", self.category)
        return builder


@dataclass
class VariableFilters:
    """Optional filters for variable queries."""

    resolved_type: Optional[str] = None
    collection_id: Optional[str] = None
    token_type: Optional[str] = None

    def apply(self, builder: PredicateBuilder, alias: str = "v") -> PredicateBuilder:
        prefix = f"{alias}." if alias else ""
        builder.equals(f"{prefix}resolved_type", self.resolved_type)
        builder.equals(f"{prefix}collection_id", self.collection_id)
        builder.equals(f"{prefix}token_type", self.token_type)
        return builder
