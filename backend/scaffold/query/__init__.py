"""List-query engine: parameter validation, descriptor building and response shaping."""

from __future__ import annotations

from .descriptor import PaginationWindow, QueryDescriptor
from .filters import And, Condition, FilterExpression, Operator, Or, equals_all
from .spec import (
    DateRangeFilter,
    PaginationMeta,
    QueryResponse,
    QuerySpec,
    SortDirection,
    SortSpec,
)

__all__ = [
    "And",
    "Condition",
    "DateRangeFilter",
    "FilterExpression",
    "Operator",
    "Or",
    "PaginationMeta",
    "PaginationWindow",
    "QueryDescriptor",
    "QueryResponse",
    "QuerySpec",
    "SortDirection",
    "SortSpec",
    "equals_all",
]
