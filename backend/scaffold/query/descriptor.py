"""Query descriptor handed to data-access collaborators."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from scaffold.query.filters import FilterExpression

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from scaffold.query.spec import SortSpec


@dataclass(frozen=True, slots=True)
class PaginationWindow:
    """Slice of an ordered result set.

    :param limit: Maximum number of rows to return.
    :type limit: int
    :param offset: Number of leading rows to skip.
    :type offset: int
    """

    limit: int
    offset: int


@dataclass(frozen=True, slots=True)
class QueryDescriptor:
    """Storage-agnostic description of a single list query.

    :param filter: Filter tree, ``None`` when unconstrained. When a free-text
        search is active this is an :class:`~scaffold.query.filters.Or` of
        conjunctive branches.
    :type filter: FilterExpression | None
    :param sort: Ordered sort keys; the first entry is the primary key.
    :type sort: tuple[SortSpec, ...]
    :param projection: Field names to fetch, ``None`` for every field.
    :type projection: tuple[str, ...] | None
    :param window: Pagination window, ``None`` when every row is requested.
    :type window: PaginationWindow | None
    :param relations: Related-entity names to eager-load, unvalidated.
    :type relations: tuple[str, ...]
    """

    filter: FilterExpression | None
    sort: tuple[SortSpec, ...]
    projection: tuple[str, ...] | None = None
    window: PaginationWindow | None = None
    relations: tuple[str, ...] = field(default_factory=tuple)

    @property
    def limit(self) -> int | None:
        return self.window.limit if self.window else None

    @property
    def offset(self) -> int | None:
        return self.window.offset if self.window else None

    def to_dict(self) -> Mapping[str, Any]:
        """Return a loggable summary (the filter tree is reduced to its fields)."""
        return {
            "filter_fields": sorted(self.filter.fields()) if self.filter is not None else [],
            "sort": [f"{s.field}:{s.direction.value}" for s in self.sort],
            "projection": list(self.projection) if self.projection is not None else None,
            "limit": self.limit,
            "offset": self.offset,
            "relations": list(self.relations),
        }


__all__ = ["PaginationWindow", "QueryDescriptor"]
