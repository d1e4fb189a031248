"""Generic query specification and pagination engine.

A :class:`QuerySpec` is built once per inbound list request from raw query
parameters, turned into exactly one :class:`~scaffold.query.descriptor.QueryDescriptor`
for the data-access layer, and used again to shape the fetched rows into a
:class:`QueryResponse` envelope.

Design decisions
----------------
* The engine is generic over entity types through an explicit collection of
  valid public field names supplied by the caller (usually the keys of a
  repository's queryable-field whitelist), never through introspection.
* Instances are immutable and hold no shared state; the only external input is
  the clock reading used to close an open-ended date range.
* Validation is fail-slow: every violation is collected into one
  :class:`marshmallow.ValidationError` keyed by parameter name.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Collection, Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Generic, TypeVar

from marshmallow import ValidationError

from scaffold.query.descriptor import PaginationWindow, QueryDescriptor
from scaffold.query.filters import FilterExpression, and_, between, contains, or_

T = TypeVar("T")

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
DEFAULT_SORT_FIELD = "createdAt"
DATE_RANGE_FIELD = "createdAt"
EPOCH_START = datetime(1970, 1, 1, tzinfo=timezone.utc)


# ------------------------------- Value types ---------------------------------


class SortDirection(str, Enum):
    """Sort direction accepted by ``order`` and ``sorts``."""

    ASC = "ASC"
    DESC = "DESC"


@dataclass(frozen=True, slots=True)
class SortSpec:
    """One ``(field, direction)`` sort key.

    :param field: Public field name.
    :type field: str
    :param direction: Ordering direction; defaults to descending.
    :type direction: SortDirection
    """

    field: str
    direction: SortDirection = SortDirection.DESC

    @property
    def is_desc(self) -> bool:
        return self.direction is SortDirection.DESC


@dataclass(frozen=True, slots=True)
class DateRangeFilter:
    """Optional bounds on ``createdAt``.

    :param start: Inclusive lower bound (``dateRange.from``).
    :type start: datetime | None
    :param end: Inclusive upper bound (``dateRange.to``).
    :type end: datetime | None
    """

    start: datetime | None = None
    end: datetime | None = None

    def resolve(self, now: datetime) -> tuple[datetime, datetime] | None:
        """Close the interval, filling a missing bound.

        * both bounds: ``[start, end]``
        * only ``start``: ``[start, now]``
        * only ``end``: ``[1970-01-01T00:00:00Z, end]``
        * neither: ``None`` (no constraint)

        :param now: Clock reading taken when the descriptor is built.
        :type now: datetime
        :returns: Closed interval or ``None``.
        :rtype: tuple[datetime, datetime] | None
        """
        if self.start is None and self.end is None:
            return None
        low = self.start if self.start is not None else EPOCH_START
        high = self.end if self.end is not None else now
        return low, high


@dataclass(frozen=True, slots=True)
class PaginationMeta:
    """Pagination metadata derived from ``(page, page_size, total_items)``."""

    page: int
    page_size: int
    total_items: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool

    @classmethod
    def compute(cls, *, page: int, page_size: int, total_items: int) -> PaginationMeta:
        """Derive the metadata block.

        :param page: 1-based current page.
        :type page: int
        :param page_size: Page size (``>= 1``).
        :type page_size: int
        :param total_items: Rows matching the filters, ignoring the window.
        :type total_items: int
        :returns: Metadata with ``total_pages = ceil(total_items / page_size)``.
        :rtype: PaginationMeta
        """
        total_pages = math.ceil(total_items / page_size)
        return cls(
            page=page,
            page_size=page_size,
            total_items=total_items,
            total_pages=total_pages,
            has_next_page=page < total_pages,
            has_previous_page=page > 1,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "page": self.page,
            "limit": self.page_size,
            "totalItems": self.total_items,
            "totalPages": self.total_pages,
            "hasNextPage": self.has_next_page,
            "hasPreviousPage": self.has_previous_page,
        }


@dataclass(frozen=True, slots=True)
class QueryResponse(Generic[T]):
    """Response envelope ``{data, pagination?}``.

    :param data: Rows in storage order.
    :type data: Sequence[T]
    :param pagination: Metadata, ``None`` when every row was requested.
    :type pagination: PaginationMeta | None
    """

    data: Sequence[T]
    pagination: PaginationMeta | None = None

    def to_dict(self, serialize: Callable[[Sequence[T]], Any] | None = None) -> dict[str, Any]:
        """Return a JSON-ready mapping.

        The ``pagination`` key is left out entirely when there is no metadata.

        :param serialize: Optional callable turning ``data`` into primitives
            (for example a marshmallow ``Schema(many=True).dump``).
        :type serialize: Callable | None
        :returns: ``{"data": ..., "pagination": {...}}``.
        :rtype: dict[str, Any]
        """
        body: dict[str, Any] = {
            "data": serialize(self.data) if serialize is not None else list(self.data)
        }
        if self.pagination is not None:
            body["pagination"] = self.pagination.to_dict()
        return body


# -------------------------------- QuerySpec ----------------------------------


@dataclass(frozen=True, slots=True)
class QuerySpec:
    """Validated client query description.

    :param search_text: Free-text term (``q``).
    :type search_text: str | None
    :param return_all: Bypass pagination entirely (``all``).
    :type return_all: bool
    :param page: 1-based page number (``page``).
    :type page: int
    :param page_size: Rows per page, ``1..100`` (``limit``).
    :type page_size: int
    :param sort_field: Single sort field (``sortBy``).
    :type sort_field: str
    :param sort_direction: Single sort direction (``order``).
    :type sort_direction: SortDirection
    :param multi_sort: Prioritised sort keys (``sorts``); overrides the single
        sort pair when present.
    :type multi_sort: tuple[SortSpec, ...] | None
    :param date_range: Bounds on ``createdAt`` (``dateRange.from``/``dateRange.to``).
    :type date_range: DateRangeFilter | None
    :param projected_fields: Fields to fetch (``fields``).
    :type projected_fields: tuple[str, ...] | None
    """

    search_text: str | None = None
    return_all: bool = False
    page: int = DEFAULT_PAGE
    page_size: int = DEFAULT_PAGE_SIZE
    sort_field: str = DEFAULT_SORT_FIELD
    sort_direction: SortDirection = SortDirection.DESC
    multi_sort: tuple[SortSpec, ...] | None = None
    date_range: DateRangeFilter | None = None
    projected_fields: tuple[str, ...] | None = None

    def __post_init__(self) -> None:
        errors: dict[str, list[str]] = {}
        if self.page < 1:
            errors["page"] = ["Must be greater than or equal to 1."]
        if not 1 <= self.page_size <= MAX_PAGE_SIZE:
            errors["limit"] = [f"Must be greater than or equal to 1 and less than or equal to {MAX_PAGE_SIZE}."]
        if errors:
            raise ValidationError(errors)

    # ------------------------------ Construction -----------------------------

    @classmethod
    def from_raw_parameters(
        cls,
        raw: Mapping[str, Any],
        *,
        valid_fields: Collection[str],
        default_sort_field: str = DEFAULT_SORT_FIELD,
    ) -> QuerySpec:
        """Validate raw request parameters and build a spec.

        Unknown keys, out-of-range pagination values, malformed timestamps and
        references to fields outside ``valid_fields`` are all reported at once.

        :param raw: Parameter name to raw value (strings, numbers or booleans).
        :type raw: Mapping[str, Any]
        :param valid_fields: Public field names of the queried entity.
        :type valid_fields: Collection[str]
        :param default_sort_field: ``sortBy`` value used when it is omitted.
        :type default_sort_field: str
        :returns: Immutable spec with defaults applied to omitted parameters.
        :rtype: QuerySpec
        :raises marshmallow.ValidationError: With ``messages`` mapping each
            offending parameter to its list of violations.
        """
        from scaffold.query.schema import QuerySpecSchema

        schema = QuerySpecSchema(valid_fields=valid_fields, default_sort_field=default_sort_field)
        return schema.load(dict(raw))

    # ------------------------------- Descriptor ------------------------------

    def sort_keys(self) -> tuple[SortSpec, ...]:
        """Return ``multi_sort`` verbatim when present, else the single pair."""
        if self.multi_sort:
            return tuple(self.multi_sort)
        return (SortSpec(self.sort_field, self.sort_direction),)

    def window(self) -> PaginationWindow | None:
        """Return ``(limit, offset)`` or ``None`` when ``return_all`` is set."""
        if self.return_all:
            return None
        return PaginationWindow(limit=self.page_size, offset=(self.page - 1) * self.page_size)

    def build_filter(
        self,
        searchable_fields: Iterable[str] = (),
        base_filter: FilterExpression | None = None,
        *,
        now: datetime | None = None,
    ) -> FilterExpression | None:
        """Compose search, base filter and date range into one tree.

        With an active search the result is ``OR`` over one branch per
        searchable field, each branch being
        ``field CONTAINS q AND base_filter AND createdAt BETWEEN [low, high]``.
        Without a search the result is ``base_filter AND date_range``.
        A blank or whitespace-only ``q`` is no search; the term is stripped.

        :param searchable_fields: Fields matched against ``search_text``; order
            is preserved and duplicates dropped.
        :type searchable_fields: Iterable[str]
        :param base_filter: Caller constraint kept on every branch.
        :type base_filter: FilterExpression | None
        :param now: Clock reading for an open-ended date range.
        :type now: datetime | None
        :returns: Filter tree or ``None`` when unconstrained.
        :rtype: FilterExpression | None
        """
        search_fields = list(dict.fromkeys(searchable_fields))

        date_filter: FilterExpression | None = None
        if self.date_range is not None:
            interval = self.date_range.resolve(now or datetime.now(timezone.utc))
            if interval is not None:
                date_filter = between(DATE_RANGE_FIELD, *interval)

        term = self.search_text.strip() if self.search_text else ""
        if term and search_fields:
            branches = [
                and_(contains(field, term), base_filter, date_filter)
                for field in search_fields
            ]
            return or_(*branches)
        return and_(base_filter, date_filter)

    def build_descriptor(
        self,
        searchable_fields: Iterable[str] = (),
        base_filter: FilterExpression | None = None,
        relations: Sequence[str] = (),
        *,
        now: datetime | None = None,
    ) -> QueryDescriptor:
        """Build the storage-agnostic descriptor for this spec.

        :param searchable_fields: Fields matched against ``search_text``.
        :type searchable_fields: Iterable[str]
        :param base_filter: Caller constraint ANDed onto every branch.
        :type base_filter: FilterExpression | None
        :param relations: Related-entity names to eager-load, attached verbatim.
        :type relations: Sequence[str]
        :param now: Clock reading; read from the system clock when omitted.
        :type now: datetime | None
        :returns: Descriptor carrying filter, sort keys, projection, window
            and relations.
        :rtype: QueryDescriptor
        """
        descriptor = QueryDescriptor(
            filter=self.build_filter(searchable_fields, base_filter, now=now),
            sort=self.sort_keys(),
            projection=tuple(self.projected_fields) if self.projected_fields else None,
            window=self.window(),
            relations=tuple(relations),
        )
        logger.debug("query.descriptor_built", extra={"descriptor": descriptor.to_dict()})
        return descriptor

    # -------------------------------- Response -------------------------------

    def pagination_meta(self, total_items: int) -> PaginationMeta | None:
        """Return metadata for ``total_items`` or ``None`` when ``return_all``."""
        if self.return_all:
            return None
        return PaginationMeta.compute(page=self.page, page_size=self.page_size, total_items=total_items)

    def build_response(self, rows: Sequence[T], total_matching: int) -> QueryResponse[T]:
        """Wrap fetched rows into the response envelope.

        Rows are not re-truncated; the executor already applied the window.

        :param rows: Rows returned by the data-access layer.
        :type rows: Sequence[T]
        :param total_matching: Rows matching the filters, ignoring the window.
        :type total_matching: int
        :returns: Envelope with pagination metadata unless ``return_all``.
        :rtype: QueryResponse[T]
        :raises ValueError: If ``total_matching`` is negative.
        """
        if total_matching < 0:
            raise ValueError("total_matching must be >= 0")
        return QueryResponse(data=list(rows), pagination=self.pagination_meta(total_matching))


__all__ = [
    "DATE_RANGE_FIELD",
    "DEFAULT_PAGE",
    "DEFAULT_PAGE_SIZE",
    "DEFAULT_SORT_FIELD",
    "EPOCH_START",
    "MAX_PAGE_SIZE",
    "DateRangeFilter",
    "PaginationMeta",
    "QueryResponse",
    "QuerySpec",
    "SortDirection",
    "SortSpec",
]
