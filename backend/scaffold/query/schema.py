"""Marshmallow schema coercing raw list-query parameters into a QuerySpec.

Each parameter has an explicit converter (a marshmallow field). A converter
either yields a typed value or records messages under the parameter's public
name; the schema collects every message before raising, so clients receive
the complete list of problems in one response.
"""

from __future__ import annotations

from collections.abc import Collection
from datetime import timezone
from decimal import Decimal
from typing import Any

from marshmallow import RAISE, Schema, ValidationError, fields, post_load, validate, validates, validates_schema

from scaffold.query.spec import (
    DEFAULT_SORT_FIELD,
    MAX_PAGE_SIZE,
    DateRangeFilter,
    QuerySpec,
    SortDirection,
    SortSpec,
)

_DIRECTIONS = ", ".join(d.value for d in SortDirection)


def _parse_direction(raw: str) -> SortDirection:
    try:
        return SortDirection(raw.strip().upper())
    except ValueError:
        raise ValidationError(f"Must be one of: {_DIRECTIONS}.") from None


# ------------------------------ Custom fields --------------------------------


class WholeNumberField(fields.Integer):
    """Integer that rejects fractional numbers instead of truncating them.

    Integer-valued numbers (``2.0``) and digit strings (``"2"``) are accepted.
    """

    def _deserialize(self, value: Any, attr: str | None, data: Any, **kwargs: Any) -> int:
        if isinstance(value, (float, Decimal)):
            try:
                integral = value == int(value)
            except (ValueError, OverflowError):
                integral = False
            if not integral:
                raise self.make_error("invalid")
        return super()._deserialize(value, attr, data, **kwargs)


class SortDirectionField(fields.Field):
    """``ASC`` / ``DESC`` (case-insensitive)."""

    default_error_messages = {"invalid": "Not a valid string."}

    def _deserialize(self, value: Any, attr: str | None, data: Any, **kwargs: Any) -> SortDirection:
        if not isinstance(value, str):
            raise self.make_error("invalid")
        return _parse_direction(value)


class DelimitedListField(fields.Field):
    """Comma-separated tokens; a list of strings is accepted as well.

    Blank tokens and an empty list are rejected.
    """

    default_error_messages = {
        "invalid": "Not a valid comma-separated list.",
        "empty": "Must contain at least one entry.",
        "blank": "Entries may not be blank.",
    }

    def _split(self, value: Any) -> list[str]:
        if isinstance(value, str):
            parts = value.split(",")
        elif isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value):
            parts = [p for v in value for p in v.split(",")]
        else:
            raise self.make_error("invalid")
        tokens = [p.strip() for p in parts]
        if not any(tokens):
            raise self.make_error("empty")
        if not all(tokens):
            raise self.make_error("blank")
        return tokens

    def _deserialize(self, value: Any, attr: str | None, data: Any, **kwargs: Any) -> tuple[str, ...]:
        return tuple(self._split(value))


class SortListField(DelimitedListField):
    """``field[:direction]`` tokens, e.g. ``age:ASC,name:DESC``.

    A missing direction means ``DESC``. Duplicated fields are rejected.
    """

    def _deserialize(self, value: Any, attr: str | None, data: Any, **kwargs: Any) -> tuple[SortSpec, ...]:
        specs: list[SortSpec] = []
        messages: list[str] = []
        seen: set[str] = set()
        for token in self._split(value):
            name, sep, raw_direction = token.partition(":")
            name = name.strip()
            if not name:
                messages.append(f"Missing field name in '{token}'.")
                continue
            direction = SortDirection.DESC
            if sep:
                try:
                    direction = _parse_direction(raw_direction)
                except ValidationError:
                    messages.append(f"Invalid direction '{raw_direction}' for '{name}'; must be one of: {_DIRECTIONS}.")
                    continue
            if name in seen:
                messages.append(f"Field '{name}' is listed more than once.")
                continue
            seen.add(name)
            specs.append(SortSpec(name, direction))
        if messages:
            raise ValidationError(messages)
        return tuple(specs)


# --------------------------------- Schema ------------------------------------


class QuerySpecSchema(Schema):
    """Whitelist and coerce ``q``, ``all``, ``page``, ``limit``, ``sortBy``,
    ``order``, ``sorts``, ``dateRange.from``, ``dateRange.to`` and ``fields``.

    Omitted parameters fall back to :class:`QuerySpec` defaults; explicit
    invalid values are errors.
    """

    class Meta:
        unknown = RAISE

    def __init__(
        self,
        *,
        valid_fields: Collection[str],
        default_sort_field: str = DEFAULT_SORT_FIELD,
        **kwargs: Any,
    ) -> None:
        self._valid_fields = frozenset(valid_fields)
        self._default_sort_field = default_sort_field
        super().__init__(**kwargs)

    search_text = fields.String(data_key="q")
    return_all = fields.Boolean(data_key="all")
    page = WholeNumberField(validate=validate.Range(min=1))
    page_size = WholeNumberField(data_key="limit", validate=validate.Range(min=1, max=MAX_PAGE_SIZE))
    sort_field = fields.String(data_key="sortBy")
    sort_direction = SortDirectionField(data_key="order")
    multi_sort = SortListField(data_key="sorts")
    date_from = fields.AwareDateTime(data_key="dateRange.from", default_timezone=timezone.utc)
    date_to = fields.AwareDateTime(data_key="dateRange.to", default_timezone=timezone.utc)
    projected_fields = DelimitedListField(data_key="fields")

    # ------------------------------ Field checks -----------------------------

    def _unknown(self, names: Collection[str]) -> list[str]:
        return [f"Unknown field '{name}'." for name in names if name not in self._valid_fields]

    @validates("sort_field")
    def _check_sort_field(self, value: str, **_: Any) -> None:
        messages = self._unknown([value])
        if messages:
            raise ValidationError(messages)

    @validates("multi_sort")
    def _check_multi_sort(self, value: tuple[SortSpec, ...], **_: Any) -> None:
        messages = self._unknown([spec.field for spec in value])
        if messages:
            raise ValidationError(messages)

    @validates("projected_fields")
    def _check_projected_fields(self, value: tuple[str, ...], **_: Any) -> None:
        messages = self._unknown(value)
        if messages:
            raise ValidationError(messages)

    @validates_schema(skip_on_field_errors=False)
    def _check_date_range(self, data: dict[str, Any], **_: Any) -> None:
        start, end = data.get("date_from"), data.get("date_to")
        if start is not None and end is not None and start > end:
            raise ValidationError(
                "'dateRange.from' must not be later than 'dateRange.to'.", field_name="dateRange"
            )

    # ------------------------------- Assembly --------------------------------

    @post_load
    def make_spec(self, data: dict[str, Any], **_: Any) -> QuerySpec:
        date_range = None
        if "date_from" in data or "date_to" in data:
            start, end = data.pop("date_from", None), data.pop("date_to", None)
            date_range = DateRangeFilter(
                start=start.astimezone(timezone.utc) if start is not None else None,
                end=end.astimezone(timezone.utc) if end is not None else None,
            )
        data.setdefault("sort_field", self._default_sort_field)
        return QuerySpec(date_range=date_range, **data)


__all__ = [
    "DelimitedListField",
    "QuerySpecSchema",
    "SortDirectionField",
    "SortListField",
    "WholeNumberField",
]
