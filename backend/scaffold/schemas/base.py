"""Base marshmallow schema shared by resource serializers."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from marshmallow import Schema


class BaseSchema(Schema):
    """Base schema enabling ordered output for consistent API responses."""

    class Meta:
        ordered = True

    @classmethod
    def dump_rows(cls, rows: Sequence[Any], *, only: Sequence[str] | None = None) -> list[dict[str, Any]]:
        """Serialize ``rows``, restricted to the attribute names in ``only``.

        :param rows: ORM instances to serialize.
        :type rows: Sequence[Any]
        :param only: Attribute names to keep; every field when ``None``.
        :type only: Sequence[str] | None
        :returns: One primitive mapping per row.
        :rtype: list[dict[str, Any]]
        """
        schema = cls(many=True, only=tuple(only)) if only is not None else cls(many=True)
        return schema.dump(rows)
