"""Shared API helpers for request parsing and cross-cutting concerns."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable, Collection
from typing import Any, TypeVar

from flask import Response, current_app, jsonify, request

from scaffold.query import QuerySpec
from scaffold.query.spec import DEFAULT_SORT_FIELD

F = TypeVar("F", bound=Callable[..., Any])


def raw_query_parameters() -> dict[str, str]:
    """Flatten ``request.args``; repeated keys are joined with commas.

    ``?fields=id&fields=email`` therefore reads the same as ``?fields=id,email``.
    """

    return {key: ",".join(values) for key, values in request.args.lists()}


def parse_query_spec(
    valid_fields: Collection[str],
    *,
    default_sort_field: str = DEFAULT_SORT_FIELD,
) -> QuerySpec:
    """Build a :class:`QuerySpec` from the current request's query string.

    :param valid_fields: Public field names of the listed resource.
    :type valid_fields: Collection[str]
    :param default_sort_field: ``sortBy`` fallback.
    :type default_sort_field: str
    :returns: Validated spec.
    :rtype: QuerySpec
    :raises marshmallow.ValidationError: Rendered as a 422 problem by the
        global error handlers.
    """

    return QuerySpec.from_raw_parameters(
        raw_query_parameters(),
        valid_fields=valid_fields,
        default_sort_field=default_sort_field,
    )


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            request_endpoint = getattr(request, "endpoint", None)
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request_endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]
