"""Role listing endpoint."""

from __future__ import annotations

from flask import Blueprint

from scaffold.api.deps import json_response, parse_query_spec, timing
from scaffold.services._shared.errors import ServiceError
from scaffold.services.roles import RoleQueryService

bp = Blueprint("roles", __name__)


@bp.get("")
@timing
def list_roles():
    """Return roles; same query parameters as ``GET /users``."""

    service = RoleQueryService()
    spec = parse_query_spec(service.queryable_fields())
    try:
        result = service.list(spec)
    except ServiceError as exc:
        raise service.translate_exceptions(exc) from exc
    return json_response(result.to_dict())
