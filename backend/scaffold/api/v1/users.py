"""User directory endpoints."""

from __future__ import annotations

from flask import Blueprint, request

from scaffold.api.deps import json_response, parse_query_spec, timing
from scaffold.schemas.user import UserCreateSchema, UserUpdateSchema
from scaffold.services._shared.errors import ServiceError
from scaffold.services.users import UserCommandService, UserQueryService

bp = Blueprint("users", __name__)

user_create_schema = UserCreateSchema()
user_update_schema = UserUpdateSchema()


@bp.get("")
@timing
def list_users():
    """Return users filtered, sorted and paginated by the query string.

    Accepts ``q``, ``all``, ``page``, ``limit``, ``sortBy``, ``order``,
    ``sorts``, ``dateRange.from``, ``dateRange.to`` and ``fields``.
    """

    service = UserQueryService()
    spec = parse_query_spec(service.queryable_fields())
    try:
        result = service.list(spec)
    except ServiceError as exc:
        raise service.translate_exceptions(exc) from exc
    return json_response(result.to_dict())


@bp.post("")
@timing
def create_user():
    """Create a user; 409 when the email is already taken."""

    payload = user_create_schema.load(request.get_json(silent=True) or {})
    service = UserCommandService()
    try:
        user = service.create(payload)
    except ServiceError as exc:
        raise service.translate_exceptions(exc) from exc
    return json_response({"data": user}, status=201)


@bp.get("/<int:user_id>")
@timing
def get_user(user_id: int):
    """Return a single user."""

    service = UserQueryService()
    try:
        user = service.get(user_id)
    except ServiceError as exc:
        raise service.translate_exceptions(exc) from exc
    return json_response({"data": user})


@bp.patch("/<int:user_id>")
@timing
def update_user(user_id: int):
    """Partially update a user."""

    changes = user_update_schema.load(request.get_json(silent=True) or {})
    service = UserCommandService()
    try:
        user = service.update(user_id, changes)
    except ServiceError as exc:
        raise service.translate_exceptions(exc) from exc
    return json_response({"data": user})


@bp.delete("/<int:user_id>")
@timing
def delete_user(user_id: int):
    """Soft-delete a user."""

    service = UserCommandService()
    try:
        service.delete(user_id)
    except ServiceError as exc:
        raise service.translate_exceptions(exc) from exc
    return "", 204
