"""User serializer and write payloads."""

from __future__ import annotations

from marshmallow import Schema, fields, validate

from .base import BaseSchema
from .role import RoleSchema


class UserSchema(BaseSchema):
    """Serialize ``User`` instances with camelCase keys.

    ``roles`` is dumped as a compact list of ``{id, name}`` objects.
    """

    id = fields.Int(dump_only=True)
    first_name = fields.String(data_key="firstName")
    last_name = fields.String(data_key="lastName")
    email = fields.Email(allow_none=True)
    phone_number = fields.String(data_key="phoneNumber")
    public_user_id = fields.String(data_key="publicUserId")
    bio = fields.String(allow_none=True)
    avatar_url = fields.String(data_key="avatarUrl", allow_none=True)
    created_at = fields.DateTime(data_key="createdAt", dump_only=True)
    updated_at = fields.DateTime(data_key="updatedAt", dump_only=True)
    roles = fields.List(fields.Nested(RoleSchema(only=("id", "name"))), dump_only=True)


class UserUpdateSchema(Schema):
    """Payload for ``PATCH /users/<id>``; every key is optional.

    Loads into ORM attribute names (``firstName`` -> ``first_name``).
    """

    first_name = fields.String(data_key="firstName", validate=validate.Length(min=1, max=15))
    last_name = fields.String(data_key="lastName", validate=validate.Length(min=1, max=15))
    email = fields.Email(allow_none=True, validate=validate.Length(max=254))
    phone_number = fields.String(data_key="phoneNumber", validate=validate.Length(min=1, max=15))
    bio = fields.String(allow_none=True, validate=validate.Length(max=500))
    avatar_url = fields.String(data_key="avatarUrl", allow_none=True, validate=validate.Length(max=200))


class UserCreateSchema(UserUpdateSchema):
    """Payload for ``POST /users``.

    ``publicUserId`` is generated when omitted.
    """

    first_name = fields.String(data_key="firstName", required=True, validate=validate.Length(min=1, max=15))
    last_name = fields.String(data_key="lastName", required=True, validate=validate.Length(min=1, max=15))
    phone_number = fields.String(data_key="phoneNumber", required=True, validate=validate.Length(min=1, max=15))
    public_user_id = fields.String(data_key="publicUserId", validate=validate.Length(min=1, max=50))
