"""Role serializer."""

from __future__ import annotations

from marshmallow import fields

from .base import BaseSchema


class RoleSchema(BaseSchema):
    """Serialize ``Role`` instances with camelCase keys."""

    id = fields.Int(dump_only=True)
    name = fields.String()
    description = fields.String(allow_none=True)
    is_system_role = fields.Boolean(data_key="isSystemRole")
    created_at = fields.DateTime(data_key="createdAt", dump_only=True)
    updated_at = fields.DateTime(data_key="updatedAt", dump_only=True)
