"""Marshmallow schemas serializing API resources and loading write payloads."""

from .base import BaseSchema
from .role import RoleSchema
from .user import UserCreateSchema, UserSchema, UserUpdateSchema

__all__ = ["BaseSchema", "RoleSchema", "UserCreateSchema", "UserSchema", "UserUpdateSchema"]
