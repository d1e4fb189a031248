"""Role model and the ``user_roles`` association table."""

from __future__ import annotations

from sqlalchemy import Boolean, Column, ForeignKey, String, Table, false
from sqlalchemy.orm import Mapped, mapped_column

from scaffold.core.extensions import db

from .base import AuditMixin, ReprMixin

user_roles = Table(
    "user_roles",
    db.metadata,
    Column("user_id", ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("role_id", ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
)


class Role(AuditMixin, ReprMixin, db.Model):
    """Named group of users (``Admin``, ``User`` ...).

    Fields
    ------
    name : str
        Unique role name.
    description : str | None
        Optional human-readable description.
    is_system_role : bool
        Marks roles created by the seeders that should not be edited.
    """

    __tablename__ = "roles"

    name: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_system_role: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
