"""User model definition."""

from __future__ import annotations

import hashlib

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from scaffold.core.extensions import db

from .base import AuditMixin, ReprMixin
from .role import Role, user_roles

GRAVATAR_URL = "https://www.gravatar.com/avatar/{digest}?d=identicon&s=200"


def gravatar_url(email: str) -> str:
    """Return the identicon Gravatar URL for ``email`` (MD5 of the lowercased address)."""
    digest = hashlib.md5(email.strip().lower().encode("utf-8")).hexdigest()
    return GRAVATAR_URL.format(digest=digest)


class User(AuditMixin, ReprMixin, db.Model):
    """
    Account holder listed and searched through ``/users``.

    Fields
    ------
    first_name, last_name : str
        Display names; both are searchable.
    email : str | None
        Contact email, stored lowercased. Searchable.
    phone_number : str
        Unique phone number.
    public_user_id : str
        Unique public identifier exposed instead of the surrogate key.
    bio : str | None
        Optional free text.
    avatar_url : str | None
        Defaults to a Gravatar identicon derived from ``email``.
    roles : list[Role]
        Many-to-many through ``user_roles``.
    """

    __tablename__ = "users"

    first_name: Mapped[str] = mapped_column(String(15), nullable=False)
    last_name: Mapped[str] = mapped_column(String(15), nullable=False)
    email: Mapped[str | None] = mapped_column(String(254), nullable=True, unique=True)
    phone_number: Mapped[str] = mapped_column(String(15), nullable=False, unique=True)
    public_user_id: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    bio: Mapped[str | None] = mapped_column(String(500), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(200), nullable=True)

    roles: Mapped[list[Role]] = relationship(secondary=user_roles, lazy="select")

    __table_args__ = (Index("ix_users_names", "first_name", "last_name"),)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @validates("email")
    def _normalize_email(self, key: str, value: str | None) -> str | None:
        """
        Normalize the email and derive a default avatar from it.

        :raises ValueError: If the email is malformed.
        """
        if value is None:
            return None
        v = value.strip().lower()
        if "@" not in v or "." not in v.split("@")[-1]:
            raise ValueError("Email format looks invalid.")
        if not self.avatar_url:
            self.avatar_url = gravatar_url(v)
        return v
