"""User repository exposing the public, camelCase query surface."""

from __future__ import annotations

from typing import cast

from sqlalchemy import select

from scaffold.models.user import User
from scaffold.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Persistence-only repository for :class:`User`.

    Public field names are the camelCase keys clients use in ``sortBy``,
    ``sorts``, ``fields`` and search; they map 1:1 onto model columns.
    """

    model = User

    # ---------------------------- Whitelists ----------------------------

    def _queryable_fields(self):
        return {
            "id": User.id,
            "firstName": User.first_name,
            "lastName": User.last_name,
            "email": User.email,
            "phoneNumber": User.phone_number,
            "publicUserId": User.public_user_id,
            "bio": User.bio,
            "avatarUrl": User.avatar_url,
            "createdAt": User.created_at,
            "updatedAt": User.updated_at,
        }

    def _updatable_fields(self) -> set[str]:
        return {"first_name", "last_name", "email", "phone_number", "bio", "avatar_url"}

    # ---------------------------- Lookup helpers ----------------------------

    def get_by_email(self, email: str) -> User | None:
        """Fetch a live user by email (case-insensitive).

        :param email: Email address to normalise and search.
        :type email: str
        :returns: User instance or ``None`` when not found.
        :rtype: User | None
        """
        stmt = select(User).where(User.email == email.lower().strip(), *self._default_criteria())
        return cast(User | None, self.session.execute(stmt).scalars().first())
