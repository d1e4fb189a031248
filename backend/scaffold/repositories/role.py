"""Role repository."""

from __future__ import annotations

from typing import cast

from sqlalchemy import select

from scaffold.models.role import Role
from scaffold.repositories.base import BaseRepository


class RoleRepository(BaseRepository[Role]):
    """Persistence-only repository for :class:`Role`."""

    model = Role

    def _queryable_fields(self):
        return {
            "id": Role.id,
            "name": Role.name,
            "description": Role.description,
            "isSystemRole": Role.is_system_role,
            "createdAt": Role.created_at,
            "updatedAt": Role.updated_at,
        }

    def get_by_name(self, name: str) -> Role | None:
        stmt = select(Role).where(Role.name == name, *self._default_criteria())
        return cast(Role | None, self.session.execute(stmt).scalars().first())
