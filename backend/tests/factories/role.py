"""Factory Boy definition for :class:`scaffold.models.role.Role`."""

from __future__ import annotations

from datetime import datetime, timezone

import factory
from scaffold.models.role import Role

from tests.factories import BaseFactory


class RoleFactory(BaseFactory):
    class Meta:
        model = Role

    id = None
    name = factory.Sequence(lambda n: f"role-{n}")
    description = factory.LazyAttribute(lambda o: f"{o.name} description")
    is_system_role = False
    created_at = factory.LazyFunction(lambda: datetime.now(timezone.utc))
