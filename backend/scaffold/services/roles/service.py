# comments in English; strict reST docstrings
from __future__ import annotations

from typing import Any

from scaffold.query import QueryResponse, QuerySpec
from scaffold.query.filters import FilterExpression
from scaffold.repositories.role import RoleRepository
from scaffold.schemas.role import RoleSchema
from scaffold.services._shared.base import BaseService


class RoleQueryService(BaseService):
    """Read-side service for roles; ``q`` matches ``name`` and ``description``."""

    SEARCH_FIELDS = ("name", "description")

    @staticmethod
    def queryable_fields() -> frozenset[str]:
        return RoleRepository().queryable_fields()

    def list(
        self, spec: QuerySpec, *, base_filter: FilterExpression | None = None
    ) -> QueryResponse[dict[str, Any]]:
        """
        List roles matching ``spec``.

        :param spec: Validated list query.
        :type spec: :class:`QuerySpec`
        :param base_filter: Optional extra constraint, e.g. ``equals_all({"isSystemRole": True})``.
        :type base_filter: FilterExpression | None
        :returns: Serialized roles with pagination metadata unless ``all``.
        :rtype: :class:`QueryResponse`
        """
        with self.ro_uow() as uow:
            repo: RoleRepository = uow.roles
            return self.run_list_query(
                repo,
                spec,
                RoleSchema,
                searchable_fields=self.SEARCH_FIELDS,
                base_filter=base_filter,
            )
