# comments in English; strict reST docstrings
from __future__ import annotations

from typing import Any

from scaffold.query import QueryResponse, QuerySpec
from scaffold.repositories.user import UserRepository
from scaffold.schemas.user import UserSchema
from scaffold.services._shared.base import BaseService
from scaffold.services._shared.errors import NotFoundError


class UserQueryService(BaseService):
    """
    Read-side service for the user directory.

    Notes
    -----
    - ``q`` matches ``firstName``, ``lastName`` and ``email``.
    - Roles are always eager-loaded so the serializer never lazy-loads.
    """

    SEARCH_FIELDS = ("firstName", "lastName", "email")
    RELATIONS = ("roles",)

    @staticmethod
    def queryable_fields() -> frozenset[str]:
        """Public field names accepted by ``sortBy``, ``sorts`` and ``fields``."""
        return UserRepository().queryable_fields()

    def list(self, spec: QuerySpec) -> QueryResponse[dict[str, Any]]:
        """
        List users matching ``spec``.

        :param spec: Validated list query.
        :type spec: :class:`QuerySpec`
        :returns: Serialized users with pagination metadata unless ``all``.
        :rtype: :class:`QueryResponse`
        """
        with self.ro_uow() as uow:
            repo: UserRepository = uow.users
            return self.run_list_query(
                repo,
                spec,
                UserSchema,
                searchable_fields=self.SEARCH_FIELDS,
                relations=self.RELATIONS,
            )

    def get(self, user_id: int) -> dict[str, Any]:
        """
        Retrieve a single user by id.

        :param user_id: Primary key.
        :type user_id: int
        :returns: Serialized user.
        :rtype: dict[str, Any]
        :raises NotFoundError: When the user does not exist or was soft-deleted.
        """
        with self.ro_uow() as uow:
            user = uow.users.get(user_id)
            if user is None:
                raise NotFoundError("User", user_id)
            return UserSchema().dump(user)
