from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any
from uuid import uuid4

from sqlalchemy.exc import IntegrityError

from scaffold.models.user import User
from scaffold.repositories.user import UserRepository
from scaffold.schemas.user import UserSchema
from scaffold.services._shared.base import BaseService
from scaffold.services._shared.errors import ConflictError, NotFoundError

logger = logging.getLogger(__name__)


class UserCommandService(BaseService):
    """Create, update and soft-delete users.

    Payloads are mappings of ORM attribute names as produced by
    :class:`~scaffold.schemas.user.UserCreateSchema` and
    :class:`~scaffold.schemas.user.UserUpdateSchema`.
    """

    def create(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        """Create a user, rejecting an email that is already taken.

        :param payload: Loaded create payload.
        :type payload: Mapping[str, Any]
        :returns: Serialized user.
        :rtype: dict[str, Any]
        :raises ConflictError: On a duplicate email, phone number or public id.
        """
        with self.rw_uow() as uow:
            repo: UserRepository = uow.users
            email = payload.get("email")
            if email and repo.get_by_email(email) is not None:
                raise ConflictError("User", "email already exists")

            values = dict(payload)
            values.setdefault("public_user_id", str(uuid4()))
            user = User(**values)
            try:
                repo.add(user)
            except IntegrityError as exc:
                raise ConflictError("User", "phone number or public id already exists") from exc

            logger.info("User created", extra={"user_id": user.id})
            return UserSchema().dump(user)

    def update(self, user_id: int, changes: Mapping[str, Any]) -> dict[str, Any]:
        """Apply a partial update.

        :param user_id: Primary key.
        :type user_id: int
        :param changes: Loaded update payload; may be empty.
        :type changes: Mapping[str, Any]
        :returns: Serialized user after the update.
        :rtype: dict[str, Any]
        :raises NotFoundError: When the user does not exist or was soft-deleted.
        :raises ConflictError: When the new email or phone number belongs to
            another user.
        """
        with self.rw_uow() as uow:
            repo: UserRepository = uow.users
            user = repo.get(user_id)
            if user is None:
                raise NotFoundError("User", user_id)

            email = changes.get("email")
            if email and email.strip().lower() != user.email:
                if repo.get_by_email(email) is not None:
                    raise ConflictError("User", "email already exists")

            if changes:
                try:
                    repo.assign_updates(user, changes)
                except IntegrityError as exc:
                    raise ConflictError("User", "email or phone number already exists") from exc

            logger.info("User updated", extra={"user_id": user.id, "fields": sorted(changes)})
            return UserSchema().dump(user)

    def delete(self, user_id: int) -> None:
        """Soft-delete a user; the row stays but is hidden from reads.

        :raises NotFoundError: When the user does not exist or is already deleted.
        """
        with self.rw_uow() as uow:
            repo: UserRepository = uow.users
            user = repo.get(user_id)
            if user is None:
                raise NotFoundError("User", user_id)
            repo.delete(user)
            logger.info("User deleted", extra={"user_id": user_id})
