# comments in English; strict reST docstrings
from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, ClassVar

from scaffold.core import errors as api_errors
from scaffold.query import QueryResponse, QuerySpec
from scaffold.query.filters import FilterExpression
from scaffold.repositories.base import BaseRepository
from scaffold.schemas.base import BaseSchema
from scaffold.services._shared.errors import (
    ConflictError,
    NotFoundError,
    ServiceError,
    UnknownFieldError,
    UnknownRelationError,
)
from scaffold.uow.sqlalchemy_uow import SQLAlchemyReadOnlyUnitOfWork, SQLAlchemyUnitOfWork

log = logging.getLogger(__name__)


@dataclass(slots=True)
class ServiceContext:
    """
    Carry request-scoped data into services.

    :param now: Clock reading used to close open-ended date ranges; the
        system clock is read when ``None``.
    """

    now: datetime | None = None


class BaseService:
    """
    Base class for application services.

    Responsibilities
    ----------------
    * Open read-write units of work for commands and read-only ones for queries.
    * Centralize error translation.
    * Run spec-driven list queries (:meth:`run_list_query`).

    Notes
    -----
    - Services never touch the global session; they always use a Unit of Work.
    - Rows are serialized inside the UoW scope so no lazy load happens after
      the read-only transaction ends.
    """

    def __init__(self, *, ctx: ServiceContext | None = None) -> None:
        """
        Initialize the base service.

        :param ctx: Optional request-scoped context.
        :type ctx: ServiceContext | None
        """
        self.ctx = ctx or ServiceContext()

    # -------------------------- UoW helpers ---------------------------------

    def rw_uow(self) -> SQLAlchemyUnitOfWork:
        """
        Create a read-write Unit of Work.

        :returns: Read-write UoW instance.
        :rtype: SQLAlchemyUnitOfWork
        """
        return SQLAlchemyUnitOfWork()

    def ro_uow(self) -> SQLAlchemyReadOnlyUnitOfWork:
        return SQLAlchemyReadOnlyUnitOfWork()

    def now(self) -> datetime:
        return self.ctx.now or datetime.now(timezone.utc)

    # -------------------------- List queries --------------------------------

    def run_list_query(
        self,
        repo: BaseRepository[Any],
        spec: QuerySpec,
        schema: type[BaseSchema],
        *,
        searchable_fields: Sequence[str] = (),
        base_filter: FilterExpression | None = None,
        relations: Sequence[str] = (),
    ) -> QueryResponse[dict[str, Any]]:
        """
        Build a descriptor from ``spec``, execute it and shape the response.

        :param repo: Repository bound to the current UoW.
        :type repo: :class:`BaseRepository`
        :param spec: Validated list query.
        :type spec: :class:`QuerySpec`
        :param schema: Serializer for the rows.
        :type schema: type[:class:`BaseSchema`]
        :param searchable_fields: Public fields matched by ``q``.
        :param base_filter: Constraint applied to every row.
        :param relations: Relations to eager-load.
        :returns: Envelope of serialized rows plus pagination metadata.
        :rtype: :class:`QueryResponse`
        :raises UnknownFieldError: When a field is not queryable.
        :raises UnknownRelationError: When a relation does not exist.
        """
        descriptor = spec.build_descriptor(
            searchable_fields, base_filter, relations, now=self.now()
        )
        rows, total = repo.execute(descriptor)
        only = repo.attribute_keys(descriptor.projection) if descriptor.projection else None
        if only is not None and relations:
            only = [*only, *relations]
        data = schema.dump_rows(rows, only=only)
        log.info(
            "list query executed",
            extra={
                "entity": repo.entity_name,
                "page": spec.page,
                "limit": spec.page_size,
                "returned": len(rows),
                "total": total,
            },
        )
        return spec.build_response(data, total)

    # -------------------------- Error handling ------------------------------

    def translate_exceptions(self, exc: Exception) -> Exception:
        """
        Map service-level errors to API-level (HTTP) errors.

        :param exc: Exception raised within the service.
        :type exc: Exception
        :returns: Translated exception ready to be re-raised.
        :rtype: Exception
        """
        if isinstance(exc, NotFoundError):
            return api_errors.NotFound(str(exc))

        if isinstance(exc, ConflictError):
            return api_errors.Conflict(str(exc))

        if isinstance(exc, UnknownFieldError):
            return api_errors.APIError(
                message=str(exc),
                status_code=400,
                code="unknown_field",
                details={"fields": exc.fields},
            )

        if isinstance(exc, UnknownRelationError):
            return api_errors.APIError(
                message=str(exc),
                status_code=400,
                code="unknown_relation",
                details={"relation": exc.relation},
            )

        if isinstance(exc, ServiceError):
            return api_errors.APIError(message=str(exc), status_code=400, code="bad_request")

        return exc
