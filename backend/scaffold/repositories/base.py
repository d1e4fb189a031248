"""Generic repository base and descriptor execution for SQLAlchemy 2.x.

This module is the data-access side of the list-query engine:
- Lowers :mod:`scaffold.query.filters` trees into SQLAlchemy clauses.
- Executes a :class:`~scaffold.query.descriptor.QueryDescriptor` and returns
  ``(rows, total)`` where ``total`` ignores the pagination window.
- Exposes public field names through a per-repository whitelist mapping
  (prevents SQL injection and arbitrary column access).
- Keeps pagination deterministic by appending a primary-key tiebreaker.
- Hides soft-deleted rows by default.

Design decisions
----------------
* Repositories MUST remain thin and persistence-focused:
  - They never implement use cases or domain policies.
  - They never call commit/rollback; Services define the Unit of Work.
* The queryable surface is opt-in per aggregate via ``_queryable_fields``.
* Eager-loading of named relations uses ``selectinload`` to avoid N+1.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from typing import Any, Generic, TypeVar, cast

from sqlalchemy import ColumnElement, Select, and_, func, inspect, or_, select
from sqlalchemy.orm import InstrumentedAttribute, Session, load_only, selectinload

from scaffold.core.extensions import db
from scaffold.query.descriptor import QueryDescriptor
from scaffold.query.filters import And, Condition, FilterExpression, Operator, Or
from scaffold.query.spec import SortSpec
from scaffold.services._shared.errors import UnknownFieldError, UnknownRelationError

E = TypeVar("E")  # SQLAlchemy mapped entity type

log = logging.getLogger(__name__)


# ----------------------------- Filter lowering -------------------------------


def compile_filter(
    expr: FilterExpression,
    columns: Mapping[str, InstrumentedAttribute[Any]],
    *,
    entity: str = "entity",
) -> ColumnElement[bool]:
    """Lower a filter tree into a SQLAlchemy boolean clause.

    ``CONTAINS`` becomes a case-insensitive ``LIKE`` with ``%``/``_`` escaped,
    ``BETWEEN`` a closed ``BETWEEN``.

    :param expr: Filter tree built by the query engine.
    :type expr: FilterExpression
    :param columns: Public field name -> ORM attribute whitelist.
    :type columns: Mapping[str, InstrumentedAttribute]
    :param entity: Entity name used in error messages.
    :type entity: str
    :returns: Clause usable in ``Select.where``.
    :rtype: :class:`sqlalchemy.ColumnElement`
    :raises UnknownFieldError: If the tree references non-whitelisted fields.
    """
    unknown = expr.fields() - set(columns)
    if unknown:
        raise UnknownFieldError(entity, unknown)
    return _lower(expr, columns)


def _lower(expr: FilterExpression, columns: Mapping[str, InstrumentedAttribute[Any]]) -> ColumnElement[bool]:
    if isinstance(expr, And):
        return and_(*(_lower(child, columns) for child in expr.children))
    if isinstance(expr, Or):
        return or_(*(_lower(child, columns) for child in expr.children))

    cond = cast(Condition, expr)
    col = columns[cond.field]
    if cond.operator is Operator.EQ:
        return col.is_(None) if cond.value is None else col == cond.value
    if cond.operator is Operator.IN:
        return col.in_(list(cond.value))
    if cond.operator is Operator.CONTAINS:
        return col.icontains(str(cond.value), autoescape=True)
    if cond.operator is Operator.BETWEEN:
        low, high = cond.value
        return col.between(low, high)
    raise ValueError(f"Unsupported operator: {cond.operator!r}")  # pragma: no cover


# ----------------------------- Sorting utilities -----------------------------


def apply_sort_keys(
    stmt: Select[Any],
    columns: Mapping[str, InstrumentedAttribute[Any]],
    sort: Iterable[SortSpec],
    *,
    pk_attr: InstrumentedAttribute[Any] | None,
    entity: str = "entity",
) -> Select[Any]:
    """Apply ``ORDER BY`` clauses for the descriptor's sort keys, in priority order.

    The primary key is appended as a final ascending tiebreaker to stabilize
    pagination, unless it is already one of the sort keys.

    :raises UnknownFieldError: If a sort key is not whitelisted.
    """
    keys = list(sort)
    unknown = {key.field for key in keys} - set(columns)
    if unknown:
        raise UnknownFieldError(entity, unknown)

    orders = [columns[key.field].desc() if key.is_desc else columns[key.field].asc() for key in keys]
    if orders:
        stmt = stmt.order_by(*orders)

    sorted_cols = {columns[key.field] for key in keys}
    if pk_attr is not None and pk_attr not in sorted_cols:
        stmt = stmt.order_by(pk_attr.asc())
    return stmt


# ------------------------------ Base repository ------------------------------


class BaseRepository(Generic[E]):
    """Generic, persistence-only repository for a single aggregate.

    Subclasses MUST define:

    * ``model``: the SQLAlchemy mapped class.
    * ``_queryable_fields`` to expose public field names.

    Subclasses MAY override:

    * ``_default_eagerload`` to attach eager-loading options.
    * ``_default_criteria`` to add always-on filters.
    * ``_updatable_fields`` to whitelist attributes writable through
      :meth:`assign_updates`.

    This class NEVER opens, commits or rolls back transactions.
    """

    #: SQLAlchemy mapped model (must be set by subclasses)
    model: type[E]

    def __init__(self, session: Session | None = None) -> None:
        """Initialise the repository with an optional SQLAlchemy session.

        When no explicit session is provided the repository falls back to the
        Flask-scoped session exposed by ``scaffold.core.extensions``.

        :param session: Session shared across the Unit of Work scope.
        :type session: :class:`sqlalchemy.orm.Session` | None
        """
        self._session: Session | None = session

    @property
    def session(self) -> Session:
        """Return the injected session, else the Flask-scoped one."""
        if self._session is not None:
            return self._session
        return cast(Session, db.session)

    @property
    def entity_name(self) -> str:
        return self.model.__name__

    # ------------------------------ Extensibility ----------------------------

    def _default_eagerload(self, stmt: Select[Any]) -> Select[Any]:
        """Attach eager-loading options used by every read."""
        return stmt

    def _default_criteria(self) -> list[ColumnElement[bool]]:
        """Always-on ``WHERE`` clauses; hides soft-deleted rows when supported."""
        deleted_at = getattr(self.model, "deleted_at", None)
        if deleted_at is None:
            return []
        return [deleted_at.is_(None)]

    def _pk_attr(self) -> InstrumentedAttribute[Any] | None:
        """Return the model's primary-key attribute (``model.id`` when present)."""
        return getattr(self.model, "id", None)

    def _queryable_fields(self) -> Mapping[str, InstrumentedAttribute[Any]]:
        """Whitelist mapping of public field names to model attributes.

        The keys are the field names clients may search, sort, filter and
        project on.

        :returns: Public key -> ORM attribute mapping.
        :rtype: Mapping[str, InstrumentedAttribute]
        """
        return {}

    def _updatable_fields(self) -> set[str]:
        """Whitelist of ORM attribute names :meth:`assign_updates` may set.

        Empty by default, so updates fail closed until a subclass opts in.
        """
        return set()

    def queryable_fields(self) -> frozenset[str]:
        """Return the public field names accepted in list queries."""
        return frozenset(self._queryable_fields())

    def attribute_keys(self, public_fields: Iterable[str]) -> list[str]:
        """Map public field names onto ORM attribute keys (for serializers)."""
        columns = self._queryable_fields()
        return [columns[name].key for name in public_fields]

    # --------------------------------- CRUD ----------------------------------

    def add(self, instance: E) -> E:
        """Stage a new entity and flush to materialize the PK."""
        self.session.add(instance)
        self.flush()
        return instance

    def get(self, entity_id: Any) -> E | None:
        """Retrieve a single live entity by primary key.

        :param entity_id: Primary-key value.
        :type entity_id: Any
        :returns: Entity or ``None`` (also for soft-deleted rows).
        :rtype: E | None
        :raises RuntimeError: If no PK attribute can be detected.
        """
        pk_attr = self._pk_attr()
        if pk_attr is None:
            raise RuntimeError("BaseRepository.get requires a detectable PK attribute.")
        stmt = select(self.model).where(pk_attr == entity_id, *self._default_criteria())
        stmt = self._default_eagerload(stmt)
        return cast(E | None, self.session.execute(stmt).scalars().first())

    def delete(self, instance: E) -> None:
        """Soft-delete when the model supports it, hard-delete otherwise."""
        if hasattr(instance, "deleted_at"):
            instance.deleted_at = datetime.now(timezone.utc)  # type: ignore[attr-defined]
        else:
            self.session.delete(instance)
        self.flush()

    def assign_updates(self, instance: E, fields: Mapping[str, Any], *, flush: bool = True) -> E:
        """Assign whitelisted attributes to ``instance`` and optionally flush.

        ``setattr`` is used so model ``@validates`` hooks run.

        :param instance: Entity to mutate.
        :type instance: E
        :param fields: ORM attribute name -> new value.
        :type fields: Mapping[str, Any]
        :param flush: Call ``session.flush()`` after assignment.
        :type flush: bool
        :returns: The mutated instance.
        :rtype: E
        :raises ValueError: If a key is not in ``_updatable_fields``.
        """
        unknown = sorted(set(fields) - self._updatable_fields())
        if unknown:
            raise ValueError(f"Unknown or non-updatable fields: {unknown}")
        for key, value in fields.items():
            setattr(instance, key, value)
        if flush:
            self.flush()
        return instance

    def flush(self) -> None:
        self.session.flush()

    # ------------------------------- Descriptor ------------------------------

    def _filtered_select(self, descriptor: QueryDescriptor) -> Select[Any]:
        stmt: Select[Any] = select(self.model)
        criteria = self._default_criteria()
        if descriptor.filter is not None:
            criteria.append(
                compile_filter(descriptor.filter, self._queryable_fields(), entity=self.entity_name)
            )
        return stmt.where(*criteria) if criteria else stmt

    def _relation_options(self, relations: Iterable[str]) -> list[Any]:
        mapper_relations = inspect(self.model).relationships
        options: list[Any] = []
        for name in relations:
            if name not in mapper_relations:
                raise UnknownRelationError(self.entity_name, name)
            options.append(selectinload(getattr(self.model, name)))
        return options

    def count(self, descriptor: QueryDescriptor) -> int:
        """Count rows matching the descriptor filters, ignoring sort and window."""
        stmt = self._filtered_select(descriptor)
        count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
        return int(self.session.execute(count_stmt).scalar_one())

    def execute(self, descriptor: QueryDescriptor) -> tuple[list[E], int]:
        """Run a list query described by ``descriptor``.

        :param descriptor: Filter, sort keys, projection, window and relations.
        :type descriptor: QueryDescriptor
        :returns: ``(rows, total)`` where ``total`` honors every filter but not
            the pagination window.
        :rtype: tuple[list[E], int]
        :raises UnknownFieldError: On non-whitelisted filter, sort or projection fields.
        :raises UnknownRelationError: On relations the model does not define.
        """
        columns = self._queryable_fields()
        stmt = self._filtered_select(descriptor)
        total = self.count(descriptor)

        stmt = apply_sort_keys(
            stmt, columns, descriptor.sort, pk_attr=self._pk_attr(), entity=self.entity_name
        )

        if descriptor.projection is not None:
            unknown = set(descriptor.projection) - set(columns)
            if unknown:
                raise UnknownFieldError(self.entity_name, unknown)
            stmt = stmt.options(load_only(*(columns[name] for name in descriptor.projection)))

        stmt = stmt.options(*self._relation_options(descriptor.relations))
        stmt = self._default_eagerload(stmt)

        if descriptor.window is not None:
            stmt = stmt.limit(descriptor.window.limit).offset(descriptor.window.offset)

        rows = cast(list[E], list(self.session.execute(stmt).scalars().all()))
        log.debug(
            "repository.execute",
            extra={"entity": self.entity_name, "returned": len(rows), "total": total},
        )
        return rows, total
