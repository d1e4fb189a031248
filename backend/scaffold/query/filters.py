"""Storage-agnostic filter expression tree.

The query engine never talks to a database. It describes *which* rows are
wanted as a small tree of nodes:

- :class:`Condition` leaves compare one field against a value.
- :class:`And` / :class:`Or` branches combine children.

Data-access collaborators lower the tree into their own representation
(see :func:`scaffold.repositories.base.compile_filter` for SQLAlchemy). Every
node can also be evaluated in memory through :meth:`FilterExpression.matches`.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union


class Operator(str, Enum):
    """Comparison operators supported by :class:`Condition`."""

    EQ = "eq"
    IN = "in"
    CONTAINS = "contains"
    BETWEEN = "between"


def _read_field(record: Any, field: str) -> Any:
    """Return ``field`` from a mapping or an attribute-bearing object."""
    if isinstance(record, Mapping):
        return record.get(field)
    return getattr(record, field, None)


# --------------------------------- Nodes -------------------------------------


@dataclass(frozen=True, slots=True)
class Condition:
    """Leaf predicate ``<field> <operator> <value>``.

    :param field: Public field name of the record.
    :type field: str
    :param operator: Comparison to apply.
    :type operator: Operator
    :param value: Operand. ``IN`` expects a tuple of candidates, ``BETWEEN``
        a ``(low, high)`` pair, ``CONTAINS`` a string.
    :type value: Any
    """

    field: str
    operator: Operator
    value: Any

    def matches(self, record: Any) -> bool:
        """Evaluate the predicate against ``record``.

        ``None`` field values never match ``CONTAINS`` or ``BETWEEN``.

        :param record: Mapping or object exposing the field.
        :type record: Any
        :returns: ``True`` when the record satisfies the predicate.
        :rtype: bool
        """
        actual = _read_field(record, self.field)
        if self.operator is Operator.EQ:
            return bool(actual == self.value)
        if self.operator is Operator.IN:
            return actual in self.value
        if actual is None:
            return False
        if self.operator is Operator.CONTAINS:
            return str(self.value).casefold() in str(actual).casefold()
        low, high = self.value
        return bool(low <= actual <= high)

    def fields(self) -> set[str]:
        """Return the field names referenced by this node."""
        return {self.field}

    def walk(self) -> Iterator[FilterExpression]:
        yield self


@dataclass(frozen=True, slots=True)
class And:
    """Conjunction of child expressions."""

    children: tuple[FilterExpression, ...]

    def matches(self, record: Any) -> bool:
        return all(child.matches(record) for child in self.children)

    def fields(self) -> set[str]:
        return set().union(*(child.fields() for child in self.children))

    def walk(self) -> Iterator[FilterExpression]:
        yield self
        for child in self.children:
            yield from child.walk()


@dataclass(frozen=True, slots=True)
class Or:
    """Disjunction of child expressions."""

    children: tuple[FilterExpression, ...]

    def matches(self, record: Any) -> bool:
        return any(child.matches(record) for child in self.children)

    def fields(self) -> set[str]:
        return set().union(*(child.fields() for child in self.children))

    def walk(self) -> Iterator[FilterExpression]:
        yield self
        for child in self.children:
            yield from child.walk()


FilterExpression = Union[Condition, And, Or]


# ------------------------------- Builders ------------------------------------


def _combine(kind: type[And] | type[Or], parts: Iterable[FilterExpression | None]):
    flat: list[FilterExpression] = []
    for part in parts:
        if part is None:
            continue
        if isinstance(part, kind):
            flat.extend(part.children)
        else:
            flat.append(part)
    if not flat:
        return None
    if len(flat) == 1:
        return flat[0]
    return kind(tuple(flat))


def and_(*parts: FilterExpression | None) -> FilterExpression | None:
    """AND the given expressions together.

    ``None`` parts are skipped, nested :class:`And` nodes are flattened and a
    single surviving part is returned as-is.

    :returns: Combined expression, or ``None`` when nothing remains.
    :rtype: FilterExpression | None
    """
    return _combine(And, parts)


def or_(*parts: FilterExpression | None) -> FilterExpression | None:
    """OR the given expressions together (same folding rules as :func:`and_`)."""
    return _combine(Or, parts)


def eq(field: str, value: Any) -> Condition:
    return Condition(field, Operator.EQ, value)


def in_(field: str, values: Iterable[Any]) -> Condition:
    return Condition(field, Operator.IN, tuple(values))


def contains(field: str, text: str) -> Condition:
    return Condition(field, Operator.CONTAINS, text)


def between(field: str, low: Any, high: Any) -> Condition:
    return Condition(field, Operator.BETWEEN, (low, high))


def equals_all(values: Mapping[str, Any]) -> FilterExpression | None:
    """Build an AND of equality conditions from a ``field -> value`` mapping.

    :param values: Equality constraints, e.g. ``{"isSystemRole": False}``.
    :type values: Mapping[str, Any]
    :returns: Conjunction of ``EQ`` conditions or ``None`` for an empty mapping.
    :rtype: FilterExpression | None
    """
    return and_(*(eq(field, value) for field, value in values.items()))


__all__ = [
    "And",
    "Condition",
    "FilterExpression",
    "Operator",
    "Or",
    "and_",
    "between",
    "contains",
    "eq",
    "equals_all",
    "in_",
    "or_",
]
