"""Unit tests for the filter expression tree."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from scaffold.query.filters import (
    And,
    Or,
    and_,
    between,
    contains,
    eq,
    equals_all,
    in_,
    or_,
)


@dataclass
class Row:
    name: str | None
    age: int | None = None


class TestBuilders:
    def test_and_drops_none_and_flattens(self):
        a, b, c = eq("a", 1), eq("b", 2), eq("c", 3)

        assert and_(None, a, and_(b, c)) == And((a, b, c))

    def test_single_part_is_returned_as_is(self):
        a = eq("a", 1)

        assert and_(a, None) is a
        assert or_(a) is a

    def test_empty_combination_is_none(self):
        assert and_() is None
        assert or_(None, None) is None

    def test_or_flattens_nested_or(self):
        a, b, c = eq("a", 1), eq("b", 2), eq("c", 3)

        assert or_(a, or_(b, c)) == Or((a, b, c))

    def test_equals_all(self):
        assert equals_all({"a": 1, "b": 2}) == And((eq("a", 1), eq("b", 2)))
        assert equals_all({}) is None


class TestMatches:
    def test_contains_is_case_insensitive_on_objects(self):
        assert contains("name", "ANN").matches(Row("Mann"))
        assert not contains("name", "ann").matches(Row("Bob"))

    def test_contains_and_between_skip_none(self):
        assert not contains("name", "a").matches(Row(None))
        assert not between("age", 1, 10).matches(Row("x", None))

    def test_between_is_inclusive(self):
        cond = between("day", date(2024, 1, 1), date(2024, 1, 31))

        assert cond.matches({"day": date(2024, 1, 1)})
        assert cond.matches({"day": date(2024, 1, 31)})
        assert not cond.matches({"day": date(2024, 2, 1)})

    def test_in_and_eq(self):
        assert in_("age", [1, 2]).matches(Row("x", 2))
        assert eq("name", None).matches({"name": None})

    def test_tree_fields_and_walk(self):
        expr = or_(and_(eq("a", 1), contains("b", "x")), eq("c", 2))

        assert expr.fields() == {"a", "b", "c"}
        assert len(list(expr.walk())) == 5
