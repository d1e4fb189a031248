"""Unit tests for pagination metadata and the response envelope."""

from __future__ import annotations

import pytest

from scaffold.query import PaginationMeta, QuerySpec


class TestPaginationMeta:
    def test_middle_page(self):
        meta = PaginationMeta.compute(page=2, page_size=10, total_items=25)

        assert meta.total_pages == 3
        assert meta.has_next_page is True
        assert meta.has_previous_page is True

    def test_last_page(self):
        meta = PaginationMeta.compute(page=3, page_size=10, total_items=25)

        assert meta.has_next_page is False

    def test_empty_result(self):
        meta = PaginationMeta.compute(page=1, page_size=10, total_items=0)

        assert meta.total_pages == 0
        assert meta.has_next_page is False
        assert meta.has_previous_page is False

    def test_page_beyond_last(self):
        meta = PaginationMeta.compute(page=9, page_size=10, total_items=25)

        assert meta.has_next_page is False
        assert meta.has_previous_page is True

    def test_to_dict_uses_public_keys(self):
        meta = PaginationMeta.compute(page=1, page_size=5, total_items=6)

        assert meta.to_dict() == {
            "page": 1,
            "limit": 5,
            "totalItems": 6,
            "totalPages": 2,
            "hasNextPage": True,
            "hasPreviousPage": False,
        }


class TestBuildResponse:
    def test_rows_are_not_truncated(self):
        spec = QuerySpec(page=2, page_size=10)
        rows = list(range(12))

        response = spec.build_response(rows, 25)

        assert response.data == rows
        assert response.pagination.total_items == 25
        assert response.pagination.page == 2

    def test_return_all_omits_pagination(self):
        response = QuerySpec(return_all=True).build_response(["a", "b"], 2)

        assert response.pagination is None
        assert response.to_dict() == {"data": ["a", "b"]}

    def test_to_dict_applies_serializer(self):
        response = QuerySpec().build_response([1, 2], 2)

        body = response.to_dict(lambda rows: [r * 10 for r in rows])
        assert body["data"] == [10, 20]
        assert body["pagination"]["totalItems"] == 2

    def test_negative_total_rejected(self):
        with pytest.raises(ValueError):
            QuerySpec().build_response([], -1)
