from __future__ import annotations

import pytest

from scaffold.core.errors import APIError, NotFound
from scaffold.query import QuerySpec
from scaffold.query.filters import equals_all
from scaffold.services._shared.errors import NotFoundError, UnknownFieldError
from scaffold.services.roles import RoleQueryService
from tests.factories.role import RoleFactory


def spec(**raw) -> QuerySpec:
    return QuerySpec.from_raw_parameters(raw, valid_fields=RoleQueryService.queryable_fields())


class TestRoleQueryService:
    @pytest.fixture()
    def service(self) -> RoleQueryService:
        return RoleQueryService()

    def test_search_over_name_and_description(self, service, session):
        RoleFactory(name="Admin", description="Administrator role")
        RoleFactory(name="User", description="Standard user role")
        RoleFactory(name="Auditor", description="Reads admin logs")
        session.flush()

        out = service.list(spec(q="admin", sorts="name:ASC"))

        assert [r["name"] for r in out.data] == ["Admin", "Auditor"]

    def test_base_filter_applies_to_every_row(self, service, session):
        RoleFactory(name="Admin", is_system_role=True)
        RoleFactory(name="User")
        session.flush()

        out = service.list(spec(), base_filter=equals_all({"isSystemRole": True}))

        assert [r["name"] for r in out.data] == ["Admin"]
        assert out.data[0]["isSystemRole"] is True


class TestTranslateExceptions:
    def test_not_found_maps_to_404(self):
        err = RoleQueryService().translate_exceptions(NotFoundError("Role", 7))

        assert isinstance(err, NotFound)
        assert err.status_code == 404

    def test_unknown_field_maps_to_400(self):
        err = RoleQueryService().translate_exceptions(UnknownFieldError("Role", ["secret"]))

        assert isinstance(err, APIError)
        assert (err.status_code, err.code) == (400, "unknown_field")
        assert err.details == {"fields": ["secret"]}

    def test_other_errors_pass_through(self):
        exc = KeyError("x")

        assert RoleQueryService().translate_exceptions(exc) is exc
