from __future__ import annotations

import pytest
from sqlalchemy import select

from scaffold.core import errors as api_errors
from scaffold.models.user import User
from scaffold.services._shared.errors import ConflictError, NotFoundError
from scaffold.services.users import UserCommandService, UserQueryService
from tests.factories.user import UserFactory


def payload(**overrides) -> dict:
    data = {
        "first_name": "Ann",
        "last_name": "Smith",
        "email": "ann@example.com",
        "phone_number": "+15550000001",
    }
    data.update(overrides)
    return data


class TestCreate:
    @pytest.fixture()
    def service(self) -> UserCommandService:
        return UserCommandService()

    def test_persists_and_serializes(self, service, session):
        out = service.create(payload())

        assert out["firstName"] == "Ann"
        assert out["email"] == "ann@example.com"
        assert out["roles"] == []
        assert out["avatarUrl"].startswith("https://www.gravatar.com/avatar/")
        assert out["publicUserId"]
        stored = session.execute(select(User).where(User.id == out["id"])).scalar_one()
        assert stored.deleted_at is None

    def test_explicit_public_id_kept(self, service, session):
        out = service.create(payload(public_user_id="ann-smith"))

        assert out["publicUserId"] == "ann-smith"

    def test_duplicate_email_conflicts(self, service, session):
        UserFactory(email="ann@example.com")
        session.flush()

        with pytest.raises(ConflictError):
            service.create(payload(email="ANN@example.com"))

    def test_duplicate_phone_conflicts(self, service, session):
        UserFactory(phone_number="+15550000001")
        session.flush()

        with pytest.raises(ConflictError):
            service.create(payload(email="other@example.com"))

    def test_conflict_translates_to_409(self, service):
        err = service.translate_exceptions(ConflictError("User", "email already exists"))

        assert isinstance(err, api_errors.Conflict)
        assert err.status_code == 409
        assert err.code == "conflict"


class TestUpdate:
    @pytest.fixture()
    def service(self) -> UserCommandService:
        return UserCommandService()

    def test_changes_only_given_fields(self, service, session):
        user = UserFactory(first_name="Ann", last_name="Lee")
        session.flush()

        out = service.update(user.id, {"last_name": "Smith"})

        assert (out["firstName"], out["lastName"]) == ("Ann", "Smith")

    def test_empty_changes_return_current_state(self, service, session):
        user = UserFactory(first_name="Ann")
        session.flush()

        assert service.update(user.id, {})["firstName"] == "Ann"

    def test_keeping_own_email_is_allowed(self, service, session):
        user = UserFactory(email="ann@example.com")
        session.flush()

        out = service.update(user.id, {"email": "Ann@Example.com", "bio": "hi"})

        assert out["email"] == "ann@example.com"
        assert out["bio"] == "hi"

    def test_taking_another_users_email_conflicts(self, service, session):
        UserFactory(email="taken@example.com")
        user = UserFactory(email="ann@example.com")
        session.flush()

        with pytest.raises(ConflictError):
            service.update(user.id, {"email": "taken@example.com"})

    def test_missing_user_not_found(self, service, session):
        with pytest.raises(NotFoundError):
            service.update(999999, {"first_name": "X"})


class TestDelete:
    @pytest.fixture()
    def service(self) -> UserCommandService:
        return UserCommandService()

    def test_soft_deletes(self, service, session):
        user = UserFactory()
        session.flush()
        user_id = user.id

        service.delete(user_id)

        stored = session.execute(select(User).where(User.id == user_id)).scalar_one()
        assert stored.deleted_at is not None
        with pytest.raises(NotFoundError):
            UserQueryService().get(user_id)

    def test_deleting_twice_not_found(self, service, session):
        user = UserFactory()
        session.flush()
        service.delete(user.id)

        with pytest.raises(NotFoundError):
            service.delete(user.id)
