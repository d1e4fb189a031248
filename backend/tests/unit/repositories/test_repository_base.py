"""Unit tests for descriptor execution in ``BaseRepository``."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select

from scaffold.models.user import User
from scaffold.query import QuerySpec, SortDirection, SortSpec
from scaffold.query.descriptor import PaginationWindow, QueryDescriptor
from scaffold.query.filters import contains, eq, in_
from scaffold.repositories.base import compile_filter
from scaffold.repositories.user import UserRepository
from scaffold.services._shared.errors import UnknownFieldError, UnknownRelationError
from tests.factories.role import RoleFactory
from tests.factories.user import UserFactory

BASE = datetime(2024, 1, 1, tzinfo=timezone.utc)


def descriptor(**kwargs) -> QueryDescriptor:
    kwargs.setdefault("filter", None)
    kwargs.setdefault("sort", (SortSpec("createdAt"),))
    return QueryDescriptor(**kwargs)


class TestCompileFilter:
    def test_unknown_field_rejected(self):
        columns = UserRepository()._queryable_fields()

        with pytest.raises(UnknownFieldError) as exc:
            compile_filter(eq("password", "x"), columns, entity="User")

        assert exc.value.fields == ["password"]

    def test_contains_escapes_like_wildcards(self, session):
        UserFactory(first_name="50%off")
        UserFactory(first_name="500ff")
        session.flush()

        clause = compile_filter(contains("firstName", "0%o"), UserRepository()._queryable_fields())
        names = session.execute(select(User.first_name).where(clause)).scalars().all()

        assert names == ["50%off"]


class TestExecute:
    @pytest.fixture()
    def repo(self, session) -> UserRepository:
        return UserRepository(session=session)

    def test_window_and_total(self, repo, session):
        for i in range(25):
            UserFactory(created_at=BASE + timedelta(minutes=i))
        session.flush()

        rows, total = repo.execute(descriptor(window=PaginationWindow(limit=10, offset=10)))

        assert total == 25
        assert len(rows) == 10
        # DESC on createdAt: the 11th newest first
        assert rows[0].created_at.replace(tzinfo=None) == (BASE + timedelta(minutes=14)).replace(tzinfo=None)

    def test_no_window_returns_everything(self, repo, session):
        UserFactory.create_batch(3)
        session.flush()

        rows, total = repo.execute(descriptor())

        assert len(rows) == total == 3

    def test_multi_key_sort_with_pk_tiebreaker(self, repo, session):
        a = UserFactory(first_name="Zed", last_name="Same", created_at=BASE)
        b = UserFactory(first_name="Amy", last_name="Same", created_at=BASE)
        c = UserFactory(first_name="Bea", last_name="Other", created_at=BASE)
        d = UserFactory(first_name="Amy", last_name="Same", created_at=BASE)
        session.flush()

        rows, _ = repo.execute(
            descriptor(sort=(SortSpec("lastName", SortDirection.DESC), SortSpec("firstName", SortDirection.ASC)))
        )

        assert [r.id for r in rows] == [b.id, d.id, a.id, c.id]

    def test_filter_narrows_total(self, repo, session):
        UserFactory(first_name="Ann")
        UserFactory(first_name="Joanna")
        UserFactory(first_name="Bob")
        session.flush()

        rows, total = repo.execute(
            descriptor(filter=contains("firstName", "ann"), window=PaginationWindow(limit=1, offset=0))
        )

        assert total == 2
        assert len(rows) == 1

    def test_in_filter(self, repo, session):
        users = UserFactory.create_batch(3)
        session.flush()

        rows, total = repo.execute(descriptor(filter=in_("id", [users[0].id, users[2].id])))

        assert total == 2
        assert {r.id for r in rows} == {users[0].id, users[2].id}

    def test_soft_deleted_rows_hidden(self, repo, session):
        keep, gone = UserFactory.create_batch(2)
        session.flush()
        repo.delete(gone)

        rows, total = repo.execute(descriptor())

        assert total == 1
        assert [r.id for r in rows] == [keep.id]
        assert repo.get(gone.id) is None

    def test_projection_loads_only_requested_columns(self, repo, session):
        UserFactory(email="p@example.com")
        session.flush()
        session.expunge_all()

        rows, _ = repo.execute(descriptor(projection=("id", "email")))

        loaded = rows[0].__dict__
        assert "email" in loaded
        assert "bio" not in loaded

    def test_relations_are_eager_loaded(self, repo, session):
        role = RoleFactory(name="Admin")
        UserFactory(roles=[role])
        session.flush()
        session.expunge_all()

        rows, _ = repo.execute(descriptor(relations=("roles",)))

        assert "roles" in rows[0].__dict__
        assert [r.name for r in rows[0].roles] == ["Admin"]

    def test_unknown_relation_rejected(self, repo, session):
        with pytest.raises(UnknownRelationError):
            repo.execute(descriptor(relations=("friends",)))

    def test_unknown_sort_and_projection_rejected(self, repo, session):
        with pytest.raises(UnknownFieldError):
            repo.execute(descriptor(sort=(SortSpec("password"),)))
        with pytest.raises(UnknownFieldError):
            repo.execute(descriptor(projection=("id", "password")))


class TestSpecRoundTrip:
    def test_search_with_date_range_against_database(self, session):
        repo = UserRepository(session=session)
        UserFactory(first_name="Ann", created_at=BASE)
        UserFactory(first_name="Bob", last_name="Mann", created_at=BASE + timedelta(days=2))
        UserFactory(first_name="Ann", last_name="Old", created_at=BASE - timedelta(days=30))
        UserFactory(first_name="Cy", created_at=BASE)
        session.flush()

        spec = QuerySpec.from_raw_parameters(
            {"q": "ann", "dateRange.from": "2024-01-01T00:00:00Z"},
            valid_fields=repo.queryable_fields(),
        )
        rows, total = repo.execute(
            spec.build_descriptor(["firstName", "lastName"], now=BASE + timedelta(days=10))
        )

        assert total == 2
        assert sorted(r.first_name for r in rows) == ["Ann", "Bob"]


class TestAssignUpdates:
    @pytest.fixture()
    def repo(self, session) -> UserRepository:
        return UserRepository(session=session)

    def test_whitelisted_attributes_are_assigned(self, repo, session):
        user = UserFactory(first_name="Ann")
        session.flush()

        repo.assign_updates(user, {"first_name": "Anna", "bio": "Runner"})

        assert session.execute(select(User.first_name, User.bio).where(User.id == user.id)).one() == (
            "Anna",
            "Runner",
        )

    def test_model_validators_run(self, repo, session):
        user = UserFactory()
        session.flush()

        repo.assign_updates(user, {"email": "  New@Example.COM "})

        assert user.email == "new@example.com"

    def test_non_updatable_attribute_rejected(self, repo, session):
        user = UserFactory(public_user_id="keep-me")
        session.flush()

        with pytest.raises(ValueError, match="public_user_id"):
            repo.assign_updates(user, {"public_user_id": "changed"})

        assert user.public_user_id == "keep-me"
