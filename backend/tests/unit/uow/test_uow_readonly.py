import pytest
from sqlalchemy import text

from scaffold.models.user import User
from scaffold.uow import SQLAlchemyReadOnlyUnitOfWork as ROuow
from tests.factories.user import UserFactory


class TestSQLAlchemyReadOnlyUnitOfWork:
    def test_blocks_orm_flush_writes(self, session):
        UserFactory()
        session.flush()
        with ROuow() as uow, pytest.raises(RuntimeError, match="ORM flush blocked"):
            uow.session.add(UserFactory.build())
            uow.session.flush()

    def test_blocks_core_dml(self, session):
        UserFactory()
        session.flush()
        with ROuow() as uow, pytest.raises(RuntimeError, match="SQL statement blocked"):
            uow.session.execute(text("DELETE FROM users"))

    def test_allows_reads_through_repositories(self, session):
        user = UserFactory()
        session.flush()

        with ROuow() as uow:
            assert uow.users.get(user.id) is not None
            assert uow.session.query(User).count() == 1

    def test_disallows_commit(self, session):
        with ROuow() as uow, pytest.raises(RuntimeError, match="does not allow commit"):
            uow.commit()
