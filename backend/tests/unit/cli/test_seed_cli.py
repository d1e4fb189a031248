"""Tests for the ``flask seed`` command group."""

from __future__ import annotations

from sqlalchemy import select

from scaffold.models.role import Role
from scaffold.models.user import User
from scaffold.seeds import seed_data


class TestSeedData:
    def test_seed_is_idempotent(self, session):
        first = seed_data.run_all()
        second = seed_data.run_all()

        assert first["roles"] == {"created": 2, "existing": 0}
        assert first["users"]["created"] == len(seed_data.USER_FIXTURES)
        assert second["users"] == {"created": 0, "existing": len(seed_data.USER_FIXTURES)}

    def test_admin_user_gets_admin_role(self, session):
        seed_data.run_all()

        admin = session.execute(select(User).where(User.email == "admin@example.com")).scalar_one()
        assert [r.name for r in admin.roles] == ["Admin"]
        system = session.execute(select(Role).where(Role.is_system_role.is_(True))).scalars().all()
        assert [r.name for r in system] == ["Admin"]


def test_seed_run_command_prints_summary(app, session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["seed", "run"])

    assert result.exit_code == 0, result.output
    assert "Seed summary:" in result.output
    assert "roles" in result.output
