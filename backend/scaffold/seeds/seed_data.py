"""Idempotent database seed helpers for local development environments."""

from __future__ import annotations

import logging
from typing import Any

from scaffold.models.role import Role
from scaffold.models.user import User
from scaffold.uow.sqlalchemy_uow import SQLAlchemyUnitOfWork

LOGGER = logging.getLogger(__name__)

ROLE_FIXTURES: list[dict[str, Any]] = [
    {"name": "Admin", "description": "Administrator role", "is_system_role": True},
    {"name": "User", "description": "Standard user role", "is_system_role": False},
]

USER_FIXTURES: list[dict[str, Any]] = [
    {
        "first_name": "Admin",
        "last_name": "User",
        "email": "admin@example.com",
        "phone_number": "+10000000000",
        "public_user_id": "admin",
        "roles": ["Admin"],
    },
    {
        "first_name": "Ann",
        "last_name": "Smith",
        "email": "ann.smith@example.com",
        "phone_number": "+10000000001",
        "public_user_id": "ann-smith",
        "roles": ["User"],
    },
    {
        "first_name": "Bob",
        "last_name": "Mann",
        "email": "bob.mann@example.com",
        "phone_number": "+10000000002",
        "public_user_id": "bob-mann",
        "bio": "Runs the weekly book club.",
        "roles": ["User"],
    },
    {
        "first_name": "Carla",
        "last_name": "Jones",
        "email": "carla.jones@example.com",
        "phone_number": "+10000000003",
        "public_user_id": "carla-jones",
        "roles": ["User"],
    },
]


def _touch(summary: dict[str, dict[str, int]], table: str, created: bool) -> None:
    """Update summary counters for the given table."""
    entry = summary.setdefault(table, {"created": 0, "existing": 0})
    entry["created" if created else "existing"] += 1


def seed_roles(uow: SQLAlchemyUnitOfWork, *, verbose: bool = False) -> dict[str, dict[str, int]]:
    """Create the ``Admin`` and ``User`` roles."""
    summary: dict[str, dict[str, int]] = {}
    for fixture in ROLE_FIXTURES:
        created = uow.roles.get_by_name(fixture["name"]) is None
        if created:
            uow.roles.add(Role(**fixture))
        if verbose:
            LOGGER.debug("role %s %s", fixture["name"], "created" if created else "exists")
        _touch(summary, "roles", created)
    return summary


def seed_users(uow: SQLAlchemyUnitOfWork, *, verbose: bool = False) -> dict[str, dict[str, int]]:
    """Create the demo users and attach their roles by name."""
    summary: dict[str, dict[str, int]] = {}
    for fixture in USER_FIXTURES:
        data = dict(fixture)
        role_names = data.pop("roles", [])
        created = uow.users.get_by_email(data["email"]) is None
        if created:
            user = User(**data)
            roles = [uow.roles.get_by_name(name) for name in role_names]
            user.roles = [role for role in roles if role is not None]
            uow.users.add(user)
        if verbose:
            LOGGER.debug("user %s %s", data["email"], "created" if created else "exists")
        _touch(summary, "users", created)
    return summary


def run_all(*, verbose: bool = False) -> dict[str, dict[str, int]]:
    """Run all seeders in foreign-key order inside one read-write unit of work."""
    if verbose:
        LOGGER.info("Running full seed pipeline...")
    combined: dict[str, dict[str, int]] = {}
    with SQLAlchemyUnitOfWork() as uow:
        for func in (seed_roles, seed_users):
            result = func(uow, verbose=verbose)
            for table, counters in result.items():
                entry = combined.setdefault(table, {"created": 0, "existing": 0})
                entry["created"] += counters.get("created", 0)
                entry["existing"] += counters.get("existing", 0)
    return combined


__all__ = ["run_all", "seed_roles", "seed_users"]
