"""Repository layer exports."""

from __future__ import annotations

from .base import BaseRepository, apply_sort_keys, compile_filter
from .role import RoleRepository
from .user import UserRepository

__all__ = [
    "BaseRepository",
    "RoleRepository",
    "UserRepository",
    "apply_sort_keys",
    "compile_filter",
]
