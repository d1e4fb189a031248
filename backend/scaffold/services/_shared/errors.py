"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and never depend on Flask or
HTTP. Repositories and services raise them; the translation to HTTP
responses happens in ``BaseService.translate_exceptions()``.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - They can be safely raised from repositories or domain logic.
    """


@dataclass(slots=True)
class NotFoundError(ServiceError):
    """
    Raised when an entity is not found in the repository.

    :param entity: Entity name (e.g., "User").
    :type entity: str
    :param key: Identifier or search key.
    :type key: str | int
    """

    entity: str
    key: str | int

    def __str__(self) -> str:
        return f"{self.entity} not found: {self.key}"


@dataclass(slots=True)
class ConflictError(ServiceError):
    """
    Raised when a unique constraint or business rule conflict occurs.

    :param entity: Entity name (e.g., "User").
    :type entity: str
    :param detail: Short human-readable explanation.
    :type detail: str
    """

    entity: str
    detail: str

    def __str__(self) -> str:
        return f"Conflict on {self.entity}: {self.detail}"


class UnknownFieldError(ServiceError):
    """Raised when a query descriptor references fields the repository does not expose."""

    def __init__(self, entity: str, fields: Iterable[str]) -> None:
        self.entity = entity
        self.fields = sorted(set(fields))
        super().__init__(f"Unknown {entity} field(s): {', '.join(self.fields)}")


class UnknownRelationError(ServiceError):
    """Raised when a descriptor asks to eager-load a relation the model lacks."""

    def __init__(self, entity: str, relation: str) -> None:
        self.entity = entity
        self.relation = relation
        super().__init__(f"Unknown {entity} relation: {relation}")
