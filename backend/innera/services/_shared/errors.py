"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic**: they never import Flask or HTTP
helpers. The translation to RFC 7807 responses lives in
``innera/core/errors.py``. Each class maps to exactly one error kind:

========================  ============
Exception                 HTTP status
========================  ============
``BadRequestError``       400
``AuthenticationError``   401
``AuthorizationError``    403
``NotFoundError``         404
``ConflictError``         409
========================  ============
"""

from __future__ import annotations

from dataclasses import dataclass


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Unknown subclasses are reported as 400 by the HTTP layer.
    """


class BadRequestError(ServiceError):
    """The caller broke a precondition it could have avoided (e.g. self-accept)."""


class AuthenticationError(ServiceError):
    """
    Missing, invalid, expired or revoked credential.

    Messages stay generic so clients cannot tell an expired token from a
    tampered one.
    """

    def __init__(self, message: str = "Invalid or expired token") -> None:
        super().__init__(message)


class AuthorizationError(ServiceError):
    """Authenticated, but the actor is not allowed to perform the action."""


@dataclass(slots=True)
class NotFoundError(ServiceError):
    """
    Raised when an entity is not found (or is not visible to the caller).

    :param entity: Entity name (e.g., "Entry").
    :param key: Identifier or search key.
    """

    entity: str
    key: str | int

    def __str__(self) -> str:
        return f"{self.entity} not found: {self.key}"


@dataclass(slots=True)
class ConflictError(ServiceError):
    """
    Raised on concurrent mutations and state-machine violations.

    ``detail`` should tell the client what to do next (refresh, retry,
    ask for a new invite).

    :param entity: Entity name (e.g., "Entry").
    :param detail: Short human-readable explanation.
    """

    entity: str
    detail: str

    def __str__(self) -> str:
        return f"Conflict on {self.entity}: {self.detail}"
