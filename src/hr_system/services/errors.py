"""Domain errors raised by services and mapped to HTTP responses by the API."""

from __future__ import annotations

from typing import Any


class ServiceError(Exception):
    """Base class for expected business errors."""

    status_code = 400

    def __init__(self, message: str, details: Any = None):
        self.message = message
        self.details = details
        super().__init__(message)


class NotFoundError(ServiceError):
    status_code = 404

    def __init__(self, entity: str, entity_id: Any = None):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found")


class BusinessRuleError(ServiceError):
    """A request that is well-formed but breaks a business rule."""


class ConflictError(ServiceError):
    """Unique-key clash (duplicate file number, duplicate email)."""

    status_code = 409


class AuthenticationError(ServiceError):
    status_code = 401


class AccountLockedError(ServiceError):
    status_code = 423
