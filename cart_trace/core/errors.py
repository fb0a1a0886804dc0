"""Service error taxonomy.

Every error carries the HTTP status it maps to; the API layer renders them as
``{"error": message}`` (plus ``details`` for validation failures).
"""

from typing import Any


class ServiceError(Exception):
    status_code = 500

    def __init__(self, message: str, *, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(ServiceError):
    """Malformed input, raised before any side effect."""

    status_code = 400


class Unauthenticated(ServiceError):
    status_code = 401


class InvalidCredentials(ServiceError):
    """Generic sign-in failure. Never says which identity type exists."""

    status_code = 401


class NotFound(ServiceError):
    status_code = 404


class StoreError(ServiceError):
    """The identity provider or relational store rejected a write."""

    status_code = 400


class IdentityCreationFailed(StoreError):
    pass


class TenantCreationFailed(StoreError):
    pass


class ProfileCreationFailed(StoreError):
    pass


class RoleAssignmentFailed(StoreError):
    pass


class PasswordResetFailed(ServiceError):
    status_code = 500


class RollbackFailure(ServiceError):
    """A compensating action failed while undoing a partial flow."""

    status_code = 500
