from __future__ import annotations

from typing import Any, Optional


class DomainError(Exception):
    """Base exception for business rule violations.

    ``status_code`` is the HTTP status the API layer answers with and
    ``error_code`` an optional machine readable code for clients.
    """

    status_code = 400

    def __init__(self, message: str, *, error_code: Optional[str] = None, **extra: Any):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.extra = extra


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    status_code = 400


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""

    status_code = 401


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    status_code = 403


class NotFoundError(DomainError):
    status_code = 404


class ConflictError(DomainError):
    """Raised when a unique business key is already taken."""

    status_code = 409


class AccountLockedError(DomainError):
    status_code = 429

    def __init__(self, message: str, *, retry_after, **extra: Any):
        super().__init__(message, error_code="ACCOUNT_LOCKED", retry_after=retry_after, **extra)
        self.retry_after = retry_after


class TokenError(DomainError):
    """Raised when a bearer token is missing, malformed or expired."""

    status_code = 401
