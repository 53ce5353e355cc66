"""Custom exceptions for application-specific error handling."""

from __future__ import annotations

from typing import Any, Dict, Optional


class AccountAuthException(Exception):
    """Base exception for all application errors."""

    def __init__(
        self,
        message: str,
        *,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 400,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code
        self.headers = headers
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "details": self.details,
        }


# ===== FLOW EXCEPTIONS =====


class AlreadyExistsError(AccountAuthException):
    """Raised when a resource with the same identity already exists."""

    def __init__(self, message: str = "already_exists", *, error_code: str = "ALREADY_EXISTS"):
        super().__init__(message, error_code=error_code, status_code=409)


class EmailTakenError(AlreadyExistsError):
    """Raised when registering an email that already has an account."""

    def __init__(self, message: str = "User already registered"):
        super().__init__(message, error_code="EMAIL_TAKEN")


class NotFoundError(AccountAuthException):
    """Raised when a requested resource is not found."""

    def __init__(self, message: str = "not_found", *, error_code: str = "NOT_FOUND"):
        super().__init__(message, error_code=error_code, status_code=404)


class UserNotFoundError(NotFoundError):
    def __init__(self, message: str = "User not found"):
        super().__init__(message, error_code="USER_NOT_FOUND")


class TokenInvalidError(NotFoundError):
    """Raised for unknown, expired, consumed or wrong-purpose one-time tokens."""

    def __init__(self, message: str = "Invalid token"):
        super().__init__(message, error_code="TOKEN_INVALID")


class UnauthorizedError(AccountAuthException):
    def __init__(self, message: str = "unauthorized", *, error_code: str = "UNAUTHORIZED"):
        super().__init__(message, error_code=error_code, status_code=401)


class AuthenticationRequiredError(UnauthorizedError):
    def __init__(self, message: str = "not_authenticated"):
        super().__init__(message, error_code="NOT_AUTHENTICATED")


class BadCredentialsError(UnauthorizedError):
    def __init__(self, message: str = "Incorrect password"):
        super().__init__(message, error_code="BAD_CREDENTIALS")


class NotConfirmedError(UnauthorizedError):
    """Raised on login to an unconfirmed account; a fresh code has been issued."""

    def __init__(self, message: str = "Account not confirmed, a new confirmation email was sent"):
        super().__init__(message, error_code="NOT_CONFIRMED")


class ForbiddenError(AccountAuthException):
    def __init__(self, message: str = "forbidden", *, error_code: str = "FORBIDDEN"):
        super().__init__(message, error_code=error_code, status_code=403)


class AlreadyConfirmedError(ForbiddenError):
    def __init__(self, message: str = "User already confirmed"):
        super().__init__(message, error_code="ALREADY_CONFIRMED")


# ===== SESSION CREDENTIAL EXCEPTIONS =====


class SessionTokenError(UnauthorizedError):
    """Base exception for bearer credential failures."""


class SignatureInvalidError(SessionTokenError):
    def __init__(self, message: str = "invalid_token"):
        super().__init__(message, error_code="SIGNATURE_INVALID")


class ExpiredTokenError(SessionTokenError):
    def __init__(self, message: str = "Token has expired"):
        super().__init__(message, error_code="EXPIRED_TOKEN")


class MalformedTokenError(SessionTokenError):
    def __init__(self, message: str = "malformed_token"):
        super().__init__(message, error_code="MALFORMED_TOKEN")


# ===== INFRASTRUCTURE EXCEPTIONS =====


class StorageUnavailableError(AccountAuthException):
    """Raised when the database cannot serve a request."""

    def __init__(self, message: str = "storage_unavailable"):
        super().__init__(message, error_code="STORAGE_UNAVAILABLE", status_code=503)


class NotificationDeliveryError(AccountAuthException):
    """Raised when an email could not be handed to the transport."""

    def __init__(self, message: str = "notification_failed", *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code="NOTIFICATION_FAILED", details=details, status_code=502)


class InternalError(AccountAuthException):
    def __init__(self, message: str = "There was an error"):
        super().__init__(message, error_code="INTERNAL_ERROR", status_code=500)
