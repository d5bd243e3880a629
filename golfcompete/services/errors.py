"""
Error types shared by the service layer.

Db services carry these in the ``error`` field of a ServiceResponse;
the module-level account functions raise them. The API layer maps both
to HTTP statuses.
"""

from typing import Optional


class ErrorCodes:
    """Stable error codes exposed in the JSON error envelope."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_STATE = "INVALID_STATE"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    AUTH_INVALID_CREDENTIALS = "AUTH_INVALID_CREDENTIALS"
    AUTH_EMAIL_IN_USE = "AUTH_EMAIL_IN_USE"
    AUTH_WEAK_PASSWORD = "AUTH_WEAK_PASSWORD"
    DB_NOT_FOUND = "DB_NOT_FOUND"
    DB_CONSTRAINT_VIOLATION = "DB_CONSTRAINT_VIOLATION"
    DB_QUERY_ERROR = "DB_QUERY_ERROR"
    DB_RPC_ERROR = "DB_RPC_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"


class ServiceError(Exception):
    """Base error for service failures."""

    def __init__(
        self,
        message: str,
        code: str = ErrorCodes.INTERNAL_SERVER_ERROR,
        original_error: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.original_error = original_error

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class DatabaseError(ServiceError):
    """Persistence failure (query, constraint, missing row, transaction)."""

    def __init__(
        self,
        message: str,
        code: str = ErrorCodes.DB_QUERY_ERROR,
        original_error: Optional[BaseException] = None,
        unique_violation: bool = False,
    ):
        super().__init__(message, code, original_error)
        self.unique_violation = unique_violation


class AuthError(ServiceError):
    """Identity failure (bad credentials, taken email, weak password)."""

    def __init__(
        self,
        message: str,
        code: str = ErrorCodes.UNAUTHORIZED,
        original_error: Optional[BaseException] = None,
    ):
        super().__init__(message, code, original_error)


def not_found(resource: str) -> DatabaseError:
    return DatabaseError(f"{resource} not found", ErrorCodes.DB_NOT_FOUND)
