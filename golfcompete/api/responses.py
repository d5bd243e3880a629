"""
JSON envelope helpers shared by every route.

Success: {"status": "success", "data": ..., "timestamp": ...} (+ "metadata"
for paginated lists). Error: {"status": "error", "message": ..., "code": ...,
"timestamp": ...}.
"""

from typing import Any, Dict, Optional

from fastapi.responses import JSONResponse, Response

from golfcompete.services.base_service import PaginatedResponse, ServiceResponse
from golfcompete.services.errors import DatabaseError, ErrorCodes, ServiceError
from golfcompete.utils.datetime_utils import to_iso, utcnow

STATUS_BY_CODE = {
    ErrorCodes.VALIDATION_ERROR: 400,
    ErrorCodes.INVALID_STATE: 400,
    ErrorCodes.UNAUTHORIZED: 401,
    ErrorCodes.AUTH_INVALID_CREDENTIALS: 401,
    ErrorCodes.AUTH_EMAIL_IN_USE: 409,
    ErrorCodes.AUTH_WEAK_PASSWORD: 400,
    ErrorCodes.FORBIDDEN: 403,
    ErrorCodes.DB_NOT_FOUND: 404,
    ErrorCodes.DB_QUERY_ERROR: 400,
    ErrorCodes.DB_RPC_ERROR: 500,
    ErrorCodes.CONFIGURATION_ERROR: 500,
    ErrorCodes.INTERNAL_SERVER_ERROR: 500,
}

CODE_BY_STATUS = {
    400: ErrorCodes.VALIDATION_ERROR,
    401: ErrorCodes.UNAUTHORIZED,
    403: ErrorCodes.FORBIDDEN,
    404: ErrorCodes.DB_NOT_FOUND,
    409: ErrorCodes.DB_CONSTRAINT_VIOLATION,
}


class ApiError(Exception):
    """Raised by handlers to short-circuit with an error envelope."""

    def __init__(self, status_code: int, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.code = code or CODE_BY_STATUS.get(status_code, ErrorCodes.INTERNAL_SERVER_ERROR)

    @classmethod
    def from_service_error(cls, error: ServiceError) -> "ApiError":
        return cls(status_for_error(error), error.message, error.code)


def status_for_error(error: ServiceError) -> int:
    """HTTP status for a service error; unique conflicts are 409, other constraints 400."""
    if error.code == ErrorCodes.DB_CONSTRAINT_VIOLATION:
        return 409 if isinstance(error, DatabaseError) and error.unique_violation else 400
    return STATUS_BY_CODE.get(error.code, 500)


def success_response(
    data: Any = None, status_code: int = 200, metadata: Optional[Dict] = None
) -> JSONResponse:
    content = {"status": "success", "data": data, "timestamp": to_iso(utcnow())}
    if metadata is not None:
        content["metadata"] = metadata
    return JSONResponse(status_code=status_code, content=content)


def error_response(
    status_code: int, message: str, code: str, details: Optional[Any] = None
) -> JSONResponse:
    content = {
        "status": "error",
        "message": message,
        "code": code,
        "timestamp": to_iso(utcnow()),
    }
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


def unwrap(response: ServiceResponse) -> Any:
    """Return the response data or raise its error as an ApiError."""
    if not response.ok:
        raise ApiError.from_service_error(response.error)
    return response.data


def respond(response: ServiceResponse, status_code: int = 200) -> JSONResponse:
    """Map a ServiceResponse straight onto the envelope."""
    data = unwrap(response)
    metadata = response.metadata if isinstance(response, PaginatedResponse) else None
    return success_response(data, status_code=status_code, metadata=metadata)


def no_content(response: Optional[ServiceResponse] = None) -> Response:
    if response is not None:
        unwrap(response)
    return Response(status_code=204)
