"""
Request-scoped error taxonomy

Every error carries a stable ``code`` and an HTTP status. None of them is
fatal to the process: dependencies let them reach the exception handler
registered in ``saas_starter.main``, action wrappers turn them into
``{"error": ..., "code": ...}`` results.
"""

from typing import Dict, Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse


class AppError(Exception):
    """Base class for errors reported back to the caller"""

    code = "error"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Something went wrong"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> Dict:
        return {"error": self.message, "code": self.code}


class ValidationError(AppError):
    """Input did not match the declared shape"""

    code = "validation_error"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_message = "Invalid input"

    def __init__(self, message: Optional[str] = None, fields: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.fields = fields or {}

    def to_dict(self) -> Dict:
        result = super().to_dict()
        result["fields"] = self.fields
        return result


class Unauthenticated(AppError):
    code = "unauthenticated"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "User is not authenticated"


class InvalidToken(Unauthenticated):
    """Session token failed signature or expiry checks"""

    default_message = "Invalid or expired session token"


class NoTeam(AppError):
    code = "no_team"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "User is not part of a team"


class Forbidden(AppError):
    code = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You do not have access to this resource"


class NotFound(AppError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class InvalidSignature(AppError):
    code = "invalid_signature"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid signature"


STATUS_BY_CODE = {
    cls.code: cls.status_code
    for cls in (AppError, ValidationError, Unauthenticated, NoTeam, Forbidden, NotFound, InvalidSignature)
}


def status_for_result(result: Dict) -> int:
    """HTTP status for an action result dict"""
    if "error" not in result:
        return status.HTTP_200_OK
    return STATUS_BY_CODE.get(result.get("code"), status.HTTP_400_BAD_REQUEST)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render an AppError as {error: message}"""
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})
