"""
Typed application errors.

Services raise these instead of bare HTTPException so every failure carries a
stable machine-readable code next to the human message. The handler in
main.py renders them as {"detail": ..., "code": ...}.
"""

from typing import Optional

from fastapi import HTTPException


class AppError(HTTPException):
    """Base class for expected, client-facing errors"""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, detail: str, code: Optional[str] = None, headers: Optional[dict] = None):
        super().__init__(status_code=self.status_code, detail=detail, headers=headers)
        if code:
            self.code = code


class BadRequestError(AppError):
    status_code = 400
    code = "BAD_REQUEST"


class ValidationError(AppError):
    status_code = 400
    code = "VALIDATION_ERROR"


class UnauthorizedError(AppError):
    status_code = 401
    code = "UNAUTHORIZED"

    def __init__(self, detail: str = "Not authenticated", code: Optional[str] = None):
        super().__init__(detail, code, headers={"WWW-Authenticate": "Bearer"})


class ForbiddenError(AppError):
    status_code = 403
    code = "FORBIDDEN"


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"


class ConflictError(AppError):
    status_code = 409
    code = "CONFLICT"
