"""Typed business errors and the structured failure envelope."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse


def build_error_payload(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"success": False, "error": {"code": code, "message": message}}
    if details is not None:
        payload["error"]["details"] = details
    return payload


class AppError(Exception):
    """Application-scoped error for standardized API responses."""

    status_code: int = 500
    code: str = "internal_error"

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        *,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code

    @property
    def payload(self) -> Dict[str, Any]:
        return build_error_payload(self.code, self.message, self.details)


class NotFoundError(AppError):
    """Referenced request, interview, invitation, hire or notification does not exist."""

    status_code = 404
    code = "not_found"


class ForbiddenError(AppError):
    """Caller does not own the referenced entity."""

    status_code = 403
    code = "forbidden"


class ConflictError(AppError):
    """An invariant would be violated (duplicate active contract, interview, response, feedback)."""

    status_code = 409
    code = "conflict"


class InvalidError(AppError):
    """Malformed input: bad enum value, out-of-range rating, non-future date."""

    status_code = 400
    code = "invalid"


class ExpiredError(AppError):
    """Invitation is past its response window."""

    status_code = 410
    code = "expired"


class DependencyError(AppError):
    """Store or channel failure during a business write."""

    status_code = 503
    code = "dependency_failure"


async def app_error_handler(_: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.payload)

