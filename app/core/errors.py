"""
Error types and the JSON error envelope.

Every error response has the shape:

    {"error": {"code": "...", "message": "...", "status": 403}}
"""

from __future__ import annotations

from typing import Any, Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse

log = structlog.get_logger()


class ConsoleError(Exception):
    """Base class for errors rendered into the JSON error envelope."""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    message: str = "Internal server error"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        self.message = message or self.message
        self.code = code or self.code
        self.status_code = status_code or self.status_code
        super().__init__(self.message)

    def extra(self) -> dict[str, Any]:
        return {}


class AuthenticationError(ConsoleError):
    status_code = 401
    code = "AUTHENTICATION_REQUIRED"
    message = "Authentication required"


class OrganizationAccessDenied(ConsoleError):
    status_code = 403
    code = "FORBIDDEN"
    message = "You do not have permission to access audit logs for this organization"


class AuditValidationError(ConsoleError):
    status_code = 400
    code = "VALIDATION_FAILED"

    def __init__(self, fields: list[str]):
        self.fields = fields
        super().__init__(f"Missing required fields: {', '.join(fields)}")

    def extra(self) -> dict[str, Any]:
        return {"fields": self.fields}


class AuditStorageError(ConsoleError):
    status_code = 500
    code = "AUDIT_STORAGE_FAILED"


def error_response(status: int, code: str, message: str, **extra: Any) -> JSONResponse:
    return JSONResponse(
        status_code=status,
        content={"error": {"code": code, "message": message, "status": status, **extra}},
    )


async def _console_error_handler(request: Request, exc: ConsoleError) -> JSONResponse:
    return error_response(exc.status_code, exc.code, exc.message, **exc.extra())


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return error_response(exc.status_code, f"HTTP_{exc.status_code}", str(exc.detail))


async def _validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    fields = [".".join(str(part) for part in err["loc"]) for err in exc.errors()]
    log.info("request.invalid", path=request.url.path, fields=fields)
    return error_response(422, "REQUEST_INVALID", "Request validation failed", fields=fields)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ConsoleError, _console_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
