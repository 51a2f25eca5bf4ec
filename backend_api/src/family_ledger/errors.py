"""
Error types and the JSON error envelope.

Stores raise LedgerError subclasses; routers translate them into HTTP errors.
Every error leaves the API as {"error": "..."} or, for request validation,
{"errors": [{"field": ..., "message": ...}]}.
"""

from typing import Any, Dict, List

import structlog
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = structlog.get_logger(__name__)


class LedgerError(Exception):
    """Base class for domain errors raised by the stores."""


class DuplicateUserError(LedgerError):
    """A unique user attribute (email or username) is already taken."""

    messages = {
        "email": "Email already registered",
        "username": "Username already taken",
    }

    def __init__(self, field: str):
        self.field = field
        super().__init__(self.messages.get(field, f"{field} already exists"))


class LastAdminError(LedgerError):
    """The change would leave a family without any admin."""

    def __init__(self) -> None:
        super().__init__("A family must keep at least one admin")


def bad_request(exc: LedgerError) -> HTTPException:
    """Translate a domain error into a 400 response."""
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


def _format_validation_errors(exc: RequestValidationError) -> List[Dict[str, Any]]:
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        errors.append(
            {
                "field": ".".join(loc) or None,
                "message": err.get("msg", "Invalid value"),
                "location": err.get("loc", ("body",))[0],
            }
        )
    return errors


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"errors": _format_validation_errors(exc)},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "unhandled_error",
        method=request.method,
        path=request.url.path,
        error_type=type(exc).__name__,
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
