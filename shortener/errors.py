"""
Error taxonomy and FastAPI exception handlers.

AppError subclasses carry their HTTP status and a stable error code; the
handlers registered here turn them (and request validation, unknown routes,
storage failures and anything unexpected) into ``{"error", "code"}`` JSON.
"""

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DBAPIError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base application error. All typed errors inherit from this."""

    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(self, message: str, *, details: Optional[Any] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        payload: dict = {"error": self.message, "code": self.error_code}
        if self.details is not None:
            payload["details"] = self.details
        return payload


class InvalidInputError(AppError):
    status_code = 400
    error_code = "invalid_input"


class NotFoundError(AppError):
    status_code = 404
    error_code = "not_found"


class CodeConflictError(AppError):
    status_code = 409
    error_code = "code_conflict"


class StorageUnavailableError(AppError):
    status_code = 500
    error_code = "storage_unavailable"


def register_error_handlers(app: FastAPI, *, debug: bool = False) -> None:
    """Register global exception handlers on the FastAPI app.

    Server-side errors (5xx) only expose ``details`` with ``debug`` set; they
    carry raw driver or exception text.
    """

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        content = exc.to_dict()
        if exc.status_code >= 500 and not debug:
            content.pop("details", None)
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
        # pydantic prefixes messages raised from validators with "Value error, "
        message = message.removeprefix("Value error, ")
        return JSONResponse(status_code=400, content=InvalidInputError(message).to_dict())

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 404:
            return JSONResponse(status_code=404, content=NotFoundError("Route not found").to_dict())
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail), "code": "http_error"},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(DBAPIError)
    async def storage_error_handler(request: Request, exc: DBAPIError) -> JSONResponse:
        logger.exception("Storage failure on %s %s", request.method, request.url.path)
        error = StorageUnavailableError(
            "Storage is temporarily unavailable",
            details=str(exc.orig) if debug else None,
        )
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        error = AppError("Internal server error", details=str(exc) if debug else None)
        return JSONResponse(status_code=error.status_code, content=error.to_dict())
