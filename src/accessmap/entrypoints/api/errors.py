"""Exception handlers mapping domain errors onto HTTP responses."""

from __future__ import annotations

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from accessmap.core.exceptions import (
    AccessMapError,
    ConflictError,
    ErrorCode,
    InternalError,
    NotFoundError,
    ValidationError,
)

logger = structlog.get_logger()

GENERIC_SERVER_MESSAGE = "Internal server error"


def status_for(exc: AccessMapError) -> int:
    """HTTP status code for a domain error."""
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, ValidationError):
        return 400
    if isinstance(exc, ConflictError):
        return 409
    if exc.code is ErrorCode.RATE_LIMIT_EXCEEDED:
        return 429
    return 500


def _error_body(exc: AccessMapError, status_code: int, production: bool) -> dict[str, object]:
    body = exc.to_dict()
    if status_code >= 500 and production:
        body["error"] = {"code": exc.code.value, "message": GENERIC_SERVER_MESSAGE, "details": None}
    return body


def _is_production(request: Request) -> bool:
    settings = getattr(request.app.state, "settings", None)
    return bool(settings and settings.is_production)


def register_error_handlers(app: FastAPI) -> None:
    """Register global error handlers on the app.

    Args:
        app: FastAPI application instance.
    """

    @app.exception_handler(AccessMapError)
    async def access_map_error_handler(request: Request, exc: AccessMapError) -> JSONResponse:
        status_code = status_for(exc)
        if status_code >= 500:
            logger.error(
                "request_failed",
                path=request.url.path,
                method=request.method,
                code=exc.code.value,
                error=exc.message,
            )
        else:
            logger.info(
                "request_rejected",
                path=request.url.path,
                method=request.method,
                code=exc.code.value,
                status=status_code,
            )
        return JSONResponse(
            status_code=status_code,
            content=_error_body(exc, status_code, _is_production(request)),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ())),
                "message": err.get("msg", ""),
            }
            for err in exc.errors()
        ]
        error = AccessMapError(
            code=ErrorCode.VALIDATION_ERROR,
            message="Request validation failed",
            details={"errors": errors},
        )
        return JSONResponse(status_code=400, content=error.to_dict())

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        code = "NOT_FOUND" if exc.status_code == 404 else "HTTP_ERROR"
        message = str(exc.detail)
        if exc.status_code == 404:
            message = f"Route {request.method} {request.url.path} not found"
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": {"code": code, "message": message, "details": None}},
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "unhandled_exception",
            path=request.url.path,
            method=request.method,
            error_type=type(exc).__name__,
        )
        error = InternalError(str(exc) or type(exc).__name__)
        return JSONResponse(
            status_code=500,
            content=_error_body(error, 500, _is_production(request)),
        )
