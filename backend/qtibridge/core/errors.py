"""Exception handlers producing the error envelope."""

import uuid
from typing import Any

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from qtibridge.core.app_exceptions import AppError
from qtibridge.core.config import settings
from qtibridge.core.logging import get_logger

logger = get_logger(__name__)

# Pydantic error types raised by the request size caps
_LIMIT_ERROR_MARKERS = ("too_long", "too_short", "greater_than", "less_than")


class ErrorResponse(BaseModel):
    """Error response envelope: {error_code, message, details, request_id}."""

    error_code: str
    message: str
    details: Any | None = None
    request_id: str | None = None


def get_request_id(request: Request) -> str:
    """Request id set by the middleware, or a fresh one outside it."""
    return getattr(request.state, "request_id", None) or str(uuid.uuid4())


def _envelope(
    request: Request, status_code: int, code: str, message: str, details: Any = None
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error_code=code,
            message=message,
            details=details,
            request_id=get_request_id(request),
        ).model_dump(),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Request body validation failures (422); size caps get their own code."""
    details: list[dict[str, Any]] = []
    limit_exceeded = False

    for error in exc.errors():
        error_type = error.get("type", "validation_error")
        entry: dict[str, Any] = {
            "field": ".".join(str(loc) for loc in error.get("loc", [])),
            "issue": error.get("msg", "Validation error"),
            "type": error_type,
        }
        if any(marker in error_type for marker in _LIMIT_ERROR_MARKERS):
            limit_exceeded = True
            ctx = error.get("ctx") or {}
            limit = ctx.get("max_length", ctx.get("min_length"))
            if limit is not None:
                entry["limit"] = limit
        details.append(entry)

    if limit_exceeded:
        code, message = "VALIDATION_LIMIT_EXCEEDED", "Validation limit exceeded"
    else:
        code, message = "VALIDATION_ERROR", "Invalid request data"
    return _envelope(request, status.HTTP_422_UNPROCESSABLE_ENTITY, code, message, details)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """AppError keeps its code; other HTTP errors are wrapped as HTTP_ERROR."""
    if isinstance(exc, AppError):
        return _envelope(request, exc.status_code, exc.code, exc.message, exc.details)

    if isinstance(exc.detail, dict):
        detail = dict(exc.detail)
        code = detail.pop("code", "HTTP_ERROR")
        message = detail.pop("message", "An error occurred")
        return _envelope(request, exc.status_code, code, message, detail.get("details", detail or None))

    return _envelope(request, exc.status_code, "HTTP_ERROR", str(exc.detail))


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Unhandled exceptions (500); internals are hidden in production."""
    logger.error(
        "Unhandled exception",
        extra={"request_id": get_request_id(request), "error": str(exc)},
        exc_info=exc,
    )

    if settings.ENV == "prod":
        return _envelope(
            request, status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR", "An internal server error occurred"
        )
    return _envelope(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "INTERNAL_ERROR",
        str(exc),
        {"type": type(exc).__name__},
    )
