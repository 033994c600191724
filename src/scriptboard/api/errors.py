"""Mapping of application errors to JSON error responses."""

import logging
from typing import Dict, List, Optional, Tuple, Type

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..errors import (
    AuthenticationError,
    InputValidationError,
    NotFoundError,
    PermissionDeniedError,
    RateLimitExceeded,
    ScriptboardError,
    ShareExpiredError,
    UpstreamError,
)
from ..guards.rate_limit import rate_limit_headers

logger = logging.getLogger(__name__)

INTERNAL_ERROR = "Internal server error"
UPSTREAM_ERROR = "AI service temporarily unavailable, please try again"

# Checked in order, so subclasses come before their bases.
STATUS_CODES: List[Tuple[Type[ScriptboardError], int]] = [
    (InputValidationError, 400),
    (AuthenticationError, 401),
    (PermissionDeniedError, 403),
    (ShareExpiredError, 410),
    (NotFoundError, 404),
    (RateLimitExceeded, 429),
    (UpstreamError, 502),
]


def error_response(
    status_code: int, message: str, headers: Optional[Dict[str, str]] = None
) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


def status_for(exc: ScriptboardError) -> int:
    """HTTP status for an application error; 500 for anything unmapped."""
    for error_type, status_code in STATUS_CODES:
        if isinstance(exc, error_type):
            return status_code
    return 500


async def scriptboard_error_handler(request: Request, exc: ScriptboardError) -> JSONResponse:
    status_code = status_for(exc)

    if isinstance(exc, RateLimitExceeded):
        return error_response(status_code, str(exc), headers=rate_limit_headers(exc.result))

    if isinstance(exc, UpstreamError):
        logger.error(f"{request.method} {request.url.path}: upstream failure: {exc}")
        return error_response(status_code, UPSTREAM_ERROR)

    if status_code == 500:
        logger.error(f"{request.method} {request.url.path}: {type(exc).__name__}: {exc}")
        return error_response(status_code, INTERNAL_ERROR)

    return error_response(status_code, str(exc))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.debug(f"{request.method} {request.url.path}: invalid request: {exc.errors()}")
    return error_response(400, "Invalid request body")


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"{request.method} {request.url.path}: unhandled error")
    return error_response(500, INTERNAL_ERROR)


def install_error_handlers(app: FastAPI) -> None:
    """Register the JSON error envelope on ``app``."""
    app.add_exception_handler(ScriptboardError, scriptboard_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
