"""
Error Handlers

Every error response has the same envelope:

    {"error": {"code": ..., "message": ..., "details": {...}}}

and echoes the request's X-Correlation-Id.
"""

from typing import Any, Dict, Optional
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from ...domain.errors import DomainError, RateLimitError, ValidationError
from ...utils.logger import get_logger, get_correlation_id

logger = get_logger(__name__)


def _error_response(
    status_code: int,
    body: Dict[str, Any],
    headers: Optional[Dict[str, str]] = None
) -> JSONResponse:
    response_headers = {"X-Correlation-Id": get_correlation_id() or ""}
    response_headers.update(headers or {})
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(body),
        headers=response_headers
    )


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """Expected business errors (not found, invalid state, denied, limited)"""
    logger.warning(
        f"{exc.error_code} on {request.method} {request.url.path}: {exc.message}",
        extra={"error_code": exc.error_code, "details": exc.details}
    )

    headers = {}
    if isinstance(exc, RateLimitError) and exc.retry_after is not None:
        headers["Retry-After"] = str(exc.retry_after)

    return _error_response(exc.http_status, exc.to_dict(), headers)


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Body, path or query did not match the route's schema"""
    errors = jsonable_encoder(exc.errors())
    logger.warning(
        f"Request validation failed on {request.method} {request.url.path}",
        extra={"error_code": "VALIDATION_ERROR", "details": errors}
    )
    error = ValidationError("Request validation failed", {"errors": errors})
    return _error_response(status.HTTP_400_BAD_REQUEST, error.to_dict())


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    # Stack trace goes to the log only
    logger.error(
        f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}: {exc}",
        exc_info=True
    )
    error = DomainError(
        "An unexpected error occurred",
        {"hint": "Check server logs for details"},
        error_code="INTERNAL_ERROR"
    )
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, error.to_dict())


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)
