"""
Correlation ID Middleware

Tags every request with a correlation id and logs one line per request.
"""

import time
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from ...utils.logger import get_logger, set_correlation_id
from ...utils.idgen import generate_correlation_id

logger = get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-Id"


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """
    - Reuses the caller's X-Correlation-Id or generates one
    - Puts it in the logging context for the request
    - Echoes it on the response
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or generate_correlation_id()
        set_correlation_id(correlation_id)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        response.headers[CORRELATION_HEADER] = correlation_id
        logger.info(
            "Request handled",
            extra={
                "user_id": request.headers.get("X-User-Id"),
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round(elapsed_ms, 1),
            }
        )
        return response
