"""
API Middleware - Request Tracking

Every request gets an X-Request-ID (the caller's, or a generated one),
exposed to endpoints as ``request.state.request_id`` and echoed on the
response. Completed requests are logged with method, path, status and
duration; health checks log at DEBUG.
"""

import time
import uuid
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from appcenter_datasource.core import get_logger

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
QUIET_PATHS = frozenset({"/health"})


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Tag requests with an ID and log one line per completed request."""

    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        context = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "client_ip": request.client.host if request.client else "unknown",
        }

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.error("API request failed", exc_info=True, extra=context)
            raise
        duration_ms = round((time.perf_counter() - started) * 1000, 2)

        response.headers[REQUEST_ID_HEADER] = request_id

        log = logger.debug if request.url.path in QUIET_PATHS else logger.info
        log(
            f"{request.method} {request.url.path} -> {response.status_code}",
            extra={**context, "status_code": response.status_code, "duration_ms": duration_ms},
        )
        return response
