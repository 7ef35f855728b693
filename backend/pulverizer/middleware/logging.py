"""
Payload Pulverizer — Request Logging Middleware
=================================================

What:  One structured log line per HTTP request.
How:   Measures the time from middleware entry to response, then logs
       method, path, status, duration, request ID and client IP.
When:  After RequestIDMiddleware (uses its request ID).

What we log vs what we DON'T log:
    ✅ Log: method, path, status, duration, IP, request ID, body size
    ❌ Don't log: the payload itself (it is supposed to be destroyed)
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from pulverizer.middleware.request_id import request_id_var

logger = logging.getLogger("pulverizer.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs method, path, status and duration of each request.

    Level by status class: 5xx → ERROR, 4xx → WARNING, otherwise INFO.
    /ping is skipped; liveness probes would drown everything else.
    """

    SKIPPED_PATHS = {"/ping"}

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in self.SKIPPED_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        client_ip = getattr(request.client, "host", "unknown") if request.client else "unknown"
        method = request.method
        rid = request_id_var.get("")
        content_length = request.headers.get("content-length", "-")

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms %sB [%s] from %s",
            method,
            path,
            status,
            duration_ms,
            content_length,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )

        return response
