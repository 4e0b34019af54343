"""
NoteGist Backend — Request Logging Middleware
===============================================

What:  One access-log line per HTTP request.
Why:   Provider calls dominate latency; method, path, status and duration
       per request (correlated by request ID) show which requests fell back
       to slower providers or the demo answer.
How:   Measures the time around call_next and logs at a level chosen from
       the response status.
When:  After RequestIDMiddleware (uses request ID for correlation).

What we log vs what we DON'T log (privacy):
    Log:       method, path, status, duration, client IP, request ID
    Never log: request body (the notes), Authorization header, token claims
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.middleware.request_id import request_id_var

logger = logging.getLogger("notegist.access")

# Probes hit these every few seconds
QUIET_PATHS = {"/health", "/api/health"}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs method, path, status and duration of each request.

    Typical durations:
        - GET /api/health: 1-5ms
        - POST /api/summarize: 1000-8000ms (provider call dominates);
          roughly doubled when the primary provider fails and the
          secondary answers
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        client_ip = getattr(request.client, "host", "unknown") if request.client else "unknown"
        method = request.method
        path = request.url.path

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        rid = request_id_var.get("")

        # 5xx → ERROR, 4xx → WARNING, else INFO
        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s",
            method,
            path,
            status,
            duration_ms,
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
