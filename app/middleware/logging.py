"""
Lavandaria API — Request Logging Middleware
=============================================

What:  One access-log line per HTTP request with status and duration.
How:   Measures wall time around the downstream call and logs method, path,
       status, duration, correlation id and client address.
When:  Inside CorrelationIdMiddleware, so the id is already bound.

Levels follow the status class: 5xx ERROR, 4xx WARNING, everything else
INFO. Liveness/readiness checks are skipped.

What we log vs what we DON'T log:
    Log:       method, path, status, duration, IP, correlation id
    Don't log: request bodies (passwords, PII), cookies, auth headers
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.context import get_correlation_id

logger = logging.getLogger("lavandaria.access")

SKIPPED_PATHS = frozenset({"/healthz", "/readyz"})


class CorrelationIdLogFilter(logging.Filter):
    """Adds `correlation_id` to every record so the format string can use it."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "correlation_id", None):
            record.correlation_id = get_correlation_id() or "-"
        return True


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs one structured line per request after the response is produced."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in SKIPPED_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"
        method = request.method

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
            "%s %s %d %.1fms from %s",
            method,
            path,
            status,
            duration_ms,
            client_ip,
            extra={
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )

        return response
