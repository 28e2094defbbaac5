"""
Lavandaria API — Correlation ID Middleware
============================================

What:  Assigns exactly one correlation id to each request and echoes it in
       the X-Correlation-Id response header.
How:   Accepts a non-empty inbound X-Correlation-Id verbatim, otherwise
       generates a new one. Stores the id in a ContextVar (loggers, envelope
       renderer) and on request.state (handlers).
When:  Outermost application middleware; runs before the login rate limiter,
       the role gate and the handler.

Unhandled exceptions raised below this layer are turned into a 500 failure
envelope here, so the header and `_meta.correlationId` match even for
programming errors.
"""

import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.context import CORRELATION_HEADER, correlation_id_var, generate_correlation_id
from app.envelope import failure

logger = logging.getLogger(__name__)


def resolve_correlation_id(request: Request) -> str:
    """Inbound header if present and non-empty, else a fresh id. Never raises."""
    try:
        inbound = request.headers.get(CORRELATION_HEADER, "").strip()
    except Exception:  # noqa: BLE001 - tracing must not block the request
        logger.debug("Could not read inbound %s header", CORRELATION_HEADER)
        inbound = ""
    return inbound or generate_correlation_id()


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """
    Middleware that binds a correlation id to the request for its lifetime.

    Behavior:
        1. Resolve the id (inbound header or freshly generated)
        2. Store it in the ContextVar and on request.state.correlation_id
        3. Run the rest of the stack
        4. On an unhandled exception, log it with the id and render a
           generic 500 failure envelope
        5. Set X-Correlation-Id on whatever response goes out
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        cid = resolve_correlation_id(request)
        token = correlation_id_var.set(cid)
        request.state.correlation_id = cid

        try:
            try:
                response = await call_next(request)
            except Exception as exc:
                logger.error(
                    "[%s] Unhandled error on %s %s: %s",
                    cid,
                    request.method,
                    request.url.path,
                    exc,
                    exc_info=True,
                )
                response = failure(500, "Server error", code="SERVER_ERROR")

            response.headers[CORRELATION_HEADER] = cid
            return response
        finally:
            correlation_id_var.reset(token)
