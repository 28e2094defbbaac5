"""
Lavandaria API — Login Rate Limiting
======================================

What:  Fixed-window attempt counter per client address on the login routes.
How:   A RateLimitStore counts hits per key inside a window; RateLimiter
       compares the count with the configured maximum; the middleware
       applies it to POSTs on the login paths only.
When:  Inside CorrelationIdMiddleware (so rejections carry the request's
       correlation id) and before routing, so the role gate and handler
       never run for a rejected attempt.

Algorithm: Fixed Window Counter
    1. First hit for a key opens a window [now, now + window_seconds)
    2. Every hit inside the window increments the count, including hits
       that end up rejected
    3. count > max_attempts → 429
    4. The first hit at or after reset_at opens a fresh window with count 1

Both successful and failed logins count. Counting only failures would let
a caller learn which usernames exist from how many attempts are free.

Store:
    InMemoryRateLimitStore keeps counters in process memory; a restart
    resets them and multiple instances do not share them. A shared store
    (e.g. Redis INCR + EXPIRE) implements the same two-method interface
    and drops in without touching the middleware.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional, Protocol

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from app.config import settings
from app.context import get_correlation_id
from app.envelope import failure
from app.exceptions import RateLimitExceededError

logger = logging.getLogger(__name__)

LOGIN_PATHS = frozenset({"/api/auth/login/user", "/api/auth/login/client"})


@dataclass(frozen=True)
class RateLimitWindow:
    """Snapshot of one key's counter right after an increment."""

    count: int
    reset_at: float


class RateLimitStore(Protocol):
    """Counter storage keyed by client identity."""

    async def increment(self, key: str) -> RateLimitWindow:
        ...

    async def reset(self, key: str) -> None:
        ...


class InMemoryRateLimitStore:
    """
    Per-process fixed-window counters.

    `increment` reads, compares and writes without awaiting anything, so on
    the event loop no other request can interleave between the read and the
    write. Expired windows are purged every `purge_every` increments.
    """

    def __init__(
        self,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        purge_every: int = 1000,
    ):
        self.window_seconds = window_seconds
        self._clock = clock
        self._purge_every = purge_every
        self._windows: Dict[str, RateLimitWindow] = {}
        self._increments = 0

    async def increment(self, key: str) -> RateLimitWindow:
        now = self._clock()
        current = self._windows.get(key)
        if current is None or now >= current.reset_at:
            window = RateLimitWindow(count=1, reset_at=now + self.window_seconds)
        else:
            window = RateLimitWindow(count=current.count + 1, reset_at=current.reset_at)
        self._windows[key] = window

        self._increments += 1
        if self._increments % self._purge_every == 0:
            self._purge_expired(now)
        return window

    async def reset(self, key: str) -> None:
        self._windows.pop(key, None)

    def _purge_expired(self, now: float) -> None:
        expired = [key for key, window in self._windows.items() if now >= window.reset_at]
        for key in expired:
            del self._windows[key]
        if expired:
            logger.debug("Purged %d expired rate-limit windows", len(expired))

    def __len__(self) -> int:
        return len(self._windows)


class RateLimiter:
    """Admission control: at most `max_attempts` hits per key per window."""

    def __init__(self, store: RateLimitStore, max_attempts: int, retry_after: int):
        self.store = store
        self.max_attempts = max_attempts
        self.retry_after = retry_after

    async def hit(self, key: str) -> RateLimitWindow:
        """
        Count one attempt for `key`.

        Raises:
            RateLimitExceededError: the attempt is past the limit
        """
        window = await self.store.increment(key)
        if window.count > self.max_attempts:
            raise RateLimitExceededError(
                retry_after=self.retry_after,
                context={"key": key, "count": window.count},
            )
        return window


def default_login_limiter() -> RateLimiter:
    """Limiter built from settings: 5 attempts per 15 minutes by default."""
    window = settings.login_rate_limit_window
    return RateLimiter(
        store=InMemoryRateLimitStore(window_seconds=window),
        max_attempts=settings.login_rate_limit_max,
        retry_after=window,
    )


def client_address(request: Request) -> str:
    """Key for the limiter; behind a proxy this is the proxy's address."""
    return request.client.host if request.client else "unknown"


class LoginRateLimitMiddleware(BaseHTTPMiddleware):
    """
    Applies a RateLimiter to POST requests on the login paths.

    Response on rejection:
        HTTP 429 Too Many Requests
        Retry-After header: window length in seconds
        Body: failure envelope with code RATE_LIMIT_EXCEEDED and retryAfter
    """

    def __init__(
        self,
        app: ASGIApp,
        limiter: Optional[RateLimiter] = None,
        paths: Iterable[str] = LOGIN_PATHS,
    ):
        super().__init__(app)
        self.limiter = limiter or default_login_limiter()
        self.paths = frozenset(paths)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.method != "POST" or request.url.path not in self.paths:
            return await call_next(request)

        ip = client_address(request)
        try:
            await self.limiter.hit(ip)
        except RateLimitExceededError as exc:
            logger.warning(
                "[%s] Login attempt blocked for IP %s (%d attempts)",
                get_correlation_id(),
                ip,
                exc.context.get("count", 0),
            )
            return failure(
                429,
                exc.message,
                code=exc.code,
                headers={"Retry-After": str(exc.retry_after)},
                retryAfter=exc.retry_after,
            )

        return await call_next(request)
