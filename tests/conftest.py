"""
Lavandaria API — Test Configuration (conftest.py)
===================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixtures:
    mock_db_session   AsyncMock standing in for AsyncSession (no real DB)
    fake_clock        manually advanced clock for rate-limit windows
    login_limiter     RateLimiter over an in-memory store driven by fake_clock
    app               fresh app per test, DB dependency overridden
    test_client       HTTPX AsyncClient over ASGITransport
    sign_in           puts a signed session cookie for a role on test_client
"""

import os

# Override settings for testing BEFORE any app imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"
os.environ["SESSION_SECRET"] = "test-session-secret"
os.environ["LOG_LEVEL"] = "WARNING"

import json
from base64 import b64encode
from unittest.mock import AsyncMock, MagicMock

import itsdangerous
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.auth.roles import Role
from app.config import settings
from app.database import get_db_session
from app.main import create_app
from app.middleware.rate_limit import InMemoryRateLimitStore, RateLimiter

# The cookie jar files cookies from the dotless host "test" under "test.local";
# pre-set cookies use the same domain so Set-Cookie responses replace them.
COOKIE_DOMAIN = "test.local"


class FakeClock:
    """Monotonic clock the test advances by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_session_cookie(data: dict) -> str:
    """Sign `data` exactly like Starlette's SessionMiddleware does."""
    signer = itsdangerous.TimestampSigner(str(settings.session_secret))
    payload = b64encode(json.dumps(data).encode("utf-8"))
    return signer.sign(payload).decode("utf-8")


@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        mock_db_session.execute.return_value.scalar_one_or_none.return_value = user
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.delete = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def login_limiter(fake_clock):
    window = settings.login_rate_limit_window
    return RateLimiter(
        store=InMemoryRateLimitStore(window_seconds=window, clock=fake_clock),
        max_attempts=settings.login_rate_limit_max,
        retry_after=window,
    )


@pytest.fixture
def app(mock_db_session, login_limiter):
    application = create_app(login_limiter=login_limiter)

    async def override_db_session():
        yield mock_db_session

    application.dependency_overrides[get_db_session] = override_db_session
    return application


@pytest_asyncio.fixture
async def test_client(app):
    """
    Provides an async HTTP test client for endpoint testing.

    Usage:
        async def test_liveness(test_client):
            response = await test_client.get("/healthz")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def sign_in(test_client):
    """
    Returns a function that gives test_client a session for `role`.

        sign_in(Role.ADMIN, user_id=2)
        sign_in("client", client_id=7)
    """

    def _sign_in(role, user_id=1, client_id=None, name="Test User", must_change_password=False):
        role = Role(role)
        data = {"user_type": role.value, "user_name": name}
        if role is Role.CLIENT:
            data["client_id"] = client_id if client_id is not None else 1
            data["must_change_password"] = must_change_password
        else:
            data["user_id"] = user_id
        test_client.cookies.set(
            settings.session_cookie, make_session_cookie(data), domain=COOKIE_DOMAIN
        )

    return _sign_in


@pytest.fixture
def session_cookie():
    """The cookie signer itself, for sessions sign_in cannot build (bad roles, tampering)."""
    return make_session_cookie
