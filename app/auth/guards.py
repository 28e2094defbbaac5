"""
Lavandaria API — Role Gate
============================

What:  FastAPI dependencies that admit or reject a request by session role.
How:   Each guard is a set-membership test over the session's Role. A guard
       returns the Principal on success, so handlers get the caller's
       identity from the same dependency that authorized it.

Failure contract:
    no role in the session         → AuthenticationError (401)
    role present, not in the set   → AuthorizationError  (403)

Both render through the failure envelope via the global handler. Guards
run before any other route dependency that is declared after them, so a
denied caller never reaches pagination parsing or the database.

Usage:
    @router.get("/users")
    async def list_users(principal: Principal = Depends(require_master_or_admin)):
        ...

    @router.delete("/things/{id}")
    async def delete_thing(principal: Principal = Depends(any_of(Role.MASTER, Role.ADMIN))):
        ...
"""

import logging
from typing import Awaitable, Callable, Optional, Union

from fastapi import Request

from app.auth.roles import FINANCE_ROLES, STAFF_ROLES, Role, can_manage
from app.auth.session import Principal, get_principal
from app.context import get_correlation_id
from app.exceptions import AuthenticationError, AuthorizationError

logger = logging.getLogger(__name__)

Guard = Callable[[Request], Awaitable[Principal]]


def _deny(principal: Principal, message: str, code: Optional[str] = None) -> AuthorizationError:
    logger.warning(
        "[%s] Access denied for role %s: %s",
        get_correlation_id(),
        principal.role.value,
        message,
    )
    return AuthorizationError(message=message, code=code, context={"role": principal.role.value})


def _require_principal(request: Request) -> Principal:
    principal = get_principal(request)
    if principal is None:
        raise AuthenticationError()
    return principal


async def authenticated(request: Request) -> Principal:
    """Admit any session that carries a known role."""
    return _require_principal(request)


def any_of(
    *roles: Union[Role, str],
    message: str = "Access denied",
    code: Optional[str] = None,
) -> Guard:
    """Guard admitting sessions whose role is one of `roles`."""
    allowed = frozenset(Role(r) for r in roles)
    if not allowed:
        raise ValueError("any_of() needs at least one role")

    async def guard(request: Request) -> Principal:
        principal = _require_principal(request)
        if principal.role not in allowed:
            raise _deny(principal, message, code)
        return principal

    guard.allowed_roles = allowed  # type: ignore[attr-defined]
    return guard


def exactly(role: Union[Role, str], message: Optional[str] = None, code: Optional[str] = None) -> Guard:
    """Guard admitting one role only."""
    role = Role(role)
    return any_of(role, message=message or f"{role.value.capitalize()} access required", code=code)


def can_manage_target(target: Union[Role, str], message: str = "You cannot manage this user type") -> Guard:
    """Guard admitting actors that may manage accounts of role `target`."""
    target_role = Role(target)

    async def guard(request: Request) -> Principal:
        principal = _require_principal(request)
        if not can_manage(principal.role, target_role):
            raise _deny(principal, message)
        return principal

    return guard


def ensure_can_manage(principal: Principal, target: Union[Role, str, None], message: str = "You cannot manage this user type") -> None:
    """In-handler form of can_manage_target, for targets only known after a lookup."""
    if not can_manage(principal.role, target):
        raise _deny(principal, message)


# ── Named route guards ────────────────────────────────────────────────────
require_auth = authenticated
require_master = exactly(Role.MASTER)
require_master_or_admin = any_of(Role.MASTER, Role.ADMIN, message="Admin access required")
require_staff = any_of(*STAFF_ROLES, message="Staff access required")
require_client = exactly(Role.CLIENT)
require_finance_access = any_of(
    *FINANCE_ROLES,
    message="Finance access denied",
    code="FINANCE_ACCESS_DENIED",
)
