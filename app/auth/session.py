"""
Lavandaria API — Session Principal
====================================

What:  Reads and writes the identity stored in the signed session cookie.
How:   Starlette's SessionMiddleware exposes the decoded cookie as
       request.session (a dict). Login writes the keys below; every guard
       reads them back through `get_principal`.

Session keys:
    user_type             role string (master/admin/worker/client)
    user_id               staff users.id (staff sessions only)
    client_id             clients.id (client sessions only)
    user_name             display name
    must_change_password  client first-login flag

The role is fixed for the lifetime of a session; changing it requires a new
login.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from starlette.requests import Request

from app.auth.roles import Role, STAFF_ROLES


@dataclass(frozen=True)
class Principal:
    role: Role
    user_id: Optional[int] = None
    client_id: Optional[int] = None
    name: Optional[str] = None
    must_change_password: bool = False

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES

    @property
    def account_id(self) -> Optional[int]:
        return self.client_id if self.role is Role.CLIENT else self.user_id


def _session(request: Request) -> Dict[str, Any]:
    # request.session asserts when SessionMiddleware is not installed
    if "session" not in request.scope:
        return {}
    return request.session


def get_principal(request: Request) -> Optional[Principal]:
    """Principal for the current session, or None when no valid role is stored."""
    data = _session(request)
    role = Role.parse(data.get("user_type"))
    if role is None:
        return None
    return Principal(
        role=role,
        user_id=data.get("user_id"),
        client_id=data.get("client_id"),
        name=data.get("user_name"),
        must_change_password=bool(data.get("must_change_password", False)),
    )


def start_session(request: Request, principal: Principal) -> None:
    """Replace whatever the session held with `principal`."""
    data = request.session
    data.clear()
    data["user_type"] = principal.role.value
    data["user_name"] = principal.name
    if principal.role is Role.CLIENT:
        data["client_id"] = principal.client_id
        data["must_change_password"] = principal.must_change_password
    else:
        data["user_id"] = principal.user_id


def end_session(request: Request) -> None:
    _session(request).clear()
