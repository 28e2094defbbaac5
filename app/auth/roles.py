"""
Lavandaria API — Roles
========================

Every authenticated session carries exactly one role. Access is decided by
set membership, never by rank: the business rules are not a strict ladder
(a worker uploads photos like an admin, but never sees finance data).

Who may manage (create, edit, delete) whom:

    actor   | manageable target roles
    --------+-------------------------------
    master  | client, worker, admin, master
    admin   | client, worker
    worker  | (none)
    client  | (none)
"""

import enum
from typing import Dict, FrozenSet, Optional, Union


class Role(str, enum.Enum):
    MASTER = "master"
    ADMIN = "admin"
    WORKER = "worker"
    CLIENT = "client"

    @classmethod
    def parse(cls, value: Union["Role", str, None]) -> Optional["Role"]:
        """Return the Role for `value`, or None if it is empty or unknown."""
        if isinstance(value, Role):
            return value
        if not value:
            return None
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


STAFF_ROLES: FrozenSet[Role] = frozenset({Role.MASTER, Role.ADMIN, Role.WORKER})
FINANCE_ROLES: FrozenSet[Role] = frozenset({Role.MASTER, Role.ADMIN})

MANAGEABLE_ROLES: Dict[Role, FrozenSet[Role]] = {
    Role.MASTER: frozenset({Role.CLIENT, Role.WORKER, Role.ADMIN, Role.MASTER}),
    Role.ADMIN: frozenset({Role.CLIENT, Role.WORKER}),
    Role.WORKER: frozenset(),
    Role.CLIENT: frozenset(),
}


def can_manage(actor: Union[Role, str, None], target: Union[Role, str, None]) -> bool:
    """True if `actor` may manage accounts with role `target`. Unknown roles manage nothing."""
    actor_role = Role.parse(actor)
    target_role = Role.parse(target)
    if actor_role is None or target_role is None:
        return False
    return target_role in MANAGEABLE_ROLES.get(actor_role, frozenset())
