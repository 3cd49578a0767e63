"""
directory_authz.access.types

Role/permission catalog and the per-call value types of the decision engine.

Responsibilities:
- Define the closed `Role` ordering and the `Permission` identifiers.
- Build the role -> permissions table by inheritance (process-wide constant).
- Define `UserAccessContext` and `AccessCheckResult`.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from directory_authz.access.reasons import DenialReason


class Role(str, Enum):
    """
    Application roles, abstracted from directory groups.

    A principal holds at most one role; "no role" is represented as `None`.
    """

    ADMIN = "admin"
    USER_MANAGER = "user_manager"
    PASSWORD_MANAGER = "password_manager"

    @property
    def rank(self) -> int:
        # Higher rank = more privilege.
        return _ROLE_RANK[self]

    def outranks(self, other: Role) -> bool:
        return self.rank > other.rank


class Permission(str, Enum):
    # User permissions
    USER_VIEW = "user.view"
    USER_LIST = "user.list"
    USER_CREATE = "user.create"
    USER_EDIT = "user.edit"
    USER_DELETE = "user.delete"
    USER_CHANGE_PASSWORD = "user.change_password"
    USER_ADD_TO_GROUP = "user.add_to_group"
    USER_REMOVE_FROM_GROUP = "user.remove_from_group"

    # Group permissions
    GROUP_VIEW = "group.view"
    GROUP_LIST = "group.list"
    GROUP_CREATE = "group.create"
    GROUP_EDIT = "group.edit"
    GROUP_DELETE = "group.delete"


class EntityType(str, Enum):
    """Kind of target named by `entity_id` in a contextual check."""

    NONE = "none"
    USER = "user"
    GROUP = "group"


# Highest privilege first.
ROLE_ORDER: tuple[Role, ...] = (Role.ADMIN, Role.USER_MANAGER, Role.PASSWORD_MANAGER)

_ROLE_RANK: dict[Role, int] = {role: len(ROLE_ORDER) - i for i, role in enumerate(ROLE_ORDER)}


def _build_role_permissions() -> Mapping[Role, frozenset[Permission]]:
    # Password manager: read-only access + password changes (base role).
    password_manager = frozenset(
        {
            Permission.USER_VIEW,
            Permission.USER_LIST,
            Permission.GROUP_VIEW,
            Permission.GROUP_LIST,
            Permission.USER_CHANGE_PASSWORD,
        }
    )
    # User manager: password manager + user lifecycle and membership management.
    user_manager = password_manager | {
        Permission.USER_CREATE,
        Permission.USER_EDIT,
        Permission.USER_DELETE,
        Permission.USER_ADD_TO_GROUP,
        Permission.USER_REMOVE_FROM_GROUP,
    }
    # Admin: user manager + group lifecycle.
    admin = user_manager | {
        Permission.GROUP_CREATE,
        Permission.GROUP_EDIT,
        Permission.GROUP_DELETE,
    }
    return MappingProxyType(
        {
            Role.PASSWORD_MANAGER: password_manager,
            Role.USER_MANAGER: user_manager,
            Role.ADMIN: admin,
        }
    )


ROLE_PERMISSIONS: Mapping[Role, frozenset[Permission]] = _build_role_permissions()


def permissions_of(role: Role | None) -> frozenset[Permission]:
    if role is None:
        return frozenset()
    return ROLE_PERMISSIONS[role]


def minimum_role_for(permission: Permission | str) -> Role:
    """
    Lowest role whose permission set contains `permission`.

    Falls back to `Role.ADMIN` when no role grants it (e.g. unknown permission values).
    """

    for role in reversed(ROLE_ORDER):
        if permission in ROLE_PERMISSIONS[role]:
            return role
    return Role.ADMIN


@dataclass(frozen=True, slots=True)
class UserAccessContext:
    """
    Request-scoped view of a principal's access. Rebuilt on every check.
    """

    user_id: str
    role: Role | None
    permissions: frozenset[Permission] = frozenset()
    groups: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "role": self.role.value if self.role is not None else None,
            "permissions": sorted(p.value for p in self.permissions),
            "groups": list(self.groups),
        }


@dataclass(frozen=True, slots=True)
class AccessCheckResult:
    allowed: bool
    reason: DenialReason | None = None
    required_role: Role | None = None
    # Human-readable rendering of `reason`; never carries secrets.
    message: str | None = field(default=None, compare=False)

    @classmethod
    def allow(cls) -> AccessCheckResult:
        return cls(allowed=True)

    def to_dict(self) -> dict[str, Any]:
        return {
            "allowed": self.allowed,
            "reason": self.reason.value if self.reason is not None else None,
            "required_role": self.required_role.value if self.required_role is not None else None,
            "message": self.message,
        }


# --- Module Notes -----------------------------------------------------------
# The catalog is immutable: ROLE_PERMISSIONS is a read-only mapping of frozensets, so
# callers cannot widen a role's grant at runtime.
