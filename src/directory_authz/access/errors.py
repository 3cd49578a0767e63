"""
directory_authz.access.errors

Exceptions raised by the access layer.

Responsibilities:
- `AccessDeniedError` / `ProtectedEntityError`: raised by the `require` helpers when a
  check denies (the engine itself returns denials as values).
- `AccessLookupError`: the directory collaborator failed, so no verdict exists.
"""

from __future__ import annotations

from directory_authz.access.reasons import DenialReason
from directory_authz.access.types import AccessCheckResult, EntityType, Permission, Role


class AccessError(Exception):
    pass


class AccessDeniedError(AccessError):
    """
    Raised when a caller asked for an enforced check and the verdict was a denial.
    """

    def __init__(
        self,
        *,
        permission: Permission | str,
        user_id: str,
        result: AccessCheckResult,
        user_role: Role | None = None,
        entity_type: EntityType | str | None = None,
        entity_id: str | None = None,
    ) -> None:
        message = result.message or f"Permission '{_value(permission)}' denied"
        super().__init__(message)
        self.permission = permission
        self.user_id = user_id
        self.user_role = user_role
        self.result = result
        self.entity_type = entity_type
        self.entity_id = entity_id

    @property
    def reason(self) -> DenialReason | None:
        return self.result.reason

    @property
    def required_role(self) -> Role | None:
        return self.result.required_role


class ProtectedEntityError(AccessDeniedError):
    """
    Denial caused by a protected target (user in a protected group, or protected group).
    """


class AccessLookupError(AccessError):
    """
    The directory lookup needed for a decision failed (backend down, bad response).

    This is never a denial: callers must not treat it as "access denied" nor as success.
    """

    def __init__(self, message: str, *, user_id: str | None = None) -> None:
        super().__init__(message)
        self.user_id = user_id


def _value(v: Permission | str) -> str:
    return v.value if isinstance(v, Permission) else str(v)


# --- Module Notes -----------------------------------------------------------
# `AccessLookupError` is always raised `from` the underlying `DirectoryError` so the
# original cause stays visible in tracebacks.
