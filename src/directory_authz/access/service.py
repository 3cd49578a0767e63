"""
directory_authz.access.service

Access decision engine.

Responsibilities:
- Resolve the acting principal and derive its role from current group memberships.
- Apply the base role/permission test, then permission-specific contextual restrictions
  (protected users/groups, self-action exceptions).
- Report denials as `AccessCheckResult` values; surface directory failures as
  `AccessLookupError`.

Decision order (first failing step is terminal):
1. principal exists            -> principal-not-found
2. principal not disabled      -> principal-disabled
3. principal has a role        -> no-role
4. role grants permission      -> permission-not-granted
5. admin                       -> allowed, no contextual restriction
6. contextual restriction      -> target-required / protected-entity / group-not-found /
                                  invalid-entity-type
"""

from __future__ import annotations

from collections.abc import Awaitable, Iterable
from typing import TypeVar

from directory_authz.access.errors import (
    AccessDeniedError,
    AccessLookupError,
    ProtectedEntityError,
)
from directory_authz.access.reasons import DenialReason, render_message
from directory_authz.access.role_mapper import RoleMapper
from directory_authz.access.types import (
    AccessCheckResult,
    EntityType,
    Permission,
    Role,
    UserAccessContext,
    minimum_role_for,
    permissions_of,
)
from directory_authz.directory.errors import DirectoryError
from directory_authz.directory.types import DirectoryLookup, DirectoryUser
from directory_authz.observability.logging import get_logger

log = get_logger(__name__)

T = TypeVar("T")

DISABLED_GROUP = "disabled"

# Permissions whose target is a single user and that allow acting on oneself.
_USER_TARGET_PERMISSIONS = frozenset(
    {Permission.USER_CHANGE_PASSWORD, Permission.USER_EDIT, Permission.USER_DELETE}
)
_MEMBERSHIP_PERMISSIONS = frozenset(
    {Permission.USER_ADD_TO_GROUP, Permission.USER_REMOVE_FROM_GROUP}
)


class AccessService:
    """
    Stateless decision engine over a `DirectoryLookup` and a `RoleMapper`.

    Nothing is cached between calls: every check reads current group memberships, since
    a stale role is an authorization bypass.
    """

    def __init__(self, *, directory: DirectoryLookup, role_mapper: RoleMapper) -> None:
        self._directory = directory
        self._role_mapper = role_mapper

    @property
    def role_mapper(self) -> RoleMapper:
        return self._role_mapper

    async def check(
        self,
        user_id: str,
        permission: Permission | str,
        entity_type: EntityType | str = EntityType.NONE,
        entity_id: str | None = None,
    ) -> bool:
        result = await self.check_with_details(user_id, permission, entity_type, entity_id)
        return result.allowed

    async def check_with_details(
        self,
        user_id: str,
        permission: Permission | str,
        entity_type: EntityType | str = EntityType.NONE,
        entity_id: str | None = None,
    ) -> AccessCheckResult:
        result, _ = await self._evaluate(user_id, permission, entity_type, entity_id)
        return result

    async def _evaluate(
        self,
        user_id: str,
        permission: Permission | str,
        entity_type: EntityType | str,
        entity_id: str | None,
    ) -> tuple[AccessCheckResult, UserAccessContext]:
        # The context is the one the verdict was decided on; callers reuse it instead of
        # looking the principal up again.
        permission = _coerce_permission(permission)
        log.debug(
            "access_check",
            user_id=user_id,
            permission=_value(permission),
            entity_type=_value(entity_type),
            entity_id=entity_id,
        )

        user = await self._lookup(self._directory.get_principal(user_id), user_id=user_id)
        if user is None:
            return self._deny(
                user_id, DenialReason.PRINCIPAL_NOT_FOUND, message_params={"user_id": user_id}
            ), UserAccessContext(user_id=user_id, role=None)

        context = self._build_context(user_id, user.group_names)
        if _is_disabled(context.groups):
            return self._deny(
                user_id, DenialReason.PRINCIPAL_DISABLED, message_params={"user_id": user_id}
            ), context

        if context.role is None:
            return self._deny(
                user_id,
                DenialReason.NO_ROLE,
                required_role=Role.PASSWORD_MANAGER,
                message_params={"user_id": user_id},
            ), context

        if permission not in context.permissions:
            return self._deny(
                user_id,
                DenialReason.PERMISSION_NOT_GRANTED,
                required_role=minimum_role_for(permission),
                message_params={"permission": _value(permission), "role": context.role.value},
            ), context

        if context.role is Role.ADMIN:
            log.debug("access_granted", user_id=user_id, role=context.role.value)
            return AccessCheckResult.allow(), context

        result = await self._check_contextual(context, permission, entity_type, entity_id)
        if result.allowed:
            log.debug("access_granted", user_id=user_id, role=context.role.value)
        else:
            log.info(
                "access_denied",
                user_id=user_id,
                reason=result.reason.value if result.reason else None,
                required_role=result.required_role.value if result.required_role else None,
            )
        return result, context

    async def require(
        self,
        user_id: str,
        permission: Permission | str,
        entity_type: EntityType | str = EntityType.NONE,
        entity_id: str | None = None,
    ) -> AccessCheckResult:
        """
        Enforcing variant of `check_with_details`: raise instead of returning a denial.

        Raises:
            ProtectedEntityError: denied because the target is protected.
            AccessDeniedError: denied for any other reason.
            AccessLookupError: the directory could not be queried.
        """

        result, context = await self._evaluate(user_id, permission, entity_type, entity_id)
        if result.allowed:
            return result

        error_cls = (
            ProtectedEntityError
            if result.reason is DenialReason.PROTECTED_ENTITY
            else AccessDeniedError
        )
        raise error_cls(
            permission=permission,
            user_id=user_id,
            result=result,
            user_role=context.role,
            entity_type=entity_type,
            entity_id=entity_id,
        )

    # -- contextual restrictions ------------------------------------------------

    async def _check_contextual(
        self,
        context: UserAccessContext,
        permission: Permission | str,
        entity_type: EntityType | str,
        entity_id: str | None,
    ) -> AccessCheckResult:
        if permission in _USER_TARGET_PERMISSIONS:
            return await self._check_user_target(context.user_id, permission, entity_id)
        if permission in _MEMBERSHIP_PERMISSIONS:
            return await self._check_membership(permission, entity_type, entity_id)
        # No contextual restriction defined; the base permission test is sufficient.
        return AccessCheckResult.allow()

    async def _check_user_target(
        self, user_id: str, permission: Permission, target_user_id: str | None
    ) -> AccessCheckResult:
        variant = "password" if permission is Permission.USER_CHANGE_PASSWORD else "default"
        if not target_user_id:
            return _denial(DenialReason.TARGET_REQUIRED, variant=variant)

        # Acting on oneself bypasses protection checks.
        if target_user_id == user_id:
            return AccessCheckResult.allow()

        if await self.is_user_protected(target_user_id):
            return _denial(
                DenialReason.PROTECTED_ENTITY,
                variant=variant,
                required_role=Role.ADMIN,
                user_id=target_user_id,
            )
        return AccessCheckResult.allow()

    async def _check_membership(
        self,
        permission: Permission,
        entity_type: EntityType | str,
        entity_id: str | None,
    ) -> AccessCheckResult:
        try:
            entity_type = EntityType(entity_type or EntityType.NONE)
        except ValueError:
            return _denial(DenialReason.INVALID_ENTITY_TYPE, entity_type=str(entity_type))

        if entity_type is EntityType.USER:
            if not entity_id:
                return _denial(DenialReason.TARGET_REQUIRED)
            if await self.is_user_protected(entity_id):
                return _denial(
                    DenialReason.PROTECTED_ENTITY, required_role=Role.ADMIN, user_id=entity_id
                )
            return AccessCheckResult.allow()

        if entity_type is EntityType.GROUP:
            if not entity_id:
                return _denial(DenialReason.TARGET_REQUIRED, variant="group")
            group = await self._lookup(self._directory.get_group(entity_id))
            if group is None:
                return _denial(DenialReason.GROUP_NOT_FOUND, group_id=entity_id)
            if self.is_protected_group(group.display_name):
                variant = (
                    "add_to_group"
                    if permission is Permission.USER_ADD_TO_GROUP
                    else "remove_from_group"
                )
                return _denial(
                    DenialReason.PROTECTED_ENTITY,
                    variant=variant,
                    required_role=Role.ADMIN,
                    group_name=group.display_name,
                )
            return AccessCheckResult.allow()

        # EntityType.NONE: a membership change always needs a user or group target.
        return _denial(DenialReason.TARGET_REQUIRED)

    # -- context / protection queries -----------------------------------------

    async def get_user_role(self, user_id: str) -> Role | None:
        return (await self.get_user_context(user_id)).role

    async def get_user_permissions(self, user_id: str) -> frozenset[Permission]:
        return (await self.get_user_context(user_id)).permissions

    async def get_user_context(self, user_id: str) -> UserAccessContext:
        user = await self._lookup(self._directory.get_principal(user_id), user_id=user_id)
        if user is None:
            # Rejecting a missing principal is `check_with_details`' job, not this query's.
            return UserAccessContext(user_id=user_id, role=None)
        return self._build_context(user_id, user.group_names)

    def is_protected_group(self, group_name: str) -> bool:
        return self._role_mapper.is_protected_group(group_name)

    async def is_user_protected(self, user_id: str) -> bool:
        user: DirectoryUser | None = await self._lookup(
            self._directory.get_principal(user_id), user_id=user_id
        )
        if user is None:
            return False
        return self.is_user_protected_by_groups(user.group_names)

    def is_user_protected_by_groups(self, group_names: Iterable[str]) -> bool:
        """
        Protection test for callers that already hold the user's groups (bulk listings).
        """

        return any(self.is_protected_group(g) for g in group_names)

    # -- helpers ----------------------------------------------------------------

    def _build_context(self, user_id: str, groups: list[str]) -> UserAccessContext:
        role = self._role_mapper.map_groups_to_role(groups)
        return UserAccessContext(
            user_id=user_id,
            role=role,
            permissions=permissions_of(role),
            groups=tuple(groups),
        )

    def _deny(
        self,
        user_id: str,
        reason: DenialReason,
        *,
        required_role: Role | None = None,
        message_params: dict[str, str],
    ) -> AccessCheckResult:
        log.info(
            "access_denied",
            user_id=user_id,
            reason=reason.value,
            required_role=required_role.value if required_role else None,
        )
        return _denial(reason, required_role=required_role, **message_params)

    async def _lookup(
        self, pending: Awaitable[T], *, user_id: str | None = None
    ) -> T:
        try:
            return await pending
        except DirectoryError as e:
            log.warning("access_lookup_failed", user_id=user_id, error=str(e))
            raise AccessLookupError(f"Directory lookup failed: {e}", user_id=user_id) from e


def _denial(
    reason: DenialReason,
    *,
    variant: str = "default",
    required_role: Role | None = None,
    **params: str,
) -> AccessCheckResult:
    return AccessCheckResult(
        allowed=False,
        reason=reason,
        required_role=required_role,
        message=render_message(reason, variant, **params),
    )


def _is_disabled(groups: Iterable[str]) -> bool:
    return any(g.lower() == DISABLED_GROUP for g in groups)


def _coerce_permission(permission: Permission | str) -> Permission | str:
    # Unknown values stay plain strings; no role grants them.
    try:
        return Permission(permission)
    except ValueError:
        return permission


def _value(v: object) -> str:
    return v.value if isinstance(v, (Permission, EntityType)) else str(v)


# --- Module Notes -----------------------------------------------------------
# Membership can change between the principal lookup and the target lookup of the same
# check; a verdict is a point-in-time snapshot. Callers needing strict freshness re-check
# right before the mutation.
