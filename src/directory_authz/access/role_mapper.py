"""
directory_authz.access.role_mapper

Directory group -> application role mapping.

Responsibilities:
- Hold the injected mapping configuration (role -> granting groups, protected groups).
- Resolve the highest role granted by a set of group names.
- Answer "is this group protected" for contextual restrictions.
- Ship backend-specific defaults (LLDAP) and a factory keyed by directory type.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Protocol, runtime_checkable

from directory_authz.access.types import ROLE_ORDER, Role


@dataclass(frozen=True, slots=True)
class RoleMapperConfig:
    # Role -> group names granting it. Roles absent from the map are granted by no group.
    role_groups: Mapping[Role, Sequence[str]] = field(default_factory=dict)
    # Group names only an admin may alter (structure, membership, member passwords).
    protected_groups: Sequence[str] = field(default_factory=list)

    def copy(self) -> RoleMapperConfig:
        # Always returns plain, mutable containers owned by the caller.
        return RoleMapperConfig(
            role_groups={role: list(groups) for role, groups in self.role_groups.items()},
            protected_groups=list(self.protected_groups),
        )


@runtime_checkable
class RoleMapper(Protocol):
    def map_groups_to_role(self, group_names: Iterable[str]) -> Role | None: ...

    def is_protected_group(self, group_name: str) -> bool: ...

    def get_protected_groups(self) -> list[str]: ...

    def get_config(self) -> RoleMapperConfig: ...


class BaseRoleMapper:
    """
    Case-insensitive role mapper driven entirely by `RoleMapperConfig`.

    A principal in several role-granting groups receives the highest role.
    """

    def __init__(self, config: RoleMapperConfig) -> None:
        self._config = config.copy()
        # Lower-cased lookup tables, built once.
        self._role_groups: dict[Role, frozenset[str]] = {
            role: frozenset(g.lower() for g in groups)
            for role, groups in self._config.role_groups.items()
        }
        self._protected: frozenset[str] = frozenset(
            g.lower() for g in self._config.protected_groups
        )

    def map_groups_to_role(self, group_names: Iterable[str]) -> Role | None:
        normalized = {g.lower() for g in group_names}
        for role in ROLE_ORDER:
            if self._role_groups.get(role, frozenset()) & normalized:
                return role
        return None

    def is_protected_group(self, group_name: str) -> bool:
        return group_name.lower() in self._protected

    def get_protected_groups(self) -> list[str]:
        return list(self._config.protected_groups)

    def get_config(self) -> RoleMapperConfig:
        return self._config.copy()


# Read-only; mappers start from `LLDAP_DEFAULT_CONFIG.copy()`.
LLDAP_DEFAULT_CONFIG = RoleMapperConfig(
    role_groups=MappingProxyType(
        {
            Role.ADMIN: ("lldap_admin",),
            Role.USER_MANAGER: ("authelia_user_manager",),
            Role.PASSWORD_MANAGER: ("lldap_password_manager",),
        }
    ),
    protected_groups=("lldap_admin", "lldap_password_manager", "authelia_user_manager"),
)


class LldapRoleMapper(BaseRoleMapper):
    """
    LLDAP defaults, with caller overrides merged on top:
    - role groups: replaced per role,
    - protected groups: added to the defaults.
    """

    def __init__(
        self,
        *,
        role_groups: Mapping[Role | str, Iterable[str]] | None = None,
        protected_groups: Iterable[str] | None = None,
    ) -> None:
        defaults = LLDAP_DEFAULT_CONFIG.copy()

        merged_roles: dict[Role, Sequence[str]] = dict(defaults.role_groups)
        for role, groups in (role_groups or {}).items():
            merged_roles[Role(role)] = list(groups)

        # dict.fromkeys de-dupes while keeping order (defaults first).
        merged_protected = list(
            dict.fromkeys([*defaults.protected_groups, *(protected_groups or [])])
        )

        super().__init__(
            RoleMapperConfig(role_groups=merged_roles, protected_groups=merged_protected)
        )


SUPPORTED_DIRECTORY_TYPES: tuple[str, ...] = ("lldap-graphql",)


def create_role_mapper(
    directory_type: str,
    *,
    role_groups: Mapping[Role | str, Iterable[str]] | None = None,
    protected_groups: Iterable[str] | None = None,
) -> RoleMapper:
    if directory_type == "lldap-graphql":
        return LldapRoleMapper(role_groups=role_groups, protected_groups=protected_groups)
    raise ValueError(f"Unsupported directory service type: {directory_type}")


# --- Module Notes -----------------------------------------------------------
# Mappers are pure and hold no per-request state; one instance serves the whole process.
