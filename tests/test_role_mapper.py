"""
tests.test_role_mapper

Group -> role mapping and protected group configuration.
"""

from __future__ import annotations

import pytest

from directory_authz.access.role_mapper import (
    LLDAP_DEFAULT_CONFIG,
    BaseRoleMapper,
    LldapRoleMapper,
    RoleMapper,
    RoleMapperConfig,
    create_role_mapper,
)
from directory_authz.access.types import Role


@pytest.mark.parametrize(
    ("groups", "expected"),
    [
        (["lldap_admin"], Role.ADMIN),
        (["LLDAP_ADMIN"], Role.ADMIN),
        (["authelia_user_manager"], Role.USER_MANAGER),
        (["lldap_password_manager"], Role.PASSWORD_MANAGER),
        (["Users", "LLDAP_Password_Manager", "Developers"], Role.PASSWORD_MANAGER),
        (["users", "developers"], None),
        ([], None),
    ],
)
def test_map_groups_to_role(groups: list[str], expected: Role | None) -> None:
    assert LldapRoleMapper().map_groups_to_role(groups) is expected


def test_highest_role_wins() -> None:
    mapper = LldapRoleMapper()
    assert mapper.map_groups_to_role(["lldap_password_manager", "lldap_admin"]) is Role.ADMIN
    assert mapper.map_groups_to_role(["authelia_user_manager", "lldap_admin"]) is Role.ADMIN
    assert (
        mapper.map_groups_to_role(["lldap_password_manager", "authelia_user_manager"])
        is Role.USER_MANAGER
    )


def test_protected_groups_are_case_insensitive_exact_matches() -> None:
    mapper = LldapRoleMapper()
    assert mapper.is_protected_group("lldap_admin")
    assert mapper.is_protected_group("Lldap_Admin")
    assert mapper.is_protected_group("authelia_user_manager")
    assert mapper.is_protected_group("lldap_password_manager")
    assert not mapper.is_protected_group("users")
    assert not mapper.is_protected_group("lldap_admins")


def test_accessors_return_defensive_copies() -> None:
    mapper = LldapRoleMapper()

    protected = mapper.get_protected_groups()
    protected.append("users")
    assert not mapper.is_protected_group("users")

    config = mapper.get_config()
    config.role_groups[Role.ADMIN].append("users")
    config.protected_groups.clear()
    assert mapper.map_groups_to_role(["users"]) is None
    assert mapper.is_protected_group("lldap_admin")
    assert mapper.get_config().role_groups[Role.ADMIN] == ["lldap_admin"]


def test_mapper_is_independent_of_its_constructor_config() -> None:
    config = RoleMapperConfig(
        role_groups={Role.ADMIN: ["root"]},
        protected_groups=["root"],
    )
    mapper = BaseRoleMapper(config)
    config.role_groups[Role.ADMIN].append("users")
    assert mapper.map_groups_to_role(["users"]) is None
    assert mapper.map_groups_to_role(["ROOT"]) is Role.ADMIN


def test_role_group_overrides_replace_defaults_per_role() -> None:
    mapper = LldapRoleMapper(role_groups={"admin": ["super_admins"]})
    assert mapper.map_groups_to_role(["super_admins"]) is Role.ADMIN
    assert mapper.map_groups_to_role(["lldap_admin"]) is None
    # Untouched roles keep their defaults.
    assert mapper.map_groups_to_role(["authelia_user_manager"]) is Role.USER_MANAGER


def test_protected_group_overrides_are_additive() -> None:
    mapper = LldapRoleMapper(protected_groups=["security_team", "lldap_admin"])
    assert mapper.is_protected_group("security_team")
    assert mapper.is_protected_group("lldap_admin")
    assert mapper.get_protected_groups() == [
        "lldap_admin",
        "lldap_password_manager",
        "authelia_user_manager",
        "security_team",
    ]


def test_lldap_defaults() -> None:
    assert dict(LLDAP_DEFAULT_CONFIG.role_groups) == {
        Role.ADMIN: ("lldap_admin",),
        Role.USER_MANAGER: ("authelia_user_manager",),
        Role.PASSWORD_MANAGER: ("lldap_password_manager",),
    }
    # Constructing mappers never mutates the shared defaults.
    LldapRoleMapper(role_groups={Role.ADMIN: ["x"]}, protected_groups=["y"])
    assert LLDAP_DEFAULT_CONFIG.role_groups[Role.ADMIN] == ("lldap_admin",)
    assert "y" not in LLDAP_DEFAULT_CONFIG.protected_groups


def test_lldap_defaults_are_read_only() -> None:
    with pytest.raises(TypeError):
        LLDAP_DEFAULT_CONFIG.role_groups[Role.ADMIN] = ["users"]  # type: ignore[index]
    with pytest.raises(AttributeError):
        LLDAP_DEFAULT_CONFIG.protected_groups.append("users")  # type: ignore[attr-defined]

    # Copies are plain containers the caller may change freely.
    config = LLDAP_DEFAULT_CONFIG.copy()
    config.protected_groups.append("users")  # type: ignore[attr-defined]
    assert "users" not in LLDAP_DEFAULT_CONFIG.protected_groups
    assert not LldapRoleMapper().is_protected_group("users")


def test_factory() -> None:
    mapper = create_role_mapper("lldap-graphql", protected_groups=["custom_protected"])
    assert isinstance(mapper, LldapRoleMapper)
    assert isinstance(mapper, RoleMapper)
    assert mapper.is_protected_group("custom_protected")

    with pytest.raises(ValueError, match="Unsupported directory service type: ad"):
        create_role_mapper("ad")
