"""
tests.conftest

Shared fixtures: an in-memory directory and a populated access service.
"""

from __future__ import annotations

import pytest

from directory_authz.access.role_mapper import LldapRoleMapper
from directory_authz.access.service import AccessService
from directory_authz.directory.errors import DirectoryError
from directory_authz.directory.types import DirectoryGroup, DirectoryUser, GroupSummary


class FakeDirectory:
    """
    In-memory `DirectoryLookup` with call counting and an injectable failure.
    """

    def __init__(self) -> None:
        self.users: dict[str, DirectoryUser] = {}
        self.groups: dict[str, DirectoryGroup] = {}
        self.principal_calls = 0
        self.group_calls = 0
        self.fail_with: DirectoryError | None = None

    def add_group(self, group_id: str, display_name: str) -> GroupSummary:
        self.groups[group_id] = DirectoryGroup(id=group_id, display_name=display_name)
        return GroupSummary(id=group_id, display_name=display_name)

    def add_user(self, user_id: str, *group_names: str) -> DirectoryUser:
        groups = tuple(
            GroupSummary(id=f"group-{name}", display_name=name) for name in group_names
        )
        user = DirectoryUser(id=user_id, groups=groups, email=f"{user_id}@example.com")
        self.users[user_id] = user
        return user

    async def get_principal(self, user_id: str) -> DirectoryUser | None:
        self.principal_calls += 1
        if self.fail_with is not None:
            raise self.fail_with
        return self.users.get(user_id)

    async def get_group(self, group_id: str) -> DirectoryGroup | None:
        self.group_calls += 1
        if self.fail_with is not None:
            raise self.fail_with
        return self.groups.get(group_id)


@pytest.fixture
def directory() -> FakeDirectory:
    d = FakeDirectory()

    d.add_user("admin", "lldap_admin")
    d.add_user("user_manager", "authelia_user_manager")
    d.add_user("password_manager", "lldap_password_manager")
    d.add_user("viewer", "users")
    d.add_user("protected_user", "lldap_admin")
    d.add_user("regular_user", "users")
    d.add_user("disabled_user", "users", "disabled")
    d.add_user("disabled_admin", "lldap_admin", "Disabled")

    d.add_group("group-admin", "lldap_admin")
    d.add_group("group-um", "authelia_user_manager")
    d.add_group("group-pm", "lldap_password_manager")
    d.add_group("group-users", "users")
    d.add_group("group-developers", "developers")
    return d


@pytest.fixture
def access(directory: FakeDirectory) -> AccessService:
    return AccessService(directory=directory, role_mapper=LldapRoleMapper())
