"""
directory_authz.directory.types

Directory lookup contract.

Responsibilities:
- Define the identity/group shapes the access engine reads.
- Define the `DirectoryLookup` protocol every backend implements.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True, slots=True)
class GroupSummary:
    id: str
    display_name: str


@dataclass(frozen=True, slots=True)
class DirectoryUser:
    id: str
    groups: tuple[GroupSummary, ...] = ()
    email: str = ""
    display_name: str = ""

    @property
    def group_names(self) -> list[str]:
        return [g.display_name for g in self.groups]


@dataclass(frozen=True, slots=True)
class DirectoryGroup:
    id: str
    display_name: str


@runtime_checkable
class DirectoryLookup(Protocol):
    """
    Read-only directory access used for authorization.

    Both methods return `None` when the entity does not exist and raise
    `DirectoryError` when the directory cannot be queried.
    """

    async def get_principal(self, user_id: str) -> DirectoryUser | None: ...

    async def get_group(self, group_id: str) -> DirectoryGroup | None: ...
