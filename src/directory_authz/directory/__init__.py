"""
directory_authz.directory

Directory lookup collaborator.

Responsibilities:
- Define the narrow lookup contract consumed by the access engine.
- Provide the LLDAP GraphQL implementation and its factory.
"""

from directory_authz.directory.errors import (
    DirectoryError,
    DirectoryResponseError,
    DirectoryUnavailableError,
)
from directory_authz.directory.types import (
    DirectoryGroup,
    DirectoryLookup,
    DirectoryUser,
    GroupSummary,
)

__all__ = [
    "DirectoryError",
    "DirectoryGroup",
    "DirectoryLookup",
    "DirectoryResponseError",
    "DirectoryUnavailableError",
    "DirectoryUser",
    "GroupSummary",
]
