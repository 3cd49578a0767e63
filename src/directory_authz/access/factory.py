"""
directory_authz.access.factory

Composition helper for the access engine.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from directory_authz.access.role_mapper import create_role_mapper
from directory_authz.access.service import AccessService
from directory_authz.access.types import Role
from directory_authz.directory.types import DirectoryLookup
from directory_authz.settings import Settings


def create_access_service(
    *,
    directory: DirectoryLookup,
    directory_type: str,
    role_groups: Mapping[Role | str, Iterable[str]] | None = None,
    protected_groups: Iterable[str] | None = None,
) -> AccessService:
    role_mapper = create_role_mapper(
        directory_type, role_groups=role_groups, protected_groups=protected_groups
    )
    return AccessService(directory=directory, role_mapper=role_mapper)


def access_service_from_settings(
    settings: Settings, *, directory: DirectoryLookup
) -> AccessService:
    return create_access_service(
        directory=directory,
        directory_type=settings.directory_type,
        role_groups=settings.role_groups or None,
        protected_groups=settings.extra_protected_groups or None,
    )
