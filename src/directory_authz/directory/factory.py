"""
directory_authz.directory.factory

Directory backend selection.
"""

from __future__ import annotations

import httpx

from directory_authz.directory.lldap_graphql import LldapDirectoryLookup, build_lldap_lookup
from directory_authz.settings import Settings


def create_directory_lookup(settings: Settings, *, http: httpx.AsyncClient) -> LldapDirectoryLookup:
    if settings.directory_type == "lldap-graphql":
        return build_lldap_lookup(settings, http=http)
    raise ValueError(f"Unsupported directory service type: {settings.directory_type}")


def create_http_client(settings: Settings) -> httpx.AsyncClient:
    # One pooled client per process; closed on application shutdown.
    return httpx.AsyncClient(timeout=httpx.Timeout(settings.directory_timeout_seconds))
