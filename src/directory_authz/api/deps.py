"""
directory_authz.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Provide dependency functions for settings and shared services.
- Encapsulate app.state access patterns.
"""

from __future__ import annotations

from fastapi import Request

from directory_authz.access.service import AccessService
from directory_authz.directory.types import DirectoryLookup
from directory_authz.settings import Settings


def settings_dep(request: Request) -> Settings:
    # Settings are bound at app creation (see `directory_authz.api.app.create_app`).
    return request.app.state.settings  # type: ignore[attr-defined]


def directory_dep(request: Request) -> DirectoryLookup:
    return request.app.state.directory  # type: ignore[attr-defined]


def access_service_dep(request: Request) -> AccessService:
    return request.app.state.access_service  # type: ignore[attr-defined]
