"""
directory_authz.auth.deps

FastAPI dependency functions for authentication and authorization.

Responsibilities:
- Convert the trusted principal header into a principal id.
- Enforce access decisions via reusable dependency factories.
"""

from __future__ import annotations

import structlog
from fastapi import Depends, HTTPException, Request
from starlette.status import (
    HTTP_401_UNAUTHORIZED,
    HTTP_403_FORBIDDEN,
    HTTP_503_SERVICE_UNAVAILABLE,
)

from directory_authz.access.errors import AccessDeniedError, AccessLookupError
from directory_authz.access.service import AccessService
from directory_authz.access.types import AccessCheckResult, EntityType, Permission
from directory_authz.api.deps import access_service_dep, settings_dep
from directory_authz.settings import Settings


def get_principal_id(
    request: Request,
    settings: Settings = Depends(settings_dep),
) -> str:
    # The session was validated upstream; we only trust the proxy's header.
    principal_id = (request.headers.get(settings.principal_header) or "").strip()
    if not principal_id:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    structlog.contextvars.bind_contextvars(principal_id=principal_id)
    return principal_id


def denied_detail(result: AccessCheckResult) -> dict[str, str | None]:
    return {
        "reason": result.reason.value if result.reason else None,
        "required_role": result.required_role.value if result.required_role else None,
        "message": result.message,
    }


def require_permission(
    permission: Permission,
    *,
    entity_type: EntityType = EntityType.NONE,
    entity_param: str | None = None,
):
    """
    Dependency factory guarding an endpoint with an access check.

    `entity_param` names the path parameter holding the target id (user or group).
    """

    async def _dep(
        request: Request,
        principal_id: str = Depends(get_principal_id),
        access: AccessService = Depends(access_service_dep),
    ) -> str:
        entity_id = request.path_params.get(entity_param) if entity_param else None
        try:
            await access.require(principal_id, permission, entity_type, entity_id)
        except AccessDeniedError as e:
            raise HTTPException(
                status_code=HTTP_403_FORBIDDEN, detail=denied_detail(e.result)
            ) from e
        except AccessLookupError as e:
            raise HTTPException(
                status_code=HTTP_503_SERVICE_UNAVAILABLE, detail="Directory unavailable"
            ) from e
        return principal_id

    return _dep


# --- Module Notes -----------------------------------------------------------
# A directory outage maps to 503, never to 403: an outage is not a security event.
