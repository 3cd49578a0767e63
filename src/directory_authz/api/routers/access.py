"""
directory_authz.api.routers.access

Access-decision endpoints for the calling principal.

Responsibilities:
- Evaluate a single check and return the full verdict.
- Expose the caller's current access context and the protected group names.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from starlette.status import HTTP_503_SERVICE_UNAVAILABLE

from directory_authz.access.errors import AccessLookupError
from directory_authz.access.service import AccessService
from directory_authz.access.types import EntityType, Permission
from directory_authz.api.deps import access_service_dep
from directory_authz.auth.deps import get_principal_id, require_permission

router = APIRouter(prefix="/v1/access", tags=["access"])


class AccessCheckRequest(BaseModel):
    permission: Permission
    entity_type: EntityType = EntityType.NONE
    entity_id: str | None = Field(default=None, min_length=1, max_length=256)


class AccessCheckResponse(BaseModel):
    allowed: bool
    reason: str | None = None
    required_role: str | None = None
    message: str | None = None


class AccessContextResponse(BaseModel):
    user_id: str
    role: str | None
    permissions: list[str]
    groups: list[str]


@router.post("/check", response_model=AccessCheckResponse)
async def check_access(
    body: AccessCheckRequest,
    principal_id: str = Depends(get_principal_id),
    access: AccessService = Depends(access_service_dep),
) -> AccessCheckResponse:
    # A denial is a normal answer (200); only a directory failure is an error.
    try:
        result = await access.check_with_details(
            principal_id, body.permission, body.entity_type, body.entity_id
        )
    except AccessLookupError as e:
        raise HTTPException(
            status_code=HTTP_503_SERVICE_UNAVAILABLE, detail="Directory unavailable"
        ) from e
    return AccessCheckResponse(**result.to_dict())


@router.get("/me", response_model=AccessContextResponse)
async def my_context(
    principal_id: str = Depends(get_principal_id),
    access: AccessService = Depends(access_service_dep),
) -> AccessContextResponse:
    try:
        context = await access.get_user_context(principal_id)
    except AccessLookupError as e:
        raise HTTPException(
            status_code=HTTP_503_SERVICE_UNAVAILABLE, detail="Directory unavailable"
        ) from e
    return AccessContextResponse(**context.to_dict())


@router.get("/protected-groups")
async def protected_groups(
    _: str = Depends(require_permission(Permission.GROUP_LIST)),
    access: AccessService = Depends(access_service_dep),
) -> dict[str, list[str]]:
    return {"protected_groups": access.role_mapper.get_protected_groups()}
