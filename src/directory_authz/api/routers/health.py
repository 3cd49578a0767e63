"""
directory_authz.api.routers.health

Health and readiness endpoints.

Responsibilities:
- Provide liveness probe (`/healthz`).
- Provide readiness probe (`/readyz`) with directory connectivity validation.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from starlette.status import HTTP_503_SERVICE_UNAVAILABLE

from directory_authz.api.deps import directory_dep
from directory_authz.directory.errors import DirectoryError
from directory_authz.directory.types import DirectoryLookup
from directory_authz.observability.logging import get_logger

router = APIRouter()

log = get_logger(__name__)


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz")
async def readyz(directory: DirectoryLookup = Depends(directory_dep)) -> dict[str, str]:
    # Backends without a ping are considered ready once wired.
    ping = getattr(directory, "ping", None)
    if ping is not None:
        try:
            await ping()
        except DirectoryError as e:
            log.warning("readiness_failed", error=str(e))
            raise HTTPException(
                status_code=HTTP_503_SERVICE_UNAVAILABLE, detail="Directory unavailable"
            ) from e
    return {"status": "ready"}
