"""
directory_authz.api.app

FastAPI app factory for the directory access service.

Responsibilities:
- Build the FastAPI application and register routers/middleware.
- Initialize and dispose shared infrastructure (HTTP client, directory lookup, engine).
- Provide a single composition root where cross-cutting concerns live.
"""

from __future__ import annotations

from fastapi import FastAPI

from directory_authz import __version__
from directory_authz.access.factory import access_service_from_settings
from directory_authz.api.routers.access import router as access_router
from directory_authz.api.routers.health import router as health_router
from directory_authz.directory.factory import create_directory_lookup, create_http_client
from directory_authz.directory.types import DirectoryLookup
from directory_authz.observability.logging import configure_logging, get_logger
from directory_authz.observability.middleware import RequestContextMiddleware
from directory_authz.settings import Settings

log = get_logger(__name__)


def create_app(*, settings: Settings, directory: DirectoryLookup | None = None) -> FastAPI:
    """
    `directory` overrides the configured backend (tests, embedding); when omitted the
    backend is built from settings on startup.
    """

    configure_logging(service_name=settings.service_name, level=settings.log_level)

    app = FastAPI(
        title="Directory Access Service",
        version=__version__,
        docs_url="/docs",
        openapi_url="/openapi.json",
    )
    app.state.settings = settings

    app.add_middleware(RequestContextMiddleware, principal_header=settings.principal_header)
    app.include_router(health_router, tags=["health"])
    app.include_router(access_router)

    @app.on_event("startup")
    async def _startup() -> None:
        log.info("startup", env=settings.env, directory_type=settings.directory_type)
        lookup = directory
        if lookup is None:
            http = create_http_client(settings)
            app.state.http = http
            lookup = create_directory_lookup(settings, http=http)
        app.state.directory = lookup
        app.state.access_service = access_service_from_settings(settings, directory=lookup)

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        http = getattr(app.state, "http", None)
        if http is not None:
            await http.aclose()
        log.info("shutdown")

    return app


# --- Module Notes -----------------------------------------------------------
# App composition stays here; decision logic stays in `directory_authz.access`.
