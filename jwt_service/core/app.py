"""FastAPI application factory for the token service."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from jwt_service.api.routes_health import router as health_router
from jwt_service.api.routes_issue import router as issue_router
from jwt_service.api.routes_jwks import router as jwks_router
from jwt_service.api.routes_verify import router as verify_router
from jwt_service.core.clock import Clock, system_clock
from jwt_service.core.errors import ConfigError
from jwt_service.core.settings import ServiceSettings
from jwt_service.core.state import build_components


def create_app(
    settings: ServiceSettings | None = None, clock: Clock = system_clock
) -> FastAPI:
    """Build and configure the FastAPI application.

    Settings and key material are resolved here, so a ConfigError aborts startup.
    """
    if settings is None:
        try:
            settings = ServiceSettings()
        except ValidationError as exc:
            raise ConfigError(f"invalid configuration: {exc}") from exc
    components = build_components(settings, clock=clock)

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        if components.sweeper is not None:
            await components.sweeper.start()
        try:
            yield
        finally:
            if components.sweeper is not None:
                await components.sweeper.stop()

    app = FastAPI(
        title="JWT Service",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.components = components

    origins = settings.get_cors_origin_list()
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["GET", "POST"],
            allow_headers=["Authorization", "Content-Type"],
        )

    app.include_router(health_router)
    app.include_router(issue_router)
    app.include_router(verify_router)
    app.include_router(jwks_router)

    return app
