"""FastAPI application with lifespan and router mounting."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from waypoint.api.routes import catalog, health, wizard
from waypoint.clients.calc_service import CalculationServiceClient
from waypoint.core.config import AppSettings
from waypoint.core.exceptions import (
    ArtifactStoreError,
    AuthenticationError,
    CacheError,
    CalculationServiceError,
    CSVParseError,
    InputValidationError,
    SessionNotFoundError,
    WaypointError,
)
from waypoint.core.log import configure_logging
from waypoint.core.protocols import ICacheBackend, ICalculationService, IFileStore
from waypoint.persistence import create_persistence
from waypoint.persistence.artifact_store import ArtifactStore
from waypoint.persistence.session_store import WizardSessionStore

logger = logging.getLogger(__name__)

STATUS_BY_ERROR: tuple[tuple[type[WaypointError], int], ...] = (
    (InputValidationError, 400),
    (CSVParseError, 400),
    (AuthenticationError, 401),
    (SessionNotFoundError, 404),
    (CalculationServiceError, 502),
    (CacheError, 503),
    (ArtifactStoreError, 503),
)


async def waypoint_error_handler(request: Request, exc: WaypointError) -> JSONResponse:
    status = next((code for kind, code in STATUS_BY_ERROR if isinstance(exc, kind)), 500)
    if status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    body: dict = {"detail": str(exc)}
    if isinstance(exc, InputValidationError):
        body["problems"] = exc.problems
    return JSONResponse(status_code=status, content=body)


def create_app(
    settings: AppSettings | None = None,
    *,
    cache: ICacheBackend | None = None,
    file_store: IFileStore | None = None,
    calc_service: ICalculationService | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Backends default to the ones described by ``settings``; tests pass
    in-memory fakes instead.
    """
    settings = settings or AppSettings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Initialize and tear down application resources."""
        configure_logging(settings.log_level)
        default_cache, default_files = create_persistence(settings)
        client = calc_service or CalculationServiceClient.from_config(settings.calc_service)

        app.state.settings = settings
        app.state.cache = cache or default_cache
        app.state.session_store = WizardSessionStore(app.state.cache, settings.session.ttl_seconds)
        app.state.artifact_store = ArtifactStore(file_store or default_files)
        app.state.calc_service = client
        logger.info("Waypoint CSV builder started (environment=%s)", settings.environment)
        yield
        if calc_service is None:
            client.close()

    app = FastAPI(
        title="Waypoint CSV Builder",
        description="Maps employee census CSVs onto the fields Waypoint's compliance tests need.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.add_exception_handler(WaypointError, waypoint_error_handler)
    app.include_router(health.router)
    app.include_router(catalog.router)
    app.include_router(wizard.router, prefix="/wizard")
    return app


def main() -> None:
    import uvicorn

    uvicorn.run(create_app(), host="127.0.0.1", port=8080)


if __name__ == "__main__":
    main()
