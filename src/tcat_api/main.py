"""FastAPI application entry point."""

from __future__ import annotations

import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    import httpx

    from tcat_api.config import Settings

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from tcat_api.config import get_settings
from tcat_api.exceptions import ConfigurationError
from tcat_api.logging import (
    bind_request_context,
    clear_request_context,
    get_logger,
    setup_logging,
)
from tcat_api.routers.snapshot import router as snapshot_router
from tcat_api.services.auth.token_cache import TokenCache
from tcat_api.services.gtfs_rt.fetcher import RealtimeFeedSource
from tcat_api.services.gtfs_static.reader import StaticRoutesSource
from tcat_api.services.http import HttpFetcher, create_http_client
from tcat_api.services.mystop.alerts import AlertsSource
from tcat_api.services.mystop.stops import StopsSource
from tcat_api.services.refresh.coordinator import Source, UpdateCoordinator
from tcat_api.services.snapshot.store import SnapshotStore

logger = get_logger(__name__)


def build_sources(
    client: httpx.AsyncClient, tokens: TokenCache, settings: Settings
) -> list[Source]:
    """Wire the four upstream sources onto the shared client."""
    fetcher = HttpFetcher.from_settings(client, settings)
    return [
        AlertsSource(fetcher, tokens, settings.alerts_url),
        StaticRoutesSource(settings.routes_path),
        RealtimeFeedSource(fetcher, settings.rtf_url),
        StopsSource(fetcher, tokens, settings.stops_url),
    ]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler.

    Every bin is populated before the server accepts requests; any
    failure up to that point aborts startup.
    """
    setup_logging()
    settings = get_settings()
    logger.info("Starting TCAT Data API", environment=settings.environment)

    missing_env = settings.missing_required_env()
    if missing_env:
        msg = "Missing required environment variables: " + ", ".join(missing_env)
        logger.error(msg)
        raise ConfigurationError(msg)

    client = create_http_client(settings)
    coordinator: UpdateCoordinator | None = None
    try:
        tokens = await TokenCache.from_settings(client, settings)
        store = SnapshotStore()
        coordinator = UpdateCoordinator(
            store,
            build_sources(client, tokens, settings),
            interval_sec=settings.refresh_interval_sec,
        )
        await coordinator.initialize()

        app.state.store = store
        app.state.coordinator = coordinator
        if settings.refresh_auto_start:
            await coordinator.start()

        yield
    finally:
        if coordinator is not None:
            await coordinator.stop()
        await client.aclose()
        logger.info("Shutting down TCAT Data API")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Cached TCAT alerts, routes, stops and real-time trip updates",
        lifespan=lifespan,
        docs_url="/docs" if settings.environment != "production" else None,
        redoc_url="/redoc" if settings.environment != "production" else None,
        redirect_slashes=False,
    )

    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next: Any) -> Any:
        path = request.scope["path"]
        if len(path) > 1 and path.endswith("/"):
            request.scope["path"] = path.rstrip("/") or "/"

        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        bind_request_context(request_id=request_id, path=request.scope["path"])
        try:
            response = await call_next(request)
        finally:
            clear_request_context()
        response.headers["X-Request-ID"] = request_id
        return response

    app.include_router(snapshot_router)

    @app.get("/health", tags=["meta"])
    async def health_check(request: Request) -> dict[str, Any]:
        """Health check with refresh loop and per-bin status."""
        coordinator: UpdateCoordinator | None = getattr(request.app.state, "coordinator", None)
        store: SnapshotStore | None = getattr(request.app.state, "store", None)

        refresh: dict[str, Any] = {"running": False, "cycle_count": 0, "bins": {}}
        if coordinator is not None:
            refresh = await coordinator.get_status()
        elif store is not None:
            refresh["bins"] = store.status()

        missing_bins = [name for name, b in refresh["bins"].items() if not b["populated"]]
        issues: list[str] = []
        if store is None:
            issues.append("Snapshot store not initialized")
        if missing_bins:
            issues.append("Bins never populated: " + ", ".join(missing_bins))
        if refresh.get("last_failures"):
            issues.append("Last cycle failures: " + ", ".join(sorted(refresh["last_failures"])))

        status = (
            "unhealthy"
            if store is None or missing_bins
            else "degraded"
            if refresh.get("last_failures")
            else "healthy"
        )

        return {
            "service": settings.app_name,
            "status": status,
            "version": settings.app_version,
            "environment": settings.environment,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "checks": {"refresh": refresh},
            "issues": issues,
        }

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled exception", exc_info=exc, path=request.url.path)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred",
            },
        )

    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "tcat_api.main:app",
        host=settings.host,
        port=settings.port,
        log_config=None,
    )
