"""FastAPI application factory (create_app)."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable

import structlog
from fastapi import FastAPI, Request
from starlette.responses import Response

from balkanod import __version__
from balkanod.infrastructure.config import AppConfig
from balkanod.interfaces.app_state import AppState
from balkanod.interfaces.composition import lifespan

log = structlog.get_logger(__name__)


def create_app(config: AppConfig) -> FastAPI:
    """Create FastAPI app: configuration only, no resource initialization.

    Resources (HTTP client, cache, content snapshot) are created in lifespan().
    """
    app = FastAPI(
        title="Balkan On Demand",
        description="Stremio addon for Balkan films and series",
        version=__version__,
        lifespan=lifespan,
    )

    app.state = AppState()
    app.state.config = config

    from balkanod.interfaces.api.stremio import router as stremio_router

    app.include_router(stremio_router, prefix="/api/v1")

    @app.get("/api/v1/healthz")
    async def healthz() -> dict[str, str | int | list[str]]:
        """Liveness check with content counts."""
        state = app.state
        repository = getattr(state, "repository", None)
        stream_uc = getattr(state, "stremio_stream_uc", None)
        return {
            "status": "ok",
            "movies": repository.count("movie") if repository else 0,
            "series": repository.count("series") if repository else 0,
            "providers": stream_uc.provider_names if stream_uc else [],
        }

    @app.middleware("http")
    async def log_requests(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ):
        start = time.perf_counter()
        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = (time.perf_counter() - start) * 1000.0
            status_code = getattr(locals().get("response", None), "status_code", 500)

            log.info(
                "http_request",
                method=request.method,
                path=request.url.path,
                query=str(request.url.query),
                status_code=status_code,
                duration_ms=round(duration_ms, 2),
                client_host=(request.client.host if request.client else None),
            )

    return app
