"""thing-api FastAPI application factory.

The create_app() factory is the single entry point for building the ASGI
application. It wires middleware (request-ID, logging, metrics, CORS, gzip,
rate limiting), the per-kind resource routers and the error handlers, and
creates one in-memory ResourceStore per enabled kind.

Usage:
    # Production (settings from environment)
    app = create_app()

    # Testing (explicit config, deterministic time and randomness)
    app = create_app(ThingAPISettings(api_token="t"), clock=fake_clock, rng=rng)
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import Response

from .errors import register_error_handlers
from .observability.logging import get_logger
from .observability.metrics import render_latest
from .observability.middleware import (
    MetricsMiddleware,
    RequestIdMiddleware,
    RequestLoggingMiddleware,
)
from .rate_limiter import RateLimitConfig, RateLimitMiddleware, SlidingWindowCounter
from .routes.resources import create_resource_router
from .settings import ThingAPISettings
from .store import Clock, RandomSource, ResourceStore, utc_now

logger = get_logger(__name__)

API_TITLE = "The Amazing Thing API, with added Floobles"
API_DESCRIPTION = "All the things, all the thing floobles, all the time"


def create_app(
    settings: ThingAPISettings | None = None,
    *,
    clock: Clock | None = None,
    rng: RandomSource | None = None,
) -> FastAPI:
    """Create a configured resource API application.

    Args:
        settings: Application settings. Defaults to ThingAPISettings.from_env().
        clock: Returns the current aware UTC datetime. Drives resource
            timestamps, transition eligibility and the rate limiter.
        rng: Random source shared by all stores (payload values and
            transition rolls).

    Raises:
        ValueError: If settings validation fails.
    """
    if settings is None:
        settings = ThingAPISettings.from_env()

    errors = settings.validate()
    if errors:
        raise ValueError(
            "thing-api settings validation failed:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )

    clock = clock or utc_now
    eligibility = timedelta(seconds=settings.eligibility_seconds)
    stores = {
        kind.name: ResourceStore(kind, clock=clock, rng=rng, eligibility=eligibility)
        for kind in settings.resource_kinds
    }
    limiter = SlidingWindowCounter(
        RateLimitConfig(
            max_requests=settings.rate_limit_max_requests,
            window_seconds=settings.rate_limit_window_seconds,
            description="Per-client API requests",
        )
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("thing_api_startup", kinds=list(stores), port=settings.port)
        yield
        logger.info("thing_api_shutdown")

    app = FastAPI(
        title=API_TITLE,
        description=API_DESCRIPTION,
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.stores = stores
    app.state.rate_limiter = limiter

    register_error_handlers(app)

    # ── Middleware stack (applied in reverse order) ──────────────
    # Order of execution: RequestID -> Logging -> Metrics -> CORS -> GZip
    # -> RateLimit -> route (auth dependency) -> store

    app.add_middleware(
        RateLimitMiddleware,
        limiter=limiter,
        clock=lambda: clock().timestamp(),
    )
    app.add_middleware(GZipMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    )
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIdMiddleware)

    # ── Routes ──────────────────────────────────────────────────

    @app.get("/health", include_in_schema=False)
    async def health():
        return {"status": "ok"}

    @app.get("/metrics", include_in_schema=False)
    async def metrics() -> Response:
        payload, content_type = render_latest()
        return Response(content=payload, media_type=content_type)

    for kind in settings.resource_kinds:
        app.include_router(create_resource_router(kind, stores[kind.name]))

    return app


# For uvicorn, use --factory flag:
#   uvicorn thing_api.main:create_app --factory
