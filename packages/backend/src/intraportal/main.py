"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown (database, Redis, realtime
hub). Middleware, CORS, error handling and routers all registered here.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from intraportal import __version__
from intraportal.api import api_router
from intraportal.config import settings

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs
    at shutdown. The realtime hub is stopped first so its liveness
    sweep never runs against closed sockets or a disposed engine.
    """
    logger.info(
        "intraportal.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    if settings.auto_create_schema:
        from intraportal.db.engine import init_db
        try:
            await init_db()
            logger.info("intraportal.schema_ready")
        except Exception as e:
            logger.warning("intraportal.schema_unavailable", error=str(e))

    # Redis backs rate limiting only — the app works without it
    from intraportal.cache import close_redis, init_redis
    try:
        await init_redis()
        logger.info("intraportal.redis_connected", url=settings.redis_url)
    except Exception as e:
        logger.warning("intraportal.redis_unavailable", error=str(e))

    from intraportal.realtime.hub import close_hub, init_hub
    hub = init_hub()
    logger.info("intraportal.realtime_started", heartbeat_interval=hub.monitor.interval)

    yield

    # Shutdown
    logger.info("intraportal.shutdown")

    await close_hub()
    await close_redis()

    from intraportal.db.engine import engine
    await engine.dispose()


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler: log the failure, return a generic 500 body."""
    logger.error(
        "http.unhandled_error",
        method=request.method,
        path=request.url.path,
        error=str(exc),
        exc_info=exc,
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="Intraportal",
        description="Intranet portal backend — news, events, documents, announcements, live updates",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → RateLimit → Security → RequestId → handler

    from intraportal.middleware.rate_limit import RateLimitMiddleware
    from intraportal.middleware.request_id import RequestIdMiddleware
    from intraportal.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        default_rpm=settings.rate_limit_rpm,
        auth_rpm=settings.rate_limit_auth_rpm,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(Exception, unhandled_exception_handler)

    # Mount API routes
    app.include_router(api_router)

    # Mount WebSocket route (live updates)
    from intraportal.realtime.websocket import router as ws_router
    app.include_router(ws_router)

    return app


# Default app instance (used by uvicorn: intraportal.main:app)
app = create_app()
