"""
FastAPI application factory
"""
import logging
import traceback
from contextlib import asynccontextmanager

import redis
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.sessions import SessionMiddleware

from event_locator.api.errors import register_exception_handlers
from event_locator.api.v1 import events, notifications, push
from event_locator.application.scheduler import shutdown_scheduler, start_scheduler
from event_locator.container import Container
from event_locator.infrastructure.db.session import check_db_connection

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class ErrorLoggingMiddleware(BaseHTTPMiddleware):
    """Catches everything the exception handlers did not, including sync routes."""

    async def dispatch(self, request, call_next):
        try:
            return await call_next(request)
        except Exception:
            tb_str = traceback.format_exc()
            logger.error(f"\n{'='*60}\nERROR on {request.method} {request.url.path}\n{tb_str}{'='*60}")
            return JSONResponse(
                {"success": False, "code": "INTERNAL_ERROR", "message": "Internal Server Error"},
                status_code=500,
            )


def _start_background(container: Container) -> None:
    settings = container.settings()
    if settings.SUBSCRIBER_ENABLED:
        container.pipeline().start()
        try:
            container.pubsub().start()
        except redis.RedisError:
            # degraded mode: requests still work, this instance just won't fan out
            logger.exception("Pub/sub listener could not start")
    if settings.SCHEDULER_ENABLED:
        start_scheduler(container)


def _stop_background(container: Container) -> None:
    shutdown_scheduler()
    container.pubsub().stop()


def create_app(container: Container | None = None) -> FastAPI:
    """
    Application factory - builds and wires the FastAPI app

    Args:
        container: pre-configured dependency container (tests pass overrides)
    """
    container = container or Container()
    settings = container.settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        _start_background(container)
        try:
            yield
        finally:
            _stop_background(container)

    app = FastAPI(
        title="Event Locator",
        debug=settings.DEBUG,
        lifespan=lifespan,
    )
    app.state.container = container

    app.add_middleware(ErrorLoggingMiddleware)
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.SECRET_KEY
    )
    register_exception_handlers(app)

    app.include_router(events.router)
    app.include_router(notifications.router)
    app.include_router(push.router)

    # Health checks
    @app.get("/health", response_class=PlainTextResponse, tags=["system"])
    def health():
        """Health check endpoint"""
        return "ok"

    @app.get("/ready", response_class=PlainTextResponse, tags=["system"])
    def ready():
        """Readiness check endpoint (database must answer; Redis may be degraded)"""
        check_db_connection(container.engine())
        if not container.cache().ping():
            logger.warning("Redis unreachable, serving in degraded mode")
        return "ok"

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "event_locator.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
