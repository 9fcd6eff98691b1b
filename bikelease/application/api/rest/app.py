import logging
from contextlib import asynccontextmanager

import logfire
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from bikelease.application.api.v1.errors import map_order_error
from bikelease.application.api.v1.routes import health, orders
from bikelease.application.di import create_container
from bikelease.config import Config, configure_logging
from bikelease.domain.shared.error import INTERNAL_MESSAGE, OrderError
from bikelease.util.di.fastapi import setup_dishka

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    container = app.state.dishka_container
    yield
    await container.close()


def _warn_on_missing_connections(config: Config) -> None:
    if not config.storage.url:
        logger.warning("Storage connection is not configured; submissions will fail")
    if not config.notification.url and not config.notification.bypass:
        logger.warning(
            "Notification connection is not configured and bypass is off; "
            "submissions will be rejected with a configuration error"
        )


def create_app(config: Config | None = None) -> FastAPI:
    """Create FastAPI application."""
    # Pydantic Settings populates from env vars at runtime
    config = config or Config()

    # Configure logging early
    configure_logging(config.logging)
    logger.info("Starting %s v%s", config.server.name, config.server.version)
    _warn_on_missing_connections(config)

    app_instance = FastAPI(
        title=config.server.name,
        description=config.server.description,
        version=config.server.version,
        lifespan=lifespan,
    )

    # Instrument FastAPI for automatic tracing of HTTP requests
    logfire.instrument_httpx()
    logfire.instrument_fastapi(app_instance)

    # Setup dependency injection
    container = create_container(config)
    setup_dishka(container, app_instance)

    app_instance.include_router(health.router, prefix="/api/v1")
    app_instance.include_router(orders.router, prefix="/api/v1")

    # Errors raised outside the submission pipeline (lookups)
    @app_instance.exception_handler(OrderError)
    async def order_error_handler(request: Request, exc: OrderError):
        return map_order_error(exc)

    # Global exception handler - logs all unhandled exceptions
    @app_instance.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(
            "Unhandled exception on %s %s",
            request.method,
            request.url.path,
        )
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": INTERNAL_MESSAGE},
        )

    return app_instance
