"""
FastAPI application factory.

Run with:
    uvicorn quakefeed.api.app:app --reload --port 8000
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from quakefeed.api.v1.earthquakes import router as earthquake_router
from quakefeed.core.config import Settings, settings
from quakefeed.core.errors import register_error_handlers
from quakefeed.core.logging_config import get_logger, setup_logging
from quakefeed.core.middleware import RequestLoggingMiddleware

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "Starting %s v%s [%s]",
        settings.APP_NAME, settings.APP_VERSION, settings.ENVIRONMENT,
    )
    yield
    logger.info("Shutting down %s", settings.APP_NAME)


def create_app(config: Settings = settings) -> FastAPI:
    """Build the application: logging, middleware, error handlers, routes."""
    setup_logging(config)

    app = FastAPI(
        title=config.APP_NAME,
        description=(
            "Country-aware query layer over the USGS FDSN earthquake event "
            "service: validated time, magnitude and alert-level filters, "
            "with client-side point-in-polygon country filtering."
        ),
        version=config.APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(RequestLoggingMiddleware)
    register_error_handlers(app)
    app.include_router(earthquake_router)

    @app.get("/", tags=["root"])
    async def root():
        return {
            "service": config.APP_NAME,
            "version": config.APP_VERSION,
            "environment": config.ENVIRONMENT,
            "docs": "/docs",
        }

    @app.get("/health/live", tags=["health"])
    async def liveness():
        """Liveness probe — is the process alive?"""
        return {"status": "alive"}

    return app


app = create_app()
