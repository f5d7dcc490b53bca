"""
FastAPI application entry point for the Sale Attribution API.

Configures logging and CORS, resolves the persistence backend at startup,
registers the API routers and exposes the health check.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sale_attribution import __version__
from sale_attribution.api.sales import router as sales_router
from sale_attribution.core.config import get_settings
from sale_attribution.core.database import close_db, init_db
from sale_attribution.core.dependencies import SettingsDep
from sale_attribution.models.schemas import HealthResponse
from sale_attribution.services.persistence import init_repository

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Lifespan context manager for FastAPI application startup and shutdown events.

    On startup:
        - Initialize the database pool when DATABASE_URL is configured
        - Resolve the sales history repository

    On shutdown:
        - Close the database pool
    """
    settings = get_settings()
    logger.info("Sale Attribution API starting")
    logger.info(f"Database configured: {settings.database_configured}")
    logger.info(f"UTMify configured: {settings.utmify_configured}")

    if settings.database_configured:
        try:
            await init_db()
            logger.info("Database connection pool initialized")
        except Exception as e:
            logger.error(f"Failed to initialize database: {e}")
            # Saves report the failure per request instead of blocking startup

    init_repository(settings)

    yield

    logger.info("Sale Attribution API shutting down")
    try:
        await close_db()
    except Exception as e:
        logger.error(f"Error closing database pool: {e}")


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title="Sale Attribution API",
        version=__version__,
        description=(
            "Reconstructs which campaign/creative drove a sale from the sales bot "
            "notification and the UTMify click events around the estimated click."
        ),
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_origin_regex=settings.cors_origin_regex,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(sales_router, prefix="/api", tags=["sales"])

    @app.get("/api/health", response_model=HealthResponse)
    async def health_check(settings: SettingsDep) -> HealthResponse:
        """Health check endpoint for monitoring and load balancer probes."""
        return HealthResponse(
            status="OK",
            timestamp=datetime.now(timezone.utc),
            database_configured=settings.database_configured,
            utmify_configured=settings.utmify_configured,
        )

    return app


app = create_app()


# Run with uvicorn when executed directly
if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "sale_attribution.main:app",
        host=settings.host,
        port=settings.port,
    )
