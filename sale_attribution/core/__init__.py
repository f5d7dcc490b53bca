"""
Core infrastructure package for the Sale Attribution backend.

Provides:
- Configuration management via pydantic-settings
- Optional async PostgreSQL connectivity via asyncpg
- The attribution exception taxonomy

FastAPI dependencies live in sale_attribution.core.dependencies and are
imported from there directly, since they wire in the services layer.

Usage Examples:
    from sale_attribution.core import get_settings
    settings = get_settings()

    from sale_attribution.core import init_db, close_db

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await init_db()
        yield
        await close_db()
"""

from sale_attribution.core.config import Settings, get_settings
from sale_attribution.core.database import init_db, close_db, get_db_pool
from sale_attribution.core.exceptions import (
    AttributionError,
    MalformedTimestamp,
    IncompleteSaleData,
    CollaboratorUnavailable,
    InternalError,
)

__all__ = [
    # Configuration management (from config.py)
    'Settings',
    'get_settings',
    # Database pool lifecycle (from database.py)
    'init_db',
    'close_db',
    'get_db_pool',
    # Error taxonomy (from exceptions.py)
    'AttributionError',
    'MalformedTimestamp',
    'IncompleteSaleData',
    'CollaboratorUnavailable',
    'InternalError',
]
