"""
Async PostgreSQL connection pool module.

This module provides an async PostgreSQL connection pool using asyncpg. The pool
is only created when DATABASE_URL is configured; without it the application
keeps its sales history in memory (see services/persistence.py).

Key Components:
- Global connection pool singleton (_pool)
- init_db(): Initialize the connection pool at application startup
- get_db_pool(): Get the pool instance (initializes if needed)
- close_db(): Gracefully close the pool at application shutdown

Connection Pool Configuration:
- min_size: 1 (minimum idle connections kept in pool)
- max_size: 10 (maximum connections in pool)
- command_timeout: 60 seconds (query timeout)

Usage:
    # At application startup (in FastAPI lifespan)
    await init_db()

    # In repositories
    pool = await get_db_pool()
    async with pool.acquire() as conn:
        rows = await conn.fetch("SELECT * FROM sales_analysis")

    # At application shutdown
    await close_db()
"""

import logging
from typing import Optional

import asyncpg
from asyncpg import Pool

from sale_attribution.core.config import get_settings


logger = logging.getLogger(__name__)


# =============================================================================
# Global Pool Singleton
# =============================================================================

# None until init_db() is called with a configured DATABASE_URL
_pool: Optional[Pool] = None


# =============================================================================
# Pool Lifecycle Functions
# =============================================================================

async def init_db() -> Optional[Pool]:
    """
    Initialize the database connection pool.

    Idempotent: returns the existing pool when already initialized. Returns
    None without connecting when DATABASE_URL is not configured.

    Returns:
        Optional[Pool]: The asyncpg connection pool, or None if no database is configured.

    Raises:
        asyncpg.PostgresError: If connection to the database fails.
        OSError: If the database host is unreachable.
    """
    global _pool

    if _pool is None:
        settings = get_settings()
        if not settings.database_url:
            logger.info("DATABASE_URL not set; database pool not created")
            return None

        _pool = await asyncpg.create_pool(
            dsn=settings.database_url,
            min_size=1,
            max_size=10,
            command_timeout=60,
        )

    return _pool


async def get_db_pool() -> Pool:
    """
    Get the database connection pool, initializing if needed.

    Returns:
        Pool: The asyncpg connection pool instance.

    Raises:
        RuntimeError: If DATABASE_URL is not configured.
        asyncpg.PostgresError: If connection to the database fails during lazy init.
    """
    if _pool is None:
        await init_db()

    if _pool is None:
        raise RuntimeError("Database is not configured (DATABASE_URL is empty)")

    return _pool


async def close_db() -> None:
    """
    Close the database connection pool gracefully.

    Idempotent - calling it when the pool is not initialized has no effect.
    """
    global _pool

    if _pool is not None:
        await _pool.close()
        _pool = None
