"""
Sales analysis persistence.

Two repository implementations share one interface:

- PostgresSalesRepository: stores rows in the sales_analysis table via asyncpg
- InMemorySalesRepository: process-wide append-only list, used when
  DATABASE_URL is not configured

The implementation is resolved once at startup by init_repository() and held
in a module-level singleton; callers never branch on configuration.

Table layout (Postgres):

    CREATE TABLE sales_analysis (
        id BIGSERIAL PRIMARY KEY,
        original_message TEXT NOT NULL DEFAULT '',
        client_id TEXT,
        plan TEXT,
        value NUMERIC(12, 2),
        purchase_datetime TEXT,
        estimated_click_time TEXT,
        campaign TEXT,
        creative TEXT,
        confidence TEXT,
        analysis_data JSONB NOT NULL DEFAULT '{}'::jsonb,
        created_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );
"""

import json
import logging
import threading
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Awaitable, Callable, List, Optional, Protocol

from asyncpg import Pool

from sale_attribution.core.config import Settings
from sale_attribution.core.database import get_db_pool
from sale_attribution.models.schemas import SaleAnalysisRecord, SaveStatus


logger = logging.getLogger(__name__)


class SalesRepository(Protocol):
    """Persistence capability used by the orchestrator and the history routes."""

    async def save(self, record: SaleAnalysisRecord) -> SaveStatus:
        ...

    async def history(self) -> List[SaleAnalysisRecord]:
        ...

    async def search(self, query: str) -> List[SaleAnalysisRecord]:
        ...


# =============================================================================
# In-Memory Repository
# =============================================================================


class InMemorySalesRepository:
    """
    Append-only in-process history.

    Id allocation and append happen under a single lock so concurrent saves
    never lose entries or reuse ids. Reads return most recent first.
    """

    def __init__(self):
        self._records: List[SaleAnalysisRecord] = []
        self._next_id = 1
        self._lock = threading.Lock()

    async def save(self, record: SaleAnalysisRecord) -> SaveStatus:
        with self._lock:
            stored = record.model_copy(update={"id": self._next_id})
            self._next_id += 1
            self._records.append(stored)
        return SaveStatus(success=True, id=stored.id)

    async def history(self) -> List[SaleAnalysisRecord]:
        with self._lock:
            return list(reversed(self._records))

    async def search(self, query: str) -> List[SaleAnalysisRecord]:
        if not query:
            return []
        with self._lock:
            return [record for record in reversed(self._records) if record.matches(query)]


# =============================================================================
# Postgres Repository
# =============================================================================

INSERT_SALE_ANALYSIS = """
    INSERT INTO sales_analysis (
        original_message, client_id, plan, value, purchase_datetime,
        estimated_click_time, campaign, creative, confidence,
        analysis_data, created_at
    ) VALUES (
        $1, $2, $3, $4, $5, $6, $7, $8, $9, $10::jsonb, $11
    )
    RETURNING id
"""

SELECT_COLUMNS = """
    SELECT
        id, original_message, client_id, plan, value, purchase_datetime,
        estimated_click_time, campaign, creative, confidence,
        analysis_data, created_at
    FROM sales_analysis
"""

SELECT_HISTORY = SELECT_COLUMNS + """
    ORDER BY created_at DESC
"""

SELECT_SEARCH = SELECT_COLUMNS + """
    WHERE campaign ILIKE $1
       OR creative ILIKE $1
       OR client_id ILIKE $1
    ORDER BY created_at DESC
"""


def _escape_like(query: str) -> str:
    return query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _row_to_record(row: Any) -> SaleAnalysisRecord:
    data = dict(row)
    analysis_data = data.get("analysis_data")
    if isinstance(analysis_data, str):
        data["analysis_data"] = json.loads(analysis_data)
    elif analysis_data is None:
        data["analysis_data"] = {}
    if data.get("value") is not None:
        data["value"] = float(data["value"])
    return SaleAnalysisRecord(**data)


class PostgresSalesRepository:
    """sales_analysis table accessed through the shared asyncpg pool."""

    def __init__(self, pool_provider: Callable[[], Awaitable[Pool]] = get_db_pool):
        self._pool_provider = pool_provider

    async def save(self, record: SaleAnalysisRecord) -> SaveStatus:
        try:
            pool = await self._pool_provider()
            async with pool.acquire() as conn:
                row = await conn.fetchrow(
                    INSERT_SALE_ANALYSIS,
                    record.original_message,
                    record.client_id,
                    record.plan,
                    Decimal(str(record.value)) if record.value is not None else None,
                    record.purchase_datetime,
                    record.estimated_click_time,
                    record.campaign,
                    record.creative,
                    record.confidence,
                    json.dumps(record.analysis_data),
                    record.created_at,
                )
        except Exception as e:
            logger.error(f"Failed to save sale analysis: {e}")
            return SaveStatus(success=False, error=f"Failed to save sale analysis: {e}")

        saved_id = row["id"] if row else None
        logger.info(f"Saved sale analysis id={saved_id} client_id={record.client_id}")
        return SaveStatus(success=True, id=saved_id)

    async def history(self) -> List[SaleAnalysisRecord]:
        pool = await self._pool_provider()
        async with pool.acquire() as conn:
            rows = await conn.fetch(SELECT_HISTORY)
        return [_row_to_record(row) for row in rows]

    async def search(self, query: str) -> List[SaleAnalysisRecord]:
        if not query:
            return []
        pool = await self._pool_provider()
        async with pool.acquire() as conn:
            rows = await conn.fetch(SELECT_SEARCH, f"%{_escape_like(query)}%")
        return [_row_to_record(row) for row in rows]


# =============================================================================
# Repository Singleton
# =============================================================================

_repository: Optional[SalesRepository] = None


def build_repository(settings: Settings) -> SalesRepository:
    if settings.database_url:
        return PostgresSalesRepository()
    return InMemorySalesRepository()


def init_repository(settings: Settings) -> SalesRepository:
    """
    Resolve the repository implementation once.

    Idempotent: returns the existing repository when already initialized.
    """
    global _repository

    if _repository is None:
        _repository = build_repository(settings)
        logger.info(f"Sales history backed by {type(_repository).__name__}")

    return _repository


def get_repository() -> SalesRepository:
    if _repository is None:
        raise RuntimeError("Repository not initialized; call init_repository() first")
    return _repository


def reset_repository() -> None:
    """Drop the resolved repository (used by tests)."""
    global _repository
    _repository = None


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
