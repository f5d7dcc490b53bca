"""
Pytest Configuration and Shared Fixtures for Sale Attribution Tests.

This module provides fixtures and configuration for all tests, supporting:
- Async test execution with pytest-asyncio
- Mock asyncpg pool fixtures for repository tests without a real database
- Mock httpx.AsyncClient fixtures for UTMify calls
- Sample sale notifications and event builders
- Reset of process-wide singletons (settings cache, repository, collaborators)
"""

from datetime import datetime, timezone
from typing import Any, Callable, Dict, Generator, List, Optional
from unittest.mock import AsyncMock, MagicMock, Mock

import httpx
import pytest

from sale_attribution.core.config import Settings, get_settings
from sale_attribution.core.dependencies import get_event_source, get_order_registrar
from sale_attribution.models.schemas import AttributionEvent
from sale_attribution.services.persistence import InMemorySalesRepository, reset_repository


# ============================================================
# PYTEST HOOKS
# ============================================================

def pytest_configure(config) -> None:
    """
    Register custom markers.

    - parity: tests pinning behaviour of the legacy sales bot
    """
    config.addinivalue_line(
        'markers',
        'parity: marks tests pinning behaviour of the legacy sales bot'
    )


# ============================================================
# SINGLETON RESET
# ============================================================

@pytest.fixture(autouse=True)
def reset_singletons() -> Generator[None, None, None]:
    """Clear cached settings and resolved collaborators around every test."""
    get_settings.cache_clear()
    get_event_source.cache_clear()
    get_order_registrar.cache_clear()
    reset_repository()
    yield
    get_settings.cache_clear()
    get_event_source.cache_clear()
    get_order_registrar.cache_clear()
    reset_repository()


# ============================================================
# SAMPLE DATA FIXTURES
# ============================================================

SALE_MESSAGE = (
    "✅ Venda aprovada!\n"
    "🆔 ID Cliente: 123456\n"
    "💎 Plano Mensal - R$ 29,90\n"
    "⏳ Tempo Conversão: 0d 2h 15m 30s\n"
    "🕓 Data e Hora da compra: 15/03/2024 14:30"
)

SALE_MESSAGE_WITHOUT_CONVERSION_TIME = (
    "✅ Venda aprovada!\n"
    "🆔 ID Cliente: 123456\n"
    "💎 Plano Mensal - R$ 29,90\n"
    "🕓 Data e Hora da compra: 15/03/2024 14:30"
)


@pytest.fixture
def sale_message() -> str:
    """Complete sale notification with all five labeled fields."""
    return SALE_MESSAGE


@pytest.fixture
def sale_message_without_conversion_time() -> str:
    return SALE_MESSAGE_WITHOUT_CONVERSION_TIME


def make_events(*groups: tuple) -> List[AttributionEvent]:
    """
    Build events from (campaign, creative, count) tuples, in order.

    Example:
        make_events(("A", "c1", 2), ("B", "c2", 1))
    """
    events = []
    for campaign, creative, count in groups:
        for _ in range(count):
            events.append(
                AttributionEvent.from_raw({
                    'utm_campaign': campaign,
                    'utm_content': creative,
                    'utm_source': 'facebook',
                    'utm_medium': 'cpc',
                })
            )
    return events


@pytest.fixture
def event_factory() -> Callable[..., List[AttributionEvent]]:
    return make_events


# ============================================================
# SETTINGS FIXTURES
# ============================================================

@pytest.fixture
def test_settings() -> Settings:
    """Settings with no external collaborators configured."""
    return Settings(
        _env_file=None,
        database_url=None,
        utmify_api_token=None,
        auth_password=None,
    )


@pytest.fixture
def utmify_settings() -> Settings:
    """Settings with a UTMify token configured."""
    return Settings(
        _env_file=None,
        database_url=None,
        utmify_api_token='test-token',
        utmify_events_url='https://utmify.test/events',
        utmify_orders_url='https://utmify.test/orders',
    )


# ============================================================
# DATABASE MOCK FIXTURES
# ============================================================

@pytest.fixture
def mock_db_pool() -> AsyncMock:
    """
    Create a mock asyncpg connection pool for testing database operations.

    Methods Mocked:
        - pool.acquire(): Returns async context manager yielding the connection
        - conn.execute / fetch / fetchrow / fetchval
    """
    pool = AsyncMock()

    conn = AsyncMock()
    conn.execute = AsyncMock(return_value=None)
    conn.fetch = AsyncMock(return_value=[])
    conn.fetchrow = AsyncMock(return_value=None)
    conn.fetchval = AsyncMock(return_value=None)

    acquire_context = AsyncMock()
    acquire_context.__aenter__ = AsyncMock(return_value=conn)
    acquire_context.__aexit__ = AsyncMock(return_value=None)
    pool.acquire = Mock(return_value=acquire_context)

    pool.close = AsyncMock(return_value=None)

    return pool


@pytest.fixture
def in_memory_repository() -> InMemorySalesRepository:
    return InMemorySalesRepository()


# ============================================================
# HTTP CLIENT MOCK FIXTURES
# ============================================================

def make_response(
    status_code: int = 200,
    json_body: Optional[Any] = None,
    method: str = 'GET',
    url: str = 'https://utmify.test/events',
) -> httpx.Response:
    """Real httpx.Response bound to a request so raise_for_status() works."""
    return httpx.Response(
        status_code,
        json=json_body,
        request=httpx.Request(method, url),
    )


@pytest.fixture
def mock_async_client() -> Callable[..., tuple]:
    """
    Factory for a mocked httpx.AsyncClient used as an async context manager.

    Returns (client_class_mock, client) where client.get / client.post are
    AsyncMocks. Patch the class with:

        with patch('sale_attribution.services.event_source.httpx.AsyncClient', client_class):
            ...
    """

    def factory(
        get_response: Optional[httpx.Response] = None,
        post_response: Optional[httpx.Response] = None,
        side_effect: Optional[Exception] = None,
    ) -> tuple:
        client = MagicMock()
        client.get = AsyncMock(return_value=get_response, side_effect=side_effect)
        client.post = AsyncMock(return_value=post_response, side_effect=side_effect)

        context = MagicMock()
        context.__aenter__ = AsyncMock(return_value=client)
        context.__aexit__ = AsyncMock(return_value=None)

        client_class = Mock(return_value=context)
        return client_class, client

    return factory


# ============================================================
# CLOCK FIXTURE
# ============================================================

FIXED_NOW = datetime(2024, 3, 15, 17, 45, tzinfo=timezone.utc)


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    return lambda: FIXED_NOW


def raw_event(**overrides: Any) -> Dict[str, Any]:
    event = {
        'utm_campaign': 'CAMP',
        'utm_content': 'CRT',
        'utm_source': 'facebook',
        'utm_medium': 'cpc',
        'event_time': '2024-03-15 12:14:30',
    }
    event.update(overrides)
    return event
