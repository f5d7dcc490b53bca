"""
Sale attribution services.

Services:
- message_parser: field extraction from the sales bot notification
- click_time: estimated click instant from purchase time and conversion duration
- event_source: UTMify event window lookup (HTTP or simulated)
- ranking: campaign/creative ranking with confidence tiers
- persistence: sales_analysis history (Postgres or in-memory)
- registration: UTMify order registration
- orchestrator: end-to-end analysis of one sale
"""

from sale_attribution.services.message_parser import parse_sale_message
from sale_attribution.services.click_time import (
    estimate_click_time,
    format_click_time,
    format_query_timestamp,
    parse_purchase_datetime,
)
from sale_attribution.services.event_source import (
    DemoEventSource,
    EventWindowSource,
    UtmifyEventSource,
    build_event_source,
)
from sale_attribution.services.ranking import classify_confidence, rank_campaigns
from sale_attribution.services.persistence import (
    InMemorySalesRepository,
    PostgresSalesRepository,
    SalesRepository,
    get_repository,
    init_repository,
)
from sale_attribution.services.registration import (
    NullOrderRegistrar,
    UtmifyOrderRegistrar,
    build_order_payload,
    build_order_registrar,
)
from sale_attribution.services.orchestrator import AnalysisOrchestrator

__all__ = [
    'parse_sale_message',
    'estimate_click_time',
    'format_click_time',
    'format_query_timestamp',
    'parse_purchase_datetime',
    'DemoEventSource',
    'EventWindowSource',
    'UtmifyEventSource',
    'build_event_source',
    'classify_confidence',
    'rank_campaigns',
    'InMemorySalesRepository',
    'PostgresSalesRepository',
    'SalesRepository',
    'get_repository',
    'init_repository',
    'NullOrderRegistrar',
    'UtmifyOrderRegistrar',
    'build_order_payload',
    'build_order_registrar',
    'AnalysisOrchestrator',
]
