"""
Package initialization file for sale attribution models.

Re-exports the Pydantic schemas and enumerations so other modules can import
them from sale_attribution.models directly.
"""

from sale_attribution.models.enums import (
    UNKNOWN_LABEL,
    Confidence,
    EventType,
    RegistrationState,
)
from sale_attribution.models.schemas import (
    ConversionDuration,
    SaleRecord,
    AttributionEvent,
    CampaignCandidate,
    SaveStatus,
    RegistrationStatus,
    AnalysisResult,
    SaleAnalysisRecord,
    AnalyzeSaleRequest,
    HistoryResponse,
    HealthResponse,
)

__all__ = [
    # Enums
    'UNKNOWN_LABEL',
    'Confidence',
    'EventType',
    'RegistrationState',
    # Schemas
    'ConversionDuration',
    'SaleRecord',
    'AttributionEvent',
    'CampaignCandidate',
    'SaveStatus',
    'RegistrationStatus',
    'AnalysisResult',
    'SaleAnalysisRecord',
    'AnalyzeSaleRequest',
    'HistoryResponse',
    'HealthResponse',
]
