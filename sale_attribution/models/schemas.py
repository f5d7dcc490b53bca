"""
Pydantic request/response models for the Sale Attribution backend.

This module provides type-safe data validation and serialization for the
attribution pipeline (sale records, events, candidates, analysis results),
the persistence rows kept in the sales_analysis history and the HTTP API
contracts.

All models use Pydantic v2 syntax.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from sale_attribution.models.enums import (
    UNKNOWN_LABEL,
    Confidence,
    RegistrationState,
)


# =============================================================================
# Sale Data
# =============================================================================


class ConversionDuration(BaseModel):
    """
    Elapsed time between the ad click and the purchase.

    Parsed from the "Tempo Conversão: 0d 2h 15m 30s" block of the bot message.
    All four components are required together.
    """
    model_config = ConfigDict(frozen=True)

    days: int = Field(..., ge=0)
    hours: int = Field(..., ge=0)
    minutes: int = Field(..., ge=0)
    seconds: int = Field(..., ge=0)

    def elapsed_seconds(self) -> int:
        """Total duration as a single offset in seconds."""
        return self.days * 86400 + self.hours * 3600 + self.minutes * 60 + self.seconds


class SaleRecord(BaseModel):
    """
    Structured fields extracted from a sale notification.

    Any field the parser could not match is None, except original_message
    which is always retained.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "client_id": "123456",
                "plan": "Mensal",
                "value": 29.9,
                "conversion_time": {"days": 0, "hours": 2, "minutes": 15, "seconds": 30},
                "purchase_datetime": "15/03/2024 14:30",
                "original_message": "...",
            }
        }
    )

    client_id: Optional[str] = Field(default=None, description="Client identifier")
    plan: Optional[str] = Field(default=None, description="Plan name")
    value: Optional[Decimal] = Field(default=None, description="Sale amount in BRL")
    conversion_time: Optional[ConversionDuration] = Field(
        default=None,
        description="Time elapsed between click and purchase"
    )
    purchase_datetime: Optional[str] = Field(
        default=None,
        description="Purchase date/time token in DD/MM/YYYY HH:MM form"
    )
    original_message: str = Field(default="", description="Raw notification text")

    @field_serializer("value", when_used="json")
    def _serialize_value(self, value: Optional[Decimal]) -> Optional[float]:
        return float(value) if value is not None else None

    def missing_required_fields(self) -> List[str]:
        """Names of the fields needed downstream that the parser did not find."""
        missing = []
        if not self.purchase_datetime:
            missing.append("purchase_datetime")
        if self.conversion_time is None:
            missing.append("conversion_time")
        return missing


# =============================================================================
# Events and Candidates
# =============================================================================


class AttributionEvent(BaseModel):
    """
    A single UTMify click/pageview event.

    Missing or empty UTM labels are replaced with the "unknown" sentinel so
    that unlabeled events group together.
    """
    model_config = ConfigDict(frozen=True)

    campaign: str = UNKNOWN_LABEL
    creative: str = UNKNOWN_LABEL
    source: str = UNKNOWN_LABEL
    medium: str = UNKNOWN_LABEL
    payload: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_raw(cls, raw: Dict[str, Any]) -> "AttributionEvent":
        """Build an event from a raw UTMify event dict."""

        def label(key: str) -> str:
            value = raw.get(key)
            if value is None or str(value).strip() == "":
                return UNKNOWN_LABEL
            return str(value)

        return cls(
            campaign=label("utm_campaign"),
            creative=label("utm_content"),
            source=label("utm_source"),
            medium=label("utm_medium"),
            payload=dict(raw),
        )


class CampaignCandidate(BaseModel):
    """Campaign/creative pair ranked by click volume in the event window."""

    campaign: str
    creative: str
    utm_source: str = UNKNOWN_LABEL
    utm_medium: str = UNKNOWN_LABEL
    confidence: Confidence
    click_count: int = Field(..., ge=0)


# =============================================================================
# Collaborator Statuses
# =============================================================================


class SaveStatus(BaseModel):
    """Result of persisting an analysis."""

    success: bool
    id: Optional[Any] = None
    error: Optional[str] = None


class RegistrationStatus(BaseModel):
    """Result of registering the sale with UTMify."""

    success: bool
    status: RegistrationState
    data: Optional[Any] = None
    error: Optional[str] = None


# =============================================================================
# Analysis Result
# =============================================================================


class AnalysisResult(BaseModel):
    """
    Output of one sale analysis.

    The core fields are assembled before any persistence or registration call.
    saved, registration and event_source_error carry collaborator outcomes
    and never replace the core analysis.
    """

    sale_data: SaleRecord
    estimated_click_instant: datetime
    estimated_click_time: str = Field(..., description="DD/MM/YYYY HH:MM")
    analysis: List[CampaignCandidate] = Field(default_factory=list, max_length=3)
    top_result: Optional[CampaignCandidate] = None
    events_found: int = 0
    event_source_error: Optional[str] = None
    saved: Optional[SaveStatus] = None
    registration: Optional[RegistrationStatus] = None


# =============================================================================
# Persistence Rows
# =============================================================================


class SaleAnalysisRecord(BaseModel):
    """Row of the sales_analysis history."""

    id: Optional[Any] = None
    original_message: str = ""
    client_id: Optional[str] = None
    plan: Optional[str] = None
    value: Optional[float] = None
    purchase_datetime: Optional[str] = None
    estimated_click_time: Optional[str] = None
    campaign: Optional[str] = None
    creative: Optional[str] = None
    confidence: Optional[str] = None
    analysis_data: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime

    @classmethod
    def from_result(cls, result: AnalysisResult, created_at: datetime) -> "SaleAnalysisRecord":
        sale = result.sale_data
        top = result.top_result
        return cls(
            original_message=sale.original_message,
            client_id=sale.client_id,
            plan=sale.plan,
            value=float(sale.value) if sale.value is not None else None,
            purchase_datetime=sale.purchase_datetime,
            estimated_click_time=result.estimated_click_time,
            campaign=top.campaign if top else None,
            creative=top.creative if top else None,
            confidence=top.confidence.value if top else None,
            analysis_data=result.model_dump(
                mode="json",
                exclude={"saved", "registration"},
            ),
            created_at=created_at,
        )

    def matches(self, query: str) -> bool:
        """Case-insensitive match on campaign/creative, substring match on client id."""
        needle = query.lower()
        if self.campaign and needle in self.campaign.lower():
            return True
        if self.creative and needle in self.creative.lower():
            return True
        return bool(self.client_id and query in self.client_id)


# =============================================================================
# HTTP API Contracts
# =============================================================================


class AnalyzeSaleRequest(BaseModel):
    """Body of POST /api/analyze-sale."""

    message: Optional[str] = Field(default=None, description="Raw sale notification text")


class HistoryResponse(BaseModel):
    """Body of GET /api/history and GET /api/search."""

    data: List[SaleAnalysisRecord] = Field(default_factory=list)


class HealthResponse(BaseModel):
    """Body of GET /api/health."""

    status: str = "OK"
    timestamp: datetime
    database_configured: bool
    utmify_configured: bool
