"""
Sale notification parser.

Extracts typed fields from the free-text message the sales bot posts for each
purchase, e.g.:

    ✅ Venda aprovada!
    🆔 ID Cliente: 123456
    💎 Plano Mensal - R$ 29,90
    ⏳ Tempo Conversão: 0d 2h 15m 30s
    🕓 Data e Hora da compra: 15/03/2024 14:30

Each field has its own extractor returning an optional value; no extractor
depends on another one matching. Parsing never raises: unmatched fields are
left as None and the completeness check happens in the orchestrator.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Optional

from sale_attribution.models.schemas import ConversionDuration, SaleRecord


# =============================================================================
# Field Patterns
# =============================================================================

CLIENT_ID_PATTERN = re.compile(r"ID Cliente:\s*(\d+)")

PLAN_PATTERN = re.compile(r"Plano[ \t]+(\w+)", re.IGNORECASE)

VALUE_PATTERN = re.compile(r"R\$\s*(\d+[,.]?\d*)")

CONVERSION_TIME_PATTERN = re.compile(
    r"Tempo Convers[ãa]o:\s*(\d+)d\s+(\d+)h\s+(\d+)m\s+(\d+)s"
)

PURCHASE_DATETIME_PATTERN = re.compile(
    r"Data e Hora da compra:\s*(\d{2}/\d{2}/\d{4})\s+(\d{2}:\d{2})"
)


# =============================================================================
# Field Extractors
# =============================================================================


def extract_client_id(text: str) -> Optional[str]:
    match = CLIENT_ID_PATTERN.search(text)
    return match.group(1) if match else None


def extract_plan(text: str) -> Optional[str]:
    match = PLAN_PATTERN.search(text)
    return match.group(1) if match else None


def extract_value(text: str) -> Optional[Decimal]:
    """
    Extract the R$ amount, normalizing a decimal comma to a dot.

    "R$ 10,50" -> Decimal("10.50"), "R$ 1000" -> Decimal("1000").
    """
    match = VALUE_PATTERN.search(text)
    if not match:
        return None

    raw = match.group(1).replace(",", ".").rstrip(".")
    try:
        return Decimal(raw)
    except InvalidOperation:
        return None


def extract_conversion_time(text: str) -> Optional[ConversionDuration]:
    """All four components (days, hours, minutes, seconds) or nothing."""
    match = CONVERSION_TIME_PATTERN.search(text)
    if not match:
        return None

    days, hours, minutes, seconds = (int(group) for group in match.groups())
    return ConversionDuration(days=days, hours=hours, minutes=minutes, seconds=seconds)


def extract_purchase_datetime(text: str) -> Optional[str]:
    """Combined "DD/MM/YYYY HH:MM" token; validated later by the click-time estimator."""
    match = PURCHASE_DATETIME_PATTERN.search(text)
    if not match:
        return None
    return f"{match.group(1)} {match.group(2)}"


# =============================================================================
# Public API
# =============================================================================


def parse_sale_message(text: str) -> SaleRecord:
    """
    Parse a sale notification into a SaleRecord.

    Args:
        text: Raw message text from the sales bot.

    Returns:
        SaleRecord with every field that could be matched. The original text is
        always kept in original_message.
    """
    if not isinstance(text, str):
        return SaleRecord()

    return SaleRecord(
        client_id=extract_client_id(text),
        plan=extract_plan(text),
        value=extract_value(text),
        conversion_time=extract_conversion_time(text),
        purchase_datetime=extract_purchase_datetime(text),
        original_message=text,
    )
