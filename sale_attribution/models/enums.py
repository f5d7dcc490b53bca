"""
Enumeration definitions for the Sale Attribution backend.

All enums inherit from both `str` and `Enum` to ensure JSON serialization
compatibility with Pydantic models.
"""

from enum import Enum


# Sentinel used for campaign/creative/source/medium values missing upstream
UNKNOWN_LABEL = "unknown"


class Confidence(str, Enum):
    """
    Confidence tier for a ranked campaign candidate.

    Derived only from the click count observed in the event window:
    - high: more than 20 events
    - medium: more than 10 events
    - low: 10 events or fewer
    """
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class RegistrationState(str, Enum):
    """
    Outcome of the downstream UTMify order registration.

    - registered: UTMify accepted the order
    - not_configured: no API token, nothing was sent
    - failed: the call was attempted and failed
    - skipped: no campaign candidate to attribute the order to
    """
    REGISTERED = "registered"
    NOT_CONFIGURED = "not_configured"
    FAILED = "failed"
    SKIPPED = "skipped"


class EventType(str, Enum):
    """UTMify event types considered attribution-relevant."""
    PAGE_VIEW = "PageView"
    VIEW_CONTENT = "ViewContent"
    LEAD = "Lead"
