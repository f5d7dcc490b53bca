"""
Event window sources.

An event source returns the attribution events recorded inside
[center - margin, center + margin]. Two implementations exist and one is
chosen at startup:

- UtmifyEventSource: queries the UTMify events API over HTTP
- DemoEventSource: returns simulated events when no UTMify token is configured

Every query is a fresh request; results are not cached between analyses.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Protocol

import httpx

from sale_attribution.core.config import Settings
from sale_attribution.core.exceptions import CollaboratorUnavailable
from sale_attribution.models.enums import EventType
from sale_attribution.models.schemas import AttributionEvent
from sale_attribution.services.click_time import format_query_timestamp


logger = logging.getLogger(__name__)

DEFAULT_MARGIN_MINUTES: int = 5


def event_window(center: datetime, margin_minutes: int) -> tuple:
    """Inclusive (start, end) bounds of the window around center."""
    margin = timedelta(minutes=margin_minutes)
    return center - margin, center + margin


class EventWindowSource(Protocol):
    """Capability interface consumed by the analysis orchestrator."""

    async def query(
        self,
        center: datetime,
        margin_minutes: int = DEFAULT_MARGIN_MINUTES,
    ) -> List[AttributionEvent]:
        ...


class UtmifyEventSource:
    """
    Client for the UTMify events endpoint.

    Sends GET {events_url}?start_date=...&end_date=...&event_types=... with
    the x-api-token header. Timestamps use "YYYY-MM-DD HH:MM:SS".
    """

    def __init__(
        self,
        api_token: str,
        events_url: str,
        event_types: str,
        timeout: Optional[float] = None,
    ):
        self.api_token = api_token
        self.events_url = events_url
        self.event_types = event_types
        self.timeout = httpx.Timeout(timeout)

    def _get_headers(self) -> Dict[str, str]:
        return {
            "x-api-token": self.api_token,
            "Content-Type": "application/json",
        }

    def build_params(self, center: datetime, margin_minutes: int) -> Dict[str, str]:
        start, end = event_window(center, margin_minutes)
        return {
            "start_date": format_query_timestamp(start),
            "end_date": format_query_timestamp(end),
            "event_types": self.event_types,
        }

    async def query(
        self,
        center: datetime,
        margin_minutes: int = DEFAULT_MARGIN_MINUTES,
    ) -> List[AttributionEvent]:
        """
        Fetch events around the estimated click.

        Raises:
            CollaboratorUnavailable: On transport errors, non-2xx responses,
                an error envelope or a body that is not a list of events.
        """
        params = self.build_params(center, margin_minutes)

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(
                    self.events_url,
                    params=params,
                    headers=self._get_headers(),
                )
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"UTMify events request failed: HTTP {e.response.status_code}")
            raise CollaboratorUnavailable(
                "utmify_events", f"HTTP {e.response.status_code}"
            ) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error(f"UTMify events request failed: {e}")
            raise CollaboratorUnavailable("utmify_events", str(e)) from e
        except ValueError as e:
            logger.error(f"UTMify events response is not JSON: {e}")
            raise CollaboratorUnavailable("utmify_events", "invalid JSON response") from e

        raw_events = _extract_event_list(body)
        logger.info(
            f"UTMify returned {len(raw_events)} events between "
            f"{params['start_date']} and {params['end_date']}"
        )
        return [AttributionEvent.from_raw(raw) for raw in raw_events if isinstance(raw, dict)]


def _extract_event_list(body: Any) -> List[Dict[str, Any]]:
    if isinstance(body, list):
        return body

    if isinstance(body, dict):
        if body.get("error"):
            raise CollaboratorUnavailable("utmify_events", str(body["error"]))
        data = body.get("data")
        if data is None:
            return []
        if isinstance(data, list):
            return data

    raise CollaboratorUnavailable("utmify_events", "unexpected response shape")


class DemoEventSource:
    """
    Simulated UTMify responses for environments without an API token.

    Returns two Facebook CPC events of campaign CJ2_VIDA_LTV stamped at the
    estimated click time, one per creative.
    """

    async def query(
        self,
        center: datetime,
        margin_minutes: int = DEFAULT_MARGIN_MINUTES,
    ) -> List[AttributionEvent]:
        event_time = format_query_timestamp(center)
        raw_events = [
            {
                "utm_campaign": "CJ2_VIDA_LTV",
                "utm_content": "CJ2_CRT1",
                "utm_source": "facebook",
                "utm_medium": "cpc",
                "event_type": EventType.PAGE_VIEW.value,
                "event_time": event_time,
                "ip": "192.168.1.1",
                "fbp": "fb.1.123456789.987654321",
                "fbc": "fb.1.123456789.987654321",
            },
            {
                "utm_campaign": "CJ2_VIDA_LTV",
                "utm_content": "CJ2_CRT2",
                "utm_source": "facebook",
                "utm_medium": "cpc",
                "event_type": EventType.PAGE_VIEW.value,
                "event_time": event_time,
                "ip": "192.168.1.2",
                "fbp": "fb.1.123456789.987654322",
                "fbc": "fb.1.123456789.987654322",
            },
        ]
        return [AttributionEvent.from_raw(raw) for raw in raw_events]


def build_event_source(settings: Settings) -> EventWindowSource:
    """Pick the event source implementation from configuration."""
    if settings.utmify_api_token:
        return UtmifyEventSource(
            api_token=settings.utmify_api_token,
            events_url=settings.utmify_events_url,
            event_types=settings.utmify_event_types,
            timeout=settings.utmify_timeout_seconds,
        )

    logger.info("UTMIFY_API_TOKEN not set; using simulated events")
    return DemoEventSource()
