"""
Sale analysis orchestrator.

Runs one attribution analysis end to end:

    parse -> completeness check -> estimate click -> query event window
          -> rank -> assemble result -> persist -> register

The core result is assembled before any persistence or registration call.
Collaborator failures (event source, repository, registrar) are attached to
the result; only client-input errors (IncompleteSaleData, MalformedTimestamp)
are raised to the caller.
"""

import logging
from datetime import datetime
from typing import Callable

from sale_attribution.core.exceptions import (
    CollaboratorUnavailable,
    IncompleteSaleData,
    InternalError,
    MalformedTimestamp,
)
from sale_attribution.models.enums import RegistrationState
from sale_attribution.models.schemas import (
    AnalysisResult,
    RegistrationStatus,
    SaleAnalysisRecord,
    SaveStatus,
)
from sale_attribution.services.click_time import estimate_click_time, format_click_time
from sale_attribution.services.event_source import DEFAULT_MARGIN_MINUTES, EventWindowSource
from sale_attribution.services.message_parser import parse_sale_message
from sale_attribution.services.persistence import SalesRepository, utc_now
from sale_attribution.services.ranking import rank_campaigns
from sale_attribution.services.registration import OrderRegistrar


logger = logging.getLogger(__name__)


class AnalysisOrchestrator:
    """
    Sequences parsing, estimation, event lookup and ranking for one sale.

    Collaborators are resolved once at startup and injected here, so the
    orchestrator never branches on configuration.
    """

    def __init__(
        self,
        event_source: EventWindowSource,
        repository: SalesRepository,
        registrar: OrderRegistrar,
        margin_minutes: int = DEFAULT_MARGIN_MINUTES,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.event_source = event_source
        self.repository = repository
        self.registrar = registrar
        self.margin_minutes = margin_minutes
        self.clock = clock

    async def analyze(self, raw_text: str) -> AnalysisResult:
        """
        Analyze a sale notification.

        Args:
            raw_text: Message posted by the sales bot.

        Returns:
            AnalysisResult with ranked candidates plus persistence and
            registration statuses.

        Raises:
            IncompleteSaleData: If the purchase date/time or conversion time is
                missing. Raised before any event lookup.
            MalformedTimestamp: If the purchase date/time cannot be parsed.
            InternalError: On any other fault while building the result.
        """
        try:
            return await self._analyze(raw_text)
        except (IncompleteSaleData, MalformedTimestamp):
            raise
        except Exception as e:
            logger.exception("Unexpected error analyzing sale")
            raise InternalError(f"Unexpected {type(e).__name__} while analyzing sale") from e

    async def _analyze(self, raw_text: str) -> AnalysisResult:
        sale = parse_sale_message(raw_text)

        missing = sale.missing_required_fields()
        if missing:
            logger.warning(f"Rejecting sale message, missing fields: {missing}")
            raise IncompleteSaleData(missing)

        click_instant = estimate_click_time(sale.purchase_datetime, sale.conversion_time)

        event_source_error = None
        try:
            events = await self.event_source.query(click_instant, self.margin_minutes)
        except CollaboratorUnavailable as e:
            logger.warning(f"Event lookup failed, continuing without events: {e}")
            events = []
            event_source_error = str(e)

        candidates = rank_campaigns(events)

        result = AnalysisResult(
            sale_data=sale,
            estimated_click_instant=click_instant,
            estimated_click_time=format_click_time(click_instant),
            analysis=candidates,
            top_result=candidates[0] if candidates else None,
            events_found=len(events),
            event_source_error=event_source_error,
        )

        logger.info(
            f"Analyzed sale client_id={sale.client_id} "
            f"click={result.estimated_click_time} events={result.events_found} "
            f"top={result.top_result.campaign if result.top_result else None}"
        )

        result.saved = await self._save(result)
        result.registration = await self._register(result)
        return result

    async def _save(self, result: AnalysisResult) -> SaveStatus:
        record = SaleAnalysisRecord.from_result(result, created_at=self.clock())
        try:
            return await self.repository.save(record)
        except Exception as e:
            logger.error(f"Failed to save analysis: {e}")
            return SaveStatus(success=False, error=f"Failed to save analysis: {e}")

    async def _register(self, result: AnalysisResult) -> RegistrationStatus:
        if result.top_result is None:
            return RegistrationStatus(
                success=False,
                status=RegistrationState.SKIPPED,
                error="No campaign candidate to attribute the sale to",
            )

        try:
            return await self.registrar.register(result.sale_data, result.top_result)
        except Exception as e:
            logger.error(f"Failed to register sale: {e}")
            return RegistrationStatus(
                success=False,
                status=RegistrationState.FAILED,
                error=f"Failed to register sale: {e}",
            )
