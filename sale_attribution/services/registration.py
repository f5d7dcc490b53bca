"""
UTMify order registration.

After a sale has been attributed, the order is registered with UTMify so it
shows up next to the campaign that drove it. Registration is best-effort:
failures are reported as a RegistrationStatus and never raised.

Payload rules:
- amounts are sent in cents, rounded half-up
- gateway fee is 15% and user commission 85% of the total
- orderId is "bot_<client_id>_<epoch milliseconds>"
"""

import logging
import time
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable, Dict, Optional, Protocol

import httpx

from sale_attribution.core.config import Settings
from sale_attribution.models.enums import RegistrationState
from sale_attribution.models.schemas import (
    CampaignCandidate,
    RegistrationStatus,
    SaleRecord,
)


logger = logging.getLogger(__name__)


GATEWAY_FEE_RATE = Decimal("0.15")
USER_COMMISSION_RATE = Decimal("0.85")

PLATFORM_NAME = "TelegramBot"
PAYMENT_METHOD = "pix"
CUSTOMER_COUNTRY = "BR"


def to_cents(amount: Decimal) -> int:
    return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def current_millis() -> int:
    return int(time.time() * 1000)


def build_order_payload(
    sale: SaleRecord,
    candidate: CampaignCandidate,
    now_millis: Callable[[], int] = current_millis,
) -> Dict[str, Any]:
    """
    Build the UTMify order payload for an attributed sale.

    Args:
        sale: Parsed sale data.
        candidate: Top ranked campaign candidate.
        now_millis: Clock used for the synthetic order id.

    Returns:
        Dict ready to be posted as JSON.
    """
    value_cents = to_cents((sale.value or Decimal(0)) * 100)
    purchase = sale.purchase_datetime or ""

    return {
        "orderId": f"bot_{sale.client_id or 'unknown'}_{now_millis()}",
        "platform": PLATFORM_NAME,
        "paymentMethod": PAYMENT_METHOD,
        "status": "paid",
        "createdAt": purchase,
        "approvedDate": purchase,
        "customer": {
            "name": f"Cliente {sale.client_id or 'Desconhecido'}",
            "country": CUSTOMER_COUNTRY,
            "ip": "0.0.0.0",
        },
        "products": [
            {
                "id": sale.plan or "plano_desconhecido",
                "name": f"Plano {sale.plan or 'Desconhecido'}",
                "quantity": 1,
                "priceInCents": value_cents,
            }
        ],
        "trackingParameters": {
            "utm_source": candidate.utm_source,
            "utm_campaign": candidate.campaign,
            "utm_medium": candidate.utm_medium,
            "utm_content": candidate.creative,
        },
        "commission": {
            "totalPriceInCents": value_cents,
            "gatewayFeeInCents": to_cents(value_cents * GATEWAY_FEE_RATE),
            "userCommissionInCents": to_cents(value_cents * USER_COMMISSION_RATE),
        },
        "isTest": False,
    }


class OrderRegistrar(Protocol):
    async def register(self, sale: SaleRecord, candidate: CampaignCandidate) -> RegistrationStatus:
        ...


class UtmifyOrderRegistrar:
    """Posts attributed orders to the UTMify orders endpoint."""

    def __init__(
        self,
        api_token: str,
        orders_url: str,
        timeout: Optional[float] = None,
        now_millis: Callable[[], int] = current_millis,
    ):
        self.api_token = api_token
        self.orders_url = orders_url
        self.timeout = httpx.Timeout(timeout)
        self.now_millis = now_millis

    def _get_headers(self) -> Dict[str, str]:
        return {
            "x-api-token": self.api_token,
            "Content-Type": "application/json",
        }

    async def register(self, sale: SaleRecord, candidate: CampaignCandidate) -> RegistrationStatus:
        payload = build_order_payload(sale, candidate, self.now_millis)

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.orders_url,
                    json=payload,
                    headers=self._get_headers(),
                )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"UTMify order registration failed: HTTP {e.response.status_code}")
            return RegistrationStatus(
                success=False,
                status=RegistrationState.FAILED,
                error=f"Failed to register sale with UTMify: HTTP {e.response.status_code}",
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error(f"UTMify order registration failed: {e}")
            return RegistrationStatus(
                success=False,
                status=RegistrationState.FAILED,
                error=f"Failed to register sale with UTMify: {e}",
            )

        try:
            data = response.json()
        except ValueError:
            data = response.text

        logger.info(f"Registered order {payload['orderId']} with UTMify")
        return RegistrationStatus(success=True, status=RegistrationState.REGISTERED, data=data)


class NullOrderRegistrar:
    """Used when no UTMify token is configured; never sends anything."""

    async def register(self, sale: SaleRecord, candidate: CampaignCandidate) -> RegistrationStatus:
        return RegistrationStatus(
            success=False,
            status=RegistrationState.NOT_CONFIGURED,
            error="UTMify token not configured",
        )


def build_order_registrar(settings: Settings) -> OrderRegistrar:
    if settings.utmify_api_token:
        return UtmifyOrderRegistrar(
            api_token=settings.utmify_api_token,
            orders_url=settings.utmify_orders_url,
            timeout=settings.utmify_timeout_seconds,
        )
    return NullOrderRegistrar()
