"""
Tests for UTMify order registration.

Covers:
- Payload amounts in cents with the 15%/85% fee/commission split
- Deterministic order id from client id and clock
- Defaults for missing client id, plan and value
- Not-configured registrar never sends anything
- HTTP failures reported as FAILED status
"""

from decimal import Decimal
from unittest.mock import patch

import httpx
import pytest

from sale_attribution.models.enums import Confidence, RegistrationState
from sale_attribution.models.schemas import CampaignCandidate, SaleRecord
from sale_attribution.services.registration import (
    NullOrderRegistrar,
    UtmifyOrderRegistrar,
    build_order_payload,
    build_order_registrar,
    to_cents,
)
from sale_attribution.tests.conftest import make_response


CLIENT_PATH = 'sale_attribution.services.registration.httpx.AsyncClient'

NOW_MILLIS = 1710513000000


@pytest.fixture
def sale() -> SaleRecord:
    return SaleRecord(
        client_id="123456",
        plan="Mensal",
        value=Decimal("29.90"),
        purchase_datetime="15/03/2024 14:30",
    )


@pytest.fixture
def candidate() -> CampaignCandidate:
    return CampaignCandidate(
        campaign="CJ2_VIDA_LTV",
        creative="CJ2_CRT1",
        utm_source="facebook",
        utm_medium="cpc",
        confidence=Confidence.LOW,
        click_count=2,
    )


class TestBuildOrderPayload:

    def test_amounts_in_cents(self, sale, candidate) -> None:
        payload = build_order_payload(sale, candidate, lambda: NOW_MILLIS)

        assert payload["products"][0]["priceInCents"] == 2990
        assert payload["commission"] == {
            "totalPriceInCents": 2990,
            "gatewayFeeInCents": 449,
            "userCommissionInCents": 2542,
        }

    def test_order_id_from_client_and_clock(self, sale, candidate) -> None:
        payload = build_order_payload(sale, candidate, lambda: NOW_MILLIS)
        assert payload["orderId"] == f"bot_123456_{NOW_MILLIS}"

    def test_tracking_parameters_from_candidate(self, sale, candidate) -> None:
        payload = build_order_payload(sale, candidate, lambda: NOW_MILLIS)

        assert payload["trackingParameters"] == {
            "utm_source": "facebook",
            "utm_campaign": "CJ2_VIDA_LTV",
            "utm_medium": "cpc",
            "utm_content": "CJ2_CRT1",
        }

    def test_fixed_fields(self, sale, candidate) -> None:
        payload = build_order_payload(sale, candidate, lambda: NOW_MILLIS)

        assert payload["platform"] == "TelegramBot"
        assert payload["paymentMethod"] == "pix"
        assert payload["status"] == "paid"
        assert payload["createdAt"] == "15/03/2024 14:30"
        assert payload["approvedDate"] == "15/03/2024 14:30"
        assert payload["customer"] == {"name": "Cliente 123456", "country": "BR", "ip": "0.0.0.0"}
        assert payload["products"][0]["name"] == "Plano Mensal"
        assert payload["isTest"] is False

    def test_defaults_for_missing_fields(self, candidate) -> None:
        payload = build_order_payload(SaleRecord(), candidate, lambda: NOW_MILLIS)

        assert payload["orderId"] == f"bot_unknown_{NOW_MILLIS}"
        assert payload["customer"]["name"] == "Cliente Desconhecido"
        assert payload["products"][0]["id"] == "plano_desconhecido"
        assert payload["products"][0]["name"] == "Plano Desconhecido"
        assert payload["products"][0]["priceInCents"] == 0
        assert payload["createdAt"] == ""

    @pytest.mark.parametrize(
        "amount,expected",
        [
            (Decimal("448.5"), 449),
            (Decimal("2541.5"), 2542),
            (Decimal("10.49"), 10),
            (Decimal("0"), 0),
        ],
    )
    def test_to_cents_rounds_half_up(self, amount, expected) -> None:
        assert to_cents(amount) == expected


@pytest.mark.asyncio
class TestUtmifyOrderRegistrar:

    async def test_posts_payload(self, sale, candidate, mock_async_client) -> None:
        client_class, client = mock_async_client(
            post_response=make_response(
                json_body={'ok': True},
                method='POST',
                url='https://utmify.test/orders',
            )
        )
        registrar = UtmifyOrderRegistrar(
            api_token='test-token',
            orders_url='https://utmify.test/orders',
            now_millis=lambda: NOW_MILLIS,
        )

        with patch(CLIENT_PATH, client_class):
            status = await registrar.register(sale, candidate)

        assert status.success is True
        assert status.status == RegistrationState.REGISTERED
        assert status.data == {'ok': True}
        args, kwargs = client.post.call_args
        assert args[0] == 'https://utmify.test/orders'
        assert kwargs['json']['orderId'] == f"bot_123456_{NOW_MILLIS}"
        assert kwargs['headers']['x-api-token'] == 'test-token'

    async def test_http_error_reported(self, sale, candidate, mock_async_client) -> None:
        client_class, _ = mock_async_client(
            post_response=make_response(status_code=500, json_body={}, method='POST')
        )
        registrar = UtmifyOrderRegistrar(api_token='t', orders_url='https://utmify.test/orders')

        with patch(CLIENT_PATH, client_class):
            status = await registrar.register(sale, candidate)

        assert status.success is False
        assert status.status == RegistrationState.FAILED
        assert 'HTTP 500' in status.error

    async def test_transport_error_reported(self, sale, candidate, mock_async_client) -> None:
        client_class, _ = mock_async_client(side_effect=httpx.ReadTimeout('timed out'))
        registrar = UtmifyOrderRegistrar(api_token='t', orders_url='https://utmify.test/orders')

        with patch(CLIENT_PATH, client_class):
            status = await registrar.register(sale, candidate)

        assert status.status == RegistrationState.FAILED

    async def test_null_registrar_not_configured(self, sale, candidate, mock_async_client) -> None:
        client_class, client = mock_async_client()

        with patch(CLIENT_PATH, client_class):
            status = await NullOrderRegistrar().register(sale, candidate)

        assert status.success is False
        assert status.status == RegistrationState.NOT_CONFIGURED
        client_class.assert_not_called()


class TestBuildOrderRegistrar:

    def test_null_without_token(self, test_settings) -> None:
        assert isinstance(build_order_registrar(test_settings), NullOrderRegistrar)

    def test_utmify_with_token(self, utmify_settings) -> None:
        registrar = build_order_registrar(utmify_settings)
        assert isinstance(registrar, UtmifyOrderRegistrar)
        assert registrar.orders_url == 'https://utmify.test/orders'
