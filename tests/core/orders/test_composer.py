"""
Tests for the Order Composer

Covers query building, fee resolution and every compose failure mode.
"""

import httpx
import pytest

from xcpfolio.core.errors import ComposeError, ErrorKind
from xcpfolio.core.orders import OrderComposer, SwapOrderRequest
from xcpfolio.providers import base as provider_base
from xcpfolio.providers.counterparty import CounterpartyProvider

SOURCE = "1ExampleAddress"
BASE_URL = "https://counterparty.test"


def _compose_result(**overrides):
    result = {
        "rawtransaction": "0200000001abcdef",
        "btc_in": 150000,
        "btc_out": 0,
        "btc_change": 148000,
        "btc_fee": 2000,
        "params": {
            "source": SOURCE,
            "give_asset": "XCP",
            "give_quantity": 500000000,
            "get_asset": "A95428956661682177",
            "get_quantity": 1,
            "expiration": 1000,
            "fee_required": 0,
        },
    }
    result.update(overrides)
    return {"result": result}


def _client_returning(status_code=200, payload=None, content=None):
    """Build an ``httpx.AsyncClient`` stand-in that records every GET."""

    class _DummyClient:
        requests = []

        def __init__(self, *_, **__):
            pass

        async def __aenter__(self):
            return self

        async def __aexit__(self, exc_type, exc, tb):
            return False

        async def get(self, url, params=None, headers=None):
            _DummyClient.requests.append({"url": url, "params": params})
            request = httpx.Request("GET", url, params=params)
            if content is not None:
                return httpx.Response(status_code, content=content, request=request)
            return httpx.Response(status_code, json=payload, request=request)

    return _DummyClient


class _FixedFeeAdvisor:
    def __init__(self, rate):
        self.rate = rate
        self.calls = 0

    async def get_order_fee_rate(self):
        self.calls += 1
        return self.rate


@pytest.fixture
def request_model() -> SwapOrderRequest:
    return SwapOrderRequest(
        give_asset="XCP",
        give_quantity=500000000,
        get_asset="XCPFOLIO.BACH",
        get_quantity=1,
        expiration_blocks=1000,
        fee_rate_sat_per_vbyte=10,
    )


@pytest.fixture
def composer() -> OrderComposer:
    return OrderComposer(provider=CounterpartyProvider(base_url=BASE_URL))


class TestBuildQuery:
    """Tests for the compose query string."""

    def test_query_carries_order_fields_and_fixed_flags(self, composer, request_model):
        query = composer.build_query(request_model, fee_rate=10)

        assert query == {
            "give_asset": "XCP",
            "give_quantity": "500000000",
            "get_asset": "XCPFOLIO.BACH",
            "get_quantity": "1",
            "expiration": "1000",
            "fee_required": "0",
            "sat_per_vbyte": "10",
            "exclude_utxos_with_balances": "true",
            "verbose": "true",
        }

    def test_missing_expiration_uses_default(self, request_model):
        composer = OrderComposer(
            provider=CounterpartyProvider(base_url=BASE_URL),
            default_expiration=8064,
        )
        request = request_model.model_copy(update={"expiration_blocks": None})

        assert composer.build_query(request, fee_rate=2.5)["expiration"] == "8064"
        assert composer.build_query(request, fee_rate=2.5)["sat_per_vbyte"] == "2.5"


class TestResolveFeeRate:
    """Tests for fee rate selection."""

    @pytest.mark.asyncio
    async def test_explicit_rate_wins_over_advisor(self, request_model):
        advisor = _FixedFeeAdvisor(3)
        composer = OrderComposer(provider=CounterpartyProvider(base_url=BASE_URL), fee_advisor=advisor)

        assert await composer.resolve_fee_rate(request_model) == 10
        assert advisor.calls == 0

    @pytest.mark.asyncio
    async def test_advisor_used_when_request_has_no_rate(self, request_model):
        advisor = _FixedFeeAdvisor(4)
        composer = OrderComposer(provider=CounterpartyProvider(base_url=BASE_URL), fee_advisor=advisor)
        request = request_model.model_copy(update={"fee_rate_sat_per_vbyte": None})

        assert await composer.resolve_fee_rate(request) == 4
        assert advisor.calls == 1


class TestComposeOrder:
    """Tests for OrderComposer.compose_order."""

    @pytest.mark.asyncio
    async def test_successful_compose_returns_transaction(self, monkeypatch, composer, request_model):
        client = _client_returning(payload=_compose_result())
        monkeypatch.setattr(provider_base.httpx, "AsyncClient", client)

        composed = await composer.compose_order(request_model, SOURCE)

        assert composed.raw_transaction_hex == "0200000001abcdef"
        assert composed.estimated_fee_sats == 2000
        assert composed.btc_in == 150000
        assert composed.btc_change == 148000
        assert composed.echoed_params.source == SOURCE
        assert composed.echoed_params.get_asset == "XCPFOLIO.BACH"
        assert composed.echoed_params.expiration == 1000
        assert composed.echoed_params.sat_per_vbyte == 10

        sent = client.requests[-1]
        assert sent["url"] == f"{BASE_URL}/v2/addresses/{SOURCE}/compose/order"
        assert sent["params"]["exclude_utxos_with_balances"] == "true"
        assert sent["params"]["fee_required"] == "0"

    @pytest.mark.asyncio
    async def test_error_field_in_body_raises(self, monkeypatch, composer, request_model):
        client = _client_returning(payload={"error": "Insufficient XCP balance"})
        monkeypatch.setattr(provider_base.httpx, "AsyncClient", client)

        with pytest.raises(ComposeError) as exc_info:
            await composer.compose_order(request_model, SOURCE)

        assert exc_info.value.message == "Insufficient XCP balance"
        assert exc_info.value.kind is ErrorKind.COMPOSE

    @pytest.mark.asyncio
    async def test_non_2xx_uses_upstream_error_message(self, monkeypatch, composer, request_model):
        client = _client_returning(status_code=400, payload={"error": "invalid asset"})
        monkeypatch.setattr(provider_base.httpx, "AsyncClient", client)

        with pytest.raises(ComposeError) as exc_info:
            await composer.compose_order(request_model, SOURCE)

        assert exc_info.value.message == "invalid asset"
        assert exc_info.value.context.details["status_code"] == 400

    @pytest.mark.asyncio
    async def test_non_2xx_without_body_reports_status(self, monkeypatch, composer, request_model):
        client = _client_returning(status_code=502, content=b"Bad Gateway")
        monkeypatch.setattr(provider_base.httpx, "AsyncClient", client)

        with pytest.raises(ComposeError, match="Failed to compose order: 502"):
            await composer.compose_order(request_model, SOURCE)

    @pytest.mark.asyncio
    async def test_missing_raw_transaction_raises(self, monkeypatch, composer, request_model):
        payload = _compose_result()
        del payload["result"]["rawtransaction"]
        monkeypatch.setattr(provider_base.httpx, "AsyncClient", _client_returning(payload=payload))

        with pytest.raises(ComposeError, match="rawtransaction"):
            await composer.compose_order(request_model, SOURCE)

    @pytest.mark.asyncio
    async def test_missing_fee_raises(self, monkeypatch, composer, request_model):
        payload = _compose_result(btc_fee=None)
        monkeypatch.setattr(provider_base.httpx, "AsyncClient", _client_returning(payload=payload))

        with pytest.raises(ComposeError, match="btc_fee"):
            await composer.compose_order(request_model, SOURCE)

    @pytest.mark.asyncio
    async def test_mismatched_echo_quantity_raises(self, monkeypatch, composer, request_model):
        payload = _compose_result()
        payload["result"]["params"]["give_quantity"] = 1
        monkeypatch.setattr(provider_base.httpx, "AsyncClient", _client_returning(payload=payload))

        with pytest.raises(ComposeError, match="give_quantity"):
            await composer.compose_order(request_model, SOURCE)

    @pytest.mark.asyncio
    async def test_empty_source_fails_before_network(self, monkeypatch, composer, request_model):
        client = _client_returning(payload=_compose_result())
        monkeypatch.setattr(provider_base.httpx, "AsyncClient", client)

        with pytest.raises(ComposeError):
            await composer.compose_order(request_model, "  ")

        assert client.requests == []

    @pytest.mark.asyncio
    async def test_transport_error_becomes_compose_error(self, monkeypatch, composer, request_model):
        class _FailingClient:
            def __init__(self, *_, **__):
                pass

            async def __aenter__(self):
                return self

            async def __aexit__(self, exc_type, exc, tb):
                return False

            async def get(self, url, params=None, headers=None):
                raise httpx.ConnectError("connection refused", request=httpx.Request("GET", url))

        monkeypatch.setattr(provider_base.httpx, "AsyncClient", _FailingClient)

        with pytest.raises(ComposeError, match="connection refused"):
            await composer.compose_order(request_model, SOURCE)
