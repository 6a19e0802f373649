import httpx
import pytest

from xcpfolio.providers import base as provider_base
from xcpfolio.providers.counterparty import CounterpartyProvider, full_asset_name, parse_asset_name
from xcpfolio.providers.mempool import MempoolProvider
from xcpfolio.providers.settlement import SettlementError, SettlementProvider


def _routing_client(routes):
    """``httpx.AsyncClient`` stand-in answering from a ``{url: (status, payload)}`` map."""

    class _DummyClient:
        requested = []

        def __init__(self, *_, **__):
            pass

        async def __aenter__(self):
            return self

        async def __aexit__(self, exc_type, exc, tb):
            return False

        async def get(self, url, params=None, headers=None):
            _DummyClient.requested.append((url, params))
            status, payload = routes.get(url, (404, {"error": "not found"}))
            return httpx.Response(status, json=payload, request=httpx.Request("GET", url))

    return _DummyClient


def test_asset_name_helpers():
    assert full_asset_name("BACH") == "XCPFOLIO.BACH"
    assert full_asset_name("XCPFOLIO.BACH") == "XCPFOLIO.BACH"
    assert parse_asset_name("XCPFOLIO.BACH") == "BACH"


@pytest.mark.asyncio
async def test_asset_orders_resolve_numeric_id(monkeypatch):
    base = "https://cp.test"
    client = _routing_client({
        f"{base}/v2/assets/XCPFOLIO.BACH": (200, {"result": {"asset": "A95428956661682177"}}),
        f"{base}/v2/assets/A95428956661682177/orders": (200, {"result": [{"tx_hash": "abc"}]}),
    })
    monkeypatch.setattr(provider_base.httpx, "AsyncClient", client)

    orders = await CounterpartyProvider(base_url=base).get_asset_orders("BACH")

    assert orders == [{"tx_hash": "abc"}]
    assert client.requested[-1][1] == {"status": "open", "verbose": "true"}


@pytest.mark.asyncio
async def test_unknown_asset_has_no_orders(monkeypatch):
    monkeypatch.setattr(provider_base.httpx, "AsyncClient", _routing_client({}))

    assert await CounterpartyProvider(base_url="https://cp.test").get_asset_orders("NOPE") == []


@pytest.mark.asyncio
async def test_block_height(monkeypatch):
    base = "https://mempool.test/api"
    monkeypatch.setattr(
        provider_base.httpx,
        "AsyncClient",
        _routing_client({f"{base}/blocks/tip/height": (200, 880123)}),
    )

    assert await MempoolProvider(base_url=base).get_block_height() == 880123


@pytest.mark.asyncio
async def test_health_check_reports_status(monkeypatch):
    base = "https://mempool.test/api"
    monkeypatch.setattr(
        provider_base.httpx,
        "AsyncClient",
        _routing_client({f"{base}/blocks/tip/height": (200, 880123)}),
    )

    healthy = await MempoolProvider(base_url=base).health_check()
    failing = await MempoolProvider(base_url="https://elsewhere.test").health_check()

    assert healthy["status"] == "healthy"
    assert failing["status"] == "error"


@pytest.mark.asyncio
async def test_settlement_orders(monkeypatch):
    base = "http://bot.test"
    monkeypatch.setattr(
        provider_base.httpx,
        "AsyncClient",
        _routing_client({f"{base}/api/orders": (200, {"success": True, "orders": [{"orderHash": "1"}]})}),
    )

    assert await SettlementProvider(base_url=base).get_orders(limit=5) == [{"orderHash": "1"}]


@pytest.mark.asyncio
async def test_settlement_failure_flag_raises(monkeypatch):
    base = "http://bot.test"
    monkeypatch.setattr(
        provider_base.httpx,
        "AsyncClient",
        _routing_client({f"{base}/api/orders": (200, {"success": False, "error": "db down"})}),
    )

    with pytest.raises(SettlementError, match="db down"):
        await SettlementProvider(base_url=base).get_orders()
