import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from xcpfolio.core.tracking import OrderStatusPoller

ORDER = {
    "orderHash": "0x1",
    "asset": "BACH",
    "price": 0.5,
    "buyer": "1BuyerAddressXYZ1234",
    "status": "confirmed",
    "purchasedAt": 1_700_000_000_000,
}


class FakeSettlement:
    def __init__(self, batches):
        self.batches = list(batches)
        self.calls = 0

    async def get_orders(self, limit=50):
        self.calls += 1
        batch = self.batches.pop(0) if self.batches else []
        if isinstance(batch, Exception):
            raise batch
        return batch


@pytest.mark.asyncio
async def test_refresh_projects_orders_and_publishes():
    poller = OrderStatusPoller(FakeSettlement([[ORDER]]), interval_s=10)
    seen = []
    poller.subscribe(seen.append)

    snapshot = await poller.refresh()

    assert snapshot.error is None
    assert len(snapshot.rows) == 1
    order, display = snapshot.rows[0]
    assert order.asset == "BACH"
    assert display.badge_label == "Delivered"
    assert seen == [snapshot]


@pytest.mark.asyncio
async def test_failed_refresh_keeps_last_rows():
    poller = OrderStatusPoller(FakeSettlement([[ORDER], RuntimeError("bot offline")]), interval_s=10)

    first = await poller.refresh()
    second = await poller.refresh()

    assert second.error == "Failed to connect to order service"
    assert second.rows == first.rows
    assert second.refreshed_at == first.refreshed_at


@pytest.mark.asyncio
async def test_start_and_stop_polling():
    settlement = FakeSettlement([[ORDER], [ORDER], [ORDER]])
    poller = OrderStatusPoller(settlement, interval_s=0.01)

    await poller.start()
    await poller.start()
    await asyncio.sleep(0.05)
    assert poller.is_running

    await poller.stop()

    assert not poller.is_running
    assert settlement.calls >= 2


@pytest.mark.asyncio
async def test_refresh_requests_configured_limit():
    provider = MagicMock()
    provider.get_orders = AsyncMock(return_value=[])
    poller = OrderStatusPoller(provider, interval_s=10, limit=25)

    snapshot = await poller.refresh()

    provider.get_orders.assert_awaited_once_with(limit=25)
    assert snapshot.rows == []
    assert snapshot.refreshed_at is not None


@pytest.mark.asyncio
async def test_malformed_record_is_skipped():
    incomplete = {"orderHash": "0x2", "asset": "DALI"}
    second = {**ORDER, "orderHash": "0x3", "asset": "MONET"}
    poller = OrderStatusPoller(FakeSettlement([[ORDER, incomplete, "garbage", second]]), interval_s=10)

    snapshot = await poller.refresh()

    assert snapshot.error is None
    assert [order.asset for order, _ in snapshot.rows] == ["BACH", "MONET"]


@pytest.mark.asyncio
async def test_refresh_defaults_to_configured_order_limit():
    provider = MagicMock()
    provider.get_orders = AsyncMock(return_value=[])
    poller = OrderStatusPoller(provider, interval_s=10)

    await poller.refresh()

    assert poller.limit == 50
    provider.get_orders.assert_awaited_once_with(limit=50)
