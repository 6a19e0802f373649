"""Periodic refresh of settlement orders for display."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple

from pydantic import ValidationError

from ...config import settings
from ...providers.settlement import SettlementProvider
from ..events import EventChannel, Subscription
from .models import TrackedOrder
from .status import DisplayStatus, get_display_status

DisplayRow = Tuple[TrackedOrder, DisplayStatus]


@dataclass
class PollSnapshot:
    rows: List[DisplayRow] = field(default_factory=list)
    error: Optional[str] = None
    refreshed_at: Optional[datetime] = None


class OrderStatusPoller:
    """Fetches the order list on a fixed interval and publishes projections.

    The last good list survives a failed refresh; the failure is reported
    through ``snapshot.error`` until the next success.
    """

    def __init__(
        self,
        provider: Optional[SettlementProvider] = None,
        *,
        interval_s: Optional[float] = None,
        limit: Optional[int] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._provider = provider or SettlementProvider()
        self.interval_s = interval_s or settings.order_poll_interval_seconds
        self.limit = limit or settings.orders_default_limit
        self._logger = logger or logging.getLogger(__name__)
        self._task: Optional[asyncio.Task] = None
        self.snapshot = PollSnapshot()
        self.updates: EventChannel[PollSnapshot] = EventChannel("orders")

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def subscribe(self, callback: Callable[[PollSnapshot], None]) -> Subscription:
        return self.updates.subscribe(callback)

    async def refresh(self) -> PollSnapshot:
        try:
            raw_orders = await self._provider.get_orders(limit=self.limit)
            orders = self._parse_orders(raw_orders)
        except Exception as exc:  # noqa: BLE001
            self._logger.warning("Failed to refresh orders: %s", exc)
            self.snapshot = PollSnapshot(
                rows=self.snapshot.rows,
                error="Failed to connect to order service",
                refreshed_at=self.snapshot.refreshed_at,
            )
        else:
            self.snapshot = PollSnapshot(
                rows=[(order, get_display_status(order)) for order in orders],
                refreshed_at=datetime.now(timezone.utc),
            )
        self.updates.publish(self.snapshot)
        return self.snapshot

    def _parse_orders(self, raw_orders) -> List[TrackedOrder]:
        orders: List[TrackedOrder] = []
        for item in raw_orders:
            try:
                orders.append(TrackedOrder.model_validate(item))
            except ValidationError as exc:
                self._logger.warning("Skipping malformed order record: %s", exc)
        return orders

    async def start(self) -> None:
        if self.is_running:
            return
        self._task = asyncio.create_task(self._run_loop(), name="order-status-poller")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _run_loop(self) -> None:
        while True:
            await self.refresh()
            await asyncio.sleep(self.interval_s)
