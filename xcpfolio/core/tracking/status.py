"""Pure display projection of settlement orders.

Nothing here mutates an order or touches the network; every value is derived
from fields already present on ``TrackedOrder``.
"""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass
from datetime import datetime, timezone, tzinfo
from typing import Any, Dict, Optional

from .models import FAILED_STATUSES, OrderStatus, TrackedOrder

_GREEN = "bg-green-100 text-green-800"
_BLUE = "bg-blue-100 text-blue-800"
_YELLOW = "bg-yellow-100 text-yellow-800"
_GRAY = "bg-gray-100 text-gray-800"
_RED = "bg-red-100 text-red-800"

_BADGES: Dict[str, tuple] = {
    OrderStatus.CONFIRMED.value: ("Delivered", _GREEN),
    OrderStatus.CONFIRMING.value: ("Confirming...", _BLUE),
    OrderStatus.BROADCASTING.value: ("Broadcasting...", _BLUE),
    OrderStatus.PROCESSING.value: ("Processing", _YELLOW),
    OrderStatus.PENDING.value: ("Pending", _GRAY),
    OrderStatus.PERMANENTLY_FAILED.value: ("Failed (Permanent)", _RED),
    OrderStatus.FAILED.value: ("Failed", _RED),
}

STATUS_DESCRIPTIONS: Dict[str, str] = {
    OrderStatus.PENDING.value: "Order detected, waiting to process",
    OrderStatus.PROCESSING.value: "Creating transfer transaction",
    OrderStatus.BROADCASTING.value: "Transaction sent to Bitcoin network",
    OrderStatus.CONFIRMING.value: "In mempool, waiting for confirmation",
    OrderStatus.CONFIRMED.value: "Asset successfully transferred",
}

DASH = "—"


@dataclass(frozen=True)
class DisplayStatus:
    badge_label: str
    color_class: str
    delivery_summary: str
    time_to_delivery_blocks: Optional[int] = None
    stage_label: Optional[str] = None
    elapsed_label: Optional[str] = None

    @property
    def blocks_label(self) -> str:
        if self.time_to_delivery_blocks is None:
            return DASH
        return f"{self.time_to_delivery_blocks} blocks"

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["blocks_label"] = self.blocks_label
        return data


def get_display_status(
    order: TrackedOrder,
    *,
    now_ms: Optional[int] = None,
    tz: Optional[tzinfo] = None,
) -> DisplayStatus:
    label, color = _BADGES.get(order.status, (order.status, _GRAY))
    if order.status == OrderStatus.PROCESSING.value and order.retry_count:
        label = f"{label} ({order.retry_count})"

    stage = order.stage if order.stage and order.status == OrderStatus.PROCESSING.value else None

    now = now_ms if now_ms is not None else int(time.time() * 1000)
    return DisplayStatus(
        badge_label=label,
        color_class=color,
        delivery_summary=delivery_summary(order),
        time_to_delivery_blocks=time_to_delivery_blocks(order),
        stage_label=stage,
        elapsed_label=format_elapsed(order.purchased_at, now, tz=tz),
    )


def time_to_delivery_blocks(order: TrackedOrder) -> Optional[int]:
    if order.status != OrderStatus.CONFIRMED.value:
        return None
    if order.purchased_block is None or order.confirmed_block is None:
        return None
    return order.confirmed_block - order.purchased_block


def delivery_summary(order: TrackedOrder) -> str:
    if order.delivered_at is None:
        if order.status in {s.value for s in FAILED_STATUSES}:
            return "N/A"
        if order.status == OrderStatus.CONFIRMING.value and order.confirmations is not None:
            return f"{order.confirmations}/1 confirmations"
        return "Pending..."

    seconds = max((order.delivered_at - order.purchased_at) // 1000, 0)
    if seconds < 60:
        return f"{seconds}s"
    minutes = seconds // 60
    if minutes < 60:
        return f"{minutes}m {seconds % 60}s"
    hours = minutes // 60
    return f"{hours}h {minutes % 60}m"


def format_elapsed(timestamp_ms: int, now_ms: int, *, tz: Optional[tzinfo] = None) -> str:
    """Relative time within the last hour, otherwise a clock or date label."""
    diff = now_ms - timestamp_ms
    if diff < 3_600_000:
        minutes = max(diff, 0) // 60_000
        return "Just now" if minutes < 1 else f"{minutes}m ago"

    zone = tz or timezone.utc
    moment = datetime.fromtimestamp(timestamp_ms / 1000, tz=zone)
    today = datetime.fromtimestamp(now_ms / 1000, tz=zone)
    if moment.date() == today.date():
        return _clock(moment)
    return f"{moment.strftime('%b')} {moment.day}, {_clock(moment)}"


def _clock(moment: datetime) -> str:
    hour = moment.hour % 12 or 12
    suffix = "AM" if moment.hour < 12 else "PM"
    return f"{hour}:{moment.minute:02d} {suffix}"


def shorten_address(address: str) -> str:
    if len(address) <= 10:
        return address
    return f"{address[:6]}...{address[-4:]}"
