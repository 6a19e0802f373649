"""
Order Status Tracker

Display projection of settlement-service orders plus a fixed-interval poller.
"""

from .models import OrderStatus, TrackedOrder
from .poller import OrderStatusPoller, PollSnapshot
from .status import (
    STATUS_DESCRIPTIONS,
    DisplayStatus,
    delivery_summary,
    format_elapsed,
    get_display_status,
    shorten_address,
    time_to_delivery_blocks,
)

__all__ = [
    "OrderStatus",
    "TrackedOrder",
    "OrderStatusPoller",
    "PollSnapshot",
    "STATUS_DESCRIPTIONS",
    "DisplayStatus",
    "delivery_summary",
    "format_elapsed",
    "get_display_status",
    "shorten_address",
    "time_to_delivery_blocks",
]
