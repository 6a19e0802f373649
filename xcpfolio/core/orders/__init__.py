"""
Order composition: request models and the Counterparty-backed composer.
"""

from .composer import OrderComposer
from .models import (
    BroadcastResult,
    ComposedTransaction,
    EchoedOrderParams,
    Order,
    SignedTransaction,
    SwapOrderRequest,
)

__all__ = [
    "OrderComposer",
    "BroadcastResult",
    "ComposedTransaction",
    "EchoedOrderParams",
    "Order",
    "SignedTransaction",
    "SwapOrderRequest",
]
