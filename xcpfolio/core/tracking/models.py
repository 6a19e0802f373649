"""Settlement-service order records as seen by the display layer."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class OrderStatus(str, Enum):
    """Delivery states reported by the settlement service."""

    PENDING = "pending"
    PROCESSING = "processing"
    BROADCASTING = "broadcasting"
    CONFIRMING = "confirming"
    CONFIRMED = "confirmed"
    FAILED = "failed"
    PERMANENTLY_FAILED = "permanently_failed"


FAILED_STATUSES = frozenset({OrderStatus.FAILED, OrderStatus.PERMANENTLY_FAILED})


class TrackedOrder(BaseModel):
    """A purchase tracked by the settlement service. Display-only."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    order_hash: str
    asset: str
    price: float
    buyer: str
    # Kept as a plain string so unknown upstream states still render
    status: str
    stage: Optional[str] = None
    purchased_at: int = Field(description="Purchase time in epoch milliseconds")
    purchased_block: Optional[int] = None
    delivered_at: Optional[int] = None
    confirmed_at: Optional[int] = None
    confirmed_block: Optional[int] = None
    confirmations: Optional[int] = None
    transaction_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("txid", "transactionId", "transaction_id"),
    )
    error: Optional[str] = None
    retry_count: Optional[int] = None
