"""Typed models used by the order composition flow."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class SwapOrderRequest(BaseModel):
    """A give-asset/get-asset DEX order the buyer wants to place."""

    model_config = ConfigDict(frozen=True)

    give_asset: str = Field(min_length=1, description="Asset offered, e.g. XCP")
    give_quantity: int = Field(gt=0, description="Quantity offered in base units")
    get_asset: str = Field(min_length=1, description="Asset wanted, e.g. XCPFOLIO.BACH")
    get_quantity: int = Field(gt=0, description="Quantity wanted in base units")
    expiration_blocks: Optional[int] = Field(
        default=None,
        ge=1,
        description="Blocks until the order expires; None uses the configured default",
    )
    fee_rate_sat_per_vbyte: Optional[float] = Field(
        default=None,
        ge=1,
        description="Miner fee rate; None uses the fee advisor's order rate",
    )

    @field_validator("give_asset", "get_asset")
    @classmethod
    def _normalize_asset(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("asset name must not be empty")
        return value

    @model_validator(mode="after")
    def _distinct_assets(self) -> "SwapOrderRequest":
        if self.give_asset.upper() == self.get_asset.upper():
            raise ValueError("give_asset and get_asset must differ")
        return self

    @classmethod
    def from_listing(
        cls,
        listing: "Order",
        *,
        expiration_blocks: Optional[int] = None,
        fee_rate_sat_per_vbyte: Optional[float] = None,
    ) -> "SwapOrderRequest":
        """Build the buy order that exactly fills an open sell listing."""
        return cls(
            give_asset=listing.get_asset,
            give_quantity=listing.get_quantity,
            get_asset=listing.give_asset,
            get_quantity=listing.give_quantity,
            expiration_blocks=expiration_blocks,
            fee_rate_sat_per_vbyte=fee_rate_sat_per_vbyte,
        )


class Order(BaseModel):
    """Open DEX order as returned by the Counterparty API."""

    model_config = ConfigDict(extra="ignore")

    tx_hash: str
    source: str
    give_asset: str
    give_quantity: int
    give_remaining: int = 0
    get_asset: str
    get_quantity: int
    get_remaining: int = 0
    status: str = "open"
    give_price: Optional[float] = None
    expire_index: Optional[int] = None


@dataclass(frozen=True)
class EchoedOrderParams:
    """Order parameters as confirmed by the compose endpoint."""

    source: str
    give_asset: str
    give_quantity: int
    get_asset: str
    get_quantity: int
    expiration: int
    fee_required: int
    sat_per_vbyte: float


@dataclass(frozen=True)
class ComposedTransaction:
    """Unsigned order transaction ready for the wallet."""

    raw_transaction_hex: str
    estimated_fee_sats: int
    btc_in: int
    btc_out: int
    btc_change: int
    echoed_params: EchoedOrderParams


@dataclass(frozen=True)
class SignedTransaction:
    signed_hex: str


@dataclass(frozen=True)
class BroadcastResult:
    transaction_id: str
