import logging
import time
from dataclasses import asdict
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, ValidationError

from ..config import settings
from ..core.errors import ComposeError
from ..core.orders.composer import OrderComposer
from ..core.orders.models import Order, SwapOrderRequest
from ..core.tracking.models import TrackedOrder
from ..core.tracking.status import STATUS_DESCRIPTIONS, get_display_status, shorten_address
from ..dependencies import get_counterparty_provider, get_order_composer, get_settlement_provider
from ..providers.counterparty import CounterpartyProvider, parse_asset_name
from ..providers.settlement import SettlementProvider

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


class ComposeOrderRequest(SwapOrderRequest):
    source_address: str = Field(min_length=1, description="Address that will sign the order")


class ComposeOrderResponse(BaseModel):
    success: bool = True
    raw_transaction_hex: str
    estimated_fee_sats: int
    btc_in: int
    btc_out: int
    btc_change: int
    params: Dict[str, Any]


async def _fetch_orders(settlement: SettlementProvider, limit: int) -> Optional[List[Dict[str, Any]]]:
    try:
        return await settlement.get_orders(limit=limit)
    except Exception as exc:  # noqa: BLE001
        logger.error("Error fetching orders: %s", exc)
        if settings.is_development:
            return mock_orders()
        return None


@router.get("/orders")
async def list_orders(
    limit: int = Query(default=settings.orders_default_limit, ge=1, le=1000),
    settlement: SettlementProvider = Depends(get_settlement_provider),
):
    """Proxy to the settlement service's order list."""
    orders = await _fetch_orders(settlement, limit)
    if orders is None:
        return JSONResponse(status_code=500, content={"success": False, "error": "Failed to fetch orders"})
    return {
        "success": True,
        "orders": orders,
        "total": len(orders),
        "timestamp": int(time.time() * 1000),
    }


@router.get("/orders/display")
async def list_orders_for_display(
    limit: int = Query(default=settings.orders_default_limit, ge=1, le=1000),
    settlement: SettlementProvider = Depends(get_settlement_provider),
):
    """Orders with their badge, delivery summary and block counts."""
    raw_orders = await _fetch_orders(settlement, limit)
    if raw_orders is None:
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Failed to connect to order service"},
        )

    rows = []
    for item in raw_orders:
        try:
            order = TrackedOrder.model_validate(item)
        except ValidationError as exc:
            logger.warning("Skipping malformed order record: %s", exc)
            continue
        rows.append({
            "order": order.model_dump(by_alias=True),
            "buyerShort": shorten_address(order.buyer),
            "display": get_display_status(order).to_dict(),
        })
    return {"success": True, "orders": rows, "legend": STATUS_DESCRIPTIONS}


@router.get("/assets/{asset}/orders")
async def list_asset_listings(
    asset: str,
    counterparty: CounterpartyProvider = Depends(get_counterparty_provider),
):
    """Open sell listings for an XCPFOLIO subasset."""
    try:
        listings = [Order.model_validate(item) for item in await counterparty.get_asset_orders(asset)]
    except Exception as exc:  # noqa: BLE001
        logger.error("Error fetching orders for %s: %s", asset, exc)
        return JSONResponse(status_code=502, content={"success": False, "error": "Failed to fetch orders"})
    return {
        "success": True,
        "asset": parse_asset_name(asset),
        "orders": [listing.model_dump() for listing in listings],
    }


@router.post("/orders/compose")
async def compose_order(
    req: ComposeOrderRequest,
    composer: OrderComposer = Depends(get_order_composer),
):
    """Build an unsigned order transaction for the caller's wallet to sign."""
    request = SwapOrderRequest(**req.model_dump(exclude={"source_address"}))
    try:
        composed = await composer.compose_order(request, req.source_address)
    except ComposeError as exc:
        return JSONResponse(status_code=400, content={"success": False, "error": exc.to_dict()})

    return ComposeOrderResponse(
        raw_transaction_hex=composed.raw_transaction_hex,
        estimated_fee_sats=composed.estimated_fee_sats,
        btc_in=composed.btc_in,
        btc_out=composed.btc_out,
        btc_change=composed.btc_change,
        params=asdict(composed.echoed_params),
    )


def mock_orders() -> List[Dict[str, Any]]:
    """Sample orders served in development when the settlement bot is down."""
    now = int(time.time() * 1000)
    return [
        {
            "orderHash": "0x123...",
            "asset": "RAREPEPE",
            "price": 0.5,
            "buyer": "1ABC...xyz",
            "status": "confirmed",
            "stage": "confirmed",
            "purchasedAt": now - 3_600_000,
            "deliveredAt": now - 3_500_000,
            "confirmedAt": now - 3_400_000,
            "txid": "0xabc...",
        },
        {
            "orderHash": "0x456...",
            "asset": "PEPENOPOULOS",
            "price": 0.25,
            "buyer": "1DEF...uvw",
            "status": "broadcasting",
            "stage": "mempool",
            "purchasedAt": now - 1_800_000,
            "deliveredAt": now - 1_700_000,
            "txid": "0xdef...",
        },
        {
            "orderHash": "0x789...",
            "asset": "DANKPEPE",
            "price": 0.75,
            "buyer": "1GHI...rst",
            "status": "processing",
            "stage": "compose",
            "purchasedAt": now - 900_000,
            "retryCount": 2,
        },
        {
            "orderHash": "0xabc...",
            "asset": "FEELSGOODMAN",
            "price": 1.0,
            "buyer": "1JKL...opq",
            "status": "pending",
            "stage": "validation",
            "purchasedAt": now - 300_000,
        },
        {
            "orderHash": "0xdef...",
            "asset": "WOJAK",
            "price": 0.33,
            "buyer": "1MNO...lmn",
            "status": "failed",
            "stage": "validation",
            "purchasedAt": now - 7_200_000,
            "error": "Asset not owned by seller",
        },
    ]
