import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..core.fees import FeeRateAdvisor
from ..dependencies import get_fee_advisor, get_mempool_provider
from ..providers.mempool import MempoolProvider

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


@router.get("/fees")
async def get_fees(advisor: FeeRateAdvisor = Depends(get_fee_advisor)) -> Dict[str, Any]:
    """Recommended fee rates (sat/vB). Always answers, falling back to defaults."""
    rates = await advisor.get_fee_rates()
    return {
        "success": True,
        "rates": rates.to_dict(),
        "orderFeeRate": await advisor.get_order_fee_rate(),
    }


@router.get("/block-height")
async def get_block_height(mempool: MempoolProvider = Depends(get_mempool_provider)):
    try:
        height = await mempool.get_block_height()
    except Exception as exc:  # noqa: BLE001
        logger.error("Error fetching block height: %s", exc)
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Failed to fetch block height"},
        )
    return {"success": True, "blockHeight": height}
