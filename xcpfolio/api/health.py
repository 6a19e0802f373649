from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends, Response

from ..config import settings
from ..dependencies import get_counterparty_provider, get_mempool_provider, get_settlement_provider
from ..providers.counterparty import CounterpartyProvider
from ..providers.mempool import MempoolProvider
from ..providers.settlement import SettlementProvider

router = APIRouter()


@router.get("/healthz")
async def health_check(
    response: Response,
    counterparty: CounterpartyProvider = Depends(get_counterparty_provider),
    mempool: MempoolProvider = Depends(get_mempool_provider),
    settlement: SettlementProvider = Depends(get_settlement_provider),
) -> Dict[str, Any]:
    """Health check endpoint that verifies upstream status"""
    response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"

    provider_status = {
        "counterparty": await counterparty.health_check(),
        "mempool": await mempool.health_check(),
        "settlement": await settlement.health_check(),
    }

    # Purchases cannot be composed without Counterparty
    degraded = provider_status["counterparty"]["status"] != "healthy"

    return {
        "status": "degraded" if degraded else "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.environment,
        "providers": provider_status,
        "available_providers": sum(
            1 for status in provider_status.values() if status["status"] == "healthy"
        ),
        "total_providers": len(provider_status),
    }
