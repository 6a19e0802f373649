"""Client for the settlement bot's order tracking API."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from ..config import settings
from .base import HttpProvider


class SettlementError(RuntimeError):
    """The settlement service answered but reported a failure."""


class SettlementProvider(HttpProvider):
    """Read-only view of purchases tracked by the settlement service."""

    name = "settlement"
    timeout_s = 10

    def __init__(self, *, base_url: Optional[str] = None, timeout_s: Optional[int] = None) -> None:
        super().__init__(base_url or settings.bot_api_url, timeout_s=timeout_s)

    async def health_check(self) -> Dict[str, Any]:
        return await self._ping("/api/orders?limit=1")

    async def get_orders(self, limit: int = 50) -> List[Dict[str, Any]]:
        data = await self._get_json("/api/orders", params={"limit": str(limit)})
        if not data.get("success"):
            raise SettlementError(data.get("error") or "Failed to fetch orders")
        return list(data.get("orders") or [])
