"""Async client for the mempool.space public API."""

from __future__ import annotations

from typing import Any, Dict, Optional

from ..config import settings
from .base import HttpProvider


class MempoolProvider(HttpProvider):
    """Fee estimates and chain tip height from mempool.space."""

    name = "mempool"
    timeout_s = 10

    def __init__(self, *, base_url: Optional[str] = None, timeout_s: Optional[int] = None) -> None:
        super().__init__(base_url or settings.mempool_api_base, timeout_s=timeout_s)

    async def health_check(self) -> Dict[str, Any]:
        return await self._ping("/blocks/tip/height")

    async def get_recommended_fees(self) -> Dict[str, Any]:
        """Return the raw ``/v1/fees/recommended`` payload (sat/vB)."""
        return await self._get_json("/v1/fees/recommended")

    async def get_block_height(self) -> int:
        data = await self._get_json("/blocks/tip/height")
        return int(data)
