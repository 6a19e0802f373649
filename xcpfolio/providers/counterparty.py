"""Async client for the Counterparty v2 REST API."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from ..config import settings
from .base import HttpProvider

logger = logging.getLogger(__name__)

SUBASSET_PARENT = "XCPFOLIO"


def full_asset_name(asset: str) -> str:
    """Return ``XCPFOLIO.NAME`` for a bare name; dotted names pass through."""
    return asset if "." in asset else f"{SUBASSET_PARENT}.{asset}"


def parse_asset_name(full_name: str) -> str:
    return full_name.replace(f"{SUBASSET_PARENT}.", "")


class CounterpartyProvider(HttpProvider):
    """Thin wrapper around the Counterparty compose and asset endpoints."""

    name = "counterparty"

    def __init__(self, *, base_url: Optional[str] = None, timeout_s: Optional[int] = None) -> None:
        # Compose calls select UTXOs server-side and can be slow
        super().__init__(
            base_url or settings.counterparty_api_base,
            timeout_s=timeout_s if timeout_s is not None else settings.request_timeout_seconds,
        )

    async def health_check(self) -> Dict[str, Any]:
        return await self._ping("/v2/")

    async def compose_order(self, source: str, params: Dict[str, str]) -> Dict[str, Any]:
        """Compose an unsigned order transaction for ``source``.

        Raises ``httpx.HTTPStatusError`` on non-2xx responses so callers can
        read the upstream ``error`` body.
        """
        return await self._get_json(f"/v2/addresses/{source}/compose/order", params=params)

    async def get_asset_orders(self, asset: str) -> List[Dict[str, Any]]:
        """Open DEX orders selling the XCPFOLIO subasset for ``asset``.

        Orders are indexed by the numeric asset id, so the subasset is
        resolved first. Unknown assets yield an empty list.
        """
        full_name = full_asset_name(asset)
        response = await self._get(f"/v2/assets/{full_name}")
        if response.status_code == 404:
            logger.info("Asset not found: %s", full_name)
            return []
        response.raise_for_status()

        numeric_id = (response.json().get("result") or {}).get("asset")
        if not numeric_id:
            logger.warning("No numeric asset id for %s", full_name)
            return []

        data = await self._get_json(
            f"/v2/assets/{numeric_id}/orders",
            params={"status": "open", "verbose": "true"},
        )
        return list(data.get("result") or [])
