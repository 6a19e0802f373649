"""Recommended Bitcoin fee rates with a short-lived cache and safe fallbacks."""

from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from ..cache import TTLCache
from ..config import settings
from ..providers.mempool import MempoolProvider

_CACHE_KEY = "fees:recommended"

_PAYLOAD_KEYS = {
    "fastest_fee": "fastestFee",
    "half_hour_fee": "halfHourFee",
    "hour_fee": "hourFee",
    "economy_fee": "economyFee",
    "minimum_fee": "minimumFee",
}


@dataclass(frozen=True)
class FeeRates:
    """Fee rates in sat/vB."""

    fastest_fee: float
    half_hour_fee: float
    hour_fee: float
    economy_fee: float
    minimum_fee: float

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "FeeRates":
        """Parse a mempool.space payload; NaN and infinite rates are rejected."""
        values = {field: float(data[key]) for field, key in _PAYLOAD_KEYS.items()}
        for field, value in values.items():
            if not math.isfinite(value):
                raise ValueError(f"Non-finite fee rate for {field}: {value}")
        return cls(**values)

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


DEFAULT_FEE_RATES = FeeRates(
    fastest_fee=10,
    half_hour_fee=5,
    hour_fee=3,
    economy_fee=2,
    minimum_fee=1,
)


class FeeRateAdvisor:
    """Supplies fee rates to the composer. Never raises."""

    def __init__(
        self,
        *,
        provider: Optional[MempoolProvider] = None,
        cache: Optional[TTLCache] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._provider = provider or MempoolProvider()
        self._cache = cache or TTLCache(default_ttl=settings.fee_cache_ttl_seconds, max_size=8)
        self._logger = logger or logging.getLogger(__name__)

    async def get_fee_rates(self) -> FeeRates:
        cached = await self._cache.get(_CACHE_KEY)
        if cached is not None:
            return cached

        try:
            payload = await self._provider.get_recommended_fees()
            rates = FeeRates.from_payload(payload)
        except Exception as exc:  # noqa: BLE001 - every failure degrades to cached/default rates
            stale = await self._cache.get_stale(_CACHE_KEY)
            self._logger.warning(
                "Failed to fetch fee rates; using %s rates",
                "cached" if stale is not None else "default",
                exc_info=exc,
            )
            return stale if stale is not None else DEFAULT_FEE_RATES

        await self._cache.set(_CACHE_KEY, rates)
        return rates

    async def get_order_fee_rate(self) -> float:
        """Hour-target rate; orders are not time-sensitive."""
        rates = await self.get_fee_rates()
        return max(rates.hour_fee, 1)
