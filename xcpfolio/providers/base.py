import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx


class Provider(ABC):
    """Base provider interface"""

    name: str
    timeout_s: int = 10

    @abstractmethod
    async def ready(self) -> bool:
        """Check if provider is ready to serve requests"""
        pass

    @abstractmethod
    async def health_check(self) -> Dict[str, Any]:
        """Return provider health status"""
        pass


class HttpProvider(Provider):
    """Provider backed by a single JSON-over-HTTP base URL."""

    user_agent = "xcpfolio/0.1"

    def __init__(self, base_url: str, *, timeout_s: Optional[int] = None) -> None:
        self.base_url = base_url.rstrip("/")
        if timeout_s is not None:
            self.timeout_s = timeout_s

    def _headers(self) -> Dict[str, str]:
        return {
            "accept": "application/json",
            "user-agent": self.user_agent,
        }

    async def _get(self, path: str, *, params: Optional[Dict[str, Any]] = None) -> httpx.Response:
        """GET ``path`` and return the response without checking its status."""
        async with httpx.AsyncClient(timeout=self.timeout_s) as client:
            return await client.get(
                f"{self.base_url}{path}",
                params=params,
                headers=self._headers(),
            )

    async def _get_json(self, path: str, *, params: Optional[Dict[str, Any]] = None) -> Any:
        response = await self._get(path, params=params)
        response.raise_for_status()
        return response.json()

    async def ready(self) -> bool:
        return bool(self.base_url)

    async def _ping(self, path: str) -> Dict[str, Any]:
        if not await self.ready():
            return {"status": "unavailable", "reason": "Provider not configured"}

        started = time.perf_counter()
        try:
            response = await self._get(path)
            response.raise_for_status()
            return {"status": "healthy", "latency_ms": int((time.perf_counter() - started) * 1000)}
        except Exception as e:
            return {"status": "error", "reason": str(e)}
