"""Process-wide service instances.

Shared collaborators (notably the fee cache) are built once here and passed
into the components that need them.
"""

from functools import lru_cache
from typing import Any

from .cache import TTLCache
from .config import settings
from .core.fees import FeeRateAdvisor
from .core.orders.composer import OrderComposer
from .core.purchase.orchestrator import PurchaseOrchestrator
from .core.wallet.bridge import WalletBridge
from .core.wallet.provider import ProviderLocator, locate_provider
from .providers.counterparty import CounterpartyProvider
from .providers.mempool import MempoolProvider
from .providers.settlement import SettlementProvider


@lru_cache(maxsize=1)
def get_mempool_provider() -> MempoolProvider:
    return MempoolProvider()


@lru_cache(maxsize=1)
def get_counterparty_provider() -> CounterpartyProvider:
    return CounterpartyProvider()


@lru_cache(maxsize=1)
def get_settlement_provider() -> SettlementProvider:
    return SettlementProvider()


@lru_cache(maxsize=1)
def get_fee_advisor() -> FeeRateAdvisor:
    return FeeRateAdvisor(
        provider=get_mempool_provider(),
        cache=TTLCache(default_ttl=settings.fee_cache_ttl_seconds, max_size=8),
    )


@lru_cache(maxsize=1)
def get_order_composer() -> OrderComposer:
    return OrderComposer(
        provider=get_counterparty_provider(),
        fee_advisor=get_fee_advisor(),
    )


def environment_locator(environment: Any) -> ProviderLocator:
    """Locator that reads the injected provider from ``environment`` on each call."""
    return lambda: locate_provider(environment, settings.wallet_provider_name)


def create_purchase_flow(locator: ProviderLocator) -> PurchaseOrchestrator:
    """Wire a wallet bridge and orchestrator around the shared composer."""
    bridge = WalletBridge(locator)
    return PurchaseOrchestrator(bridge, get_order_composer())
