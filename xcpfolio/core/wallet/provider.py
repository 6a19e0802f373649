"""
Wallet provider contract and environment lookup.

The wallet extension injects a provider object under a well-known name.
Only ``locate_provider`` knows where that object lives; everything else
receives the provider (or a locator) explicitly.

Providers are duck-typed. A modern provider exposes::

    async request(method: str, params: list | None) -> Any
    on(event: str, handler) / off(event: str, handler)

A legacy provider exposes only ``async enable() -> list[str]``.
"""

import inspect
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable, Optional

ProviderLocator = Callable[[], Optional[Any]]

# Methods exposed by the XCP Wallet extension
XCP_ACCOUNTS = "xcp_accounts"
XCP_REQUEST_ACCOUNTS = "xcp_requestAccounts"
XCP_SIGN_TRANSACTION = "xcp_signTransaction"
XCP_BROADCAST_TRANSACTION = "xcp_broadcastTransaction"
XCP_DISCONNECT = "xcp_disconnect"

# Provider events
ACCOUNTS_CHANGED = "accountsChanged"
DISCONNECT = "disconnect"


@dataclass(frozen=True)
class ProviderCapabilities:
    request: bool = False
    events: bool = False
    enable: bool = False

    @property
    def is_legacy(self) -> bool:
        return self.enable and not self.request


def provider_capabilities(provider: Any) -> ProviderCapabilities:
    return ProviderCapabilities(
        request=callable(getattr(provider, "request", None)),
        events=callable(getattr(provider, "on", None)) and callable(getattr(provider, "off", None)),
        enable=callable(getattr(provider, "enable", None)),
    )


def locate_provider(environment: Any, name: str = "xcpwallet") -> Optional[Any]:
    """Find the injected provider on a mapping or attribute namespace."""
    if environment is None:
        return None
    if isinstance(environment, Mapping):
        return environment.get(name)
    return getattr(environment, name, None)


def static_locator(provider: Optional[Any]) -> ProviderLocator:
    return lambda: provider


async def maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value
