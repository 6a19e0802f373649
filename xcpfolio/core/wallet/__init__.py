"""
Wallet Signing Bridge

Typed async access to the injected XCP Wallet provider: connection
lifecycle, account discovery, signing and broadcast.
"""

from .bridge import WalletBridge
from ..events import EventChannel, Subscription
from .models import WalletConnection
from .provider import (
    ProviderCapabilities,
    ProviderLocator,
    locate_provider,
    provider_capabilities,
    static_locator,
)

__all__ = [
    "WalletBridge",
    "EventChannel",
    "Subscription",
    "WalletConnection",
    "ProviderCapabilities",
    "ProviderLocator",
    "locate_provider",
    "provider_capabilities",
    "static_locator",
]
