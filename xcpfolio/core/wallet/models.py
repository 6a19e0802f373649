"""
Wallet connection state.
"""

from dataclasses import dataclass, replace
from typing import Optional


@dataclass
class WalletConnection:
    """Connection state owned by the wallet bridge."""
    address: Optional[str] = None
    connected: bool = False

    def snapshot(self) -> "WalletConnection":
        return replace(self)
