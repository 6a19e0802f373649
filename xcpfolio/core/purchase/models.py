"""
Purchase State Models

States and per-attempt records for the compose -> sign -> broadcast flow.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import uuid4

from ..errors import ErrorKind
from ..orders.models import SwapOrderRequest


class PurchaseState(str, Enum):
    """States of a single purchase attempt."""

    IDLE = "idle"              # Nothing sent yet
    COMPOSED = "composed"      # Unsigned transaction built
    SIGNED = "signed"          # Wallet returned a signed transaction
    BROADCAST = "broadcast"    # Network accepted the transaction
    FAILED = "failed"          # Aborted; must start again from compose


class InvalidTransitionError(Exception):
    """Raised when a purchase attempts an illegal state change."""

    def __init__(self, from_state: PurchaseState, to_state: PurchaseState):
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(f"Invalid transition: {from_state.value} -> {to_state.value}")


@dataclass
class StateTransition:
    """Record of a purchase state change."""

    from_state: PurchaseState
    to_state: PurchaseState
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    error_kind: Optional[ErrorKind] = None
    error_message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fromState": self.from_state.value,
            "toState": self.to_state.value,
            "timestamp": self.timestamp.isoformat(),
            "errorKind": self.error_kind.value if self.error_kind else None,
            "errorMessage": self.error_message,
        }


@dataclass
class PurchaseAttempt:
    """Everything known about one ``purchase`` call."""

    request: SwapOrderRequest
    source_address: str
    id: str = field(default_factory=lambda: str(uuid4()))
    state: PurchaseState = PurchaseState.IDLE
    history: List[StateTransition] = field(default_factory=list)
    estimated_fee_sats: Optional[int] = None
    transaction_id: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    error_message: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.state in (PurchaseState.BROADCAST, PurchaseState.FAILED)
