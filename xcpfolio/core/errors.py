"""
Purchase Error Taxonomy

Closed set of errors surfaced by the wallet bridge and purchase orchestrator.
Each error carries a kind, a severity and user-facing guidance so callers can
render consistent messages without parsing upstream text.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Type


class ErrorKind(str, Enum):
    """Kinds of purchase-flow errors."""

    WALLET_ERROR = "wallet_error"
    WALLET_NOT_FOUND = "wallet_not_found"
    REQUEST_TIMEOUT = "request_timeout"
    WALLET_LOCKED = "wallet_locked"
    WALLET_NOT_SETUP = "wallet_not_setup"
    NO_ACTIVE_ADDRESS = "no_active_address"
    NO_ACTIVE_WALLET = "no_active_wallet"
    USER_REJECTED = "user_rejected"
    USER_CANCELLED = "user_cancelled"
    COMPOSE = "compose"
    SIGNATURE_FAILED = "signature_failed"
    BROADCAST = "broadcast"
    NOT_CONNECTED = "not_connected"


class Severity(str, Enum):
    ERROR = "error"
    INFO = "info"  # Deliberate user decisions, not alarms


@dataclass
class ErrorContext:
    """Presentation context attached to every marketplace error."""

    kind: ErrorKind = ErrorKind.WALLET_ERROR
    severity: Severity = Severity.ERROR
    retryable: bool = True
    guidance: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)


class MarketplaceError(Exception):
    """Base class for the purchase-flow taxonomy."""

    kind: ErrorKind = ErrorKind.WALLET_ERROR
    severity: Severity = Severity.ERROR
    retryable: bool = True
    default_message: str = "Wallet request failed"
    guidance: str = "Please try again."

    def __init__(self, message: Optional[str] = None, **details: Any):
        self.message = message or self.default_message
        super().__init__(self.message)
        self.context = ErrorContext(
            kind=self.kind,
            severity=self.severity,
            retryable=self.retryable,
            guidance=self.guidance,
            details={k: v for k, v in details.items() if v is not None},
        )

    @property
    def is_informational(self) -> bool:
        return self.severity is Severity.INFO

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "guidance": self.guidance,
            "severity": self.severity.value,
            "retryable": self.retryable,
        }


class WalletError(MarketplaceError):
    """Unclassified wallet provider failure."""


class WalletNotFoundError(MarketplaceError):
    kind = ErrorKind.WALLET_NOT_FOUND
    default_message = "XCP Wallet not found"
    guidance = "Please install the XCP Wallet extension."


class RequestTimeoutError(MarketplaceError):
    kind = ErrorKind.REQUEST_TIMEOUT
    default_message = "Request timeout"
    guidance = "The wallet did not respond. Please try again."


class WalletLockedError(MarketplaceError):
    kind = ErrorKind.WALLET_LOCKED
    default_message = "Wallet is locked"
    guidance = "Click the XCP Wallet extension icon to unlock it."


class WalletNotSetupError(MarketplaceError):
    kind = ErrorKind.WALLET_NOT_SETUP
    default_message = "Wallet is not set up"
    guidance = "Please complete wallet setup first. Open the XCP Wallet extension to get started."


class NoActiveAddressError(MarketplaceError):
    kind = ErrorKind.NO_ACTIVE_ADDRESS
    default_message = "No active address"
    guidance = "No address selected. Please select an address in your wallet."


class NoActiveWalletError(MarketplaceError):
    kind = ErrorKind.NO_ACTIVE_WALLET
    default_message = "No active wallet"
    guidance = "No wallet selected. Please select a wallet."


class UserRejectedError(MarketplaceError):
    kind = ErrorKind.USER_REJECTED
    severity = Severity.INFO
    default_message = "Connection request was rejected"
    guidance = "Connection request was rejected."


class UserCancelledError(MarketplaceError):
    kind = ErrorKind.USER_CANCELLED
    severity = Severity.INFO
    default_message = "Transaction was cancelled"
    guidance = "Transaction was rejected."


class ComposeError(MarketplaceError):
    kind = ErrorKind.COMPOSE
    default_message = "Failed to compose order"
    guidance = "The order could not be built. Check your balance and try again."


class SignatureFailedError(MarketplaceError):
    kind = ErrorKind.SIGNATURE_FAILED
    default_message = "Wallet did not return a signed transaction"
    guidance = "Signing failed. Please try the purchase again."


class BroadcastError(MarketplaceError):
    kind = ErrorKind.BROADCAST
    default_message = "Failed to broadcast transaction"
    guidance = "The signed transaction was not accepted. Start the purchase again to recompose it."


class NotConnectedError(MarketplaceError):
    kind = ErrorKind.NOT_CONNECTED
    default_message = "Wallet not connected"
    guidance = "Please connect your wallet to continue."


# Ordered; first match wins. Codes are emitted verbatim by the extension.
_WALLET_CODE_PATTERNS = (
    ("WALLET_NOT_SETUP", WalletNotSetupError),
    ("WALLET_LOCKED", WalletLockedError),
    ("NO_ACTIVE_ADDRESS", NoActiveAddressError),
    ("NO_ACTIVE_WALLET", NoActiveWalletError),
)

_DECLINE_PATTERNS = ("user denied", "rejected", "cancel")


def is_user_decline(message: str) -> bool:
    lowered = message.lower()
    return any(p in lowered for p in _DECLINE_PATTERNS)


def classify_wallet_message(
    message: str,
    *,
    during: str = "connect",
    fallback: Type[MarketplaceError] = WalletError,
) -> MarketplaceError:
    """
    Map an upstream wallet error message onto the taxonomy.

    ``during`` selects how a user decline is reported: a declined connection
    is ``UserRejectedError``, a declined signature ``UserCancelledError``.
    """
    for code, error_cls in _WALLET_CODE_PATTERNS:
        if code in message:
            return error_cls(message)

    if is_user_decline(message):
        if during == "connect":
            return UserRejectedError(message)
        return UserCancelledError(message)

    if "timeout" in message.lower():
        return RequestTimeoutError(message)

    return fallback(message or None)
