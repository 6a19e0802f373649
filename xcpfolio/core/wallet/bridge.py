"""WalletBridge adapts an injected wallet provider into typed async calls."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any, Callable, Dict, List, Optional, Tuple

from ...config import settings
from ..errors import (
    BroadcastError,
    MarketplaceError,
    NoActiveAddressError,
    RequestTimeoutError,
    SignatureFailedError,
    WalletError,
    WalletNotFoundError,
    classify_wallet_message,
)
from ..orders.models import BroadcastResult, SignedTransaction
from ..events import EventChannel, Subscription
from .models import WalletConnection
from .provider import (
    ACCOUNTS_CHANGED,
    DISCONNECT,
    XCP_ACCOUNTS,
    XCP_BROADCAST_TRANSACTION,
    XCP_DISCONNECT,
    XCP_REQUEST_ACCOUNTS,
    XCP_SIGN_TRANSACTION,
    ProviderLocator,
    maybe_await,
    provider_capabilities,
)


class WalletBridge:
    """Owns the wallet connection and every call made to the provider.

    Only one ``connect`` may be in flight; a re-entrant call returns ``None``
    without issuing a second wallet request.
    """

    def __init__(
        self,
        locator: ProviderLocator,
        *,
        connect_timeout_s: Optional[float] = None,
        sign_timeout_s: Optional[float] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._locate = locator
        self._connect_timeout_s = connect_timeout_s or settings.wallet_connect_timeout_seconds
        self._sign_timeout_s = (
            sign_timeout_s if sign_timeout_s is not None else settings.wallet_sign_timeout_seconds
        )
        self._logger = logger or logging.getLogger(__name__)

        self._connection = WalletConnection()
        self._connecting = False
        self._attached: Optional[Any] = None
        self._listeners: List[Tuple[Any, str, Callable[..., None]]] = []
        # Stable references so ``off`` receives the exact objects given to ``on``
        self._handlers: Dict[str, Callable[..., None]] = {
            ACCOUNTS_CHANGED: self._on_accounts_changed,
            DISCONNECT: self._on_disconnect,
        }
        self.changes: EventChannel[WalletConnection] = EventChannel("wallet")

    @property
    def connection(self) -> WalletConnection:
        return self._connection.snapshot()

    @property
    def connecting(self) -> bool:
        return self._connecting

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def subscribe(self, callback: Callable[[WalletConnection], None]) -> Subscription:
        return self.changes.subscribe(callback)

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> Optional[str]:
        provider = self._locate()
        if provider is None:
            raise WalletNotFoundError("XCP Wallet not found. Please install the extension.")

        if self._connecting:
            self._logger.debug("Connection already in progress, skipping")
            return None

        self._connecting = True
        try:
            self._attach(provider)
            accounts = await self._request_accounts(provider)
        finally:
            self._connecting = False

        if not accounts:
            raise NoActiveAddressError(
                "No accounts returned from wallet. Please ensure your wallet is unlocked."
            )

        self._set_connected(accounts[0])
        self._logger.info("Connected with account %s", accounts[0])
        return accounts[0]

    async def _request_accounts(self, provider: Any) -> List[str]:
        caps = provider_capabilities(provider)
        if not caps.request and not caps.enable:
            raise WalletError("XCP Wallet provider does not support connection methods")

        try:
            if caps.request:
                pending = maybe_await(provider.request(XCP_REQUEST_ACCOUNTS, []))
            else:
                pending = maybe_await(provider.enable())
            result = await asyncio.wait_for(pending, timeout=self._connect_timeout_s)
        except asyncio.TimeoutError as exc:
            raise RequestTimeoutError(
                f"Request timeout after {self._connect_timeout_s:g} seconds"
            ) from exc
        except MarketplaceError:
            raise
        except Exception as exc:
            self._logger.warning("Wallet connection failed: %s", exc)
            raise classify_wallet_message(str(exc) or "Failed to connect wallet", during="connect") from exc

        return _normalize_accounts(result)

    async def disconnect(self) -> None:
        """Best-effort provider notification; local state is always cleared."""
        provider = self._current_provider()
        try:
            if provider is not None and provider_capabilities(provider).request:
                await self._call(provider, XCP_DISCONNECT, [], timeout=self._connect_timeout_s)
        except Exception as exc:  # noqa: BLE001
            self._logger.warning("xcp_disconnect failed; clearing local session anyway", exc_info=exc)
        finally:
            self._set_disconnected()

    async def get_accounts(self) -> List[str]:
        """Check for an existing session. Never raises."""
        provider = self._locate()
        if provider is None or not provider_capabilities(provider).request:
            return []
        try:
            result = await self._call(provider, XCP_ACCOUNTS, [], timeout=self._connect_timeout_s)
        except Exception as exc:  # noqa: BLE001 - a user who has not connected yet is not an error
            self._logger.debug("Initial connection check failed: %s", exc)
            return []
        return _normalize_accounts(result)

    async def provider_ready(self) -> None:
        """Handle the extension's initialization signal.

        Re-subscribes if the provider object was replaced, then adopts any
        session that already exists.
        """
        provider = self._locate()
        if provider is None:
            self._logger.debug("Provider ready signal without a provider")
            return

        if self._attach(provider):
            self._logger.info("Attached wallet provider")

        accounts = await self.get_accounts()
        if accounts:
            self._on_accounts_changed(accounts)

    def detach(self) -> None:
        for provider, event, handler in self._listeners:
            try:
                provider.off(event, handler)
            except Exception as exc:  # noqa: BLE001
                self._logger.warning("Failed to remove %s listener", event, exc_info=exc)
        self._listeners = []
        self._attached = None

    def _attach(self, provider: Any) -> bool:
        if provider is self._attached:
            return False

        self.detach()
        self._attached = provider
        if not provider_capabilities(provider).events:
            self._logger.debug("Provider does not support events")
            return True

        for event, handler in self._handlers.items():
            provider.on(event, handler)
            self._listeners.append((provider, event, handler))
        return True

    # ------------------------------------------------------------------
    # Signing and broadcast
    # ------------------------------------------------------------------

    async def sign_transaction(self, raw_hex: str) -> SignedTransaction:
        if not raw_hex:
            raise SignatureFailedError("No transaction to sign")

        provider = self._require_provider()
        if not provider_capabilities(provider).request:
            raise SignatureFailedError("Wallet provider does not support signing")

        try:
            result = await self._call(
                provider,
                XCP_SIGN_TRANSACTION,
                [{"hex": raw_hex}],
                timeout=self._sign_timeout_s,
            )
        except MarketplaceError:
            raise
        except Exception as exc:
            self._logger.warning("Signing failed: %s", exc)
            raise classify_wallet_message(
                str(exc),
                during="sign",
                fallback=SignatureFailedError,
            ) from exc

        signed = result.get("hex") if isinstance(result, Mapping) else None
        if not isinstance(signed, str) or not signed:
            raise SignatureFailedError("Wallet response did not include a signed transaction")
        return SignedTransaction(signed_hex=signed)

    async def broadcast_transaction(self, signed_hex: str) -> BroadcastResult:
        provider = self._require_provider()
        if not provider_capabilities(provider).request:
            raise BroadcastError("Wallet provider does not support broadcasting")

        try:
            result = await self._call(
                provider,
                XCP_BROADCAST_TRANSACTION,
                [signed_hex],
                timeout=self._sign_timeout_s,
            )
        except Exception as exc:
            self._logger.warning("Broadcast failed: %s", exc)
            raise BroadcastError(str(exc) or None) from exc

        txid = result.get("txid") if isinstance(result, Mapping) else None
        if not isinstance(txid, str) or not txid:
            raise BroadcastError("Wallet response did not include a transaction id")
        return BroadcastResult(transaction_id=txid)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _current_provider(self) -> Optional[Any]:
        """Locate the provider on every call, re-attaching if it was replaced."""
        provider = self._locate()
        if provider is not None and provider is not self._attached:
            self._logger.info("Wallet provider was replaced; re-attaching")
            self._attach(provider)
        return provider

    def _require_provider(self) -> Any:
        provider = self._current_provider()
        if provider is None:
            raise WalletNotFoundError()
        return provider

    async def _call(
        self,
        provider: Any,
        method: str,
        params: List[Any],
        *,
        timeout: Optional[float],
    ) -> Any:
        pending = maybe_await(provider.request(method, params))
        if timeout is None:
            return await pending
        try:
            return await asyncio.wait_for(pending, timeout=timeout)
        except asyncio.TimeoutError as exc:
            raise RequestTimeoutError(f"{method} timed out after {timeout:g} seconds") from exc

    def _on_accounts_changed(self, accounts: Any) -> None:
        normalized = _normalize_accounts(accounts)
        if normalized:
            self._set_connected(normalized[0])
        else:
            self._set_disconnected()

    def _on_disconnect(self, *_: Any) -> None:
        self._set_disconnected()

    def _set_connected(self, address: str) -> None:
        if self._connection.connected and self._connection.address == address:
            return
        self._connection = WalletConnection(address=address, connected=True)
        self.changes.publish(self._connection.snapshot())

    def _set_disconnected(self) -> None:
        if not self._connection.connected and self._connection.address is None:
            return
        self._connection = WalletConnection()
        self.changes.publish(self._connection.snapshot())


def _normalize_accounts(result: Any) -> List[str]:
    if not isinstance(result, (list, tuple)):
        return []
    return [a for a in result if isinstance(a, str) and a]
