"""
Purchase Orchestrator

Sequences compose -> sign -> broadcast for a single order and classifies
every failure into the marketplace error taxonomy. There is no retry at this
layer: a failed attempt is discarded and the caller starts over, which always
recomposes a fresh transaction.
"""

import logging
from typing import Any, Callable, Coroutine, Dict, Optional, Set, Type

import structlog

from ..errors import (
    BroadcastError,
    ComposeError,
    MarketplaceError,
    NotConnectedError,
    SignatureFailedError,
    UserCancelledError,
    UserRejectedError,
)
from ..orders.composer import OrderComposer
from ..orders.models import BroadcastResult, Order, SwapOrderRequest
from ..wallet.bridge import WalletBridge
from .models import InvalidTransitionError, PurchaseAttempt, PurchaseState, StateTransition

TransitionCallback = Callable[[StateTransition, PurchaseAttempt], Coroutine[Any, Any, None]]


class PurchaseOrchestrator:
    """Runs purchases against a connected wallet.

    Concurrent ``purchase`` calls are independent; each gets its own
    ``PurchaseAttempt``.
    """

    TRANSITIONS: Dict[PurchaseState, Set[PurchaseState]] = {
        PurchaseState.IDLE: {PurchaseState.COMPOSED, PurchaseState.FAILED},
        PurchaseState.COMPOSED: {PurchaseState.SIGNED, PurchaseState.FAILED},
        PurchaseState.SIGNED: {PurchaseState.BROADCAST, PurchaseState.FAILED},
        PurchaseState.BROADCAST: set(),
        PurchaseState.FAILED: set(),
    }

    def __init__(
        self,
        bridge: WalletBridge,
        composer: OrderComposer,
        *,
        on_transition: Optional[TransitionCallback] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._bridge = bridge
        self._composer = composer
        self._on_transition = on_transition
        self._logger = logger or logging.getLogger(__name__)
        self.last_attempt: Optional[PurchaseAttempt] = None

    @property
    def bridge(self) -> WalletBridge:
        return self._bridge

    async def purchase(self, request: SwapOrderRequest) -> BroadcastResult:
        connection = self._bridge.connection
        if not connection.connected or not connection.address:
            raise NotConnectedError("Please connect your wallet to continue")

        attempt = PurchaseAttempt(request=request, source_address=connection.address)
        self.last_attempt = attempt

        with structlog.contextvars.bound_contextvars(purchase_id=attempt.id):
            self._logger.info(
                "Starting purchase of %s %s for %s %s",
                request.get_quantity,
                request.get_asset,
                request.give_quantity,
                request.give_asset,
            )

            composed = await self._step(
                attempt,
                PurchaseState.COMPOSED,
                self._composer.compose_order(request, attempt.source_address),
                wrap=ComposeError,
            )
            attempt.estimated_fee_sats = composed.estimated_fee_sats

            signed = await self._step(
                attempt,
                PurchaseState.SIGNED,
                self._bridge.sign_transaction(composed.raw_transaction_hex),
                wrap=SignatureFailedError,
            )

            # The signed payload is never kept; a failed broadcast requires a new compose.
            result = await self._step(
                attempt,
                PurchaseState.BROADCAST,
                self._bridge.broadcast_transaction(signed.signed_hex),
                wrap=BroadcastError,
            )
            attempt.transaction_id = result.transaction_id
            self._logger.info("Purchase broadcast: %s", result.transaction_id)
            return result

    async def purchase_listing(
        self,
        listing: Order,
        *,
        fee_rate_sat_per_vbyte: Optional[float] = None,
    ) -> BroadcastResult:
        """Buy an open sell listing by composing the exactly matching order."""
        request = SwapOrderRequest.from_listing(
            listing,
            fee_rate_sat_per_vbyte=fee_rate_sat_per_vbyte,
        )
        return await self.purchase(request)

    async def _step(
        self,
        attempt: PurchaseAttempt,
        target: PurchaseState,
        operation: Coroutine[Any, Any, Any],
        *,
        wrap: Type[MarketplaceError],
    ) -> Any:
        try:
            result = await operation
        except MarketplaceError as exc:
            error = self._classify(exc, target)
            await self._fail(attempt, error)
            if error is exc:
                raise
            raise error from exc
        except Exception as exc:
            error = wrap(str(exc) or None)
            await self._fail(attempt, error)
            raise error from exc

        await self._transition(attempt, target)
        return result

    @staticmethod
    def _classify(exc: MarketplaceError, target: PurchaseState) -> MarketplaceError:
        # A declined signature is a cancel, not a rejected connection
        if target is PurchaseState.SIGNED and isinstance(exc, UserRejectedError):
            return UserCancelledError(exc.message)
        if target is PurchaseState.BROADCAST and not isinstance(exc, BroadcastError):
            return BroadcastError(exc.message)
        return exc

    async def _fail(self, attempt: PurchaseAttempt, error: MarketplaceError) -> None:
        attempt.error_kind = error.kind
        attempt.error_message = error.message
        log = self._logger.info if error.is_informational else self._logger.warning
        log("Purchase stopped in %s: %s (%s)", attempt.state.value, error.message, error.kind.value)
        await self._transition(attempt, PurchaseState.FAILED, error=error)

    async def _transition(
        self,
        attempt: PurchaseAttempt,
        to_state: PurchaseState,
        *,
        error: Optional[MarketplaceError] = None,
    ) -> None:
        if to_state not in self.TRANSITIONS[attempt.state]:
            raise InvalidTransitionError(attempt.state, to_state)

        transition = StateTransition(
            from_state=attempt.state,
            to_state=to_state,
            error_kind=error.kind if error else None,
            error_message=error.message if error else None,
        )
        attempt.state = to_state
        attempt.history.append(transition)

        if self._on_transition is not None:
            try:
                await self._on_transition(transition, attempt)
            except Exception:  # noqa: BLE001
                self._logger.exception("Transition callback failed")
