"""OrderComposer builds unsigned order transactions via the Counterparty API."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from ...config import settings
from ...providers.counterparty import CounterpartyProvider
from ..errors import ComposeError
from ..fees import FeeRateAdvisor
from .models import ComposedTransaction, EchoedOrderParams, SwapOrderRequest

# Orders never require a fee from the counterparty side.
FEE_REQUIRED = 0


class OrderComposer:
    """Validates swap parameters and surfaces compose endpoint errors.

    Fee calculation and transaction building are left entirely to the
    upstream compose endpoint; results are returned verbatim.
    """

    def __init__(
        self,
        *,
        provider: Optional[CounterpartyProvider] = None,
        fee_advisor: Optional[FeeRateAdvisor] = None,
        default_expiration: Optional[int] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._provider = provider or CounterpartyProvider()
        self._fee_advisor = fee_advisor
        self._default_expiration = default_expiration or settings.default_order_expiration
        self._logger = logger or logging.getLogger(__name__)

    async def resolve_fee_rate(self, request: SwapOrderRequest) -> float:
        if request.fee_rate_sat_per_vbyte is not None:
            return request.fee_rate_sat_per_vbyte
        if self._fee_advisor is not None:
            return await self._fee_advisor.get_order_fee_rate()
        return settings.default_fee_rate

    def build_query(
        self,
        request: SwapOrderRequest,
        *,
        fee_rate: float,
    ) -> Dict[str, str]:
        expiration = request.expiration_blocks or self._default_expiration
        return {
            "give_asset": request.give_asset,
            "give_quantity": str(request.give_quantity),
            "get_asset": request.get_asset,
            "get_quantity": str(request.get_quantity),
            "expiration": str(expiration),
            "fee_required": str(FEE_REQUIRED),
            "sat_per_vbyte": _format_rate(fee_rate),
            # Never spend asset-bearing UTXOs as fee inputs
            "exclude_utxos_with_balances": "true",
            "verbose": "true",
        }

    async def compose_order(
        self,
        request: SwapOrderRequest,
        source_address: str,
    ) -> ComposedTransaction:
        source = (source_address or "").strip()
        if not source:
            raise ComposeError("A source address is required to compose an order")

        fee_rate = await self.resolve_fee_rate(request)
        query = self.build_query(request, fee_rate=fee_rate)

        try:
            data = await self._provider.compose_order(source, query)
        except httpx.HTTPStatusError as exc:
            message = _error_from_body(exc.response) or f"Failed to compose order: {exc.response.status_code}"
            self._logger.warning("Compose endpoint rejected order: %s", message)
            raise ComposeError(message, status_code=exc.response.status_code) from exc
        except httpx.RequestError as exc:
            raise ComposeError(f"Failed to compose order: {exc}") from exc
        except ValueError as exc:
            raise ComposeError("Compose endpoint returned invalid JSON") from exc

        if not isinstance(data, dict):
            raise ComposeError("Unexpected compose response")
        if data.get("error"):
            raise ComposeError(str(data["error"]))

        composed = self._decode(data.get("result"), request, source, query)
        self._logger.info(
            "Composed order %s -> %s for %s (fee=%s sats)",
            request.give_asset,
            request.get_asset,
            source,
            composed.estimated_fee_sats,
        )
        return composed

    def _decode(
        self,
        result: Any,
        request: SwapOrderRequest,
        source: str,
        query: Dict[str, str],
    ) -> ComposedTransaction:
        if not isinstance(result, dict):
            raise ComposeError("Compose response is missing a result")

        raw_hex = result.get("rawtransaction")
        if not isinstance(raw_hex, str) or not raw_hex:
            raise ComposeError("Compose response is missing rawtransaction")

        fee = result.get("btc_fee")
        if isinstance(fee, bool) or not isinstance(fee, int):
            raise ComposeError("Compose response is missing btc_fee")

        echoed = result.get("params")
        if echoed is not None:
            self._check_echo(echoed, request)

        return ComposedTransaction(
            raw_transaction_hex=raw_hex,
            estimated_fee_sats=fee,
            btc_in=_int_or_zero(result.get("btc_in")),
            btc_out=_int_or_zero(result.get("btc_out")),
            btc_change=_int_or_zero(result.get("btc_change")),
            echoed_params=EchoedOrderParams(
                source=source,
                give_asset=request.give_asset,
                give_quantity=request.give_quantity,
                get_asset=request.get_asset,
                get_quantity=request.get_quantity,
                expiration=int(query["expiration"]),
                fee_required=FEE_REQUIRED,
                sat_per_vbyte=float(query["sat_per_vbyte"]),
            ),
        )

    @staticmethod
    def _check_echo(echoed: Any, request: SwapOrderRequest) -> None:
        if not isinstance(echoed, dict):
            raise ComposeError("Compose response params are malformed")

        # Assets may come back as numeric ids for subassets; quantities are exact.
        expected = {
            "give_quantity": request.give_quantity,
            "get_quantity": request.get_quantity,
        }
        for key, value in expected.items():
            if key in echoed and echoed[key] != value:
                raise ComposeError(
                    f"Compose endpoint echoed {key}={echoed[key]!r}, expected {value!r}"
                )


def _error_from_body(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return None


def _int_or_zero(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def _format_rate(rate: float) -> str:
    return str(int(rate)) if float(rate).is_integer() else str(rate)
