"""Native fee resolution for bridge transactions."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from .abi import PYTH_ABI
from .constants import (
    FALLBACK_NATIVE_FEE,
    FALLBACK_PRICE_UPDATE_FEE,
    FEE_BUFFER_PERCENT,
    SUBMISSION_MARGIN_PERCENT,
)
from .types import BridgeFeeEstimate, FeeQuote
from .utils import format_ether, price_update_to_bytes

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from .contract import VaultContract


def fee_buffer(amount: int) -> int:
    """Safety buffer added on top of the oracle and messaging fees."""
    return amount * FEE_BUFFER_PERCENT // 100


def submission_value(total: int) -> int:
    """Native value attached to the bridge call: ``total`` plus a 20% margin."""
    return total + total * SUBMISSION_MARGIN_PERCENT // 100


class FeeResolver:
    """Work out how much native currency a bridge transaction must carry.

    Remote fee queries never raise: when the oracle or the messaging layer
    cannot be queried the resolver logs a warning and substitutes a fixed
    fallback so the operator can still get a usable quote.
    """

    def __init__(self, vault: VaultContract, *, logger: logging.Logger | None = None) -> None:
        self._vault = vault
        self._logger = logger if logger is not None else logging.getLogger(__name__)

    def get_price_update_fee(self, price_update: Sequence[str | bytes] | None) -> int:
        if not price_update:
            return 0

        blobs = price_update_to_bytes(price_update)
        try:
            oracle_address = self._vault.pyth_oracle_address()
            oracle = self._vault.read_only_contract(oracle_address, PYTH_ABI)
            return int(oracle.functions.getUpdateFee(blobs).call())
        except Exception as exc:
            self._logger.warning(
                "Failed to query price update fee, using fallback of %s ETH: %s",
                format_ether(FALLBACK_PRICE_UPDATE_FEE),
                exc,
            )
            return FALLBACK_PRICE_UPDATE_FEE

    def estimate_bridge_fee(
        self, use_alternate_fee_token: bool = False, adapter_params: str | bytes = b""
    ) -> BridgeFeeEstimate:
        try:
            return self._vault.estimate_bridge_fee(use_alternate_fee_token, adapter_params)
        except Exception as exc:
            self._logger.warning(
                "Failed to estimate bridge fee, using fallback of %s ETH: %s",
                format_ether(FALLBACK_NATIVE_FEE),
                exc,
            )
            return BridgeFeeEstimate(native_fee=FALLBACK_NATIVE_FEE, alternate_fee=0)

    def quote(
        self,
        price_update: Sequence[str | bytes] | None = None,
        use_alternate_fee_token: bool = False,
        adapter_params: str | bytes = b"",
    ) -> FeeQuote:
        price_update_fee = self.get_price_update_fee(price_update)
        messaging_fee = self.estimate_bridge_fee(use_alternate_fee_token, adapter_params).native_fee
        subtotal = price_update_fee + messaging_fee
        buffer = fee_buffer(subtotal)
        self._logger.debug(
            "Fee quote: price_update=%s messaging=%s buffer=%s",
            price_update_fee,
            messaging_fee,
            buffer,
        )
        return FeeQuote(
            price_update_fee=price_update_fee,
            messaging_fee=messaging_fee,
            buffer=buffer,
            total=subtotal + buffer,
        )

    def calculate_total_eth_required(
        self,
        price_update: Sequence[str | bytes] | None = None,
        use_alternate_fee_token: bool = False,
        adapter_params: str | bytes = b"",
    ) -> int:
        return self.quote(price_update, use_alternate_fee_token, adapter_params).total
