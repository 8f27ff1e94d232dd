"""Bridge orchestration for vault-held tokens."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from .exceptions import BridgeVaultError, InsufficientBalanceError, InsufficientNativeFundsError
from .fees import FeeResolver, submission_value
from .types import BridgeResult, BridgeStage, BridgeSummary, TokenBalance
from .utils import format_ether, format_units

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from .contract import VaultContract


class BridgeOrchestrator:
    """Sequence the checks and the submission of a single bridge attempt.

    Every attempt walks the same stages: resolve the receiver's vault, read
    its token balance, resolve the bridge fee, verify both the token and the
    native balances, then either stop (dry run) or submit and wait for the
    receipt. Any failure before submission raises and nothing is sent.
    """

    def __init__(
        self,
        vault: VaultContract,
        fees: FeeResolver | None = None,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self._vault = vault
        self._logger = logger if logger is not None else logging.getLogger(__name__)
        self._fees = fees or FeeResolver(vault, logger=self._logger)

    # ------------------------------------------------------------------
    # Public entry point
    # ------------------------------------------------------------------
    def execute(
        self,
        receiver: str,
        token: str,
        price_update: Sequence[str | bytes] | None = None,
        *,
        dry_run: bool = False,
        use_alternate_fee_token: bool = False,
        adapter_params: str | bytes = b"",
    ) -> BridgeResult:
        blobs = list(price_update or [])
        stage = BridgeStage.START
        self._logger.debug(
            "Stage bridge: start (receiver=%s, token=%s, blobs=%s, dry_run=%s)",
            receiver,
            token,
            len(blobs),
            dry_run,
        )

        try:
            vault_address = self._vault.get_vault(receiver)
            stage = BridgeStage.VAULT_RESOLVED
            self._logger.info("Vault address: %s", vault_address)

            balance = self._vault.token_balance(token, vault_address)
            stage = BridgeStage.BALANCE_CHECKED
            self._logger.debug(
                "Stage bridge: balance checked (balance=%s %s)",
                format_units(balance.balance, balance.decimals),
                balance.symbol,
            )

            fee, fee_estimated = self._resolve_fee(token, blobs, balance)
            stage = BridgeStage.FEE_RESOLVED
            self._logger.debug(
                "Stage bridge: fee resolved (fee=%s, estimated=%s)", fee, fee_estimated
            )

            required_native = self._fees.calculate_total_eth_required(
                blobs, use_alternate_fee_token, adapter_params
            )
            native_balance = self._vault.native_balance()
            self._verify_funds(balance, fee, required_native, native_balance)
            stage = BridgeStage.FUNDS_VERIFIED
            self._logger.debug(
                "Stage bridge: funds verified (required=%s ETH, available=%s ETH)",
                format_ether(required_native),
                format_ether(native_balance),
            )

            summary = BridgeSummary(
                signer=self._vault.signer_address,
                vault_address=vault_address,
                token=balance,
                fee=fee,
                fee_estimated=fee_estimated,
                required_native=required_native,
                native_balance=native_balance,
            )
            value = submission_value(required_native)

            if dry_run:
                stage = BridgeStage.DRY_RUN_REPORTED
                self._logger.debug("Stage bridge: dry run reported (value=%s)", value)
                return BridgeResult(
                    success=True, stage=stage, summary=summary, dry_run=True, value=value
                )

            self._logger.debug("Stage bridge: submitting (value=%s)", value)
            stage = BridgeStage.SUBMITTED
            tx = self._vault.bridge_vault_tokens(receiver, token, blobs, value)
            stage = BridgeStage.CONFIRMED
            self._logger.debug(
                "Stage bridge: confirmed (tx=%s, block=%s)", tx.tx_hash, tx.block_number
            )
        except BridgeVaultError as exc:
            self._logger.debug(
                "Stage bridge: aborted at %s (reason=%s)", stage.value, exc.message
            )
            exc.details.setdefault("aborted_at", stage.value)
            exc.details.setdefault("stage", BridgeStage.ABORTED.value)
            raise

        return BridgeResult(
            success=True,
            stage=stage,
            summary=summary,
            value=value,
            transaction_hash=tx.tx_hash,
            block_number=tx.block_number,
            raw_response=tx.receipt,
        )

    # ------------------------------------------------------------------
    # Internal workflow
    # ------------------------------------------------------------------
    def _resolve_fee(
        self, token: str, blobs: Sequence[str | bytes], balance: TokenBalance
    ) -> tuple[int, bool]:
        """Return ``(fee, estimated)``; ``estimated`` is False when the fee fell back to zero."""
        try:
            if blobs:
                fee = self._vault.calculate_fee_amount(token, blobs)
            else:
                fee = self._vault.view_fee_amount(token)
        except Exception as exc:
            if "insufficient balance" in str(exc).lower():
                raise InsufficientBalanceError(
                    f"Insufficient {balance.symbol} balance in vault to cover the bridge fee",
                    balance=balance.balance,
                    required=0,
                    token=balance.address,
                    details={"error": str(exc)},
                ) from exc
            self._logger.warning("Could not calculate fee, proceeding with zero fee: %s", exc)
            return 0, False
        return fee, True

    def _verify_funds(
        self, balance: TokenBalance, fee: int, required_native: int, native_balance: int
    ) -> None:
        if balance.balance <= 0:
            raise InsufficientBalanceError(
                f"Vault has zero {balance.symbol} balance",
                balance=balance.balance,
                required=fee,
                token=balance.address,
            )

        if balance.balance <= fee:
            raise InsufficientBalanceError(
                f"Insufficient {balance.symbol} balance in vault: "
                f"{format_units(balance.balance, balance.decimals)} available, "
                f"fee is {format_units(fee, balance.decimals)}",
                balance=balance.balance,
                required=fee,
                token=balance.address,
            )

        if native_balance < required_native:
            raise InsufficientNativeFundsError(
                f"Insufficient ETH for bridge: {format_ether(native_balance)} available, "
                f"{format_ether(required_native)} required",
                balance=native_balance,
                required=required_native,
            )
