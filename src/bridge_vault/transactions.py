"""Transaction dispatch helpers."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from web3.exceptions import TimeExhausted

from .connections import Web3Connections
from .constants import DEFAULT_RECEIPT_TIMEOUT
from .exceptions import TransactionError
from .types import TransactionResult
from .utils import serialise_receipt


class TransactionDispatcher:
    """Submit contract transactions and wait for their receipts."""

    def __init__(
        self,
        connections: Web3Connections,
        *,
        receipt_timeout: float = DEFAULT_RECEIPT_TIMEOUT,
        logger: logging.Logger | None = None,
    ) -> None:
        self._connections = connections
        self._receipt_timeout = receipt_timeout
        self._logger = logger if logger is not None else logging.getLogger(__name__)

    def send(
        self,
        contract_function: Any,
        *,
        action: str,
        context: Mapping[str, Any] | None = None,
        value: int | None = None,
    ) -> TransactionResult:
        """Transact ``contract_function`` and return once it is confirmed."""
        tx_params: dict[str, Any] = {"from": self._connections.signer_address}
        if value is not None:
            tx_params["value"] = int(value)

        self._logger.info("Dispatching %s", action)
        try:
            tx_hash = contract_function.transact(tx_params)
        except Exception as exc:
            raise TransactionError(
                f"Failed to submit transaction for {action}",
                action=action,
                details={"context": dict(context or {}), "error": str(exc)},
            ) from exc

        return self._confirm(tx_hash, action=action, context=context)

    def deploy(
        self, factory: Any, args: list[Any], *, action: str = "deploy"
    ) -> TransactionResult:
        """Send a contract creation transaction and return the confirmed result."""
        self._logger.info("Dispatching %s", action)
        try:
            tx_hash = factory.constructor(*args).transact(
                {"from": self._connections.signer_address}
            )
        except Exception as exc:
            raise TransactionError(
                f"Failed to submit transaction for {action}",
                action=action,
                details={"args": list(args), "error": str(exc)},
            ) from exc

        result = self._confirm(tx_hash, action=action, context={"args": list(args)})
        if not result.contract_address:
            raise TransactionError(
                "Deployment receipt does not contain a contract address",
                action=action,
                tx_hash=result.tx_hash,
            )
        return result

    def _confirm(
        self, tx_hash: Any, *, action: str, context: Mapping[str, Any] | None
    ) -> TransactionResult:
        tx_hex = tx_hash.to_0x_hex()
        self._logger.info("Transaction sent for action=%s hash=%s", action, tx_hex)

        web3 = self._connections.web3
        try:
            receipt = web3.eth.wait_for_transaction_receipt(tx_hash, timeout=self._receipt_timeout)
        except TimeExhausted as exc:
            raise TransactionError(
                f"Timed out waiting for {action} confirmation",
                action=action,
                tx_hash=tx_hex,
                details={"timeout": self._receipt_timeout},
            ) from exc

        status = receipt.get("status", 0)
        block_number = receipt.get("blockNumber")
        if status != 1:
            raise TransactionError(
                f"Transaction for {action} reverted",
                action=action,
                tx_hash=tx_hex,
                details={"receipt": serialise_receipt(receipt)},
            )

        self._logger.info(
            "Transaction confirmed for action=%s hash=%s block=%s", action, tx_hex, block_number
        )
        return TransactionResult(
            tx_hash=tx_hex,
            action=action,
            context=dict(context or {}),
            receipt=serialise_receipt(receipt),
            block_number=block_number,
            contract_address=receipt.get("contractAddress"),
        )
