"""Connection helpers: web3 provider, signer middleware and contract handles."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any, cast

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import HTTPProvider, Web3
from web3.contract import Contract
from web3.middleware import SignAndSendRawMiddlewareBuilder
from web3.types import ChecksumAddress

from .constants import DEFAULT_REQUEST_TIMEOUT
from .exceptions import AuthenticationError, NetworkError, ValidationError


class Web3Connections:
    """Manage the RPC provider, signing account and contract handles for one network."""

    def __init__(
        self,
        rpc_url: str,
        private_key: str,
        *,
        expected_chain_id: int | None = None,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        logger: logging.Logger | None = None,
    ) -> None:
        self.rpc_url = rpc_url
        self._private_key = private_key
        self._expected_chain_id = expected_chain_id
        self._request_timeout = request_timeout
        self._logger = logger if logger is not None else logging.getLogger(__name__)
        self._provider: HTTPProvider | None = None
        self._web3: Web3 | None = None
        self._account: LocalAccount | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def connect(self) -> None:
        """Derive the signer, open the provider and install signing middleware."""

        try:
            signer = cast(LocalAccount, Account.from_key(self._private_key))
        except Exception as exc:
            raise AuthenticationError(
                "Failed to derive signer account from provided private key",
                details={"error": str(exc)},
            ) from exc

        self._account = signer

        provider = HTTPProvider(self.rpc_url, request_kwargs={"timeout": self._request_timeout})
        web3 = Web3(provider)
        if not web3.is_connected():
            raise NetworkError("Unable to connect to RPC", endpoint=self.rpc_url)

        web3.middleware_onion.add(SignAndSendRawMiddlewareBuilder.build(signer))  # type: ignore[arg-type]
        web3.eth.default_account = signer.address

        if self._expected_chain_id is not None:
            chain_id = web3.eth.chain_id
            if chain_id != self._expected_chain_id:
                self._logger.warning(
                    "RPC %s reports chain id %s, config expects %s",
                    self.rpc_url,
                    chain_id,
                    self._expected_chain_id,
                )

        self._provider = provider
        self._web3 = web3
        self._logger.info("Connected to RPC at %s as %s", self.rpc_url, signer.address)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def web3(self) -> Web3:
        if self._web3 is None:
            raise NetworkError("RPC provider not connected", endpoint=self.rpc_url)
        return self._web3

    @property
    def account(self) -> LocalAccount:
        if self._account is None:
            raise NetworkError(
                "Signer account is not initialised; call connect() first",
                endpoint=self.rpc_url,
            )
        return self._account

    @property
    def signer_address(self) -> ChecksumAddress:
        return self.account.address

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def contract(self, address: str, abi: Sequence[Mapping[str, Any]]) -> Contract:
        try:
            checksum = Web3.to_checksum_address(address)
        except Exception as exc:
            raise ValidationError(
                "Invalid contract address", field="address", value=address
            ) from exc
        return self.web3.eth.contract(address=checksum, abi=list(abi))

    def contract_factory(self, abi: Sequence[Mapping[str, Any]], bytecode: str) -> Any:
        return self.web3.eth.contract(abi=list(abi), bytecode=bytecode)

    def native_balance(self, address: str) -> int:
        return int(self.web3.eth.get_balance(Web3.to_checksum_address(address)))
