"""Typed facade over the deployed bridge vault contract."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from web3 import Web3
from web3.contract import Contract

from .abi import ERC20_ABI, load_contract_artifact, load_vault_abi
from .config import ClientConfig, ConfigStore, get_private_key
from .connections import Web3Connections
from .exceptions import NotDeployedError, ValidationError
from .transactions import TransactionDispatcher
from .types import BridgeFeeEstimate, ContractSet, TokenBalance, TransactionResult
from .utils import hex_to_bytes, normalise_hex, price_feed_to_bytes32, price_update_to_bytes
from .validation import validate_address, validate_chain_id

_MAX_REMOTE_CHAIN_ID = 2**16 - 1


@dataclass(frozen=True)
class Unbound:
    """No vault is recorded for the network yet."""

    network: str


@dataclass(frozen=True)
class Bound:
    """A vault contract handle bound to a deployed address."""

    contract: Contract
    address: str


ContractBinding = Unbound | Bound


def _checksum(address: str, context: str) -> str:
    validate_address(address, context)
    return Web3.to_checksum_address(address)


class VaultContract:
    """Narrow read/write operations on the vault and the tokens it holds."""

    def __init__(
        self,
        network_name: str,
        store: ConfigStore,
        connections: Web3Connections,
        *,
        dispatcher: TransactionDispatcher | None = None,
        client_config: ClientConfig | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.network_name = network_name
        self._store = store
        self._connections = connections
        self._client_config = client_config or ClientConfig()
        self._logger = logger if logger is not None else logging.getLogger(__name__)
        self._dispatcher = dispatcher or TransactionDispatcher(
            connections,
            receipt_timeout=self._client_config.receipt_timeout,
            logger=self._logger,
        )
        self._abi = load_vault_abi(self._client_config.vault_artifact)
        self._binding: ContractBinding = self._bind()

    @classmethod
    def from_network(
        cls,
        network_name: str,
        store: ConfigStore,
        *,
        private_key: str | None = None,
        client_config: ClientConfig | None = None,
        logger: logging.Logger | None = None,
    ) -> VaultContract:
        """Resolve the network, load the signer and connect to its RPC endpoint."""
        client_config = client_config or ClientConfig()
        network = store.get_network(network_name)
        key = private_key or get_private_key()
        connections = Web3Connections(
            network.rpc_url,
            key,
            expected_chain_id=network.chain_id,
            request_timeout=client_config.request_timeout,
            logger=logger,
        )
        connections.connect()
        return cls(
            network_name,
            store,
            connections,
            client_config=client_config,
            logger=logger,
        )

    # ------------------------------------------------------------------
    # Binding
    # ------------------------------------------------------------------
    @property
    def binding(self) -> ContractBinding:
        return self._binding

    @property
    def address(self) -> str:
        return self._bound().address

    @property
    def connections(self) -> Web3Connections:
        return self._connections

    @property
    def signer_address(self) -> str:
        return self._connections.signer_address

    def _bind(self) -> ContractBinding:
        try:
            contracts = self._store.get_contract_set(self.network_name)
        except NotDeployedError:
            return Unbound(self.network_name)
        return self._bound_to(contracts.vault)

    def _bound_to(self, address: str) -> Bound:
        contract = self._connections.contract(address, self._abi)
        return Bound(contract=contract, address=Web3.to_checksum_address(address))

    def _vault(self) -> Contract:
        binding = self._binding
        if isinstance(binding, Bound):
            return binding.contract
        raise NotDeployedError(binding.network)

    def _bound(self) -> Bound:
        binding = self._binding
        if isinstance(binding, Bound):
            return binding
        raise NotDeployedError(binding.network)

    # ------------------------------------------------------------------
    # Deployment
    # ------------------------------------------------------------------
    def deploy(self, fee_recipient: str, bridge: str, pyth_oracle: str) -> str:
        """Deploy a new vault, record its contract set and bind to it."""
        args = [
            _checksum(fee_recipient, "Fee recipient"),
            _checksum(bridge, "Bridge"),
            _checksum(pyth_oracle, "Pyth Oracle"),
        ]
        artifact = load_contract_artifact(self._client_config.vault_artifact)
        factory = self._connections.contract_factory(artifact.abi, artifact.bytecode)

        result = self._dispatcher.deploy(factory, args, action="deploy_vault")
        address = Web3.to_checksum_address(result.contract_address)

        self._store.set_contract_set(
            self.network_name,
            ContractSet(vault=address, bridge=args[1], pyth_oracle=args[2]),
        )
        self._abi = artifact.abi
        self._binding = self._bound_to(address)
        self._logger.info("Vault deployed on %s at %s", self.network_name, address)
        return address

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def get_vault(self, receiver: str) -> str:
        raw = self._vault().functions.getVault(_checksum(receiver, "Receiver")).call()
        return Web3.to_checksum_address(raw)

    def calculate_fee_amount(self, token: str, price_update: Sequence[str | bytes]) -> int:
        blobs = price_update_to_bytes(price_update)
        return int(
            self._vault().functions.calculateFeeAmount(_checksum(token, "Token"), blobs).call()
        )

    def view_fee_amount(self, token: str) -> int:
        return int(self._vault().functions.viewFeeAmount(_checksum(token, "Token")).call())

    def estimate_bridge_fee(
        self, use_alternate_fee_token: bool = False, adapter_params: str | bytes = b""
    ) -> BridgeFeeEstimate:
        params = hex_to_bytes(adapter_params) if adapter_params else b""
        native_fee, alternate_fee = (
            self._vault().functions.estimateBridgeFee(bool(use_alternate_fee_token), params).call()
        )
        return BridgeFeeEstimate(native_fee=int(native_fee), alternate_fee=int(alternate_fee))

    def is_paused(self) -> bool:
        return bool(self._vault().functions.paused().call())

    def pyth_oracle_address(self) -> str:
        return Web3.to_checksum_address(self._vault().functions.pythOracle().call())

    def token_price_feed(self, token: str) -> str:
        raw = self._vault().functions.tokenPriceFeeds(_checksum(token, "Token")).call()
        return normalise_hex(raw)

    def token_balance(self, token: str, holder: str) -> TokenBalance:
        """Read balance, decimals and symbol of an ERC20 token for ``holder``."""
        token_address = _checksum(token, "Token")
        holder_address = _checksum(holder, "Holder")
        erc20 = self._connections.contract(token_address, ERC20_ABI)
        return TokenBalance(
            address=token_address,
            holder=holder_address,
            balance=int(erc20.functions.balanceOf(holder_address).call()),
            decimals=int(erc20.functions.decimals().call()),
            symbol=str(erc20.functions.symbol().call()),
        )

    def native_balance(self, address: str | None = None) -> int:
        return self._connections.native_balance(address or self.signer_address)

    def read_only_contract(self, address: str, abi: Sequence[Any]) -> Contract:
        return self._connections.contract(address, abi)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def whitelist_token(self, token: str, price_feed_id: str) -> TransactionResult:
        token_address = _checksum(token, "Token")
        fn = self._vault().functions.whitelistToken(
            token_address, price_feed_to_bytes32(price_feed_id)
        )
        return self._dispatcher.send(
            fn,
            action="whitelist_token",
            context={"token": token_address, "price_feed_id": price_feed_id},
        )

    def remove_token(self, token: str) -> TransactionResult:
        token_address = _checksum(token, "Token")
        fn = self._vault().functions.removeToken(token_address)
        return self._dispatcher.send(fn, action="remove_token", context={"token": token_address})

    def bridge_vault_tokens(
        self,
        receiver: str,
        token: str,
        price_update: Sequence[str | bytes],
        value: int,
    ) -> TransactionResult:
        if value < 0:
            raise ValidationError("Native value must be non-negative", field="value", value=value)
        receiver_address = _checksum(receiver, "Receiver")
        token_address = _checksum(token, "Token")
        fn = self._vault().functions.bridgeVaultTokens(
            receiver_address, token_address, price_update_to_bytes(price_update)
        )
        return self._dispatcher.send(
            fn,
            action="bridge_vault_tokens",
            context={"receiver": receiver_address, "token": token_address},
            value=value,
        )

    def pause(self) -> TransactionResult:
        return self._dispatcher.send(self._vault().functions.pause(), action="pause")

    def unpause(self) -> TransactionResult:
        return self._dispatcher.send(self._vault().functions.unPause(), action="unpause")

    def update_bridge(self, new_bridge: str) -> TransactionResult:
        address = _checksum(new_bridge, "Bridge")
        result = self._dispatcher.send(
            self._vault().functions.updateBridge(address),
            action="update_bridge",
            context={"bridge": address},
        )
        self._store.update_contract(self.network_name, "bridge", address)
        return result

    def update_pyth_oracle(self, new_oracle: str) -> TransactionResult:
        address = _checksum(new_oracle, "Pyth Oracle")
        result = self._dispatcher.send(
            self._vault().functions.updatePythOracle(address),
            action="update_pyth_oracle",
            context={"pyth_oracle": address},
        )
        self._store.update_contract(self.network_name, "pyth_oracle", address)
        return result

    def update_fee_recipient(self, new_recipient: str) -> TransactionResult:
        address = _checksum(new_recipient, "Fee recipient")
        return self._dispatcher.send(
            self._vault().functions.updateFeeRecipient(address),
            action="update_fee_recipient",
            context={"fee_recipient": address},
        )

    def update_remote_chain_id(self, new_chain_id: int) -> TransactionResult:
        validate_chain_id(new_chain_id)
        if new_chain_id > _MAX_REMOTE_CHAIN_ID:
            raise ValidationError(
                f"Remote chain ID must fit in uint16: {new_chain_id}",
                field="chain_id",
                value=new_chain_id,
            )
        return self._dispatcher.send(
            self._vault().functions.updateRemoteChainId(new_chain_id),
            action="update_remote_chain_id",
            context={"chain_id": new_chain_id},
        )
