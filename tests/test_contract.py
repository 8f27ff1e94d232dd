from __future__ import annotations

import json
from pathlib import Path
from types import SimpleNamespace
from typing import Any, cast

import pytest
from hexbytes import HexBytes
from web3.exceptions import TimeExhausted

from bridge_vault.abi import ERC20_ABI, VAULT_ABI
from bridge_vault.cache import LocalCache
from bridge_vault.config import ClientConfig, ConfigStore
from bridge_vault.connections import Web3Connections
from bridge_vault.contract import Bound, Unbound, VaultContract
from bridge_vault.exceptions import (
    AuthenticationError,
    NetworkError,
    NotDeployedError,
    TransactionError,
    ValidationError,
)
from bridge_vault.transactions import TransactionDispatcher
from bridge_vault.types import ContractSet

SIGNER = "0x9999999999999999999999999999999999999999"
VAULT = "0x1111111111111111111111111111111111111111"
BRIDGE = "0x2222222222222222222222222222222222222222"
ORACLE = "0x3333333333333333333333333333333333333333"
TOKEN = "0x4444444444444444444444444444444444444444"
NEW_ADDRESS = "0x5555555555555555555555555555555555555555"
FEED = "0x" + "ab" * 32
TX_HASH = HexBytes(b"\x12" * 32)


class DummyFunction:
    def __init__(self, contract: DummyContract, name: str, args: tuple[Any, ...]) -> None:
        self._contract = contract
        self._name = name
        self._args = args

    def call(self) -> Any:
        self._contract.calls.append((self._name, self._args))
        result = self._contract.results[self._name]
        if isinstance(result, Exception):
            raise result
        return result

    def transact(self, params: dict[str, Any]) -> HexBytes:
        self._contract.transactions.append((self._name, self._args, params))
        return TX_HASH


class DummyFunctions:
    def __init__(self, contract: DummyContract) -> None:
        self._contract = contract

    def __getattr__(self, name: str) -> Any:
        return lambda *args: DummyFunction(self._contract, name, args)


class DummyContract:
    def __init__(self, address: str, abi: Any, results: dict[str, Any]) -> None:
        self.address = address
        self.abi = abi
        self.results = results
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.transactions: list[tuple[str, tuple[Any, ...], dict[str, Any]]] = []
        self.functions = DummyFunctions(self)


class DummyFactory:
    def __init__(self) -> None:
        self.constructed: list[tuple[Any, ...]] = []

    def constructor(self, *args: Any) -> Any:
        self.constructed.append(args)
        return SimpleNamespace(transact=lambda params: TX_HASH)


class DummyConnections:
    def __init__(self, receipt: dict[str, Any] | Exception | None = None) -> None:
        self.signer_address = SIGNER
        self.contracts: dict[str, DummyContract] = {}
        self.factory = DummyFactory()
        self.results: dict[str, Any] = {
            "getVault": NEW_ADDRESS.lower(),
            "paused": False,
            "pythOracle": ORACLE,
            "tokenPriceFeeds": bytes.fromhex("ab" * 32),
            "viewFeeAmount": 100,
            "calculateFeeAmount": 150,
            "estimateBridgeFee": (50, 0),
            "balanceOf": 1000,
            "decimals": 6,
            "symbol": "USDC",
        }
        self._receipt = receipt if receipt is not None else {"status": 1, "blockNumber": 12}

        def wait_for_receipt(tx_hash: Any, timeout: float) -> Any:
            if isinstance(self._receipt, Exception):
                raise self._receipt
            return self._receipt

        self.web3 = SimpleNamespace(
            eth=SimpleNamespace(wait_for_transaction_receipt=wait_for_receipt)
        )

    def contract(self, address: str, abi: Any) -> DummyContract:
        contract = self.contracts.get(address.lower())
        if contract is None:
            contract = DummyContract(address, abi, self.results)
            self.contracts[address.lower()] = contract
        return contract

    def contract_factory(self, abi: Any, bytecode: str) -> DummyFactory:
        return self.factory

    def native_balance(self, address: str) -> int:
        return 10**18


@pytest.fixture
def store(tmp_path: Path) -> ConfigStore:
    cache = LocalCache("config", 30, cache_dir=tmp_path / "cache")
    return ConfigStore([tmp_path / "vault-config.json"], cache=cache)


def _vault(
    store: ConfigStore,
    connections: DummyConnections,
    *,
    client_config: ClientConfig | None = None,
) -> VaultContract:
    return VaultContract(
        "localhost",
        store,
        cast(Web3Connections, connections),
        client_config=client_config,
    )


def _deployed(store: ConfigStore, connections: DummyConnections) -> VaultContract:
    store.set_contract_set("localhost", ContractSet(VAULT, BRIDGE, ORACLE))
    return _vault(store, connections)


def test_unbound_facade_raises_not_deployed(store: ConfigStore) -> None:
    vault = _vault(store, DummyConnections())

    assert isinstance(vault.binding, Unbound)
    with pytest.raises(NotDeployedError) as excinfo:
        vault.is_paused()
    assert excinfo.value.network == "localhost"
    with pytest.raises(NotDeployedError):
        vault.pause()


def test_bound_facade_uses_builtin_abi(store: ConfigStore) -> None:
    connections = DummyConnections()
    vault = _deployed(store, connections)

    assert isinstance(vault.binding, Bound)
    assert vault.address == VAULT
    assert connections.contracts[VAULT.lower()].abi is VAULT_ABI


def test_reads(store: ConfigStore) -> None:
    connections = DummyConnections()
    vault = _deployed(store, connections)

    assert vault.get_vault(TOKEN) == NEW_ADDRESS
    assert vault.view_fee_amount(TOKEN) == 100
    assert vault.calculate_fee_amount(TOKEN, ["0x0102"]) == 150
    assert vault.estimate_bridge_fee().native_fee == 50
    assert vault.is_paused() is False
    assert vault.pyth_oracle_address() == ORACLE
    assert vault.token_price_feed(TOKEN) == FEED

    calls = dict(connections.contracts[VAULT.lower()].calls)
    assert calls["calculateFeeAmount"] == (TOKEN, [b"\x01\x02"])


def test_token_balance_reads_erc20(store: ConfigStore) -> None:
    connections = DummyConnections()
    vault = _deployed(store, connections)

    balance = vault.token_balance(TOKEN, NEW_ADDRESS)

    assert (balance.balance, balance.decimals, balance.symbol) == (1000, 6, "USDC")
    assert connections.contracts[TOKEN.lower()].abi is ERC20_ABI


def test_invalid_address_rejected_before_call(store: ConfigStore) -> None:
    connections = DummyConnections()
    vault = _deployed(store, connections)

    with pytest.raises(ValidationError):
        vault.view_fee_amount("0x1234")

    assert connections.contracts[VAULT.lower()].calls == []


def test_bridge_vault_tokens_carries_value(store: ConfigStore) -> None:
    connections = DummyConnections()
    vault = _deployed(store, connections)

    result = vault.bridge_vault_tokens(NEW_ADDRESS, TOKEN, ["0xff"], 186)

    name, args, params = connections.contracts[VAULT.lower()].transactions[0]
    assert name == "bridgeVaultTokens"
    assert args == (NEW_ADDRESS, TOKEN, [b"\xff"])
    assert params == {"from": SIGNER, "value": 186}
    assert result.tx_hash == TX_HASH.to_0x_hex()
    assert result.block_number == 12


def test_whitelist_token_encodes_bytes32(store: ConfigStore) -> None:
    connections = DummyConnections()
    vault = _deployed(store, connections)

    vault.whitelist_token(TOKEN, FEED)

    name, args, _ = connections.contracts[VAULT.lower()].transactions[0]
    assert name == "whitelistToken"
    assert args == (TOKEN, bytes.fromhex("ab" * 32))


def test_unpause_calls_contract_entry_point(store: ConfigStore) -> None:
    connections = DummyConnections()
    vault = _deployed(store, connections)

    vault.unpause()

    assert connections.contracts[VAULT.lower()].transactions[0][0] == "unPause"


def test_update_bridge_records_new_address(store: ConfigStore) -> None:
    vault = _deployed(store, DummyConnections())

    vault.update_bridge(NEW_ADDRESS)
    vault.update_pyth_oracle(TOKEN)

    assert store.get_contract_set("localhost") == ContractSet(VAULT, NEW_ADDRESS, TOKEN)


def test_failed_update_leaves_config_untouched(store: ConfigStore) -> None:
    vault = _deployed(store, DummyConnections(receipt={"status": 0, "blockNumber": 3}))

    with pytest.raises(TransactionError, match="reverted"):
        vault.update_bridge(NEW_ADDRESS)

    assert store.get_contract_set("localhost").bridge == BRIDGE


def test_receipt_timeout_raises_transaction_error(store: ConfigStore) -> None:
    vault = _deployed(store, DummyConnections(receipt=TimeExhausted("slow")))

    with pytest.raises(TransactionError) as excinfo:
        vault.pause()

    assert excinfo.value.action == "pause"
    assert excinfo.value.tx_hash == TX_HASH.to_0x_hex()


def test_remote_chain_id_must_fit_uint16(store: ConfigStore) -> None:
    vault = _deployed(store, DummyConnections())

    with pytest.raises(ValidationError):
        vault.update_remote_chain_id(70_000)
    with pytest.raises(ValidationError):
        vault.update_remote_chain_id(0)

    vault.update_remote_chain_id(110)


def test_deploy_records_contract_set_and_binds(store: ConfigStore, tmp_path: Path) -> None:
    artifact = tmp_path / "BridgeVault.json"
    artifact.write_text(json.dumps({"abi": list(VAULT_ABI), "bytecode": {"object": "6080"}}))
    connections = DummyConnections(
        receipt={"status": 1, "blockNumber": 1, "contractAddress": NEW_ADDRESS}
    )
    vault = _vault(store, connections, client_config=ClientConfig(vault_artifact=artifact))

    address = vault.deploy(SIGNER, BRIDGE, ORACLE)

    assert address == NEW_ADDRESS
    assert connections.factory.constructed == [(SIGNER, BRIDGE, ORACLE)]
    assert store.get_contract_set("localhost") == ContractSet(NEW_ADDRESS, BRIDGE, ORACLE)
    assert isinstance(vault.binding, Bound)
    assert vault.address == NEW_ADDRESS


def test_deploy_without_contract_address_fails(store: ConfigStore, tmp_path: Path) -> None:
    artifact = tmp_path / "BridgeVault.json"
    artifact.write_text(json.dumps({"abi": [], "bytecode": "0x6080"}))
    vault = _vault(store, DummyConnections(), client_config=ClientConfig(vault_artifact=artifact))

    with pytest.raises(TransactionError, match="contract address"):
        vault.deploy(SIGNER, BRIDGE, ORACLE)

    with pytest.raises(NotDeployedError):
        store.get_contract_set("localhost")


def test_deploy_rejects_invalid_address_before_loading_artifact(store: ConfigStore) -> None:
    vault = _vault(store, DummyConnections())

    with pytest.raises(ValidationError, match="Fee recipient"):
        vault.deploy("0x12", BRIDGE, ORACLE)


def test_from_network_requires_private_key(
    store: ConfigStore, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.delenv("PRIVATE_KEY", raising=False)

    def fail_connect(self: Web3Connections) -> None:
        raise AssertionError("no network access expected")

    monkeypatch.setattr(Web3Connections, "connect", fail_connect)

    with pytest.raises(AuthenticationError):
        VaultContract.from_network("localhost", store)


def test_dispatcher_reports_submit_failure() -> None:
    connections = DummyConnections()
    dispatcher = TransactionDispatcher(cast(Web3Connections, connections))

    class Exploding:
        def transact(self, params: dict[str, Any]) -> Any:
            raise ValueError("nonce too low")

    with pytest.raises(TransactionError) as excinfo:
        dispatcher.send(Exploding(), action="pause")

    assert excinfo.value.details["error"] == "nonce too low"


def test_connections_unusable_before_connect() -> None:
    connections = Web3Connections("http://127.0.0.1:8545", "0x" + "11" * 32)

    with pytest.raises(NetworkError):
        connections.web3
    with pytest.raises(NetworkError):
        connections.signer_address
