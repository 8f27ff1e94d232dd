"""Type definitions and data models for the bridge vault CLI."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

Address = str  # 0x-prefixed EVM address
PriceFeedId = str  # Pyth price feed id (bytes32 hex)
Wei = int  # native currency minor units


class BridgeStage(str, Enum):
    """Progress markers for a single bridge attempt."""

    START = "start"
    VAULT_RESOLVED = "vault_resolved"
    BALANCE_CHECKED = "balance_checked"
    FEE_RESOLVED = "fee_resolved"
    FUNDS_VERIFIED = "funds_verified"
    DRY_RUN_REPORTED = "dry_run_reported"
    SUBMITTED = "submitted"
    CONFIRMED = "confirmed"
    ABORTED = "aborted"


@dataclass
class ContractSet:
    """Addresses of the contracts a vault deployment is wired to."""

    vault: Address
    bridge: Address
    pyth_oracle: Address

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ContractSet:
        return cls(
            vault=data.get("vault", ""),
            bridge=data.get("bridge", ""),
            pyth_oracle=data.get("pythOracle", ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"vault": self.vault, "bridge": self.bridge, "pythOracle": self.pyth_oracle}


@dataclass
class NetworkConfig:
    """Settings for one named network."""

    rpc_url: str
    chain_id: int
    name: str
    contracts: ContractSet | None = None
    token_whitelist: dict[Address, PriceFeedId] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> NetworkConfig:
        contracts = data.get("contracts")
        whitelist = data.get("tokenWhitelist") or {}
        return cls(
            rpc_url=data.get("rpcUrl", ""),
            chain_id=data.get("chainId", 0),
            name=data.get("name", ""),
            contracts=ContractSet.from_dict(contracts) if isinstance(contracts, Mapping) else None,
            token_whitelist=dict(whitelist) if isinstance(whitelist, Mapping) else {},
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "rpcUrl": self.rpc_url,
            "chainId": self.chain_id,
            "name": self.name,
        }
        if self.contracts is not None:
            payload["contracts"] = self.contracts.to_dict()
        payload["tokenWhitelist"] = dict(self.token_whitelist)
        return payload


@dataclass
class Config:
    """Top-level configuration: network name to network settings."""

    networks: dict[str, NetworkConfig] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Config:
        raw_networks = data.get("networks") or {}
        networks = {
            str(name): NetworkConfig.from_dict(entry)
            for name, entry in raw_networks.items()
            if isinstance(entry, Mapping)
        }
        return cls(networks=networks)

    def to_dict(self) -> dict[str, Any]:
        return {"networks": {name: net.to_dict() for name, net in self.networks.items()}}


@dataclass(frozen=True)
class BridgeFeeEstimate:
    """Messaging-layer fee estimate returned by the vault."""

    native_fee: Wei
    alternate_fee: Wei


@dataclass(frozen=True)
class FeeQuote:
    """Breakdown of the native value a bridge transaction needs."""

    price_update_fee: Wei
    messaging_fee: Wei
    buffer: Wei
    total: Wei


@dataclass(frozen=True)
class TokenBalance:
    """ERC20 balance snapshot for a holder."""

    address: Address
    holder: Address
    balance: int
    decimals: int
    symbol: str


@dataclass
class BridgeSummary:
    """Everything checked before a bridge transaction is submitted."""

    signer: Address
    vault_address: Address
    token: TokenBalance
    fee: int
    fee_estimated: bool
    required_native: Wei
    native_balance: Wei

    @property
    def bridge_amount(self) -> int:
        return self.token.balance - self.fee


@dataclass
class BridgeResult:
    """Outcome of a bridge attempt, dry run or submitted."""

    success: bool
    stage: BridgeStage
    summary: BridgeSummary | None = None
    dry_run: bool = False
    value: Wei | None = None
    transaction_hash: str | None = None
    block_number: int | None = None
    raw_response: dict[str, Any] | None = None


@dataclass
class WhitelistReport:
    """Result of reconciling configured whitelist entries with the vault."""

    submitted: dict[Address, PriceFeedId] = field(default_factory=dict)
    skipped: dict[Address, PriceFeedId] = field(default_factory=dict)
    failed: dict[Address, str] = field(default_factory=dict)

    @property
    def transaction_count(self) -> int:
        return len(self.submitted)


@dataclass
class TransactionResult:
    """Confirmed transaction details."""

    tx_hash: str
    action: str
    context: dict[str, Any] = field(default_factory=dict)
    receipt: Any = None
    block_number: int | None = None
    contract_address: Address | None = None
