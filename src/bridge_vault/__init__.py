"""Bridge Vault CLI - deploy and operate cross-chain bridge vault contracts.

This library wraps the vault contract with a persistent per-network
configuration, fee resolution and a guarded bridge workflow.
"""

from .bridge import BridgeOrchestrator
from .cache import LocalCache
from .config import ClientConfig, ConfigStore
from .contract import Bound, ContractBinding, Unbound, VaultContract
from .exceptions import (
    AuthenticationError,
    BridgeVaultError,
    InsufficientBalanceError,
    InsufficientNativeFundsError,
    NetworkError,
    NotDeployedError,
    NotFoundError,
    PersistenceError,
    RemoteQueryError,
    TransactionError,
    ValidationError,
)
from .fees import FeeResolver, fee_buffer, submission_value
from .pyth import PriceServiceClient
from .types import (
    BridgeFeeEstimate,
    BridgeResult,
    BridgeStage,
    BridgeSummary,
    Config,
    ContractSet,
    FeeQuote,
    NetworkConfig,
    TokenBalance,
    TransactionResult,
    WhitelistReport,
)
from .whitelist import WhitelistReconciler

__version__ = "0.1.0"

__all__ = [
    # Components
    "LocalCache",
    "ConfigStore",
    "ClientConfig",
    "VaultContract",
    "ContractBinding",
    "Bound",
    "Unbound",
    "FeeResolver",
    "BridgeOrchestrator",
    "WhitelistReconciler",
    "PriceServiceClient",
    # Fee arithmetic
    "fee_buffer",
    "submission_value",
    # Types
    "BridgeFeeEstimate",
    "BridgeResult",
    "BridgeStage",
    "BridgeSummary",
    "Config",
    "ContractSet",
    "FeeQuote",
    "NetworkConfig",
    "TokenBalance",
    "TransactionResult",
    "WhitelistReport",
    # Exceptions
    "BridgeVaultError",
    "AuthenticationError",
    "ValidationError",
    "NotFoundError",
    "NotDeployedError",
    "InsufficientBalanceError",
    "InsufficientNativeFundsError",
    "NetworkError",
    "RemoteQueryError",
    "PersistenceError",
    "TransactionError",
]
