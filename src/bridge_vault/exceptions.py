"""Exception hierarchy for the bridge vault CLI."""

from collections.abc import Sequence
from typing import Any


class BridgeVaultError(Exception):
    """Base exception for all bridge vault errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class AuthenticationError(BridgeVaultError):
    """Raised when the signing key is missing or unusable."""

    pass


class ValidationError(BridgeVaultError):
    """Raised when input validation fails."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.field = field
        self.value = value


class NotFoundError(BridgeVaultError):
    """Raised when a named resource is not present in the configuration."""

    def __init__(
        self,
        message: str,
        resource: str | None = None,
        available: Sequence[str] | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.resource = resource
        self.available = list(available or [])


class NotDeployedError(NotFoundError):
    """Raised when a network has no recorded vault contract set."""

    def __init__(self, network: str, details: dict | None = None):
        super().__init__(
            f"No contracts deployed on network '{network}'. Please deploy contracts first.",
            resource=network,
            details=details,
        )
        self.network = network


class InsufficientBalanceError(BridgeVaultError):
    """Raised when the vault token balance does not cover the bridge fee."""

    def __init__(
        self,
        message: str,
        balance: int,
        required: int,
        token: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.balance = balance
        self.required = required
        self.token = token


class InsufficientNativeFundsError(BridgeVaultError):
    """Raised when the signer cannot pay the native value of a bridge."""

    def __init__(self, message: str, balance: int, required: int, details: dict | None = None):
        super().__init__(message, details)
        self.balance = balance
        self.required = required


class NetworkError(BridgeVaultError):
    """Raised when network/connection issues occur."""

    def __init__(
        self,
        message: str,
        endpoint: str | None = None,
        status_code: int | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.endpoint = endpoint
        self.status_code = status_code


class RemoteQueryError(NetworkError):
    """Raised when a remote fee or price query cannot be completed."""

    pass


class PersistenceError(BridgeVaultError):
    """Raised when configuration cannot be written to disk."""

    def __init__(self, message: str, path: str | None = None, details: dict | None = None):
        super().__init__(message, details)
        self.path = path


class TransactionError(BridgeVaultError):
    """Raised when a transaction fails to submit, reverts or never confirms."""

    def __init__(
        self,
        message: str,
        action: str | None = None,
        tx_hash: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.action = action
        self.tx_hash = tx_hash
