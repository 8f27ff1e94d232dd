"""Persistent per-network configuration for the bridge vault CLI."""

from __future__ import annotations

import copy
import json
import logging
import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from .cache import LocalCache
from .constants import (
    CONFIG_CACHE_KEY,
    CONFIG_CACHE_NAMESPACE,
    CONFIG_CACHE_TTL,
    DEFAULT_HERMES_URL,
    DEFAULT_NETWORKS,
    DEFAULT_RECEIPT_TIMEOUT,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_VAULT_ARTIFACT,
    default_config_paths,
)
from .exceptions import (
    AuthenticationError,
    NotDeployedError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from .types import Config, ContractSet, NetworkConfig
from .utils import write_json_atomic
from .validation import (
    validate_address,
    validate_chain_id,
    validate_config,
    validate_network_name,
    validate_url,
)

_CONTRACT_FIELDS = {
    "vault": "Vault",
    "bridge": "Bridge",
    "pyth_oracle": "Pyth Oracle",
}


@dataclass(frozen=True)
class ClientConfig:
    """Runtime tunables that are not stored in the config file."""

    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    receipt_timeout: float = DEFAULT_RECEIPT_TIMEOUT
    hermes_url: str = DEFAULT_HERMES_URL
    vault_artifact: Path = DEFAULT_VAULT_ARTIFACT

    @classmethod
    def from_env(cls) -> ClientConfig:
        """Build a config from environment variables, keeping defaults for unset ones."""
        return cls(
            request_timeout=float(os.getenv("REQUEST_TIMEOUT", str(DEFAULT_REQUEST_TIMEOUT))),
            receipt_timeout=float(os.getenv("RECEIPT_TIMEOUT", str(DEFAULT_RECEIPT_TIMEOUT))),
            hermes_url=os.getenv("PYTH_HERMES_URL", DEFAULT_HERMES_URL).rstrip("/"),
            vault_artifact=Path(os.getenv("VAULT_ARTIFACT", str(DEFAULT_VAULT_ARTIFACT))),
        )


def rpc_env_var(network_name: str) -> str:
    """Environment variable that overrides a default network's RPC URL."""
    return f"{network_name.upper().replace('-', '_')}_RPC_URL"


def default_config() -> dict[str, Any]:
    """Built-in configuration, with RPC URLs overridable from the environment."""
    networks: dict[str, Any] = {}
    for key, (display_name, chain_id, rpc_url) in DEFAULT_NETWORKS.items():
        networks[key] = {
            "rpcUrl": os.getenv(rpc_env_var(key)) or rpc_url,
            "chainId": chain_id,
            "name": display_name,
            "tokenWhitelist": {},
        }
    return {"networks": networks}


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Merge ``override`` over ``base``.

    Nested mappings are merged key by key; every other value (lists included)
    from ``override`` replaces the base value wholesale.
    """
    result: dict[str, Any] = copy.deepcopy(dict(base))
    for key, value in override.items():
        current = result.get(key)
        if isinstance(value, Mapping) and isinstance(current, Mapping):
            result[key] = deep_merge(current, value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def get_private_key() -> str:
    """Return the signing key from ``PRIVATE_KEY``, 0x-prefixed."""
    private_key = os.getenv("PRIVATE_KEY", "").strip()
    if not private_key:
        raise AuthenticationError(
            "Private key not found in environment variables. "
            "Please set PRIVATE_KEY in your .env file."
        )
    return private_key if private_key.startswith("0x") else f"0x{private_key}"


class ConfigStore:
    """Load, validate, merge and persist the network configuration.

    Reads go through a short-lived :class:`LocalCache` entry; on a miss the
    candidate paths are scanned in order and the first existing file is
    merged over :func:`default_config`. Writes always replace the whole file
    at the first writable candidate and refresh the cache entry.
    """

    def __init__(
        self,
        config_paths: Sequence[str | Path] | None = None,
        *,
        cache: LocalCache | None = None,
        defaults: Mapping[str, Any] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._logger = logger if logger is not None else logging.getLogger(__name__)
        self._paths = [Path(p) for p in (config_paths or default_config_paths())]
        if not self._paths:
            raise ValueError("At least one config path is required")
        self._defaults = dict(defaults) if defaults is not None else default_config()
        self._cache_key = f"{CONFIG_CACHE_KEY}:{self._paths[0]}"
        self._cache = cache or LocalCache(
            CONFIG_CACHE_NAMESPACE, CONFIG_CACHE_TTL, logger=self._logger
        )

    @property
    def config_paths(self) -> list[Path]:
        return list(self._paths)

    # ------------------------------------------------------------------
    # Load / save
    # ------------------------------------------------------------------
    def load_config(self) -> Config:
        cached = self._cache.get(self._cache_key)
        if isinstance(cached, Mapping):
            return Config.from_dict(copy.deepcopy(cached))

        for config_path in self._paths:
            if not config_path.exists():
                continue
            try:
                user_config = json.loads(config_path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as exc:
                self._logger.error("Error loading config from %s: %s", config_path, exc)
                continue
            if not isinstance(user_config, Mapping):
                self._logger.error("Error loading config from %s: not a JSON object", config_path)
                continue

            merged = deep_merge(self._defaults, user_config)
            errors = validate_config(merged)
            if errors:
                self._logger.warning("Config validation warnings for %s:", config_path)
                for error in errors:
                    self._logger.warning("- %s", error)

            self._cache.set(self._cache_key, merged)
            return Config.from_dict(merged)

        self._logger.warning("No config file found. Using default configuration.")
        defaults = copy.deepcopy(self._defaults)
        self._create_default_config(defaults)
        self._cache.set(self._cache_key, defaults)
        return Config.from_dict(defaults)

    def save_config(self, config: Config) -> Path:
        """Persist the complete configuration and return the path written."""
        payload = config.to_dict()
        errors = validate_config(payload)
        if errors:
            self._logger.warning("Config validation warnings:")
            for error in errors:
                self._logger.warning("- %s", error)

        written = self._write(payload)
        self._cache.set(self._cache_key, payload)
        self._logger.debug("Config saved to %s", written)
        return written

    # ------------------------------------------------------------------
    # Networks
    # ------------------------------------------------------------------
    def get_network(self, name: str) -> NetworkConfig:
        validate_network_name(name)
        config = self.load_config()
        network = config.networks.get(name)
        if network is None:
            available = list(config.networks)
            raise NotFoundError(
                f"Network '{name}' not found in config. "
                f"Available networks: {', '.join(available)}",
                resource=name,
                available=available,
            )
        return network

    def get_available_networks(self) -> list[str]:
        return list(self.load_config().networks)

    def add_network(self, name: str, network: NetworkConfig) -> None:
        validate_network_name(name)
        validate_url(network.rpc_url, "RPC")
        validate_chain_id(network.chain_id)
        if not network.name:
            raise ValidationError("Network display name is required", field="name", value=name)
        if network.contracts is not None:
            self._validate_contract_set(network.contracts)
        self._validate_whitelist(network.token_whitelist)

        config = self.load_config()
        config.networks[name] = network
        self.save_config(config)
        self._logger.info("Network '%s' added to configuration", name)

    def remove_network(self, name: str) -> None:
        validate_network_name(name)
        config = self.load_config()
        if name not in config.networks:
            raise self._missing_network(name, config)

        del config.networks[name]
        self.save_config(config)
        self._logger.info("Network '%s' removed from configuration", name)

    # ------------------------------------------------------------------
    # Contracts
    # ------------------------------------------------------------------
    def get_contract_set(self, name: str) -> ContractSet:
        network = self.get_network(name)
        if network.contracts is None:
            raise NotDeployedError(name)
        return network.contracts

    def set_contract_set(self, name: str, contracts: ContractSet) -> None:
        validate_network_name(name)
        self._validate_contract_set(contracts)

        config = self.load_config()
        network = config.networks.get(name)
        if network is None:
            raise self._missing_network(name, config)

        network.contracts = contracts
        self.save_config(config)
        self._logger.debug("Contract set updated for network '%s'", name)

    def update_contract(self, name: str, field: str, address: str) -> ContractSet:
        """Replace one address of an existing contract set."""
        if field not in _CONTRACT_FIELDS:
            raise ValidationError(f"Unknown contract field: {field}", field="contract", value=field)
        current = self.get_contract_set(name)
        updated = replace(current, **{field: address})
        self.set_contract_set(name, updated)
        return updated

    # ------------------------------------------------------------------
    # Token whitelist
    # ------------------------------------------------------------------
    def get_token_whitelist(self, name: str) -> dict[str, str]:
        return dict(self.get_network(name).token_whitelist)

    def set_token_whitelist(self, name: str, whitelist: Mapping[str, str]) -> None:
        validate_network_name(name)
        self._validate_whitelist(whitelist)

        config = self.load_config()
        network = config.networks.get(name)
        if network is None:
            raise self._missing_network(name, config)

        network.token_whitelist = dict(whitelist)
        self.save_config(config)
        self._logger.debug("Token whitelist updated for network '%s'", name)

    def add_token(self, name: str, token: str, price_feed_id: str) -> None:
        whitelist = self.get_token_whitelist(name)
        whitelist[token] = price_feed_id
        self.set_token_whitelist(name, whitelist)

    def remove_token(self, name: str, token: str) -> bool:
        """Drop ``token`` from the whitelist; returns False if it was not listed."""
        validate_address(token, "Token")
        whitelist = self.get_token_whitelist(name)
        matches = [key for key in whitelist if key.lower() == token.lower()]
        if not matches:
            return False
        for key in matches:
            del whitelist[key]
        self.set_token_whitelist(name, whitelist)
        return True

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _write(self, payload: Mapping[str, Any]) -> Path:
        failures: dict[str, str] = {}
        for config_path in self._paths:
            try:
                write_json_atomic(config_path, payload, indent=2)
            except OSError as exc:
                self._logger.debug("Config path %s is not writable: %s", config_path, exc)
                failures[str(config_path)] = str(exc)
                continue
            return config_path

        self._logger.error("Error saving config: no writable config path")
        raise PersistenceError(
            "Failed to save configuration: no writable config path",
            path=str(self._paths[0]),
            details={"errors": failures},
        )

    def _create_default_config(self, defaults: Mapping[str, Any]) -> None:
        try:
            written = self._write(defaults)
        except PersistenceError as exc:
            self._logger.error("Failed to create default config: %s", exc)
            return
        self._logger.info("Created default config at %s", written)

    def _validate_contract_set(self, contracts: ContractSet) -> None:
        for attr, label in _CONTRACT_FIELDS.items():
            validate_address(getattr(contracts, attr), label)

    def _validate_whitelist(self, whitelist: Mapping[str, str]) -> None:
        for token_address, price_feed_id in whitelist.items():
            validate_address(token_address, "Token")
            if not isinstance(price_feed_id, str):
                raise ValidationError(
                    f"Invalid price feed ID for token {token_address}",
                    field="price_feed_id",
                    value=price_feed_id,
                )

    def _missing_network(self, name: str, config: Config) -> NotFoundError:
        return NotFoundError(
            f"Network '{name}' not found in config",
            resource=name,
            available=list(config.networks),
        )
