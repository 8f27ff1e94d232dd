"""Input validation helpers.

``is_valid_*`` predicates return booleans and never raise. ``validate_*``
assertions log the problem and raise :class:`ValidationError`.
``validate_config`` collects human readable problems for a raw config
mapping; callers decide whether they are fatal.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any
from urllib.parse import urlparse

from web3 import Web3

from .exceptions import ValidationError

logger = logging.getLogger(__name__)

_NETWORK_NAME_RE = re.compile(r"^[A-Za-z0-9-]+$")
_PRICE_FEED_RE = re.compile(r"^0x[0-9a-fA-F]{64}$")


def is_valid_address(address: Any) -> bool:
    try:
        return bool(Web3.is_address(address))
    except Exception:
        return False


def is_valid_network_name(name: Any) -> bool:
    return isinstance(name, str) and _NETWORK_NAME_RE.fullmatch(name) is not None


def is_valid_url(url: Any) -> bool:
    if not isinstance(url, str) or not url or url != url.strip():
        return False
    try:
        parsed = urlparse(url)
        # Accessing .port validates the port component
        parsed.port
    except ValueError:
        return False
    return bool(parsed.scheme) and bool(parsed.netloc)


def is_valid_chain_id(chain_id: Any) -> bool:
    return isinstance(chain_id, int) and not isinstance(chain_id, bool) and chain_id > 0


def is_valid_price_feed_id(price_feed_id: Any) -> bool:
    return isinstance(price_feed_id, str) and _PRICE_FEED_RE.fullmatch(price_feed_id) is not None


def validate_address(address: Any, context: str) -> None:
    if not is_valid_address(address):
        message = f"Invalid {context} address: {address}"
        logger.error(message)
        field = context.lower().replace(" ", "_")
        raise ValidationError(message, field=f"{field}_address", value=address)


def validate_network_name(name: Any) -> None:
    if not is_valid_network_name(name):
        message = f"Invalid network name: {name}. Use alphanumeric characters and hyphens only."
        logger.error(message)
        raise ValidationError(message, field="network", value=name)


def validate_url(url: Any, context: str) -> None:
    if not is_valid_url(url):
        message = f"Invalid {context} URL: {url}"
        logger.error(message)
        field = context.lower().replace(" ", "_")
        raise ValidationError(message, field=f"{field}_url", value=url)


def validate_chain_id(chain_id: Any) -> None:
    if not is_valid_chain_id(chain_id):
        message = f"Invalid chain ID: {chain_id}. Must be a positive integer."
        logger.error(message)
        raise ValidationError(message, field="chain_id", value=chain_id)


def validate_price_feed_id(price_feed_id: Any) -> None:
    if not is_valid_price_feed_id(price_feed_id):
        message = (
            f"Invalid price feed ID: {price_feed_id}. Expected 0x followed by 64 hex characters."
        )
        logger.error(message)
        raise ValidationError(message, field="price_feed_id", value=price_feed_id)


def validate_config(config: Any) -> list[str]:
    """Return every structural problem found in a raw config mapping."""
    errors: list[str] = []

    networks = config.get("networks") if isinstance(config, Mapping) else None
    if not isinstance(networks, Mapping):
        errors.append('Configuration missing or invalid "networks" object')
        return errors

    for network_name, network in networks.items():
        if not is_valid_network_name(network_name):
            errors.append(f"Invalid network name: {network_name}")

        if not isinstance(network, Mapping):
            errors.append(f"Network {network_name} must be an object")
            continue

        if not is_valid_url(network.get("rpcUrl")):
            errors.append(f"Network {network_name} has invalid or missing rpcUrl")

        if not is_valid_chain_id(network.get("chainId")):
            errors.append(f"Network {network_name} has invalid or missing chainId")

        display_name = network.get("name")
        if not display_name or not isinstance(display_name, str):
            errors.append(f"Network {network_name} has invalid or missing name")

        contracts = network.get("contracts")
        if contracts:
            if not isinstance(contracts, Mapping):
                errors.append(f"Network {network_name} has invalid contracts object")
            else:
                for key in ("vault", "bridge", "pythOracle"):
                    value = contracts.get(key)
                    if value and not is_valid_address(value):
                        errors.append(f"Network {network_name} has invalid {key} contract address")

        whitelist = network.get("tokenWhitelist")
        if whitelist:
            if not isinstance(whitelist, Mapping):
                errors.append(f"Network {network_name} has invalid tokenWhitelist object")
                continue
            prefix = f"Network {network_name} has invalid"
            for token_address, price_feed_id in whitelist.items():
                if not is_valid_address(token_address):
                    errors.append(f"{prefix} token address in whitelist: {token_address}")
                if not isinstance(price_feed_id, str):
                    errors.append(f"{prefix} price feed ID for token {token_address}")

    return errors
