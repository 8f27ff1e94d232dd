"""Tests for input validation helpers."""

import pytest

from bridge_vault.exceptions import ValidationError
from bridge_vault.validation import (
    is_valid_address,
    is_valid_chain_id,
    is_valid_network_name,
    is_valid_price_feed_id,
    is_valid_url,
    validate_address,
    validate_chain_id,
    validate_config,
    validate_network_name,
    validate_url,
)

ADDRESS = "0x1111111111111111111111111111111111111111"


class TestPredicates:
    """Boolean predicates never raise."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            (ADDRESS, True),
            ("0x123", False),
            ("", False),
            (None, False),
            (12345, False),
        ],
    )
    def test_is_valid_address(self, value, expected):
        assert is_valid_address(value) is expected

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("arbitrum", True),
            ("arb-sepolia", True),
            ("Net42", True),
            ("my network", False),
            ("net_work", False),
            ("", False),
        ],
    )
    def test_is_valid_network_name(self, value, expected):
        assert is_valid_network_name(value) is expected

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("https://arb1.arbitrum.io/rpc", True),
            ("http://127.0.0.1:8545", True),
            ("not a url", False),
            ("http://host:notaport", False),
            (" https://example.org", False),
            ("", False),
        ],
    )
    def test_is_valid_url(self, value, expected):
        assert is_valid_url(value) is expected

    @pytest.mark.parametrize(
        "value, expected",
        [(1, True), (42161, True), (0, False), (-1, False), (True, False), ("1", False)],
    )
    def test_is_valid_chain_id(self, value, expected):
        assert is_valid_chain_id(value) is expected

    def test_is_valid_price_feed_id(self):
        assert is_valid_price_feed_id("0x" + "ab" * 32)
        assert not is_valid_price_feed_id("0x" + "ab" * 31)
        assert not is_valid_price_feed_id("ab" * 32)


class TestAssertions:
    """Assertions raise ValidationError carrying the offending value."""

    def test_validate_address(self):
        with pytest.raises(ValidationError) as excinfo:
            validate_address("0x123", "Fee recipient")
        assert excinfo.value.field == "fee_recipient_address"
        assert excinfo.value.value == "0x123"
        assert "Invalid Fee recipient address" in str(excinfo.value)

    def test_validate_network_name_message(self):
        with pytest.raises(ValidationError, match="alphanumeric characters and hyphens"):
            validate_network_name("my network")

    def test_validate_url(self):
        validate_url("https://example.org", "RPC")
        with pytest.raises(ValidationError):
            validate_url("example", "RPC")

    def test_validate_chain_id(self):
        validate_chain_id(1)
        with pytest.raises(ValidationError):
            validate_chain_id(0)


class TestValidateConfig:
    """validate_config collects problems without raising."""

    def test_valid_config(self):
        config = {
            "networks": {
                "arbitrum": {
                    "rpcUrl": "https://arb1.arbitrum.io/rpc",
                    "chainId": 42161,
                    "name": "Arbitrum One",
                    "contracts": {"vault": ADDRESS, "bridge": ADDRESS, "pythOracle": ADDRESS},
                    "tokenWhitelist": {ADDRESS: "0x" + "ab" * 32},
                }
            }
        }
        assert validate_config(config) == []

    def test_missing_networks(self):
        assert validate_config({}) == ['Configuration missing or invalid "networks" object']

    def test_collects_every_problem(self):
        config = {
            "networks": {
                "bad name": {
                    "rpcUrl": "nope",
                    "chainId": 0,
                    "contracts": {"vault": "0x1"},
                    "tokenWhitelist": {"0x2": 5},
                }
            }
        }

        errors = validate_config(config)

        assert "Invalid network name: bad name" in errors
        assert "Network bad name has invalid or missing rpcUrl" in errors
        assert "Network bad name has invalid or missing chainId" in errors
        assert "Network bad name has invalid or missing name" in errors
        assert "Network bad name has invalid vault contract address" in errors
        assert any("invalid token address in whitelist: 0x2" in e for e in errors)
        assert any("invalid price feed ID for token 0x2" in e for e in errors)
