"""Tests for ABI loading and hex/unit helpers."""

import json

import pytest
from hexbytes import HexBytes

from bridge_vault.abi import VAULT_ABI, load_contract_artifact, load_vault_abi
from bridge_vault.exceptions import ValidationError
from bridge_vault.utils import (
    format_ether,
    format_units,
    normalise_hex,
    price_feed_to_bytes32,
    price_update_to_bytes,
    serialise_receipt,
)


class TestArtifacts:
    """Compiled artifact loading."""

    def test_hardhat_artifact(self, tmp_path):
        path = tmp_path / "Vault.json"
        path.write_text(json.dumps({"abi": [{"type": "function"}], "bytecode": "0x6080"}))

        artifact = load_contract_artifact(path)

        assert artifact.abi == [{"type": "function"}]
        assert artifact.bytecode == "0x6080"

    def test_foundry_artifact(self, tmp_path):
        path = tmp_path / "Vault.json"
        path.write_text(json.dumps({"abi": [], "bytecode": {"object": "6080"}}))

        assert load_contract_artifact(path).bytecode == "0x6080"

    def test_missing_bytecode(self, tmp_path):
        path = tmp_path / "Vault.json"
        path.write_text(json.dumps({"abi": [], "bytecode": "0x"}))

        with pytest.raises(ValidationError):
            load_contract_artifact(path)

    def test_unreadable_artifact(self, tmp_path):
        with pytest.raises(ValidationError):
            load_contract_artifact(tmp_path / "missing.json")

    def test_vault_abi_falls_back_to_builtin(self, tmp_path):
        assert load_vault_abi(tmp_path / "missing.json") is VAULT_ABI
        assert load_vault_abi(None) is VAULT_ABI

    def test_builtin_abi_declares_uint16_remote_chain_id(self):
        entry = next(item for item in VAULT_ABI if item.get("name") == "updateRemoteChainId")
        assert entry["inputs"][0]["type"] == "uint16"


class TestUnits:
    """Integer minor units rendered as decimals."""

    @pytest.mark.parametrize(
        "amount, decimals, expected",
        [
            (0, 6, "0"),
            (1_000_000, 6, "1"),
            (1_500_000, 6, "1.5"),
            (1, 6, "0.000001"),
            (900, 0, "900"),
        ],
    )
    def test_format_units(self, amount, decimals, expected):
        assert format_units(amount, decimals) == expected

    def test_format_ether(self):
        assert format_ether(10**15) == "0.001"
        assert format_ether(5 * 10**15) == "0.005"


class TestHex:
    """Hex normalisation helpers."""

    def test_normalise_hex(self):
        assert normalise_hex("ABCD") == "0xabcd"
        assert normalise_hex(b"\x01\x02") == "0x0102"

    def test_price_update_to_bytes(self):
        assert price_update_to_bytes(["0x0102", b"\x03"]) == [b"\x01\x02", b"\x03"]
        assert price_update_to_bytes(None) == []

    def test_price_update_rejects_non_hex(self):
        with pytest.raises(ValidationError):
            price_update_to_bytes(["0xzz"])

    def test_price_feed_to_bytes32(self):
        assert price_feed_to_bytes32("0x" + "ab" * 32) == bytes.fromhex("ab" * 32)
        with pytest.raises(ValidationError):
            price_feed_to_bytes32("0xab")

    def test_serialise_receipt(self):
        receipt = {"transactionHash": HexBytes(b"\x01"), "logs": [{"data": b"\x02"}]}

        assert serialise_receipt(receipt) == {
            "transactionHash": "0x01",
            "logs": [{"data": "0x02"}],
        }