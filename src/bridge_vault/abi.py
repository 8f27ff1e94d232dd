"""Contract ABIs and compiled-artifact loading."""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .exceptions import ValidationError


def _fn(
    name: str,
    inputs: Sequence[tuple[str, str]] = (),
    outputs: Sequence[tuple[str, str]] = (),
    mutability: str = "nonpayable",
) -> dict[str, Any]:
    return {
        "type": "function",
        "name": name,
        "inputs": [{"name": n, "type": t, "internalType": t} for n, t in inputs],
        "outputs": [{"name": n, "type": t, "internalType": t} for n, t in outputs],
        "stateMutability": mutability,
    }


VAULT_ABI: tuple[dict[str, Any], ...] = (
    {
        "type": "constructor",
        "inputs": [
            {"name": "_feeRecipient", "type": "address", "internalType": "address"},
            {"name": "_bridgeContract", "type": "address", "internalType": "address"},
            {"name": "_pythOracle", "type": "address", "internalType": "address"},
        ],
        "stateMutability": "nonpayable",
    },
    _fn("owner", outputs=[("", "address")], mutability="view"),
    _fn("feeRecipient", outputs=[("", "address")], mutability="view"),
    _fn("bridgeContract", outputs=[("", "address")], mutability="view"),
    _fn("pythOracle", outputs=[("", "address")], mutability="view"),
    _fn("paused", outputs=[("", "bool")], mutability="view"),
    _fn("getVault", [("receiver", "address")], [("", "address")], "view"),
    _fn("tokenPriceFeeds", [("token", "address")], [("", "bytes32")], "view"),
    _fn("viewFeeAmount", [("token", "address")], [("", "uint256")], "view"),
    _fn(
        "calculateFeeAmount",
        [("token", "address"), ("priceUpdate", "bytes[]")],
        [("", "uint256")],
        "view",
    ),
    _fn(
        "estimateBridgeFee",
        [("useZro", "bool"), ("adapterParams", "bytes")],
        [("nativeFee", "uint256"), ("zroFee", "uint256")],
        "view",
    ),
    _fn(
        "bridgeVaultTokens",
        [("receiver", "address"), ("token", "address"), ("priceUpdate", "bytes[]")],
        mutability="payable",
    ),
    _fn("whitelistToken", [("token", "address"), ("priceId", "bytes32")]),
    _fn("removeToken", [("token", "address")]),
    _fn("pause"),
    _fn("unPause"),
    _fn("updateBridge", [("newBridge", "address")]),
    _fn("updatePythOracle", [("newOracle", "address")]),
    _fn("updateFeeRecipient", [("newRecipient", "address")]),
    _fn("updateRemoteChainId", [("newChainId", "uint16")]),
)

ERC20_ABI: tuple[dict[str, Any], ...] = (
    _fn("balanceOf", [("owner", "address")], [("", "uint256")], "view"),
    _fn("decimals", outputs=[("", "uint8")], mutability="view"),
    _fn("symbol", outputs=[("", "string")], mutability="view"),
)

PYTH_ABI: tuple[dict[str, Any], ...] = (
    _fn("getUpdateFee", [("updateData", "bytes[]")], [("feeAmount", "uint256")], "view"),
)


@dataclass(frozen=True)
class ContractArtifact:
    """ABI and creation bytecode from a compiled contract artifact."""

    abi: list[dict[str, Any]]
    bytecode: str
    path: Path


def load_contract_artifact(path: str | Path) -> ContractArtifact:
    """Read a Hardhat or Foundry artifact JSON file."""
    artifact_path = Path(path)
    try:
        payload = json.loads(artifact_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ValidationError(
            f"Unable to read contract artifact {artifact_path}",
            field="artifact",
            value=str(artifact_path),
            details={"error": str(exc)},
        ) from exc

    if not isinstance(payload, Mapping):
        raise ValidationError(
            "Contract artifact must be a JSON object", field="artifact", value=str(artifact_path)
        )

    abi = payload.get("abi")
    bytecode = payload.get("bytecode")
    # Foundry nests the creation code under bytecode.object
    if isinstance(bytecode, Mapping):
        bytecode = bytecode.get("object")

    if not isinstance(abi, list) or not isinstance(bytecode, str) or bytecode in ("", "0x"):
        raise ValidationError(
            "Contract artifact is missing abi or bytecode",
            field="artifact",
            value=str(artifact_path),
        )

    if not bytecode.startswith("0x"):
        bytecode = f"0x{bytecode}"
    return ContractArtifact(abi=abi, bytecode=bytecode, path=artifact_path)


def load_vault_abi(artifact_path: str | Path | None = None) -> Sequence[Mapping[str, Any]]:
    """Prefer the ABI of a compiled artifact when one is present on disk."""
    if artifact_path is not None and Path(artifact_path).is_file():
        return load_contract_artifact(artifact_path).abi
    return VAULT_ABI
