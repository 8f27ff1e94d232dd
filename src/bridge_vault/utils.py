"""Utility functions for the bridge vault CLI."""

import contextlib
import json
import os
import tempfile
from collections.abc import Iterable, Mapping, Sequence
from decimal import Decimal
from pathlib import Path
from typing import Any

from eth_typing import HexStr
from hexbytes import HexBytes
from web3 import Web3

from .exceptions import ValidationError


def serialise_receipt(receipt: Any) -> Any:
    """Serialise web3 receipt objects into JSON-friendly structures."""
    if receipt is None:
        return None
    if isinstance(receipt, Mapping):
        return {key: serialise_receipt(value) for key, value in receipt.items()}
    if isinstance(receipt, Sequence) and not isinstance(
        receipt, str | bytes | bytearray | HexBytes
    ):
        return [serialise_receipt(item) for item in receipt]
    if isinstance(receipt, bytes | bytearray | HexBytes):
        return HexBytes(receipt).to_0x_hex()
    return receipt


def format_units(amount: int, decimals: int) -> str:
    """Render an integer amount of minor units as a decimal string."""
    value = Decimal(amount).scaleb(-int(decimals))
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"


def format_ether(amount: int) -> str:
    return format_units(amount, 18)


def normalise_hex(value: str | bytes | bytearray) -> str:
    """Return a lowercase 0x-prefixed hex string."""
    if isinstance(value, bytes | bytearray):
        return HexBytes(value).to_0x_hex()

    text = value.strip().lower()
    if not text.startswith("0x"):
        text = f"0x{text}"
    return text


def hex_to_bytes(value: str | bytes) -> bytes:
    if isinstance(value, bytes):
        return value
    try:
        return Web3.to_bytes(hexstr=HexStr(normalise_hex(value)))
    except ValueError as exc:
        raise ValidationError(
            "Value is not valid hex data", field="hex", value=value, details={"error": str(exc)}
        ) from exc


def price_update_to_bytes(blobs: Iterable[str | bytes] | None) -> list[bytes]:
    """Convert price update blobs into the bytes[] argument web3 expects."""
    if not blobs:
        return []
    return [hex_to_bytes(blob) for blob in blobs]


def price_feed_to_bytes32(price_feed_id: str) -> bytes:
    raw = hex_to_bytes(price_feed_id)
    if len(raw) != 32:
        raise ValidationError(
            "Price feed id must be 32 bytes", field="price_feed_id", value=price_feed_id
        )
    return raw


def write_json_atomic(path: Path, payload: Any, *, indent: int | None = None) -> None:
    """Replace ``path`` with the JSON encoding of ``payload`` in one rename."""
    path.parent.mkdir(parents=True, exist_ok=True)
    encoded = json.dumps(payload, indent=indent)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(encoded)
        os.replace(tmp_name, path)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp_name)
        raise
