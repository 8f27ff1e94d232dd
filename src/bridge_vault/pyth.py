"""Read-only client for the Pyth Hermes price service."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import requests
from hexbytes import HexBytes

from .constants import DEFAULT_HERMES_URL, DEFAULT_REQUEST_TIMEOUT
from .exceptions import RemoteQueryError
from .validation import validate_price_feed_id


class PriceServiceClient:
    """Fetch price feeds and encoded price update blobs for the vault."""

    def __init__(
        self,
        session: requests.Session | None = None,
        *,
        base_url: str = DEFAULT_HERMES_URL,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        logger: logging.Logger | None = None,
    ) -> None:
        self._session = session or requests.Session()
        self._base_url = base_url.rstrip("/")
        self._request_timeout = request_timeout
        self._logger = logger if logger is not None else logging.getLogger(__name__)

    def fetch_latest_price_feeds(self, price_feed_id: str) -> list[Any]:
        validate_price_feed_id(price_feed_id)
        feeds = self._get("/api/latest_price_feeds", {"ids[]": price_feed_id})
        if not feeds:
            raise RemoteQueryError(
                f"No price data found for price feed ID: {price_feed_id}",
                endpoint=self._url("/api/latest_price_feeds"),
            )
        return feeds

    def fetch_price_update_data(self, price_feed_id: str, chain_id: int) -> list[str]:
        """Return the latest update blobs for ``price_feed_id`` as 0x hex strings."""
        self.fetch_latest_price_feeds(price_feed_id)

        path = "/api/latest_vaas"
        updates = self._get(
            path,
            {"ids[]": price_feed_id, "encoding": "hex", "target_chains[]": chain_id},
        )
        if not updates:
            raise RemoteQueryError(
                f"No price update data available for network ID: {chain_id}",
                endpoint=self._url(path),
            )
        blobs = [self._to_hex(item, path) for item in updates]
        self._logger.debug("Fetched %s price update blob(s) for %s", len(blobs), price_feed_id)
        return blobs

    def _url(self, path: str) -> str:
        return f"{self._base_url}{path}"

    def _get(self, path: str, params: Mapping[str, Any]) -> list[Any]:
        url = self._url(path)
        self._logger.debug("Fetching %s params=%s", url, dict(params))
        try:
            response = self._session.get(url, params=params, timeout=self._request_timeout)
            response.raise_for_status()
            payload = response.json()
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            raise RemoteQueryError(
                f"Failed to fetch price update data: {exc}",
                endpoint=url,
                status_code=status,
            ) from exc
        except (requests.RequestException, ValueError) as exc:
            raise RemoteQueryError(
                f"Failed to fetch price update data: {exc}", endpoint=url
            ) from exc

        if payload is None:
            return []
        if not isinstance(payload, list):
            raise RemoteQueryError(
                "Unexpected price service response format",
                endpoint=url,
                details={"response": payload},
            )
        return payload

    def _to_hex(self, item: Any, path: str) -> str:
        if isinstance(item, str):
            return item if item.startswith("0x") else f"0x{item}"
        # Node-style serialised buffers: {"type": "Buffer", "data": [..]}
        if isinstance(item, Mapping) and item.get("type") == "Buffer":
            data = item.get("data")
            if isinstance(data, list):
                return HexBytes(bytes(data)).to_0x_hex()
        raise RemoteQueryError(
            f"Unexpected price update data format: {type(item).__name__}",
            endpoint=self._url(path),
        )
