"""Reconcile configured token whitelists with the vault contract."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .config import ConfigStore
from .constants import ZERO_PRICE_FEED
from .types import WhitelistReport
from .utils import normalise_hex

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from .contract import VaultContract


class WhitelistReconciler:
    """Push the configured ``token -> price feed`` pairs on chain.

    Only tokens whose recorded feed is unset or differs from the configured
    one are submitted, so running the reconciliation twice in a row sends no
    transactions the second time.
    """

    def __init__(
        self,
        vault: VaultContract,
        store: ConfigStore,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self._vault = vault
        self._store = store
        self._logger = logger if logger is not None else logging.getLogger(__name__)

    def update_whitelist(self) -> WhitelistReport:
        whitelist = self._store.get_token_whitelist(self._vault.network_name)
        report = WhitelistReport()

        for token, price_feed_id in whitelist.items():
            try:
                expected = normalise_hex(price_feed_id)
                current = self._vault.token_price_feed(token)
                if current != ZERO_PRICE_FEED and current == expected:
                    self._logger.debug("Token %s already whitelisted with %s", token, expected)
                    report.skipped[token] = expected
                    continue

                self._vault.whitelist_token(token, expected)
            except Exception as exc:
                self._logger.error("Failed to whitelist token %s: %s", token, exc)
                report.failed[token] = str(exc)
                continue

            self._logger.info("Whitelisted token %s with price feed %s", token, expected)
            report.submitted[token] = expected

        return report

    def get_whitelisted_tokens(self) -> dict[str, str]:
        """Configured tokens the vault currently records a price feed for."""
        whitelist = self._store.get_token_whitelist(self._vault.network_name)
        recorded: dict[str, str] = {}
        for token in whitelist:
            try:
                feed = self._vault.token_price_feed(token)
            except Exception as exc:
                self._logger.warning("Could not read price feed for token %s: %s", token, exc)
                continue
            if feed != ZERO_PRICE_FEED:
                recorded[token] = feed
        return recorded
