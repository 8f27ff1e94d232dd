"""Namespaced, TTL-bounded key-value cache persisted as one JSON file per namespace."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

from .constants import CACHE_DIR_NAME, DEFAULT_CACHE_TTL, default_state_dir
from .utils import write_json_atomic


T = TypeVar("T")

_MISSING = object()


class LocalCache:
    """Best-effort disk cache.

    Entries are stored as ``{key: {"value": ..., "expiresAt": <epoch ms>}}``
    and are only visible while the current time is strictly before
    ``expiresAt``. Read and write failures never reach the caller: an
    unreadable file yields an empty cache and a failed write is logged.
    """

    def __init__(
        self,
        namespace: str,
        ttl: float = DEFAULT_CACHE_TTL,
        *,
        cache_dir: str | Path | None = None,
        clock: Callable[[], float] = time.time,
        logger: logging.Logger | None = None,
    ) -> None:
        if not namespace:
            raise ValueError("Cache namespace must be a non-empty string")

        self._namespace = namespace
        self._ttl = ttl
        self._cache_dir = Path(cache_dir) if cache_dir else default_state_dir() / CACHE_DIR_NAME
        self._path = self._cache_dir / f"{namespace}.json"
        self._clock = clock
        self._logger = logger if logger is not None else logging.getLogger(__name__)
        self._entries: dict[str, dict[str, Any]] = {}
        self._load()

    @property
    def namespace(self) -> str:
        return self._namespace

    @property
    def path(self) -> Path:
        return self._path

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def get(self, key: str, default: Any = None) -> Any:
        value = self._lookup(key)
        if value is _MISSING:
            return default
        return value

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        lifetime = self._ttl if ttl is None else ttl
        self._entries[key] = {
            "value": value,
            "expiresAt": self._now_ms() + int(lifetime * 1000),
        }
        self._save()

    def remove(self, key: str) -> None:
        if key in self._entries:
            del self._entries[key]
            self._save()

    def clear(self) -> None:
        self._entries = {}
        self._save()

    def get_or_compute(self, key: str, compute: Callable[[], T], ttl: float | None = None) -> T:
        """Return the cached value for ``key`` or compute, store and return it."""
        cached = self._lookup(key)
        if cached is not _MISSING:
            return cached

        value = compute()
        self.set(key, value, ttl)
        return value

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def _lookup(self, key: str) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            self._logger.debug("Cache miss for key: %s", key)
            return _MISSING

        if self._now_ms() < entry["expiresAt"]:
            self._logger.debug("Cache hit for key: %s", key)
            return entry["value"]

        # Expired entries are dropped from memory; the next write persists it.
        del self._entries[key]
        self._logger.debug("Cache entry expired for key: %s", key)
        return _MISSING

    def _load(self) -> None:
        try:
            self._cache_dir.mkdir(parents=True, exist_ok=True)
            if not self._path.exists():
                return
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            self._logger.debug("Failed to initialize cache %s: %s", self._namespace, exc)
            self._entries = {}
            return

        if not isinstance(raw, dict):
            self._logger.debug("Ignoring malformed cache file %s", self._path)
            return

        now = self._now_ms()
        entries: dict[str, dict[str, Any]] = {}
        for key, entry in raw.items():
            if not isinstance(entry, dict) or "value" not in entry:
                continue
            expires_at = entry.get("expiresAt")
            if not isinstance(expires_at, int | float) or expires_at <= now:
                continue
            entries[key] = {"value": entry["value"], "expiresAt": expires_at}

        self._entries = entries
        if len(entries) != len(raw):
            self._save()

    def _save(self) -> None:
        try:
            write_json_atomic(self._path, self._entries)
        except (OSError, TypeError, ValueError) as exc:
            self._logger.debug("Failed to save cache %s: %s", self._namespace, exc)
