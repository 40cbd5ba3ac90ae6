# src/cache/json_store.py — v2
"""JSON file-backed TTL cache.

All entries live in memory; the whole map is mirrored to a single JSON file
(``{"type:identifier": {data, timestamp, type, identifier}}``) that is loaded
on open() and rewritten wholesale on flush. When a flush happens is decided by
the configured FlushPolicy, so writes made since the last flush are lost if
the process terminates abnormally.

Several processes sharing one cache file are not coordinated: the last flush
wins and silently drops the other process's unflushed entries.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import time
from pathlib import Path
from typing import Callable

from pydantic import ValidationError

from ecfrcount.cache.base_cache_store import BaseCacheStore
from ecfrcount.cache.flush_policy import EveryNWrites, FlushPolicy
from ecfrcount.cache.models import CacheEntry, CachePayload, CacheStats, make_key

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 24 * 60 * 60


class JsonCacheStore(BaseCacheStore):
    """In-memory cache map with a periodically flushed JSON mirror."""

    def __init__(
        self,
        cache_file: Path | str,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        flush_policy: FlushPolicy | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._path = Path(cache_file).expanduser()
        self._ttl = ttl_seconds
        self._flush_policy = flush_policy or EveryNWrites(10)
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._opened = False
        self._dirty = False
        self._mutations = 0
        self._writes_since_flush = 0
        self._last_flush = clock()
        self._flush_lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    @property
    def is_open(self) -> bool:
        return self._opened

    def __len__(self) -> int:
        return len(self._entries)

    # --- Lifecycle ---

    async def open(self) -> None:
        """Load the cache file; a missing or unreadable file yields an empty cache."""
        if self._opened:
            return
        self._entries = await asyncio.to_thread(self._load)
        self._opened = True
        self._dirty = False
        self._writes_since_flush = 0
        self._last_flush = self._clock()

    async def close(self) -> None:
        """Flush pending changes and mark the store closed."""
        if not self._opened:
            return
        if self._dirty:
            await self.flush()
        self._opened = False

    # --- Operations ---

    async def get(self, type_: str, identifier: str | int) -> CachePayload | None:
        """Retrieve payload; expired entries are evicted and reported as absent."""
        self._ensure_open()
        key = make_key(type_, identifier)
        entry = self._entries.get(key)
        if entry is None:
            return None

        age = entry.age(self._clock())
        if age < self._ttl:
            logger.debug("Cache hit for %s (age: %dmin)", key, round(age / 60))
            return entry.data

        logger.info("Cache expired for %s (age: %dmin)", key, round(age / 60))
        del self._entries[key]
        self._mark_dirty()
        return None

    async def set(self, type_: str, identifier: str | int, data: CachePayload) -> None:
        """Store payload with the current timestamp, replacing any prior entry."""
        self._ensure_open()
        entry = CacheEntry(
            data=data,
            timestamp=self._clock(),
            type=type_,
            identifier=str(identifier),
        )
        self._entries[entry.key] = entry
        self._mark_dirty()
        self._writes_since_flush += 1
        logger.debug("Cached %s", entry.key)

        elapsed = self._clock() - self._last_flush
        if self._flush_policy.should_flush(self._writes_since_flush, elapsed):
            await self.flush()

    async def clear_expired(self) -> int:
        """Evict all entries with age >= TTL; flush if anything was removed."""
        self._ensure_open()
        now = self._clock()
        expired = [
            key for key, entry in self._entries.items()
            if not entry.is_valid(now, self._ttl)
        ]
        for key in expired:
            del self._entries[key]

        if expired:
            logger.info("Cleared %d expired cache entries", len(expired))
            self._mark_dirty()
            await self.flush()
        return len(expired)

    async def get_stats(self) -> CacheStats:
        """Count valid/expired entries per type. Never evicts."""
        self._ensure_open()
        now = self._clock()
        stats = CacheStats(total_entries=len(self._entries))
        for entry in self._entries.values():
            if entry.is_valid(now, self._ttl):
                stats.valid_entries += 1
            else:
                stats.expired_entries += 1
            stats.counts_by_type[entry.type] = stats.counts_by_type.get(entry.type, 0) + 1
        return stats

    async def flush(self) -> bool:
        """Rewrite the cache file from memory.

        Returns False when the write failed; the store stays dirty and the
        next scheduled flush tries again. Changes made while the file is
        being written keep the store dirty.
        """
        async with self._flush_lock:
            mutations = self._mutations
            writes = self._writes_since_flush
            snapshot = {
                key: entry.model_dump(mode="json") for key, entry in self._entries.items()
            }
            try:
                await asyncio.to_thread(self._write_snapshot, snapshot)
            except OSError as e:
                logger.warning(
                    "Failed to save cache to %s, will retry on next flush: %s",
                    self._path, e,
                )
                return False

            if self._mutations == mutations:
                self._dirty = False
            self._writes_since_flush -= writes
            self._last_flush = self._clock()
        logger.debug("Saved %d cache entries to %s", len(snapshot), self._path)
        return True

    # --- Internals ---

    def _mark_dirty(self) -> None:
        self._dirty = True
        self._mutations += 1

    def _ensure_open(self) -> None:
        if not self._opened:
            raise RuntimeError(f"Cache store {self._path} is not open; call open() first")

    def _load(self) -> dict[str, CacheEntry]:
        if not self._path.exists():
            return {}
        try:
            # ValueError covers both JSONDecodeError and UnicodeDecodeError
            raw = json.loads(self._path.read_bytes())
        except (OSError, ValueError) as e:
            logger.warning("Error loading cache file %s, starting empty: %s", self._path, e)
            return {}
        if not isinstance(raw, dict):
            logger.warning("Cache file %s is not a JSON object, starting empty", self._path)
            return {}

        entries: dict[str, CacheEntry] = {}
        for key, value in raw.items():
            try:
                entries[key] = CacheEntry.model_validate(value)
            except ValidationError as e:
                logger.warning("Skipping malformed cache entry %s: %s", key, e)
        logger.info("Loaded %d cached entries from %s", len(entries), self._path)
        return entries

    def _write_snapshot(self, snapshot: dict[str, dict]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        tmp_path.write_text(json.dumps(snapshot, indent=2), encoding="utf-8")
        os.replace(tmp_path, self._path)
