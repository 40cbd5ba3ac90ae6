# src/cache/base_cache_store.py — v2
"""Abstract cache store interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ecfrcount.cache.models import CachePayload, CacheStats


class BaseCacheStore(ABC):
    """TTL cache of processing results keyed by (type, identifier)."""

    @abstractmethod
    async def open(self) -> None:
        """Load persisted state. Must be called before use."""

    @abstractmethod
    async def close(self) -> None:
        """Persist pending writes and release resources."""

    @abstractmethod
    async def get(self, type_: str, identifier: str | int) -> CachePayload | None:
        """Return the payload if present and not expired; evict if expired."""

    @abstractmethod
    async def set(self, type_: str, identifier: str | int, data: CachePayload) -> None:
        """Store payload with the current timestamp, replacing any prior entry."""

    @abstractmethod
    async def clear_expired(self) -> int:
        """Evict every expired entry and return how many were removed."""

    @abstractmethod
    async def get_stats(self) -> CacheStats:
        """Summarize entries without evicting anything."""

    async def __aenter__(self) -> BaseCacheStore:
        await self.open()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
