# src/cache/flush_policy.py — v1
"""When the in-memory cache is written back to disk.

Every policy leaves a data-loss window: writes made since the last flush are
lost if the process dies before the next one. close() always flushes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecfrcount.config.settings import Settings


class FlushPolicy(ABC):
    """Decides after each write whether a durable flush is due."""

    @abstractmethod
    def should_flush(self, writes_since_flush: int, seconds_since_flush: float) -> bool:
        """Return True when the store should flush now."""


class EveryNWrites(FlushPolicy):
    """Flush on every Nth write; up to N-1 writes may be lost."""

    def __init__(self, n: int = 10) -> None:
        if n < 1:
            raise ValueError("n must be >= 1")
        self.n = n

    def should_flush(self, writes_since_flush: int, seconds_since_flush: float) -> bool:
        return writes_since_flush >= self.n

    def __repr__(self) -> str:
        return f"EveryNWrites(n={self.n})"


class IntervalFlush(FlushPolicy):
    """Flush on the first write once ``seconds`` have elapsed since the last flush."""

    def __init__(self, seconds: float) -> None:
        if seconds <= 0:
            raise ValueError("seconds must be > 0")
        self.seconds = seconds

    def should_flush(self, writes_since_flush: int, seconds_since_flush: float) -> bool:
        return writes_since_flush > 0 and seconds_since_flush >= self.seconds

    def __repr__(self) -> str:
        return f"IntervalFlush(seconds={self.seconds})"


class OnCloseFlush(FlushPolicy):
    """Never flush on write; only close() persists."""

    def should_flush(self, writes_since_flush: int, seconds_since_flush: float) -> bool:
        return False

    def __repr__(self) -> str:
        return "OnCloseFlush()"


def create_flush_policy(settings: Settings | None = None) -> FlushPolicy:
    """Instantiate the configured flush policy (default: every 10 writes)."""
    if settings is None:
        return EveryNWrites(10)

    policy = settings.cache_flush_policy
    if policy == "every_n_writes":
        return EveryNWrites(settings.cache_flush_every)
    if policy == "interval":
        return IntervalFlush(settings.cache_flush_interval_s)
    if policy == "on_close":
        return OnCloseFlush()
    raise ValueError(f"Unsupported cache flush policy: {policy!r}")
