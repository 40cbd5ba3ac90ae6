# src/cache/models.py — v2
"""Cache domain models: CacheEntry, CacheStats."""

from __future__ import annotations

from typing import Annotated, Union

from pydantic import BaseModel, Field

from ecfrcount.core.models import AggregateResult, ExtractionResult

CachePayload = Annotated[
    Union[ExtractionResult, AggregateResult], Field(discriminator="kind")
]


class CacheEntry(BaseModel):
    """Single cache entry: payload plus the time it was written."""

    data: CachePayload
    timestamp: float
    type: str
    identifier: str

    @property
    def key(self) -> str:
        return make_key(self.type, self.identifier)

    def age(self, now: float) -> float:
        return now - self.timestamp

    def is_valid(self, now: float, ttl_seconds: float) -> bool:
        return self.age(now) < ttl_seconds


class CacheStats(BaseModel):
    """Aggregate view over the current cache contents."""

    total_entries: int = 0
    valid_entries: int = 0
    expired_entries: int = 0
    counts_by_type: dict[str, int] = Field(default_factory=dict)


def make_key(type_: str, identifier: str | int) -> str:
    """Composite cache key ``type:identifier``."""
    return f"{type_}:{identifier}"
