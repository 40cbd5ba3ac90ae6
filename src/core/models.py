# src/core/models.py — v1
"""Shared Pydantic domain models used across modules.

No module redefines these types — all imports come from core.models.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# === UPSTREAM METADATA ===


class TitleMetadata(BaseModel):
    """Snapshot of one title record from the versioner title list."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    number: int
    name: str = ""
    latest_issue_date: str | None = None
    latest_amended_on: str | None = None
    up_to_date_as_of: str | None = None
    reserved: bool = False


# === ORGANIZATIONS ===


class DocumentReference(BaseModel):
    """A (title, chapter?) pair an organization is responsible for."""

    title: int
    chapter: str | None = None
    subtitle: str | None = None


class Organization(BaseModel):
    """Canonical agency record resolved by the organization directory."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str
    short_name: str | None = None
    display_name: str | None = None
    slug: str | None = None
    document_references: list[DocumentReference] = Field(
        default_factory=list, alias="cfr_references"
    )
    children: list[Organization] = Field(default_factory=list)


# === PROCESSING RESULTS ===


class ExtractionResult(BaseModel):
    """Outcome of processing one title or one chapter.

    A failed run is still a result: ``error`` is set and ``word_count`` is 0.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["extraction"] = "extraction"
    title: int
    chapter: str | None = None
    word_count: int = Field(default=0, ge=0)
    text_length: int = 0
    checksum: str = ""
    issue_date: str = ""
    sample_text: str = ""
    processed_at: datetime = Field(default_factory=utc_now)
    error: str | None = None
    cached: bool = False

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @classmethod
    def failure(
        cls, title: int, error: Exception | str, chapter: str | None = None
    ) -> ExtractionResult:
        """Build an errored result for batch runs."""
        return cls(title=title, chapter=chapter, error=str(error), word_count=0)


class AggregateResult(BaseModel):
    """Per-organization roll-up of title results."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["aggregate"] = "aggregate"
    organization: Organization
    title_results: list[ExtractionResult] = Field(default_factory=list)
    total_words: int = 0
    total_titles: int = 0
    aggregate_checksum: str = ""
    processed_at: datetime = Field(default_factory=utc_now)

    @property
    def processed_titles(self) -> int:
        return sum(1 for r in self.title_results if r.succeeded)


class ChangeReport(BaseModel):
    """Result of comparing a fresh fingerprint against the cached one."""

    changed: bool
    old_checksum: str | None = None
    new_checksum: str | None = None
    old_word_count: int | None = None
    new_word_count: int | None = None
    reason: str


# === PRESENTATION-READY SUMMARIES ===


class TitleBreakdown(BaseModel):
    title: int
    word_count: int
    checksum: str
    error: str | None = None


class AgencySummary(BaseModel):
    """Compact agency record suitable for a JSON API response."""

    id: str | None
    name: str
    display_name: str | None = None
    titles: list[int]
    total_words: int
    checksum: str
    last_processed: datetime
    title_breakdown: list[TitleBreakdown]

    @classmethod
    def from_aggregate(cls, result: AggregateResult) -> AgencySummary:
        org = result.organization
        return cls(
            id=org.slug,
            name=org.name,
            display_name=org.display_name,
            titles=[ref.title for ref in org.document_references],
            total_words=result.total_words,
            checksum=result.aggregate_checksum,
            last_processed=result.processed_at,
            title_breakdown=[
                TitleBreakdown(
                    title=r.title,
                    word_count=r.word_count,
                    checksum=r.checksum,
                    error=r.error,
                )
                for r in result.title_results
            ],
        )


class TimelineTitle(BaseModel):
    number: int
    name: str
    latest_issue_date: str | None = None
    latest_amended_on: str | None = None
    up_to_date_as_of: str | None = None
    days_since: int


class DateGroup(BaseModel):
    """Titles sharing the same amendment or issue date."""

    date: str
    count: int
    titles: list[TimelineTitle]
