# src/api/facade.py — v2
"""Public API facade — single entry point for word counts and change checks.

Usage:
    from ecfrcount.api.facade import WordCountService

    async with WordCountService() as service:
        result = await service.process_organization("Department of Agriculture")
        report = await service.check_changes("Department of Agriculture")

Collaborators (cache, fetcher, directory, fingerprinter) are built from
Settings unless injected. The cache is opened and closed with the service;
an injected HTTP fetcher is left open for its owner to close.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import date, datetime, timezone
from typing import Awaitable, Callable

from ecfrcount.cache.base_cache_store import BaseCacheStore
from ecfrcount.cache.fingerprint import ContentFingerprinter, create_fingerprinter
from ecfrcount.cache.flush_policy import create_flush_policy
from ecfrcount.cache.json_store import JsonCacheStore
from ecfrcount.cache.models import CacheStats
from ecfrcount.config.settings import Settings
from ecfrcount.core.errors import NotFoundError
from ecfrcount.core.models import (
    AgencySummary,
    AggregateResult,
    ChangeReport,
    DateGroup,
    ExtractionResult,
    Organization,
    TitleMetadata,
)
from ecfrcount.directory.base_directory import OrganizationDirectory
from ecfrcount.directory.json_directory import JsonOrganizationDirectory
from ecfrcount.fetch.ecfr_client import EcfrClient
from ecfrcount.logging.context import clear_context, set_run_context
from ecfrcount.pipeline.aggregator import AgencyAggregator
from ecfrcount.pipeline.change_detector import ChangeDetector
from ecfrcount.pipeline.timeline import (
    group_titles_by_date,
    sort_titles_by_date,
    titles_in_range,
)
from ecfrcount.pipeline.title_processor import TitleProcessor

logger = logging.getLogger(__name__)


def _generate_run_id() -> str:
    """Generate a run ID: yyyymmdd_hhmmss_{uuid4_short}."""
    ts = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    return f"{ts}_{uuid.uuid4().hex[:8]}"


class WordCountService:
    """Wires fetcher, extractor, cache, aggregator and change detector together."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        cache: BaseCacheStore | None = None,
        fetcher: EcfrClient | None = None,
        directory: OrganizationDirectory | None = None,
        fingerprinter: ContentFingerprinter | None = None,
        sleep: Callable[[float], Awaitable[object]] | None = None,
    ) -> None:
        self._settings = settings or Settings()
        s = self._settings

        self._owns_fetcher = fetcher is None
        self._cache = cache or JsonCacheStore(
            s.cache_file,
            ttl_seconds=s.cache_ttl_seconds,
            flush_policy=create_flush_policy(s),
        )
        self._fetcher = fetcher or EcfrClient(
            base_url=s.ecfr_base_url, timeout=s.request_timeout_s
        )
        self._directory = directory or JsonOrganizationDirectory(s.directory_file)
        self._fingerprinter = fingerprinter or create_fingerprinter(s)

        self._processor = TitleProcessor(
            self._fetcher,
            self._cache,
            fingerprinter=self._fingerprinter,
            sample_chars=s.sample_text_chars,
        )
        self._aggregator = AgencyAggregator(
            self._processor,
            self._cache,
            fingerprinter=self._fingerprinter,
            request_delay_s=s.request_delay_s,
            scope=s.agency_scope,
            sleep=sleep or asyncio.sleep,
        )
        self._detector = ChangeDetector(
            self._cache, self._aggregator, self._directory, self._processor
        )

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def cache(self) -> BaseCacheStore:
        return self._cache

    # --- Lifecycle ---

    async def open(self) -> None:
        await self._cache.open()

    async def close(self) -> None:
        """Flush the cache and release the HTTP client."""
        try:
            await self._cache.close()
        finally:
            if self._owns_fetcher:
                await self._fetcher.aclose()
            clear_context()

    async def __aenter__(self) -> WordCountService:
        await self.open()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # --- Processing ---

    async def process_title(
        self, title_number: int, force_refresh: bool = False
    ) -> ExtractionResult:
        """Word count for one whole title. Errors propagate."""
        self._start_run()
        self._processor.begin_run()
        return await self._processor.process_title(title_number, force_refresh=force_refresh)

    async def process_chapter(
        self, title_number: int, chapter_id: str, force_refresh: bool = False
    ) -> ExtractionResult:
        """Word count for one chapter. Errors propagate."""
        self._start_run()
        self._processor.begin_run()
        return await self._processor.process_chapter(
            title_number, chapter_id, force_refresh=force_refresh
        )

    async def process_organization(
        self, organization: Organization | str, force_refresh: bool = False
    ) -> AggregateResult:
        """Aggregate word counts for an organization or a name to resolve.

        Raises:
            NotFoundError: Name does not resolve, or the organization has no
                document references.
        """
        org = await self.resolve_organization(organization)
        self._start_run(agency=org.name)
        return await self._aggregator.process_organization(org, force_refresh=force_refresh)

    async def resolve_organization(self, organization: Organization | str) -> Organization:
        if isinstance(organization, Organization):
            org = organization
        else:
            found = await self._directory.find_by_name(organization)
            if found is None:
                raise NotFoundError(f"Agency {organization!r} not found")
            org = found
        if not org.document_references:
            raise NotFoundError(f"No document references found for agency {org.name!r}")
        return org

    async def summarize(
        self, organization: Organization | str, force_refresh: bool = False
    ) -> AgencySummary:
        """Dashboard view of an organization's aggregate."""
        result = await self.process_organization(organization, force_refresh=force_refresh)
        return AgencySummary.from_aggregate(result)

    # --- Change detection ---

    async def check_changes(self, identifier: str) -> ChangeReport:
        self._start_run(agency=identifier)
        return await self._detector.check_changes(identifier)

    async def check_title_changes(self, title_number: int) -> ChangeReport:
        self._start_run()
        return await self._detector.check_title_changes(title_number)

    # --- Cache maintenance ---

    async def get_cache_stats(self) -> CacheStats:
        return await self._cache.get_stats()

    async def clear_expired_cache(self) -> int:
        removed = await self._cache.clear_expired()
        logger.info("Removed %d expired cache entries", removed)
        return removed

    # --- Timelines ---

    async def recent_amendments(self, today: date | None = None) -> list[DateGroup]:
        """Titles grouped by last amendment date, most recent first."""
        titles = await self._fetcher.list_titles()
        return group_titles_by_date(titles, "latest_amended_on", today=today)

    async def titles_by_issue_date(self, today: date | None = None) -> list[DateGroup]:
        """Titles grouped by latest issue date, most recent first."""
        titles = await self._fetcher.list_titles()
        return group_titles_by_date(titles, "latest_issue_date", today=today)

    async def titles_by_date(self) -> list[TitleMetadata]:
        """Every title, most recently brought up to date first."""
        titles = await self._fetcher.list_titles()
        return sort_titles_by_date(titles, "up_to_date_as_of")

    async def titles_in_range(self, start: date, end: date) -> list[TitleMetadata]:
        """Titles brought up to date within ``start..end`` (inclusive), newest first.

        Raises:
            ValueError: ``start`` is after ``end``.
        """
        titles = await self._fetcher.list_titles()
        return titles_in_range(titles, start, end, "up_to_date_as_of")

    def _start_run(self, agency: str | None = None) -> str:
        run_id = _generate_run_id()
        set_run_context(run_id, agency=agency)
        logger.debug("Starting run %s", run_id)
        return run_id
