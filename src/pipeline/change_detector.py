# src/pipeline/change_detector.py — v1
"""Change detection: recompute a fingerprint and compare it with the cached one.

Recomputation goes through the normal processing path with the cache read
skipped, so a fresh result replaces the cached entry via the regular set().
"""

from __future__ import annotations

import logging

from ecfrcount.cache.base_cache_store import BaseCacheStore
from ecfrcount.core.errors import NotFoundError, ReservedTitleError
from ecfrcount.core.models import AggregateResult, ChangeReport, ExtractionResult
from ecfrcount.directory.base_directory import OrganizationDirectory
from ecfrcount.pipeline.aggregator import AGENCY_TYPE, AgencyAggregator
from ecfrcount.pipeline.title_processor import TITLE_TYPE, TitleProcessor

logger = logging.getLogger(__name__)

NO_PREVIOUS_CACHE = "no previous cache found"
NOT_FOUND = "not found"
CONTENT_CHANGED = "content has changed"
NO_CHANGES = "no changes detected"


def compare(
    old_checksum: str,
    new_checksum: str,
    old_word_count: int,
    new_word_count: int,
) -> ChangeReport:
    changed = old_checksum != new_checksum
    return ChangeReport(
        changed=changed,
        old_checksum=old_checksum,
        new_checksum=new_checksum,
        old_word_count=old_word_count,
        new_word_count=new_word_count,
        reason=CONTENT_CHANGED if changed else NO_CHANGES,
    )


class ChangeDetector:
    """Reports whether agency or title content changed since it was cached."""

    def __init__(
        self,
        cache: BaseCacheStore,
        aggregator: AgencyAggregator,
        directory: OrganizationDirectory,
        processor: TitleProcessor,
    ) -> None:
        self._cache = cache
        self._aggregator = aggregator
        self._directory = directory
        self._processor = processor

    async def check_changes(self, identifier: str) -> ChangeReport:
        """Compare an organization's cached aggregate checksum with a fresh run.

        The cached aggregate is looked up under ``identifier`` and, failing
        that, under the canonical name the directory resolves it to.
        """
        cached = await self._cached_aggregate(identifier)
        organization = None
        if cached is None:
            organization = await self._directory.find_by_name(identifier)
            if organization is not None and organization.name != identifier:
                cached = await self._cached_aggregate(organization.name)
            if cached is None:
                return ChangeReport(changed=True, reason=NO_PREVIOUS_CACHE)

        if organization is None:
            organization = await self._directory.find_by_name(identifier)
        if organization is None:
            return ChangeReport(changed=True, reason=NOT_FOUND)

        fresh = await self._aggregator.process_organization(organization, force_refresh=True)
        report = compare(
            cached.aggregate_checksum,
            fresh.aggregate_checksum,
            cached.total_words,
            fresh.total_words,
        )
        logger.info("Change check for %s: %s", organization.name, report.reason)
        return report

    async def check_title_changes(self, title_number: int) -> ChangeReport:
        """Same comparison for a single cached title."""
        cached = await self._cache.get(TITLE_TYPE, title_number)
        if not isinstance(cached, ExtractionResult):
            return ChangeReport(changed=True, reason=NO_PREVIOUS_CACHE)

        self._processor.begin_run()
        try:
            fresh = await self._processor.process_title(title_number, force_refresh=True)
        except (NotFoundError, ReservedTitleError) as e:
            logger.warning("Change check for Title %d: %s", title_number, e)
            return ChangeReport(changed=True, reason=NOT_FOUND)

        report = compare(cached.checksum, fresh.checksum, cached.word_count, fresh.word_count)
        logger.info("Change check for Title %d: %s", title_number, report.reason)
        return report

    async def _cached_aggregate(self, identifier: str) -> AggregateResult | None:
        cached = await self._cache.get(AGENCY_TYPE, identifier)
        return cached if isinstance(cached, AggregateResult) else None
