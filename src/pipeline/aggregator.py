# src/pipeline/aggregator.py — v2
"""Agency aggregator — rolls per-title results into one organization result.

References are processed strictly one after another with a pause between
requests, out of courtesy to the eCFR service. A failing title never aborts
the run: it is kept as an errored result and left out of the totals and the
aggregate checksum.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Literal

from ecfrcount.cache.base_cache_store import BaseCacheStore
from ecfrcount.cache.fingerprint import ContentFingerprinter, RollingHashFingerprinter
from ecfrcount.core.errors import EcfrError
from ecfrcount.core.models import (
    AggregateResult,
    DocumentReference,
    ExtractionResult,
    Organization,
)
from ecfrcount.pipeline.title_processor import TitleProcessor

logger = logging.getLogger(__name__)

AGENCY_TYPE = "agency"


def aggregate_checksum(
    results: list[ExtractionResult], fingerprinter: ContentFingerprinter
) -> str:
    """Fingerprint of the concatenated checksums of successful results, in order."""
    return fingerprinter.fingerprint("".join(r.checksum for r in results if r.succeeded))


class AgencyAggregator:
    """Processes every document reference of an organization."""

    def __init__(
        self,
        processor: TitleProcessor,
        cache: BaseCacheStore,
        fingerprinter: ContentFingerprinter | None = None,
        request_delay_s: float = 1.0,
        scope: Literal["title", "chapter"] = "title",
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        self._processor = processor
        self._cache = cache
        self._fingerprinter = fingerprinter or RollingHashFingerprinter()
        self._delay = request_delay_s
        self._scope = scope
        self._sleep = sleep

    async def process_organization(
        self, organization: Organization, force_refresh: bool = False
    ) -> AggregateResult:
        """Aggregate word counts for one organization.

        A valid cached aggregate short-circuits the whole run unless
        ``force_refresh`` is set, in which case titles are re-fetched too.
        """
        if not force_refresh:
            cached = await self._cache.get(AGENCY_TYPE, organization.name)
            if isinstance(cached, AggregateResult):
                logger.info("Using cached result for agency %s", organization.name)
                return cached

        references = organization.document_references
        logger.info(
            "Processing agency %s: %s",
            organization.name,
            ", ".join(f"Title {ref.title}" for ref in references) or "no references",
        )
        self._processor.begin_run()

        results: list[ExtractionResult] = []
        for index, reference in enumerate(references):
            if index and self._delay > 0:
                await self._sleep(self._delay)
            results.append(await self._process_reference(reference, force_refresh))

        successful = [r for r in results if r.succeeded]
        aggregate = AggregateResult(
            organization=organization,
            title_results=results,
            total_words=sum(r.word_count for r in successful),
            total_titles=len(references),
            aggregate_checksum=aggregate_checksum(results, self._fingerprinter),
        )
        await self._cache.set(AGENCY_TYPE, organization.name, aggregate)

        logger.info(
            "Agency %s complete: %s words, %d/%d titles, checksum %s",
            organization.name,
            f"{aggregate.total_words:,}",
            len(successful),
            aggregate.total_titles,
            aggregate.aggregate_checksum,
            extra={
                "total_words": aggregate.total_words,
                "checksum": aggregate.aggregate_checksum,
            },
        )
        return aggregate

    async def _process_reference(
        self, reference: DocumentReference, force_refresh: bool
    ) -> ExtractionResult:
        chapter = reference.chapter if self._scope == "chapter" else None
        try:
            if chapter:
                return await self._processor.process_chapter(
                    reference.title, chapter, force_refresh=force_refresh
                )
            return await self._processor.process_title(
                reference.title, force_refresh=force_refresh
            )
        except EcfrError as e:
            logger.error("Error processing Title %d: %s", reference.title, e)
            return ExtractionResult.failure(reference.title, e, chapter=chapter)
