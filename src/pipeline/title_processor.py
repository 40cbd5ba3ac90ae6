# src/pipeline/title_processor.py — v2
"""Single title / single chapter processing: fetch → extract → count → fingerprint → cache.

Errors propagate as typed EcfrError subclasses; batch callers (the agency
aggregator) are responsible for turning them into errored results.
"""

from __future__ import annotations

import logging

from ecfrcount.cache.base_cache_store import BaseCacheStore
from ecfrcount.cache.fingerprint import ContentFingerprinter, RollingHashFingerprinter
from ecfrcount.core.errors import NotFoundError, ParseError
from ecfrcount.core.models import ExtractionResult, TitleMetadata
from ecfrcount.extraction.text_extractor import TextExtractor
from ecfrcount.extraction.word_counter import count_words
from ecfrcount.fetch.ecfr_client import EcfrClient
from ecfrcount.logging.context import set_title_context

logger = logging.getLogger(__name__)

TITLE_TYPE = "title"
CHAPTER_TYPE = "chapter"


def chapter_key(title_number: int, chapter_id: str) -> str:
    return f"{title_number}-{chapter_id}"


class TitleProcessor:
    """Produces cached ExtractionResults for titles and chapters.

    Usage:
        processor = TitleProcessor(client, cache)
        result = await processor.process_title(7)
    """

    def __init__(
        self,
        fetcher: EcfrClient,
        cache: BaseCacheStore,
        extractor: TextExtractor | None = None,
        fingerprinter: ContentFingerprinter | None = None,
        sample_chars: int = 200,
    ) -> None:
        self._fetcher = fetcher
        self._cache = cache
        self._extractor = extractor or TextExtractor()
        self._fingerprinter = fingerprinter or RollingHashFingerprinter()
        self._sample_chars = sample_chars

    def begin_run(self) -> None:
        """Start a processing run; title metadata is looked up afresh."""
        self._fetcher.begin_run()

    async def process_title(
        self, title_number: int, force_refresh: bool = False
    ) -> ExtractionResult:
        """Word count and checksum for a whole title.

        Args:
            title_number: CFR title number.
            force_refresh: Skip the cache read (the result is still cached).

        Raises:
            NotFoundError, ReservedTitleError, NetworkError, RequestTimeoutError,
            ParseError (no text could be extracted).
        """
        set_title_context(title_number)
        if not force_refresh:
            cached = await self._cache.get(TITLE_TYPE, title_number)
            if isinstance(cached, ExtractionResult):
                logger.info("Using cached result for Title %d", title_number)
                return cached.model_copy(update={"cached": True})

        metadata, document = await self._fetcher.download_title(title_number)
        text = self._extractor.extract_full_text(document)
        if not text:
            raise ParseError(f"No regulation text could be extracted from Title {title_number}")

        result = self._build_result(title_number, None, text, metadata)
        await self._cache.set(TITLE_TYPE, title_number, result)
        self._log_result(result)
        return result

    async def process_chapter(
        self, title_number: int, chapter_id: str, force_refresh: bool = False
    ) -> ExtractionResult:
        """Word count and checksum for one chapter of a title.

        Raises:
            NotFoundError: Title or chapter does not exist.
            ReservedTitleError, NetworkError, RequestTimeoutError.
        """
        chapter_id = str(chapter_id).strip()
        set_title_context(title_number, chapter_id)
        key = chapter_key(title_number, chapter_id)
        if not force_refresh:
            cached = await self._cache.get(CHAPTER_TYPE, key)
            if isinstance(cached, ExtractionResult):
                logger.info("Using cached result for Title %d, Chapter %s", title_number, chapter_id)
                return cached.model_copy(update={"cached": True})

        metadata, document = await self._fetcher.download_title(title_number)
        text = self._extractor.extract_chapter_text(document, chapter_id)
        if not text.strip():
            raise NotFoundError(f"Chapter {chapter_id} not found in Title {title_number}")

        result = self._build_result(title_number, chapter_id, text, metadata)
        await self._cache.set(CHAPTER_TYPE, key, result)
        self._log_result(result)
        return result

    def _build_result(
        self,
        title_number: int,
        chapter_id: str | None,
        text: str,
        metadata: TitleMetadata,
    ) -> ExtractionResult:
        return ExtractionResult(
            title=title_number,
            chapter=chapter_id,
            word_count=count_words(text),
            text_length=len(text),
            checksum=self._fingerprinter.fingerprint(text),
            issue_date=metadata.latest_issue_date,
            sample_text=text[: self._sample_chars] + "...",
        )

    @staticmethod
    def _log_result(result: ExtractionResult) -> None:
        scope = f"Title {result.title}"
        if result.chapter:
            scope += f", Chapter {result.chapter}"
        logger.info(
            "%s: %s words, %s chars, issue date %s, checksum %s",
            scope,
            f"{result.word_count:,}",
            f"{result.text_length:,}",
            result.issue_date,
            result.checksum,
            extra={
                "word_count": result.word_count,
                "text_length": result.text_length,
                "issue_date": result.issue_date,
                "checksum": result.checksum,
            },
        )
