# tests/unit/pipeline/test_unit_title_processor.py — v2
"""Tests for pipeline/title_processor.py."""

from __future__ import annotations

import json
import logging

import pytest

from ecfrcount.cache.fingerprint import fingerprint
from ecfrcount.core.errors import NotFoundError, ParseError, ReservedTitleError
from ecfrcount.logging.logger import JsonFormatter
from ecfrcount.pipeline.title_processor import TitleProcessor, chapter_key


@pytest.fixture
def processor(ecfr_client, cache_store) -> TitleProcessor:
    return TitleProcessor(ecfr_client, cache_store, sample_chars=20)


class TestProcessTitle:
    @pytest.mark.asyncio
    async def test_counts_and_fingerprints(self, processor, cache_store):
        await cache_store.open()
        result = await processor.process_title(12)
        text = (
            "Title 12 Banks and Banking "
            "Each national bank shall maintain adequate capital reserves."
        )
        assert result.word_count == 12
        assert result.text_length == len(text)
        assert result.checksum == fingerprint(text)
        assert result.issue_date == "2024-03-05"
        assert result.sample_text == text[:20] + "..."
        assert result.cached is False

    @pytest.mark.asyncio
    async def test_result_logged_with_figures(self, processor, cache_store, caplog):
        await cache_store.open()
        with caplog.at_level(logging.INFO, logger="ecfrcount.pipeline.title_processor"):
            result = await processor.process_title(12)
        record = next(r for r in caplog.records if getattr(r, "word_count", None) is not None)
        assert record.word_count == result.word_count
        assert record.checksum == result.checksum
        assert record.issue_date == "2024-03-05"
        assert json.loads(JsonFormatter().format(record))["word_count"] == 12

    @pytest.mark.asyncio
    async def test_second_call_served_from_cache(self, processor, cache_store, ecfr_routes):
        await cache_store.open()
        first = await processor.process_title(7)
        second = await processor.process_title(7)
        assert second.cached is True
        assert second.checksum == first.checksum
        assert len(ecfr_routes.document_requests()) == 1

    @pytest.mark.asyncio
    async def test_force_refresh_refetches(self, processor, cache_store, ecfr_routes):
        await cache_store.open()
        await processor.process_title(7)
        processor.begin_run()
        result = await processor.process_title(7, force_refresh=True)
        assert result.cached is False
        assert len(ecfr_routes.document_requests()) == 2

    @pytest.mark.asyncio
    async def test_expired_entry_refetched(self, processor, cache_store, clock, ecfr_routes):
        await cache_store.open()
        await processor.process_title(7)
        clock.advance(86400)
        result = await processor.process_title(7)
        assert result.cached is False
        assert len(ecfr_routes.document_requests()) == 2

    @pytest.mark.asyncio
    async def test_title_without_issue_date_not_cached(self, processor, cache_store, ecfr_routes):
        await cache_store.open()
        ecfr_routes.titles = {"titles": [{"number": 3, "name": "The President"}]}
        with pytest.raises(ParseError, match="latest_issue_date"):
            await processor.process_title(3)
        assert len(cache_store) == 0

    @pytest.mark.asyncio
    async def test_unknown_title_raises(self, processor, cache_store):
        await cache_store.open()
        with pytest.raises(NotFoundError):
            await processor.process_title(99)

    @pytest.mark.asyncio
    async def test_reserved_title_raises(self, processor, cache_store):
        await cache_store.open()
        with pytest.raises(ReservedTitleError):
            await processor.process_title(35)

    @pytest.mark.asyncio
    async def test_empty_document_is_parse_error(self, processor, cache_store, ecfr_routes):
        await cache_store.open()
        ecfr_routes.documents[12] = "<ECFR></ECFR>"
        with pytest.raises(ParseError):
            await processor.process_title(12)
        assert len(cache_store) == 0


class TestProcessChapter:
    @pytest.mark.asyncio
    async def test_chapter_scope(self, processor, cache_store):
        await cache_store.open()
        result = await processor.process_chapter(7, "II")
        assert result.chapter == "II"
        assert result.word_count == 12
        assert await cache_store.get("chapter", chapter_key(7, "II")) is not None

    @pytest.mark.asyncio
    async def test_numeric_chapter_id(self, processor, cache_store):
        await cache_store.open()
        result = await processor.process_chapter(7, "1")
        assert result.word_count == 13

    @pytest.mark.asyncio
    async def test_missing_chapter(self, processor, cache_store):
        await cache_store.open()
        with pytest.raises(NotFoundError, match="Chapter 9 not found in Title 7"):
            await processor.process_chapter(7, "9")

    @pytest.mark.asyncio
    async def test_chapter_cache_hit(self, processor, cache_store, ecfr_routes):
        await cache_store.open()
        await processor.process_chapter(7, "I")
        again = await processor.process_chapter(7, "I")
        assert again.cached is True
        assert len(ecfr_routes.document_requests()) == 1


def test_chapter_key():
    assert chapter_key(7, "IV") == "7-IV"
