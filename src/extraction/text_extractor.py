# src/extraction/text_extractor.py — v1
"""Plain-text extraction from eCFR title XML.

Only paragraph (<P>) and heading (<HEAD>) blocks carry regulation text;
metadata elements such as <AUTH>, <SOURCE> or <CITA> are skipped. Extraction
is regex based and best effort: malformed input degrades to less (or no)
text rather than raising.
"""

from __future__ import annotations

import html
import logging
import re
from dataclasses import dataclass
from typing import Sequence

from ecfrcount.extraction.chapter_matchers import ChapterMatcher, default_matchers

logger = logging.getLogger(__name__)

_BLOCK = re.compile(r"<(P|HEAD)(?:\s[^>]*)?>(.*?)</\1\s*>", re.DOTALL)
_INLINE_MARKUP = re.compile(r"</?(?:I|E)(?:\s[^>]*)?>")
_ANY_TAG = re.compile(r"<[^>]*>")
_WHITESPACE = re.compile(r"\s+")

# Fragments at or below these lengths are structural noise ("(a)", "§ 1").
MIN_LENGTH = {"P": 5, "HEAD": 3}


@dataclass(frozen=True)
class ChapterMatch:
    """Span located by a chapter matcher."""

    matcher: str
    span: str


def clean_fragment(inner: str) -> str:
    """Strip nested markup, decode entities and collapse whitespace."""
    text = _INLINE_MARKUP.sub("", inner)
    text = _ANY_TAG.sub(" ", text)
    text = html.unescape(text)
    return _WHITESPACE.sub(" ", text).strip()


def extract_fragments(document: str) -> list[str]:
    """Return surviving <P>/<HEAD> fragments in document order."""
    fragments: list[str] = []
    counts = {"P": 0, "HEAD": 0}
    for match in _BLOCK.finditer(document):
        tag = match.group(1)
        counts[tag] += 1
        text = clean_fragment(match.group(2))
        if len(text) > MIN_LENGTH[tag]:
            fragments.append(text)

    logger.debug(
        "Scanned %d paragraphs and %d headings, kept %d fragments",
        counts["P"], counts["HEAD"], len(fragments),
    )
    return fragments


class TextExtractor:
    """Whole-title and chapter-scoped text extraction.

    Chapter lookup tries ``matchers`` in order; the first one that locates a
    span wins.
    """

    def __init__(self, matchers: Sequence[ChapterMatcher] | None = None) -> None:
        self._matchers = list(matchers) if matchers is not None else default_matchers()

    @property
    def matchers(self) -> list[ChapterMatcher]:
        return list(self._matchers)

    def extract_full_text(self, document: str) -> str:
        """Concatenate all paragraph and heading text of a title."""
        text = " ".join(extract_fragments(document))
        logger.debug("Extracted %d characters of title text", len(text))
        return text

    def locate_chapter(self, document: str, chapter_id: str | int) -> ChapterMatch | None:
        """Run the matcher chain and return the first located span."""
        cid = str(chapter_id).strip()
        if not cid:
            return None
        for matcher in self._matchers:
            span = matcher.locate(document, cid)
            if span:
                logger.debug("Found chapter %s using %s matcher", cid, matcher.name)
                return ChapterMatch(matcher=matcher.name, span=span)
        return None

    def extract_chapter_text(self, document: str, chapter_id: str | int) -> str:
        """Text of one chapter, or "" when no matcher finds it."""
        found = self.locate_chapter(document, chapter_id)
        if found is None:
            logger.info("Chapter %s not found in document", chapter_id)
            return ""
        text = " ".join(extract_fragments(found.span))
        logger.debug(
            "Extracted %d characters for chapter %s (%s)",
            len(text), chapter_id, found.matcher,
        )
        return text


_DEFAULT_EXTRACTOR = TextExtractor()


def extract_full_text(document: str) -> str:
    return _DEFAULT_EXTRACTOR.extract_full_text(document)


def extract_chapter_text(document: str, chapter_id: str | int) -> str:
    return _DEFAULT_EXTRACTOR.extract_chapter_text(document, chapter_id)
