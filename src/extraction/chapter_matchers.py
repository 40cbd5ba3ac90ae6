# src/extraction/chapter_matchers.py — v2
"""Strategies for locating one chapter inside a title's XML.

Titles are not structured consistently, so chapter lookup runs an ordered
chain of matchers, most specific first. Each matcher returns the raw span
belonging to the chapter, or None when its pattern does not apply. The
span is handed back to the text extractor for fragment extraction.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod

# A chapter id must not run into further alphanumerics ("1" must not match "10").
_ID_END = r"(?![0-9A-Za-z])"

_ROMAN_TABLE = (
    (1000, "M"), (900, "CM"), (500, "D"), (400, "CD"),
    (100, "C"), (90, "XC"), (50, "L"), (40, "XL"),
    (10, "X"), (9, "IX"), (5, "V"), (4, "IV"), (1, "I"),
)


def to_roman(number: int) -> str:
    """Convert a positive integer to subtractive Roman notation (4 -> "IV")."""
    if number < 1:
        raise ValueError(f"Roman numerals start at 1, got {number}")
    parts: list[str] = []
    for value, numeral in _ROMAN_TABLE:
        count, number = divmod(number, value)
        parts.append(numeral * count)
    return "".join(parts)


def roman_form(chapter_id: str) -> str | None:
    """Roman form of a numeric chapter id, None for non-numeric ids."""
    if not chapter_id.isdecimal() or int(chapter_id) < 1:
        return None
    return to_roman(int(chapter_id))


class ChapterMatcher(ABC):
    """Unified interface for chapter boundary heuristics."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Short identifier used in logs."""

    @abstractmethod
    def locate(self, document: str, chapter_id: str) -> str | None:
        """Return the chapter's raw span, or None if this heuristic fails."""


class ChapterTagMatcher(ChapterMatcher):
    """Explicit chapter element keyed by the chapter id.

    Handles eCFR divisions (``<DIV3 N="IV" TYPE="CHAPTER">``) and bare
    ``<CHAPTER>IV</CHAPTER>`` markers whose content runs to the next one.
    Numeric ids are also tried in Roman form, as eCFR numbers chapters that way.
    """

    @property
    def name(self) -> str:
        return "chapter_tag"

    def locate(self, document: str, chapter_id: str) -> str | None:
        candidates = [chapter_id]
        roman = roman_form(chapter_id)
        if roman:
            candidates.append(roman)

        for candidate in candidates:
            cid = re.escape(candidate)
            division = re.search(
                rf'<DIV(\d)(?=[^>]*\bTYPE="CHAPTER")(?=[^>]*\bN="{cid}")[^>]*>(.*?)</DIV\1>',
                document,
                re.DOTALL,
            )
            if division and division.group(2):
                return division.group(2)

            marker = re.search(
                rf"<CHAPTER[^>]*>\s*{cid}{_ID_END}[^<]*</CHAPTER>(.*?)(?=<CHAPTER\b|\Z)",
                document,
                re.DOTALL | re.IGNORECASE,
            )
            if marker and marker.group(1):
                return marker.group(1)
        return None


class HeadingMatcher(ChapterMatcher):
    """``<HEAD>CHAPTER {id} ...</HEAD>`` up to the next chapter heading."""

    @property
    def name(self) -> str:
        return "heading"

    def heading_id(self, chapter_id: str) -> str | None:
        return chapter_id

    def locate(self, document: str, chapter_id: str) -> str | None:
        heading_id = self.heading_id(chapter_id)
        if not heading_id:
            return None
        match = re.search(
            rf"<HEAD(?:\s[^>]*)?>\s*CHAPTER\s+{re.escape(heading_id)}{_ID_END}[^<]*</HEAD>"
            r"(.*?)(?=<HEAD(?:\s[^>]*)?>\s*CHAPTER\b|\Z)",
            document,
            re.DOTALL | re.IGNORECASE,
        )
        if match and match.group(1):
            return match.group(1)
        return None


class RomanHeadingMatcher(HeadingMatcher):
    """Chapter heading written with the Roman form of a numeric id."""

    @property
    def name(self) -> str:
        return "roman_heading"

    def heading_id(self, chapter_id: str) -> str | None:
        return roman_form(chapter_id)


class TextMarkerMatcher(ChapterMatcher):
    """Plain-text ``Chapter {id}`` marker up to the next ``Chapter {n}``."""

    @property
    def name(self) -> str:
        return "text_marker"

    def locate(self, document: str, chapter_id: str) -> str | None:
        match = re.search(
            rf"Chapter\s+{re.escape(chapter_id)}\W(.*?)(?=Chapter\s+\d+|\Z)",
            document,
            re.DOTALL | re.IGNORECASE,
        )
        if match and match.group(1):
            return match.group(1)
        return None


class GeneralFallbackMatcher(ChapterMatcher):
    """Last resort: from the first chapter mention to the next chapter number's mention.

    Non-numeric ids have no "next" chapter, so the span runs to the end.
    """

    @property
    def name(self) -> str:
        return "general"

    def locate(self, document: str, chapter_id: str) -> str | None:
        start = re.search(
            rf"Chapter\s+{re.escape(chapter_id)}{_ID_END}", document, re.IGNORECASE
        )
        if start is None:
            return None

        end = len(document)
        if chapter_id.isdecimal():
            following = re.compile(
                rf"Chapter\s+{int(chapter_id) + 1}{_ID_END}", re.IGNORECASE
            ).search(document, start.end())
            if following is not None:
                end = following.start()
        return document[start.start():end] or None


def default_matchers() -> list[ChapterMatcher]:
    """The chain in priority order."""
    return [
        ChapterTagMatcher(),
        HeadingMatcher(),
        RomanHeadingMatcher(),
        TextMarkerMatcher(),
        GeneralFallbackMatcher(),
    ]
