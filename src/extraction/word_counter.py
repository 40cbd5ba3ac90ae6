# src/extraction/word_counter.py — v1
"""Word counting over extracted regulation text."""

from __future__ import annotations

import re

MIN_WORD_LENGTH = 3

# Anything that is not a letter, digit or whitespace separates words.
_NON_WORD = re.compile(r"[^\w\s]|_")


def count_words(text: str | None) -> int:
    """Count tokens of at least MIN_WORD_LENGTH characters.

    Lowercases, turns punctuation into spaces and splits on whitespace
    runs. Tokens of one or two characters are dropped: they are mostly
    paragraph labels like "(a)" and stray markup remnants.
    """
    if not text or not text.strip():
        return 0
    tokens = _NON_WORD.sub(" ", text.lower()).split()
    return sum(1 for token in tokens if len(token) >= MIN_WORD_LENGTH)
