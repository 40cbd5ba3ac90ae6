# tests/unit/extraction/test_unit_word_counter.py — v1
"""Tests for extraction/word_counter.py."""

from __future__ import annotations

import pytest

from ecfrcount.extraction.word_counter import count_words


class TestCountWords:
    def test_sentence(self):
        assert count_words("The quick fox runs.") == 4

    @pytest.mark.parametrize("text", ["", "   \n\t ", None])
    def test_empty(self, text):
        assert count_words(text) == 0

    def test_short_tokens_never_counted(self):
        assert count_words("a an (b) 12 I x") == 0

    def test_punctuation_splits_words(self):
        assert count_words("food-safety/inspection") == 3

    def test_underscore_is_separator(self):
        assert count_words("snake_case_name") == 3

    def test_digits_count(self):
        assert count_words("Section 1621 applies") == 3

    def test_case_insensitive_tokens(self):
        assert count_words("THE The the") == 3
