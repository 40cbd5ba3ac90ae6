# tests/unit/logging/test_unit_log_context.py — v1
"""Tests for logging/context.py."""

from __future__ import annotations

from ecfrcount.logging.context import (
    clear_context,
    get_context,
    set_run_context,
    set_title_context,
)


class TestLogContext:
    def setup_method(self):
        clear_context()

    def teardown_method(self):
        clear_context()

    def test_empty_context(self):
        assert get_context().as_dict() == {}

    def test_run_context(self):
        set_run_context("run_1", agency="USDA")
        ctx = get_context()
        assert ctx.run_id == "run_1"
        assert ctx.agency == "USDA"

    def test_title_context(self):
        set_title_context(7, "I")
        assert get_context().as_dict() == {"title": 7, "chapter": "I"}

    def test_title_context_resets_chapter(self):
        set_title_context(7, "I")
        set_title_context(12)
        ctx = get_context()
        assert ctx.title == 12
        assert ctx.chapter is None

    def test_clear(self):
        set_run_context("run_1", agency="USDA")
        set_title_context(7)
        clear_context()
        assert get_context().as_dict() == {}
