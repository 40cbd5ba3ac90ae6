# src/logging/context.py — v1
"""Contextual logging support — attach run_id, agency, title, chapter to log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Context variables for structured logging, set per processing run.
_run_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "run_id", default=None
)
_agency: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "agency", default=None
)
_title: contextvars.ContextVar[int | None] = contextvars.ContextVar(
    "title", default=None
)
_chapter: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "chapter", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    run_id: str | None = None
    agency: str | None = None
    title: int | None = None
    chapter: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        run_id=_run_id.get(),
        agency=_agency.get(),
        title=_title.get(),
        chapter=_chapter.get(),
    )


def set_run_context(run_id: str, agency: str | None = None) -> None:
    """Set run-level context (called once per facade operation)."""
    _run_id.set(run_id)
    _agency.set(agency)


def set_title_context(title: int | None, chapter: str | None = None) -> None:
    """Set title-level context (called per processed title)."""
    _title.set(title)
    _chapter.set(chapter)


def clear_context() -> None:
    """Reset all context variables."""
    _run_id.set(None)
    _agency.set(None)
    _title.set(None)
    _chapter.set(None)
