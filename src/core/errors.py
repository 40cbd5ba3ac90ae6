# src/core/errors.py — v1
"""Error taxonomy for document retrieval and processing.

Batch operations (agency runs) capture these into result records; direct
title and chapter requests let them propagate to the caller.
"""

from __future__ import annotations


class EcfrError(Exception):
    """Base class for all processing errors raised by ecfrcount."""


class NotFoundError(EcfrError):
    """Title, chapter or organization does not exist."""


class ReservedTitleError(EcfrError):
    """Title exists upstream but is reserved and has no content."""

    def __init__(self, title_number: int) -> None:
        self.title_number = title_number
        super().__init__(f"Title {title_number} is reserved and has no content")


class NetworkError(EcfrError):
    """Transport failure or non-200 response from the document service."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class RequestTimeoutError(NetworkError, TimeoutError):
    """Document fetch exceeded its deadline and was aborted."""

    def __init__(self, url: str, timeout_s: float) -> None:
        self.url = url
        self.timeout_s = timeout_s
        super().__init__(f"Request timeout after {timeout_s:.0f}s: {url}")


class ParseError(EcfrError):
    """Response or document could not be interpreted."""
