# src/fetch/ecfr_client.py — v1
"""Client for the eCFR versioner API.

Title documents are versioned by issue date, so a document fetch always
needs the ``latest_issue_date`` from the title's metadata first.

Endpoints:
    GET /api/versioner/v1/titles.json
    GET /api/versioner/v1/full/{issue_date}/title-{number}.xml
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx
from pydantic import ValidationError

from ecfrcount.core.errors import (
    NetworkError,
    NotFoundError,
    ParseError,
    RequestTimeoutError,
    ReservedTitleError,
)
from ecfrcount.core.models import TitleMetadata

logger = logging.getLogger(__name__)

ECFR_BASE_URL = "https://www.ecfr.gov"
TITLES_ENDPOINT = "/api/versioner/v1/titles.json"
FULL_DOCUMENT_ENDPOINT = "/api/versioner/v1/full/{issue_date}/title-{number}.xml"
DEFAULT_TIMEOUT = 30.0


class EcfrClient:
    """Fetches title metadata and full title XML.

    Metadata is memoized per title number until begin_run() is called, so one
    processing run looks each title up at most once.

    Attributes:
        base_url: Service root (default: https://www.ecfr.gov)
        timeout: Per-request timeout in seconds (default: 30.0)
    """

    def __init__(
        self,
        base_url: str = ECFR_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(timeout),
            follow_redirects=True,
            headers={"Accept": "application/json, application/xml"},
        )
        self._metadata: dict[int, TitleMetadata] = {}

    @property
    def timeout(self) -> float:
        return self._timeout

    def begin_run(self) -> None:
        """Forget memoized metadata so the next lookup sees upstream changes."""
        self._metadata.clear()

    def cached_metadata(self, title_number: int) -> TitleMetadata | None:
        return self._metadata.get(title_number)

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> EcfrClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # --- Metadata ---

    async def list_titles(self) -> list[TitleMetadata]:
        """Return every title record, reserved ones included."""
        payload = await self._get_json(TITLES_ENDPOINT)
        titles = payload.get("titles") if isinstance(payload, dict) else None
        if not isinstance(titles, list):
            raise ParseError("Invalid response format: expected a 'titles' array")
        try:
            return [TitleMetadata.model_validate(t) for t in titles]
        except ValidationError as e:
            raise ParseError(f"Invalid title record: {e}") from e

    async def fetch_metadata(self, title_number: int) -> TitleMetadata:
        """Look up one title.

        Raises:
            NotFoundError: Title number does not exist upstream.
            ReservedTitleError: Title is reserved (no content).
            NetworkError: Transport failure or non-200 response.
            ParseError: Response is not the expected JSON.
        """
        cached = self._metadata.get(title_number)
        if cached is not None:
            return cached

        logger.info("Fetching metadata for Title %d", title_number)
        titles = await self.list_titles()
        metadata = next((t for t in titles if t.number == title_number), None)
        if metadata is None:
            raise NotFoundError(f"Title {title_number} not found")
        if metadata.reserved:
            raise ReservedTitleError(title_number)

        logger.info(
            "Title %d (%s): latest issue %s, latest amended %s",
            title_number, metadata.name,
            metadata.latest_issue_date, metadata.latest_amended_on,
        )
        self._metadata[title_number] = metadata
        return metadata

    # --- Documents ---

    async def fetch_document(self, title_number: int, issue_date: str) -> str:
        """Download the full XML of a title as of ``issue_date``.

        Raises:
            RequestTimeoutError: Transfer exceeded the timeout and was aborted.
            NetworkError: Transport failure or non-200 response.
        """
        path = FULL_DOCUMENT_ENDPOINT.format(issue_date=issue_date, number=title_number)
        logger.info("Downloading XML: %s%s", self._base_url, path)
        response = await self._request(path)
        logger.info(
            "Downloaded %.2f MB of XML for Title %d",
            len(response.content) / 1024 / 1024, title_number,
        )
        return response.text

    async def download_title(self, title_number: int) -> tuple[TitleMetadata, str]:
        """Fetch metadata, then the document for its latest issue date."""
        metadata = await self.fetch_metadata(title_number)
        if not metadata.latest_issue_date:
            raise ParseError(f"Title {title_number} has no latest_issue_date")
        document = await self.fetch_document(title_number, metadata.latest_issue_date)
        return metadata, document

    # --- Internals ---

    async def _get_json(self, path: str) -> Any:
        response = await self._request(path)
        try:
            return response.json()
        except ValueError as e:
            raise ParseError(f"Failed to parse JSON response: {e}") from e

    async def _request(self, path: str) -> httpx.Response:
        url = f"{self._base_url}{path}"
        try:
            # Overall deadline; httpx timeouts are per phase (connect, read, ...).
            response = await asyncio.wait_for(self._client.get(url), timeout=self._timeout)
        except (httpx.TimeoutException, asyncio.TimeoutError) as e:
            raise RequestTimeoutError(url, self._timeout) from e
        except httpx.HTTPError as e:
            raise NetworkError(f"Request to {url} failed: {e}") from e

        if response.status_code != 200:
            raise NetworkError(
                f"HTTP {response.status_code}: {response.reason_phrase} ({url})",
                status_code=response.status_code,
            )
        return response
