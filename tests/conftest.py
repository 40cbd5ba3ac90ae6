# tests/conftest.py — v1
"""Shared test fixtures for all unit and integration tests.

Provides a small eCFR title document, a titles.json payload, an
httpx.MockTransport standing in for the eCFR service, a controllable clock
and temp cache files. No network access — all remote I/O is mocked.
"""

from __future__ import annotations

from typing import Any, Callable

import httpx
import pytest

from ecfrcount.cache.flush_policy import EveryNWrites
from ecfrcount.cache.json_store import JsonCacheStore
from ecfrcount.core.models import DocumentReference, Organization
from ecfrcount.directory.json_directory import JsonOrganizationDirectory
from ecfrcount.fetch.ecfr_client import EcfrClient

BASE_URL = "https://ecfr.test"
T0 = 1_700_000_000.0

TITLE_7_XML = """<?xml version="1.0" encoding="UTF-8"?>
<ECFR>
<DIV1 N="7" TYPE="TITLE">
<HEAD>Title 7 Agriculture</HEAD>
<DIV3 N="I" TYPE="CHAPTER">
<HEAD>CHAPTER I AGRICULTURAL MARKETING SERVICE</HEAD>
<P>The marketing service sets grading standards for <I>fresh</I> produce.</P>
<AUTH>Authority: 7 U.S.C. 1621 et seq.</AUTH>
</DIV3>
<DIV3 N="II" TYPE="CHAPTER">
<HEAD>CHAPTER II FOOD AND NUTRITION SERVICE</HEAD>
<P>School lunch programs receive federal support &amp; guidance.</P>
<P>(a)</P>
</DIV3>
</DIV1>
</ECFR>
"""

TITLE_12_XML = """<ECFR><DIV1 N="12" TYPE="TITLE">
<HEAD>Title 12 Banks and Banking</HEAD>
<P>Each national bank shall maintain adequate capital reserves.</P>
</DIV1></ECFR>
"""

TITLES_PAYLOAD: dict[str, Any] = {
    "titles": [
        {
            "number": 7,
            "name": "Agriculture",
            "latest_amended_on": "2024-03-01",
            "latest_issue_date": "2024-03-05",
            "up_to_date_as_of": "2024-03-07",
            "reserved": False,
        },
        {
            "number": 12,
            "name": "Banks and Banking",
            "latest_amended_on": "2024-02-15",
            "latest_issue_date": "2024-03-05",
            "up_to_date_as_of": "2024-03-07",
            "reserved": False,
        },
        {
            "number": 35,
            "name": "[Reserved]",
            "latest_amended_on": None,
            "latest_issue_date": None,
            "up_to_date_as_of": None,
            "reserved": True,
        },
    ]
}


class FakeClock:
    """Manually advanced epoch-seconds clock."""

    def __init__(self, start: float = T0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class EcfrRoutes:
    """Request handler for httpx.MockTransport mimicking the eCFR versioner API."""

    def __init__(self) -> None:
        self.titles: dict[str, Any] = TITLES_PAYLOAD
        self.documents: dict[int, str] = {7: TITLE_7_XML, 12: TITLE_12_XML}
        self.requests: list[str] = []
        self.fail_paths: dict[str, int] = {}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.requests.append(path)
        if path in self.fail_paths:
            return httpx.Response(self.fail_paths[path], text="failure")
        if path == "/api/versioner/v1/titles.json":
            return httpx.Response(200, json=self.titles)
        for number, document in self.documents.items():
            if path.endswith(f"/title-{number}.xml"):
                return httpx.Response(200, text=document)
        return httpx.Response(404, text="not found")

    def document_requests(self) -> list[str]:
        return [p for p in self.requests if p.endswith(".xml")]


# === FIXTURES: Remote service ===


@pytest.fixture
def ecfr_routes() -> EcfrRoutes:
    return EcfrRoutes()


@pytest.fixture
def make_ecfr_client() -> Callable[..., EcfrClient]:
    """Factory: EcfrClient wired to an arbitrary MockTransport handler."""

    def _make(handler: Callable[[httpx.Request], httpx.Response], timeout: float = 5.0) -> EcfrClient:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return EcfrClient(base_url=BASE_URL, timeout=timeout, client=client)

    return _make


@pytest.fixture
def ecfr_client(ecfr_routes: EcfrRoutes, make_ecfr_client) -> EcfrClient:
    return make_ecfr_client(ecfr_routes)


# === FIXTURES: Cache ===


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache_file(tmp_path):
    return tmp_path / "cache" / "word-counts.json"


@pytest.fixture
def cache_store(cache_file, clock) -> JsonCacheStore:
    """Unopened store with a 24h TTL; tests call open() themselves."""
    return JsonCacheStore(
        cache_file, ttl_seconds=86400.0, flush_policy=EveryNWrites(10), clock=clock
    )


# === FIXTURES: Organizations ===


@pytest.fixture
def agriculture() -> Organization:
    return Organization(
        name="Department of Agriculture",
        short_name="USDA",
        slug="agriculture-department",
        document_references=[
            DocumentReference(title=7, chapter="I"),
            DocumentReference(title=7, chapter="II"),
        ],
        children=[
            Organization(
                name="Agricultural Marketing Service",
                short_name="AMS",
                slug="agricultural-marketing-service",
                document_references=[DocumentReference(title=7, chapter="I")],
            )
        ],
    )


@pytest.fixture
def treasury() -> Organization:
    return Organization(
        name="Department of the Treasury",
        slug="treasury-department",
        document_references=[
            DocumentReference(title=12),
            DocumentReference(title=99),
        ],
    )


@pytest.fixture
def directory(agriculture, treasury) -> JsonOrganizationDirectory:
    return JsonOrganizationDirectory.from_organizations([agriculture, treasury])


@pytest.fixture
def no_sleep() -> Callable[[float], Any]:
    """Async sleep replacement that records requested delays."""
    delays: list[float] = []

    async def _sleep(seconds: float) -> None:
        delays.append(seconds)

    _sleep.delays = delays  # type: ignore[attr-defined]
    return _sleep
