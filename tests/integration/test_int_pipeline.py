# tests/integration/test_int_pipeline.py — v1
"""Integration: service → processor → extractor → JSON cache, across restarts.

Runs the whole stack against the mock eCFR transport; only the network is
faked. Covers persistence of results between service instances and change
detection after upstream content changes.
"""

from __future__ import annotations

import json

import pytest

from ecfrcount.api.facade import WordCountService
from ecfrcount.cache.fingerprint import fingerprint
from ecfrcount.config.settings import Settings
from ecfrcount.directory.json_directory import JsonOrganizationDirectory

AMENDED_7 = """<ECFR><DIV1 N="7" TYPE="TITLE">
<HEAD>Title 7 Agriculture</HEAD>
<DIV3 N="I" TYPE="CHAPTER">
<HEAD>CHAPTER I AGRICULTURAL MARKETING SERVICE</HEAD>
<P>The marketing service sets grading standards for fresh and frozen produce.</P>
</DIV3>
<DIV3 N="II" TYPE="CHAPTER">
<HEAD>CHAPTER II FOOD AND NUTRITION SERVICE</HEAD>
<P>School lunch programs receive federal support &amp; guidance.</P>
</DIV3>
</DIV1></ECFR>
"""


@pytest.fixture
def agencies_file(tmp_path):
    path = tmp_path / "agencies.json"
    path.write_text(json.dumps({
        "agencies": [
            {
                "name": "Department of Agriculture",
                "short_name": "USDA",
                "slug": "agriculture-department",
                "cfr_references": [{"title": 7, "chapter": "I"}, {"title": 7, "chapter": "II"}],
                "children": [
                    {
                        "name": "Food and Nutrition Service",
                        "short_name": "FNS",
                        "cfr_references": [{"title": 7, "chapter": "II"}],
                    }
                ],
            },
            {
                "name": "Department of the Treasury",
                "slug": "treasury-department",
                "cfr_references": [{"title": 12}, {"title": 35}],
            },
        ]
    }))
    return path


@pytest.fixture
def settings(tmp_path, agencies_file) -> Settings:
    return Settings(
        _env_file=None,
        cache_file=tmp_path / "cache" / "word-counts.json",
        directory_file=agencies_file,
        request_delay_s=0,
        agency_scope="chapter",
    )


def _service(settings, make_ecfr_client, ecfr_routes) -> WordCountService:
    return WordCountService(
        settings,
        fetcher=make_ecfr_client(ecfr_routes),
        directory=JsonOrganizationDirectory(settings.directory_file),
    )


class TestPipelineAcrossRestarts:
    @pytest.mark.asyncio
    async def test_results_survive_restart(self, settings, make_ecfr_client, ecfr_routes):
        async with _service(settings, make_ecfr_client, ecfr_routes) as svc:
            first = await svc.process_organization("USDA")
        assert first.total_words == 25
        assert len(ecfr_routes.document_requests()) == 2

        async with _service(settings, make_ecfr_client, ecfr_routes) as svc:
            second = await svc.process_organization("USDA")
        assert second.aggregate_checksum == first.aggregate_checksum
        assert len(ecfr_routes.document_requests()) == 2

    @pytest.mark.asyncio
    async def test_change_detected_after_restart(self, settings, make_ecfr_client, ecfr_routes):
        async with _service(settings, make_ecfr_client, ecfr_routes) as svc:
            await svc.process_organization("USDA")

        ecfr_routes.documents[7] = AMENDED_7
        async with _service(settings, make_ecfr_client, ecfr_routes) as svc:
            report = await svc.check_changes("Department of Agriculture")
            again = await svc.check_changes("USDA")

        assert report.changed is True
        assert report.reason == "content has changed"
        assert report.new_word_count == report.old_word_count + 2
        assert again.changed is False

    @pytest.mark.asyncio
    async def test_reserved_title_is_captured(self, settings, make_ecfr_client, ecfr_routes):
        async with _service(settings, make_ecfr_client, ecfr_routes) as svc:
            result = await svc.process_organization("treasury-department")
        ok, reserved = result.title_results
        assert "reserved" in reserved.error
        assert result.aggregate_checksum == fingerprint(ok.checksum)

    @pytest.mark.asyncio
    async def test_child_agency_and_cache_file(self, settings, make_ecfr_client, ecfr_routes):
        async with _service(settings, make_ecfr_client, ecfr_routes) as svc:
            child = await svc.process_organization("FNS")
        assert child.total_words == 12

        raw = json.loads(settings.cache_file.read_text())
        assert set(raw) == {"chapter:7-II", "agency:Food and Nutrition Service"}
        assert raw["agency:Food and Nutrition Service"]["data"]["kind"] == "aggregate"
