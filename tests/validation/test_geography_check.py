"""Tests for geography reference data and the MSA/MD special edit."""

import asyncio

import httpx
import pytest

from conftest import API_URL, YEAR, make_context, make_document
from hmda_edits.core.enums import Stage
from hmda_edits.core.errors import ConfigurationError, ReferenceDataError
from hmda_edits.validation.checks.geography import GeographyCheck
from hmda_edits.validation.context import RunOptions
from hmda_edits.validation.geography import (
    LocalGeography,
    RemoteGeography,
    build_geography_lookup,
)


@pytest.fixture
def geography_csv(tmp_path):
    path = tmp_path / "geography.csv"
    path.write_text(
        "state,county,msa\n06,067,40900\n06,003,NA\n06,005,\n",
        encoding="utf-8",
    )
    return path


def _outside_msa_document():
    return make_document(
        details=[
            {"metroArea": "NA", "fipsState": "06", "fipsCounty": "067"},
            {"metroArea": "NA", "fipsState": "06", "fipsCounty": "003"},
            {},
            {"metroArea": "NA", "fipsState": "NA", "fipsCounty": "NA"},
        ]
    )


def test_local_geography_lookup(geography_csv):
    lookup = LocalGeography(geography_csv)
    assert asyncio.run(lookup.msa_for("06", "067")) == "40900"
    assert asyncio.run(lookup.msa_for("06", "003")) is None
    assert asyncio.run(lookup.msa_for("06", "005")) is None
    assert asyncio.run(lookup.msa_for("36", "061")) is None


def test_local_geography_missing_file(tmp_path):
    lookup = LocalGeography(tmp_path / "missing.csv")
    with pytest.raises(ReferenceDataError, match="not found"):
        asyncio.run(lookup.msa_for("06", "067"))


def test_local_geography_missing_columns(tmp_path):
    path = tmp_path / "bad.csv"
    path.write_text("state,county\n06,067\n", encoding="utf-8")
    with pytest.raises(ReferenceDataError, match="msa"):
        asyncio.run(LocalGeography(path).msa_for("06", "067"))


def test_remote_geography_queries_and_caches():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request.url.path)
        if request.url.path == f"/geography/{YEAR}/06/067":
            return httpx.Response(200, json={"msa": "40900"})
        return httpx.Response(404)

    async def scenario():
        lookup = RemoteGeography(API_URL, YEAR, transport=httpx.MockTransport(handler))
        try:
            first = await lookup.msa_for("06", "067")
            again = await lookup.msa_for("06", "067")
            outside = await lookup.msa_for("06", "003")
        finally:
            await lookup.aclose()
        return first, again, outside

    assert asyncio.run(scenario()) == ("40900", "40900", None)
    assert requests == [f"/geography/{YEAR}/06/067", f"/geography/{YEAR}/06/003"]


def test_remote_geography_server_error():
    transport = httpx.MockTransport(lambda request: httpx.Response(500))

    async def scenario():
        lookup = RemoteGeography(API_URL, YEAR, transport=transport)
        try:
            await lookup.msa_for("06", "067")
        finally:
            await lookup.aclose()

    with pytest.raises(ReferenceDataError):
        asyncio.run(scenario())


def test_build_lookup_selects_source(geography_csv):
    local = build_geography_lookup(
        RunOptions(year=YEAR, use_local_db=True, geography_path=geography_csv)
    )
    remote = build_geography_lookup(RunOptions(year=YEAR, api_url=API_URL))
    assert isinstance(local, LocalGeography)
    assert isinstance(remote, RemoteGeography)
    asyncio.run(remote.aclose())

    with pytest.raises(ConfigurationError):
        build_geography_lookup(RunOptions(year=YEAR))


def test_geography_check_with_local_file(geography_csv):
    context = make_context(
        _outside_msa_document(), use_local_db=True, geography_path=geography_csv
    )
    check = GeographyCheck()
    results = asyncio.run(check.validate(context))

    assert check.stage == Stage.SPECIAL
    assert len(results) == 1
    violation = results[0]
    assert violation.edit_id == "Q029"
    assert violation.line_number == 2
    assert violation.record_key == "LN-0001"
    assert dict(violation.properties) == {
        "metroArea": "NA",
        "fipsState": "06",
        "fipsCounty": "067",
    }


def test_geography_check_skips_lookup_without_candidates():
    # No API URL and no local file: building a lookup would fail.
    context = make_context(api_url=None)
    assert asyncio.run(GeographyCheck().validate(context)) == []


def test_geography_check_uses_context_lookup():
    class FixedLookup:
        def __init__(self):
            self.closed = False

        async def msa_for(self, state, county):
            return "99999"

        async def aclose(self):
            self.closed = True

    lookup = FixedLookup()
    context = make_context(_outside_msa_document())
    context.geography = lookup
    results = asyncio.run(GeographyCheck().validate(context))

    assert [v.line_number for v in results] == [2, 3]
    assert lookup.closed is False
