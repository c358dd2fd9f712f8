"""Geocoder tests — Nominatim is faked with httpx.MockTransport."""
from __future__ import annotations

import asyncio
import logging
from unittest.mock import patch

import httpx
import pytest
from conftest import GEOCODER_URL, make_geocoder, nominatim_handler

from address_ocr.core.errors import GeocodingError
from address_ocr.geocoding.batch import geocode_addresses
from address_ocr.geocoding.nominatim import Coordinate


# ---------------------------------------------------------------------------
# NominatimGeocoder.lookup
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_lookup_uses_first_candidate(geocoder) -> None:
    coordinate = await geocoder.lookup("京都府京都市下京区3-3")
    assert coordinate == Coordinate(lat=34.9858, lon=135.7588)


@pytest.mark.asyncio
async def test_lookup_returns_none_without_candidates(geocoder) -> None:
    assert await geocoder.lookup("存在しない県") is None


@pytest.mark.asyncio
async def test_lookup_sends_free_text_query() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[])

    geocoder = make_geocoder(handler, user_agent="address-ocr-tests")
    await geocoder.lookup("東京都千代田区1-1")

    (request,) = seen
    assert request.method == "GET"
    assert str(request.url).startswith(GEOCODER_URL)
    assert request.url.params["format"] == "json"
    assert request.url.params["q"] == "東京都千代田区1-1"
    assert request.headers["User-Agent"] == "address-ocr-tests"


@pytest.mark.asyncio
async def test_lookup_raises_on_connection_error() -> None:
    geocoder = make_geocoder(nominatim_handler(failing={"東京都"}))
    with pytest.raises(GeocodingError) as exc_info:
        await geocoder.lookup("東京都")
    assert exc_info.value.address == "東京都"


@pytest.mark.asyncio
async def test_lookup_raises_on_http_error_status() -> None:
    geocoder = make_geocoder(lambda request: httpx.Response(503, text="busy"))
    with pytest.raises(GeocodingError, match="503"):
        await geocoder.lookup("東京都")


@pytest.mark.asyncio
async def test_lookup_raises_on_invalid_json() -> None:
    geocoder = make_geocoder(lambda request: httpx.Response(200, text="<html>"))
    with pytest.raises(GeocodingError, match="not valid JSON"):
        await geocoder.lookup("東京都")


@pytest.mark.asyncio
async def test_lookup_raises_on_malformed_candidate() -> None:
    geocoder = make_geocoder(lambda request: httpx.Response(200, json=[{"lat": "abc", "lon": "1"}]))
    with pytest.raises(GeocodingError, match="malformed candidate"):
        await geocoder.lookup("東京都")


@pytest.mark.asyncio
async def test_lookup_does_not_retry_by_default() -> None:
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        raise httpx.ConnectError("down", request=request)

    with pytest.raises(GeocodingError):
        await make_geocoder(handler).lookup("東京都")
    assert calls == 1


@pytest.mark.asyncio
async def test_lookup_retries_transport_errors_when_enabled() -> None:
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        if calls < 3:
            raise httpx.ConnectError("flaky", request=request)
        return httpx.Response(200, json=[{"lat": "35.0", "lon": "139.0"}])

    geocoder = make_geocoder(handler, max_attempts=3, retry_wait=0)
    assert await geocoder.lookup("東京都") == Coordinate(lat=35.0, lon=139.0)
    assert calls == 3


@pytest.mark.asyncio
async def test_lookups_never_overlap() -> None:
    in_flight = 0
    max_in_flight = 0

    async def slow_handler(request: httpx.Request) -> httpx.Response:
        nonlocal in_flight, max_in_flight
        in_flight += 1
        max_in_flight = max(max_in_flight, in_flight)
        await asyncio.sleep(0.01)
        in_flight -= 1
        return httpx.Response(200, json=[])

    geocoder = make_geocoder(slow_handler)
    await asyncio.gather(*(geocoder.lookup(f"東京都{i}") for i in range(5)))
    assert max_in_flight == 1


@pytest.mark.asyncio
async def test_lookups_share_one_http_client(geocoder) -> None:
    with patch.object(httpx, "AsyncClient", wraps=httpx.AsyncClient) as client_cls:
        await geocoder.lookup("東京都千代田区1-1")
        await geocoder.lookup("大阪府大阪市北区2-2")
        await geocoder.lookup("存在しない県")

    assert client_cls.call_count == 1
    assert geocoder.is_closed is False
    await geocoder.aclose()


@pytest.mark.asyncio
async def test_aclose_closes_client_and_lookup_reopens(geocoder) -> None:
    await geocoder.lookup("東京都千代田区1-1")
    await geocoder.aclose()
    assert geocoder.is_closed is True

    assert await geocoder.lookup("東京都千代田区1-1") == Coordinate(lat=35.6812, lon=139.7671)
    assert geocoder.is_closed is False
    await geocoder.aclose()


# ---------------------------------------------------------------------------
# geocode_addresses
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_outcomes_follow_input_order(geocoder) -> None:
    lines = ["東京都千代田区1-1", "存在しない県", "大阪府大阪市北区2-2"]
    outcomes = await geocode_addresses(lines, geocoder)

    assert [(o.index, o.address, o.status) for o in outcomes] == [
        (1, "東京都千代田区1-1", "found"),
        (2, "存在しない県", "no_match"),
        (3, "大阪府大阪市北区2-2", "found"),
    ]
    assert outcomes[0].coordinate == Coordinate(lat=35.6812, lon=139.7671)
    assert outcomes[1].coordinate is None


@pytest.mark.asyncio
async def test_failed_lookup_is_logged_and_processing_continues(caplog) -> None:
    geocoder = make_geocoder(nominatim_handler(failing={"東京都千代田区1-1"}))
    lines = ["東京都千代田区1-1", "大阪府大阪市北区2-2"]

    with caplog.at_level(logging.ERROR, logger="address_ocr.geocoding.batch"):
        outcomes = await geocode_addresses(lines, geocoder)

    assert [o.status for o in outcomes] == ["error", "found"]
    assert outcomes[0].reason
    assert any(r.getMessage() == "geocode_failed" for r in caplog.records)


@pytest.mark.asyncio
async def test_no_lines_makes_no_requests() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("unexpected request")

    assert await geocode_addresses([], make_geocoder(handler)) == []
