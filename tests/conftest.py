"""Shared pytest configuration and fixtures."""
from __future__ import annotations

import json
import os
from collections.abc import Callable

import httpx
import pytest

# Provide env vars before any address_ocr module is imported
os.environ.setdefault("OCR_PROVIDER", "mock")
os.environ.setdefault("GEOCODE_MIN_INTERVAL", "0")
os.environ.setdefault("GEOCODE_MAX_ATTEMPTS", "1")

from address_ocr.geocoding.nominatim import NominatimGeocoder  # noqa: E402

GEOCODER_URL = "https://nominatim.test/search"

# address → Nominatim candidates (lat/lon are strings, as the service returns them)
KNOWN_ADDRESSES: dict[str, list[dict[str, str]]] = {
    "東京都千代田区千代田1-1": [{"lat": "35.6852", "lon": "139.7528"}],
    "大阪府大阪市北区梅田3-1-1": [{"lat": "34.7024", "lon": "135.4959"}],
    "東京都千代田区1-1": [{"lat": "35.6812", "lon": "139.7671", "display_name": "千代田区"}],
    "大阪府大阪市北区2-2": [{"lat": "34.7025", "lon": "135.4959", "display_name": "北区"}],
    "京都府京都市下京区3-3": [
        {"lat": "34.9858", "lon": "135.7588"},
        {"lat": "0", "lon": "0"},
    ],
}


def nominatim_handler(
    known: dict[str, list[dict[str, str]]] | None = None,
    *,
    failing: set[str] | None = None,
) -> Callable[[httpx.Request], httpx.Response]:
    """Build a MockTransport handler answering like the Nominatim search API."""
    known = KNOWN_ADDRESSES if known is None else known
    failing = failing or set()

    def handler(request: httpx.Request) -> httpx.Response:
        query = request.url.params["q"]
        if query in failing:
            raise httpx.ConnectError("connection refused", request=request)
        body = json.dumps(known.get(query, []), ensure_ascii=False)
        return httpx.Response(200, content=body.encode("utf-8"), headers={"Content-Type": "application/json"})

    return handler


def make_geocoder(handler: Callable[[httpx.Request], httpx.Response], **kwargs) -> NominatimGeocoder:
    return NominatimGeocoder(GEOCODER_URL, transport=httpx.MockTransport(handler), **kwargs)


@pytest.fixture
def geocoder() -> NominatimGeocoder:
    return make_geocoder(nominatim_handler())
