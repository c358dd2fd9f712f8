"""Nominatim (OpenStreetMap) geocoding client.

Every lookup is a single ``GET /search?format=json&q=<address>``; only the
first candidate is used. The public instance is unauthenticated and
rate-limited, so a geocoder never has more than one request in flight: lookups
are serialized through an ``asyncio.Lock``, with an optional minimum interval
between consecutive requests. All lookups share one pooled
``httpx.AsyncClient``; call ``aclose()`` on shutdown.

Retries are off by default (``GEOCODE_MAX_ATTEMPTS=1``). Larger values retry
transport errors only, with exponential back-off.
"""
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from address_ocr.core.errors import GeocodingError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Coordinate:
    lat: float
    lon: float


class NominatimGeocoder:
    def __init__(
        self,
        base_url: str = "https://nominatim.openstreetmap.org/search",
        *,
        user_agent: str | None = None,
        timeout: float | None = None,
        max_attempts: int = 1,
        retry_wait: float = 1.0,
        min_interval: float = 0.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url
        self._headers = {"User-Agent": user_agent} if user_agent else {}
        self._timeout = httpx.Timeout(timeout)
        self._max_attempts = max(1, max_attempts)
        self._retry_wait = retry_wait
        self._min_interval = min_interval
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._lock = asyncio.Lock()
        self._last_request_at: float | None = None

    @classmethod
    def from_settings(cls, settings, **kwargs) -> NominatimGeocoder:
        return cls(
            settings.geocoder_url,
            user_agent=settings.geocode_user_agent,
            timeout=settings.geocode_timeout,
            max_attempts=settings.geocode_max_attempts,
            retry_wait=settings.geocode_retry_wait,
            min_interval=settings.geocode_min_interval,
            **kwargs,
        )

    async def lookup(self, address: str) -> Coordinate | None:
        """Resolve *address* to the first candidate's coordinate.

        Returns None when the service has no candidate. Raises GeocodingError
        when the request fails or the payload cannot be read.
        """
        async with self._lock:
            await self._wait_for_interval()
            try:
                candidates = await self._search(address)
            finally:
                self._last_request_at = time.monotonic()

        if not candidates:
            return None

        first = candidates[0]
        try:
            return Coordinate(lat=float(first["lat"]), lon=float(first["lon"]))
        except (KeyError, TypeError, ValueError) as exc:
            raise GeocodingError(address, f"malformed candidate: {exc!r}") from exc

    @property
    def is_closed(self) -> bool:
        return self._client is None or self._client.is_closed

    async def aclose(self) -> None:
        """Close the pooled HTTP client. A later lookup opens a new one."""
        async with self._lock:
            if self._client is not None:
                await self._client.aclose()
                self._client = None

    def _get_client(self) -> httpx.AsyncClient:
        # called with the lock held
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                headers=self._headers, timeout=self._timeout, transport=self._transport
            )
        return self._client

    async def _wait_for_interval(self) -> None:
        if self._min_interval <= 0 or self._last_request_at is None:
            return
        remaining = self._last_request_at + self._min_interval - time.monotonic()
        if remaining > 0:
            await asyncio.sleep(remaining)

    async def _search(self, address: str) -> list[dict[str, Any]]:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_exponential(multiplier=self._retry_wait, min=0, max=10),
            retry=retry_if_exception_type(httpx.TransportError),
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    response = await self._get_client().get(
                        self._base_url, params={"format": "json", "q": address}
                    )
                    response.raise_for_status()
                    data = response.json()
        except httpx.HTTPError as exc:
            raise GeocodingError(address, str(exc) or type(exc).__name__) from exc
        except ValueError as exc:
            raise GeocodingError(address, "response is not valid JSON") from exc

        if not isinstance(data, list):
            raise GeocodingError(address, f"unexpected response type {type(data).__name__}")

        logger.debug("geocode_response", extra={"address": address, "candidates": len(data)})
        return data
