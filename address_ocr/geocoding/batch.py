from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal, Protocol

from address_ocr.core.errors import GeocodingError
from address_ocr.geocoding.nominatim import Coordinate

logger = logging.getLogger(__name__)

OutcomeStatus = Literal["found", "no_match", "error"]


class Geocoder(Protocol):
    async def lookup(self, address: str) -> Coordinate | None: ...


@dataclass(frozen=True)
class GeocodeOutcome:
    """Result of geocoding one address line.

    ``index`` is the 1-based position of the line among all address lines,
    whether or not it resolved.
    """
    index: int
    address: str
    status: OutcomeStatus
    coordinate: Coordinate | None = None
    reason: str | None = None


async def geocode_addresses(lines: list[str], geocoder: Geocoder) -> list[GeocodeOutcome]:
    """Geocode *lines* one at a time, in order.

    A failed lookup is logged and recorded as an ``error`` outcome; the
    remaining lines are still processed.
    """
    outcomes: list[GeocodeOutcome] = []

    for index, address in enumerate(lines, start=1):
        try:
            coordinate = await geocoder.lookup(address)
        except GeocodingError as exc:
            logger.error(
                "geocode_failed",
                extra={"index": index, "address": address, "reason": exc.reason},
            )
            outcomes.append(GeocodeOutcome(index, address, "error", reason=exc.reason))
            continue

        if coordinate is None:
            logger.info("geocode_no_match", extra={"index": index, "address": address})
            outcomes.append(GeocodeOutcome(index, address, "no_match", reason="no candidates"))
        else:
            outcomes.append(GeocodeOutcome(index, address, "found", coordinate=coordinate))

    return outcomes
