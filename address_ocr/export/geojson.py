"""GeoJSON export of geocoded address lines.

Each resolved address becomes a Point feature::

    {
      "type": "Feature",
      "properties": {"name": "destination3", "address": "..."},
      "geometry": {"type": "Point", "coordinates": [lon, lat]}
    }

Feature names carry the position of the line among all address lines, so
when line 2 of 3 has no match the collection holds ``destination1`` and
``destination3``.
"""
from __future__ import annotations

import json
import logging
from collections import Counter
from dataclasses import dataclass, field

from address_ocr.extraction.addresses import extract_address_lines
from address_ocr.geocoding.batch import GeocodeOutcome, Geocoder, geocode_addresses
from address_ocr.geocoding.nominatim import Coordinate

logger = logging.getLogger(__name__)

GEOJSON_MEDIA_TYPE = "application/geo+json"


@dataclass(frozen=True)
class GeocodedFeature:
    name: str
    address: str
    coordinate: Coordinate

    def to_geojson(self) -> dict:
        return {
            "type": "Feature",
            "properties": {"name": self.name, "address": self.address},
            "geometry": {
                "type": "Point",
                "coordinates": [self.coordinate.lon, self.coordinate.lat],
            },
        }


@dataclass(frozen=True)
class FeatureCollection:
    features: list[GeocodedFeature] = field(default_factory=list)

    def to_geojson(self) -> dict:
        return {
            "type": "FeatureCollection",
            "features": [f.to_geojson() for f in self.features],
        }

    def __len__(self) -> int:
        return len(self.features)


@dataclass(frozen=True)
class ExportReport:
    collection: FeatureCollection
    outcomes: list[GeocodeOutcome]

    @property
    def summary(self) -> dict[str, int]:
        counts = Counter(o.status for o in self.outcomes)
        return {
            "address_lines": len(self.outcomes),
            "found": counts["found"],
            "no_match": counts["no_match"],
            "error": counts["error"],
        }


def build_feature_collection(
    outcomes: list[GeocodeOutcome], *, label_prefix: str = "destination"
) -> FeatureCollection:
    features = [
        GeocodedFeature(
            name=f"{label_prefix}{o.index}",
            address=o.address,
            coordinate=o.coordinate,
        )
        for o in outcomes
        if o.status == "found" and o.coordinate is not None
    ]
    return FeatureCollection(features)


async def build_export(
    text: str, geocoder: Geocoder, *, label_prefix: str = "destination"
) -> ExportReport:
    """Filter address lines out of *text*, geocode them and collect the features."""
    lines = extract_address_lines(text)
    outcomes = await geocode_addresses(lines, geocoder)
    report = ExportReport(
        collection=build_feature_collection(outcomes, label_prefix=label_prefix),
        outcomes=outcomes,
    )
    logger.info("export_built", extra=report.summary)
    return report


def serialize_feature_collection(collection: FeatureCollection) -> str:
    return json.dumps(collection.to_geojson(), indent=2, ensure_ascii=False)
