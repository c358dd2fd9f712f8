from __future__ import annotations

import uuid

from pydantic import BaseModel, Field


class SessionOut(BaseModel):
    id: uuid.UUID
    has_image: bool
    image_filename: str | None = None
    text: str | None
    busy: bool


class AddressLinesOut(BaseModel):
    addresses: list[str]


class MapLinkOut(BaseModel):
    address: str
    url: str


class CoordinateOut(BaseModel):
    lat: float
    lon: float


class GeocodeOutcomeOut(BaseModel):
    """Per-address geocoding result."""
    index: int
    address: str
    status: str          # found | no_match | error
    coordinate: CoordinateOut | None = None
    reason: str | None = None


class ExportSummaryOut(BaseModel):
    address_lines: int
    found: int
    no_match: int
    error: int


class ExportReportOut(BaseModel):
    feature_collection: dict
    outcomes: list[GeocodeOutcomeOut] = Field(default_factory=list)
    summary: ExportSummaryOut
