"""Address line extraction from recognized text.

A line counts as an address when it contains at least one Japanese
administrative-unit marker: 都 道 府 県 (prefecture level) or 市 区 町 村
(municipality level). Lines are never rewritten, only kept or dropped, and
their source order is preserved.

Both the GeoJSON export and the map-link list go through
``extract_address_lines`` so the two always show the same addresses.
"""
from __future__ import annotations

ADDRESS_MARKERS = frozenset("都道府県市区町村")


def is_address_line(line: str) -> bool:
    return any(ch in ADDRESS_MARKERS for ch in line)


def extract_address_lines(text: str) -> list[str]:
    return [line for line in text.split("\n") if is_address_line(line)]
