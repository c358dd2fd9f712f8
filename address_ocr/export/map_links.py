from __future__ import annotations

import html
from dataclasses import dataclass
from urllib.parse import quote

from address_ocr.extraction.addresses import extract_address_lines

DEFAULT_MAP_SEARCH_URL = "https://www.google.com/maps/search/?api=1"

# Characters encodeURIComponent leaves alone
_URI_COMPONENT_SAFE = "-_.!~*'()"


@dataclass(frozen=True)
class MapLink:
    address: str
    url: str


def map_search_url(address: str, base_url: str = DEFAULT_MAP_SEARCH_URL) -> str:
    return f"{base_url}&query={quote(address, safe=_URI_COMPONENT_SAFE)}"


def build_map_links(text: str, base_url: str = DEFAULT_MAP_SEARCH_URL) -> list[MapLink]:
    return [MapLink(address, map_search_url(address, base_url)) for address in extract_address_lines(text)]


def render_map_links(links: list[MapLink]) -> str:
    """Render links as HTML anchors that open in a new browsing context."""
    return "\n".join(
        '<div class="map-link"><a href="{url}" target="_blank" rel="noopener noreferrer">{text}</a></div>'.format(
            url=html.escape(link.url, quote=True),
            text=html.escape(link.address),
        )
        for link in links
    )
