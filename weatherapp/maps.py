"""OpenStreetMap links for a stored request's coordinates."""

from __future__ import annotations

from .schemas import MapLinks

MAP_DELTA = 0.05


def map_links(lat: float, lon: float) -> MapLinks:
    """A ±0.05° bounding box around the point, an embeddable view and a standalone page."""
    left = f"{lon - MAP_DELTA:.5f}"
    right = f"{lon + MAP_DELTA:.5f}"
    top = f"{lat + MAP_DELTA:.5f}"
    bottom = f"{lat - MAP_DELTA:.5f}"
    bbox = f"{left},{bottom},{right},{top}"

    return MapLinks(
        bbox=bbox,
        map_embed_url=f"https://www.openstreetmap.org/export/embed.html?bbox={bbox}&layer=mapnik&marker={lat},{lon}",
        map_link=f"https://www.openstreetmap.org/?mlat={lat}&mlon={lon}#map=11/{lat}/{lon}",
    )
