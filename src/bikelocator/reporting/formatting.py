from __future__ import annotations

from typing import Optional

from bikelocator.schemas.core import Coordinate


# (minimum level, glyph, style class) from fullest to emptiest.
BATTERY_STYLES: list[tuple[float, str, str]] = [
    (90, "█", "bat-nice"),
    (60, "▆", "bat-meh"),
    (30, "▄", "bat-ugh"),
    (float("-inf"), "▁", "bat-zero"),
]
UNKNOWN_BATTERY_GLYPH = "?"


def format_distance(meters: float) -> str:
    if meters < 1000:
        return f"{round(meters)}m"
    return f"{round(meters / 100) / 10}km"


def battery_style(level: Optional[float]) -> Optional[str]:
    if level is None:
        return None
    for minimum, _, class_name in BATTERY_STYLES:
        if level >= minimum:
            return class_name
    return None


def battery_glyph(level: Optional[float]) -> str:
    if level is None:
        return UNKNOWN_BATTERY_GLYPH
    for minimum, glyph, _ in BATTERY_STYLES:
        if level >= minimum:
            return glyph
    return UNKNOWN_BATTERY_GLYPH


def battery_label(level: Optional[float]) -> str:
    return "?" if level is None else f"{level:.0f}%"


def maps_url(coord: Coordinate) -> str:
    return f"https://maps.google.com/maps?q={coord.lat},{coord.lon}"
