from __future__ import annotations

import math
from typing import Optional, Protocol

from bikelocator.config.models import AppConfig
from bikelocator.schemas.core import Coordinate


class LocationUnavailable(RuntimeError):
    def __init__(self, reason: str) -> None:
        super().__init__(f"location unavailable: {reason}")
        self.reason = reason


class LocationProvider(Protocol):
    def get_user_location(self) -> Coordinate: ...


class FixedLocationProvider:
    """Location supplied up front (CLI flags, query parameters, demo mode)."""

    def __init__(self, lat: float, lon: float) -> None:
        if not (math.isfinite(lat) and math.isfinite(lon)):
            raise LocationUnavailable(f"non-finite coordinate ({lat}, {lon})")
        if not (-90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0):
            raise LocationUnavailable(f"coordinate out of range ({lat}, {lon})")
        self._coord = Coordinate(lat=float(lat), lon=float(lon))

    def get_user_location(self) -> Coordinate:
        return self._coord


class MissingLocationProvider:
    def __init__(self, reason: str = "no location was provided") -> None:
        self._reason = reason

    def get_user_location(self) -> Coordinate:
        raise LocationUnavailable(self._reason)


def location_provider_for(
    config: AppConfig,
    *,
    lat: Optional[float] = None,
    lon: Optional[float] = None,
) -> LocationProvider:
    """
    Pick the location source: explicit coordinates win, then the demo location, then the configured default.
    """

    if lat is not None and lon is not None:
        return FixedLocationProvider(lat, lon)
    if lat is not None or lon is not None:
        return MissingLocationProvider("both latitude and longitude are required")
    if config.app.demo_mode:
        return FixedLocationProvider(config.demo.lat, config.demo.lon)
    if config.location.default_lat is not None and config.location.default_lon is not None:
        return FixedLocationProvider(config.location.default_lat, config.location.default_lon)
    return MissingLocationProvider()
