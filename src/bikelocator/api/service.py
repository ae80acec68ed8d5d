from __future__ import annotations

from typing import Any, Optional

from bikelocator.config.models import AppConfig
from bikelocator.ingestion.location import location_provider_for
from bikelocator.pipeline.factory import build_catalogs, build_locator, open_sources
from bikelocator.pipeline.locator import LocateResult
from bikelocator.reporting.formatting import battery_style, maps_url


# `LocatorService` sits between HTTP routes and the pipeline.
# Every call builds fresh sources and a fresh locator, so concurrent requests share no state.
class LocatorService:
    def __init__(self, config: AppConfig) -> None:
        self._config = config

    @property
    def config(self) -> AppConfig:
        return self._config

    def locate(self, *, lat: Optional[float] = None, lon: Optional[float] = None) -> LocateResult:
        # `LocationUnavailable` may already be raised here for out-of-range coordinates.
        location = location_provider_for(self._config, lat=lat, lon=lon)
        with open_sources(self._config) as sources:
            locator = build_locator(self._config, location=location, catalogs=build_catalogs(self._config, sources))
            return locator.locate()

    def nearby_payload(self, *, lat: Optional[float] = None, lon: Optional[float] = None) -> dict[str, Any]:
        result = self.locate(lat=lat, lon=lon)
        items = []
        for entry in result.stations:
            station = entry.item
            items.append(
                {
                    "station_id": station.station_id,
                    "operator": station.operator.value,
                    "name": station.name,
                    "lat": station.coord.lat,
                    "lon": station.coord.lon,
                    "distance_m": entry.distance_m,
                    "bikes": station.bikes,
                    "ebike_count": len(station.ebikes),
                    "ebikes": [
                        {
                            "name": ebike.name,
                            "operator": ebike.operator.value,
                            "battery": ebike.battery,
                            "style": battery_style(ebike.battery),
                        }
                        for ebike in station.ebikes
                    ],
                    "sources": [{"operator": op.value, "station_id": sid} for op, sid in station.sources],
                    "maps_url": maps_url(station.coord),
                }
            )
        return {
            "user": {"lat": result.user.lat, "lon": result.user.lon},
            "items": items,
            "meta": {
                "candidates": {op.value: n for op, n in result.candidates.items()},
                "fetched": {op.value: n for op, n in result.fetched.items()},
                "dropped": [{"operator": op.value, "station_id": sid} for op, sid in result.dropped],
            },
        }
