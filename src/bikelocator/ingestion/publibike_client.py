from __future__ import annotations

# `logging` reports how many stations each map contained, which helps spot upstream outages.
import logging
# Typing helpers keep our parsing rules explicit while we still consume raw JSON dicts.
from typing import Any, Mapping

from bikelocator.analytics.battery import battery_from_percentage
from bikelocator.ingestion.catalog import (
    BIKE_TYPE,
    EBIKE_TYPE,
    PAYLOAD_ERRORS,
    CatalogUnavailable,
    StationUnavailable,
    parse_coordinate,
    parse_stub,
    require_list,
)
from bikelocator.ingestion.http_base import OperatorRequestError
from bikelocator.ingestion.sources import OperatorSource
from bikelocator.preprocessing.reconcile import sort_ebikes
from bikelocator.schemas.core import EBike, Operator, Station, StationStub


logger = logging.getLogger(__name__)


# `PubliBikeCatalog` is the percentage-native operator: every ebike reports its battery level directly.
class PubliBikeCatalog:
    operator = Operator.PUBLIBIKE

    def __init__(self, source: OperatorSource) -> None:
        # The source hides whether payloads come from the live API or from demo files.
        self._source = source

    def list_stations(self) -> list[StationStub]:
        try:
            payload = require_list(self._source.station_list(), what="publibike stations")
            stubs = [parse_stub(item, operator=self.operator) for item in payload]
        except (OperatorRequestError, OSError) as exc:
            raise CatalogUnavailable(self.operator, str(exc)) from exc
        except PAYLOAD_ERRORS as exc:
            raise CatalogUnavailable(self.operator, f"malformed station map: {exc}") from exc
        logger.debug("Parsed %s publibike stations", len(stubs))
        return stubs

    def get_station_detail(self, station_id: str) -> Station:
        try:
            payload = self._source.station_detail(station_id)
            return self.parse_station(payload, station_id=station_id)
        except (OperatorRequestError, OSError) as exc:
            raise StationUnavailable(self.operator, station_id, str(exc)) from exc
        except PAYLOAD_ERRORS as exc:
            raise StationUnavailable(self.operator, station_id, f"malformed station detail: {exc}") from exc

    @staticmethod
    def parse_station(item: Mapping[str, Any], *, station_id: str) -> Station:
        vehicles = require_list(item.get("vehicles", []), what="publibike vehicles")
        # Vehicle type is nested as `{"type": {"id": 1}}`.
        bikes = sum(1 for vehicle in vehicles if vehicle["type"]["id"] == BIKE_TYPE)
        ebikes = [
            EBike(
                operator=Operator.PUBLIBIKE,
                name=str(vehicle.get("name") or ""),
                # A reported 0 (or no level at all) means "unknown", not an empty battery.
                battery=battery_from_percentage(vehicle.get("ebike_battery_level")),
            )
            for vehicle in vehicles
            if vehicle["type"]["id"] == EBIKE_TYPE
        ]
        return Station(
            operator=Operator.PUBLIBIKE,
            station_id=str(station_id),
            name=str(item["name"]),
            coord=parse_coordinate(item),
            bikes=bikes,
            ebikes=sort_ebikes(ebikes),
        )
