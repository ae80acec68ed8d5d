from __future__ import annotations

import logging
import re
from typing import Any, Mapping, Optional

from bikelocator.analytics.battery import DEFAULT_BATTERY, estimate_from_voltage, round_half_up
from bikelocator.config.models import BatterySettings
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

# Station names carry a city suffix like "Hardbrücke - Zürich".
_CITY_SUFFIX = re.compile(r"\s-\s[^\s-]+$")
# Ebike names carry a trailing "e" marker, e.g. "512345e".
_EBIKE_MARKER = re.compile(r"e$")

_OUT_OF_SERVICE_KEYS = ("outOfService", "out_of_service", "isOutOfService")


def strip_city_suffix(name: str) -> str:
    return _CITY_SUFFIX.sub("", name)


def strip_ebike_marker(name: str) -> str:
    return _EBIKE_MARKER.sub("", name)


def is_out_of_service(item: Mapping[str, Any]) -> bool:
    return any(bool(item.get(key)) for key in _OUT_OF_SERVICE_KEYS)


class VelospotCatalog:
    """
    Voltage-native operator: ebikes report raw pack voltage, converted with the 36V curve.
    """

    operator = Operator.VELOSPOT

    def __init__(self, source: OperatorSource, *, battery: BatterySettings = DEFAULT_BATTERY) -> None:
        self._source = source
        self._battery = battery

    def list_stations(self) -> list[StationStub]:
        try:
            payload = require_list(self._source.station_list(), what="velospot stations")
            in_service = [item for item in payload if not is_out_of_service(item)]
            stubs = [parse_stub(item, operator=self.operator) for item in in_service]
        except (OperatorRequestError, OSError) as exc:
            raise CatalogUnavailable(self.operator, str(exc)) from exc
        except PAYLOAD_ERRORS as exc:
            raise CatalogUnavailable(self.operator, f"malformed station map: {exc}") from exc
        logger.debug(
            "Parsed %s velospot stations (%s out of service skipped)",
            len(stubs),
            len(payload) - len(in_service),
        )
        return stubs

    def get_station_detail(self, station_id: str) -> Station:
        try:
            payload = self._source.station_detail(station_id)
            return self.parse_station(payload, station_id=station_id, battery=self._battery)
        except (OperatorRequestError, OSError) as exc:
            raise StationUnavailable(self.operator, station_id, str(exc)) from exc
        except PAYLOAD_ERRORS as exc:
            raise StationUnavailable(self.operator, station_id, f"malformed station detail: {exc}") from exc

    @staticmethod
    def parse_station(
        item: Mapping[str, Any],
        *,
        station_id: str,
        battery: BatterySettings = DEFAULT_BATTERY,
    ) -> Station:
        vehicles = require_list(item.get("vehicles", []), what="velospot vehicles")
        # Unlike PubliBike, the vehicle type is a bare integer.
        bikes = sum(1 for vehicle in vehicles if vehicle["type"] == BIKE_TYPE)
        ebikes = [
            EBike(
                operator=Operator.VELOSPOT,
                name=strip_ebike_marker(str(vehicle.get("name") or "")),
                battery=round_half_up(estimate_from_voltage(_voltage(vehicle), battery)),
            )
            for vehicle in vehicles
            if vehicle["type"] == EBIKE_TYPE
        ]
        return Station(
            operator=Operator.VELOSPOT,
            station_id=str(station_id),
            name=strip_city_suffix(str(item["name"])),
            coord=parse_coordinate(item),
            bikes=bikes,
            ebikes=sort_ebikes(ebikes),
        )


def _voltage(vehicle: Mapping[str, Any]) -> Optional[float]:
    raw = vehicle.get("voltage")
    if raw is None or raw == "" or isinstance(raw, bool):
        return None
    try:
        return float(raw)
    except (TypeError, ValueError):
        # An unreadable reading is an unknown battery, not a broken station.
        return None
