from __future__ import annotations

from typing import Any, Mapping, Protocol, Sequence

from bikelocator.schemas.core import Coordinate, Operator, Station, StationStub


# Vehicle type tags shared by both operators' payloads.
BIKE_TYPE = 1
EBIKE_TYPE = 2

# Payload parsing failures that make a station map or detail record unusable.
PAYLOAD_ERRORS = (KeyError, TypeError, ValueError, AttributeError)


class CatalogUnavailable(RuntimeError):
    def __init__(self, operator: Operator, reason: str) -> None:
        super().__init__(f"{operator.value} station map unavailable: {reason}")
        self.operator = operator
        self.reason = reason


class StationUnavailable(RuntimeError):
    def __init__(self, operator: Operator, station_id: str, reason: str) -> None:
        super().__init__(f"{operator.value} station {station_id} unavailable: {reason}")
        self.operator = operator
        self.station_id = station_id
        self.reason = reason


class StationCatalog(Protocol):
    """
    Capability implemented once per operator.

    Add an operator by adding an implementation, not by subclassing an existing one.
    """

    operator: Operator

    def list_stations(self) -> Sequence[StationStub]: ...

    def get_station_detail(self, station_id: str) -> Station: ...


def parse_coordinate(item: Mapping[str, Any]) -> Coordinate:
    lat = item["latitude"]
    lon = item["longitude"]
    if lat is None or lon is None:
        raise ValueError(f"Missing coordinates in record: {dict(item)}")
    return Coordinate(lat=float(lat), lon=float(lon))


def parse_stub(item: Mapping[str, Any], *, operator: Operator) -> StationStub:
    station_id = item.get("id")
    # A stable id is required to fetch the detail later, so fail fast.
    if station_id is None or station_id == "":
        raise ValueError(f"Missing station id in record: {dict(item)}")
    return StationStub(operator=operator, station_id=str(station_id), coord=parse_coordinate(item))


def require_list(payload: Any, *, what: str) -> list[Any]:
    if not isinstance(payload, list):
        raise ValueError(f"Expected a JSON list for {what}, got {type(payload).__name__}")
    return payload
