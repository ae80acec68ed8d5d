from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar


class Operator(str, Enum):
    # Percentage-native: ebikes report their battery level directly.
    PUBLIBIKE = "publibike"
    # Voltage-native: ebikes report a raw pack voltage.
    VELOSPOT = "velospot"


@dataclass(frozen=True)
class Coordinate:
    lat: float
    lon: float


@dataclass(frozen=True)
class StationStub:
    operator: Operator
    station_id: str
    coord: Coordinate


@dataclass(frozen=True)
class EBike:
    operator: Operator
    name: str
    # Percentage in [0, 100]; `None` means unknown, never an empty battery.
    battery: Optional[float] = None


@dataclass(frozen=True)
class Station:
    operator: Operator
    station_id: str
    name: str
    coord: Coordinate
    bikes: int = 0
    ebikes: tuple[EBike, ...] = ()


@dataclass(frozen=True)
class MergedStation(Station):
    sources: tuple[tuple[Operator, str], ...] = ()

    @classmethod
    def from_station(cls, station: Station) -> "MergedStation":
        return cls(
            operator=station.operator,
            station_id=station.station_id,
            name=station.name,
            coord=station.coord,
            bikes=station.bikes,
            ebikes=station.ebikes,
            sources=((station.operator, station.station_id),),
        )


T = TypeVar("T")


@dataclass(frozen=True)
class RankedStation(Generic[T]):
    item: T
    distance_m: float
