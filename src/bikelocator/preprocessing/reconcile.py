from __future__ import annotations

from dataclasses import replace
from typing import Iterable, Sequence

from bikelocator.schemas.core import EBike, MergedStation, RankedStation, Station
from bikelocator.utils.geo import haversine_m


# Largest separation observed between two records of one physical station is ~11m.
SAME_STATION_THRESHOLD_M = 12.0


def _battery_key(ebike: EBike) -> tuple[bool, float]:
    # Known batteries first (highest first), unknown ones last.
    if ebike.battery is None:
        return (True, 0.0)
    return (False, -ebike.battery)


def sort_ebikes(ebikes: Iterable[EBike]) -> tuple[EBike, ...]:
    """Descending battery, unknown last; stable for equal levels."""

    return tuple(sorted(ebikes, key=_battery_key))


def is_same_station(a: Station, b: Station, *, threshold_m: float = SAME_STATION_THRESHOLD_M) -> bool:
    if a.name.casefold() == b.name.casefold():
        return True
    return haversine_m(a.coord, b.coord) <= threshold_m


def merge_pair(other: RankedStation[Station], preferred: RankedStation[Station]) -> RankedStation[MergedStation]:
    """
    Fold two records of one physical station into one.

    Identity (id, name, coordinate, distance) comes from the preferred operator. The bike count
    comes from the other operator, which is the only one running plain bikes.
    Ebikes are the union of both sides: the two fleets never share a vehicle.
    """

    base = preferred.item
    merged = MergedStation(
        operator=base.operator,
        station_id=base.station_id,
        name=base.name,
        coord=base.coord,
        bikes=other.item.bikes,
        ebikes=sort_ebikes([*base.ebikes, *other.item.ebikes]),
        sources=((base.operator, base.station_id), (other.item.operator, other.item.station_id)),
    )
    return RankedStation(item=merged, distance_m=preferred.distance_m)


def _passthrough(entry: RankedStation[Station]) -> RankedStation[MergedStation]:
    if isinstance(entry.item, MergedStation):
        return entry  # type: ignore[return-value]
    return replace(entry, item=MergedStation.from_station(entry.item))


def reconcile_stations(
    a: Sequence[RankedStation[Station]],
    b: Sequence[RankedStation[Station]],
    *,
    threshold_m: float = SAME_STATION_THRESHOLD_M,
) -> list[RankedStation[MergedStation]]:
    """
    Merge two operators' ranked stations, `b` being the preferred operator.

    Matching is greedy first-fit: each entry of `a`, in order, takes the first still-unmatched
    entry of `b` (in order) with the same case-insensitive name or within `threshold_m` meters.
    This is not an optimal bipartite matching.

    Unmatched entries pass through. The output is sorted by ascending distance (stable).
    """

    output: list[RankedStation[MergedStation]] = []
    merged_a: set[int] = set()
    merged_b: set[int] = set()
    for i, left in enumerate(a):
        for j, right in enumerate(b):
            if j in merged_b:
                continue
            if is_same_station(left.item, right.item, threshold_m=threshold_m):
                output.append(merge_pair(left, right))
                merged_a.add(i)
                merged_b.add(j)
                break

    output.extend(_passthrough(entry) for i, entry in enumerate(a) if i not in merged_a)
    output.extend(_passthrough(entry) for j, entry in enumerate(b) if j not in merged_b)
    return sorted(output, key=lambda entry: entry.distance_m)
