from __future__ import annotations

from typing import Iterable

from bikelocator.config.models import RankingSettings
from bikelocator.schemas.core import Coordinate, RankedStation, StationStub
from bikelocator.utils.geo import haversine_m


def rank_stations(
    stubs: Iterable[StationStub],
    user: Coordinate,
    *,
    max_distance_m: float = 1000.0,
    max_count: int = 10,
) -> list[RankedStation[StationStub]]:
    """
    Keep the `max_count` stations closest to `user`, within `max_distance_m`.

    The result is sorted by ascending distance; equal distances keep their input order.
    """

    if max_count <= 0:
        return []
    ranked = [RankedStation(item=stub, distance_m=haversine_m(user, stub.coord)) for stub in stubs]
    nearby = [entry for entry in ranked if entry.distance_m <= max_distance_m]
    # `sorted` is stable, which is what keeps ties in input order.
    nearby = sorted(nearby, key=lambda entry: entry.distance_m)
    return nearby[:max_count]


def rank_with_settings(
    stubs: Iterable[StationStub], user: Coordinate, settings: RankingSettings
) -> list[RankedStation[StationStub]]:
    return rank_stations(stubs, user, max_distance_m=settings.max_distance_m, max_count=settings.max_stations)
