from __future__ import annotations

import math

from bikelocator.schemas.core import Coordinate


EARTH_DIAMETER_M = 12_742_000.0


def distance_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Great-circle distance in meters (haversine on a spherical Earth).

    Identical points yield exactly 0.0; the result is symmetric in its arguments.
    """

    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)
    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(dlon / 2) ** 2
    )
    # Rounding can push `a` just outside [0, 1] for near-antipodal points.
    a = min(1.0, max(0.0, a))
    return EARTH_DIAMETER_M * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def haversine_m(a: Coordinate, b: Coordinate) -> float:
    return distance_m(a.lat, a.lon, b.lat, b.lon)
