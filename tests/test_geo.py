from __future__ import annotations

import pytest

from bikelocator.schemas.core import Coordinate
from bikelocator.utils.geo import distance_m, haversine_m


def test_distance_to_self_is_exactly_zero() -> None:
    point = Coordinate(lat=47.3769, lon=8.5417)
    assert haversine_m(point, point) == 0.0


@pytest.mark.parametrize(
    "a,b",
    [
        (Coordinate(47.3769, 8.5417), Coordinate(46.9480, 7.4474)),
        (Coordinate(-33.86, 151.21), Coordinate(51.5072, -0.1276)),
        (Coordinate(0.0, 179.9), Coordinate(0.0, -179.9)),
    ],
)
def test_distance_is_symmetric(a: Coordinate, b: Coordinate) -> None:
    assert haversine_m(a, b) == pytest.approx(haversine_m(b, a), rel=1e-12)


def test_zurich_to_bern_is_about_95km() -> None:
    d = distance_m(47.3769, 8.5417, 46.9480, 7.4474)
    assert 94_000 < d < 97_000


def test_one_degree_of_latitude_matches_earth_diameter() -> None:
    # pi * 12_742_000 / 360
    assert distance_m(0.0, 0.0, 1.0, 0.0) == pytest.approx(111_194.9, abs=0.5)


def test_small_offsets_are_meter_scale() -> None:
    d = haversine_m(Coordinate(47.0, 8.0), Coordinate(47.00005, 8.00006))
    assert 5.0 < d < 8.0


@pytest.mark.parametrize(
    "lat1,lon1,lat2,lon2",
    [
        (89.59799, 133.22057, -89.59799, -46.77943),
        (0.0, 0.0, 0.0, 180.0),
        (47.3769, 8.5417, -47.3769, -171.4583),
    ],
)
def test_antipodal_points_are_half_the_circumference(lat1: float, lon1: float, lat2: float, lon2: float) -> None:
    # pi * 12_742_000 / 2
    assert distance_m(lat1, lon1, lat2, lon2) == pytest.approx(20_015_086.8, rel=1e-6)
