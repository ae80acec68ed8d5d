from __future__ import annotations

from bikelocator.preprocessing.reconcile import reconcile_stations, sort_ebikes
from bikelocator.schemas.core import Coordinate, EBike, MergedStation, Operator, RankedStation, Station


PB = Operator.PUBLIBIKE
VS = Operator.VELOSPOT


def _ranked(
    operator: Operator,
    station_id: str,
    name: str,
    lat: float,
    lon: float,
    distance_m: float,
    *,
    bikes: int = 0,
    batteries: tuple = (),
) -> RankedStation[Station]:
    station = Station(
        operator=operator,
        station_id=station_id,
        name=name,
        coord=Coordinate(lat=lat, lon=lon),
        bikes=bikes,
        ebikes=tuple(EBike(operator=operator, name=f"{station_id}-{i}", battery=b) for i, b in enumerate(batteries)),
    )
    return RankedStation(item=station, distance_m=distance_m)


def test_same_name_within_a_few_meters_merges() -> None:
    a = [_ranked(PB, "pb1", "Central Station", 47.0, 8.0, 100.0, bikes=3)]
    b = [_ranked(VS, "vs1", "CENTRAL STATION", 47.00005, 8.00006, 104.0, batteries=(80.0, 40.0))]

    out = reconcile_stations(a, b)

    assert len(out) == 1
    merged = out[0].item
    assert isinstance(merged, MergedStation)
    assert merged.bikes == 3
    assert [e.battery for e in merged.ebikes] == [80.0, 40.0]
    assert merged.station_id == "vs1"
    assert merged.operator is VS
    assert merged.coord == Coordinate(47.00005, 8.00006)
    assert out[0].distance_m == 104.0
    assert merged.sources == ((VS, "vs1"), (PB, "pb1"))


def test_different_names_close_together_merge() -> None:
    a = [_ranked(PB, "pb1", "Limmatplatz", 47.3845, 8.5320, 495.0, bikes=2, batteries=(45.0,))]
    b = [_ranked(VS, "vs1", "Limmatplatz Nord", 47.38455, 8.53205, 494.0, batteries=(12.0,))]
    out = reconcile_stations(a, b)
    assert len(out) == 1
    assert out[0].item.name == "Limmatplatz Nord"
    assert [e.battery for e in out[0].item.ebikes] == [45.0, 12.0]


def test_same_name_far_apart_still_merges() -> None:
    a = [_ranked(PB, "pb1", "Bahnhof", 47.0, 8.0, 50.0, bikes=1)]
    b = [_ranked(VS, "vs1", "bahnhof", 47.01, 8.0, 900.0)]
    out = reconcile_stations(a, b)
    assert len(out) == 1
    assert out[0].distance_m == 900.0


def test_unmatched_pass_through_sorted_by_distance() -> None:
    a = [_ranked(PB, "pb1", "Alpha", 47.0, 8.0, 300.0, bikes=4), _ranked(PB, "pb2", "Beta", 47.01, 8.0, 500.0)]
    b = [_ranked(VS, "vs1", "Gamma", 47.02, 8.0, 100.0), _ranked(VS, "vs2", "Delta", 47.03, 8.0, 400.0)]
    out = reconcile_stations(a, b)
    assert [r.item.station_id for r in out] == ["vs1", "pb1", "vs2", "pb2"]
    assert out[1].item.bikes == 4
    assert out[1].item.sources == ((PB, "pb1"),)
    assert all(isinstance(r.item, MergedStation) for r in out)


def test_each_station_used_at_most_once_greedy_first_fit() -> None:
    # a1 and a2 both match b1 and b2 by distance; greedy pairs a1-b1 and a2-b2 in input order.
    a = [
        _ranked(PB, "a1", "P1", 47.0, 8.0, 10.0),
        _ranked(PB, "a2", "P2", 47.00002, 8.0, 12.0),
    ]
    b = [
        _ranked(VS, "b1", "V1", 47.00001, 8.0, 11.0),
        _ranked(VS, "b2", "V2", 47.00003, 8.0, 13.0),
    ]
    out = reconcile_stations(a, b)
    assert len(out) == 2
    assert [r.item.sources for r in out] == [((VS, "b1"), (PB, "a1")), ((VS, "b2"), (PB, "a2"))]


def test_greedy_is_not_globally_optimal() -> None:
    # a1 is close to both b1 and b2; a2 only to b1. First-fit gives b1 to a1 and leaves a2 unmatched.
    a = [
        _ranked(PB, "a1", "P1", 47.0, 8.0, 10.0),
        _ranked(PB, "a2", "P2", 46.99990, 8.0, 20.0),
    ]
    b = [
        _ranked(VS, "b1", "V1", 46.99995, 8.0, 15.0),
        _ranked(VS, "b2", "V2", 47.00005, 8.0, 5.0),
    ]
    out = reconcile_stations(a, b)
    sources = sorted(r.item.sources for r in out)
    assert ((VS, "b1"), (PB, "a1")) in sources
    assert ((PB, "a2"),) in sources
    assert ((VS, "b2"),) in sources
    assert len(out) == 3


def test_counts_and_coverage() -> None:
    a = [_ranked(PB, f"a{i}", f"A{i}", 47.0 + i * 0.01, 8.0, i * 100.0) for i in range(4)]
    b = [_ranked(VS, "b0", "A0", 47.0, 8.0, 0.0), _ranked(VS, "b9", "Z", 46.0, 8.0, 999.0)]
    out = reconcile_stations(a, b)
    assert max(len(a), len(b)) <= len(out) <= len(a) + len(b)
    seen = [src for r in out for src in r.item.sources]
    assert sorted(seen) == sorted([(PB, f"a{i}") for i in range(4)] + [(VS, "b0"), (VS, "b9")])
    distances = [r.distance_m for r in out]
    assert distances == sorted(distances)


def test_empty_inputs() -> None:
    assert reconcile_stations([], []) == []
    a = [_ranked(PB, "pb1", "Alpha", 47.0, 8.0, 30.0), _ranked(PB, "pb2", "Beta", 47.1, 8.0, 10.0)]
    out = reconcile_stations(a, [])
    assert [r.item.station_id for r in out] == ["pb2", "pb1"]
    assert reconcile_stations([], a)[0].item.station_id == "pb2"


def test_inputs_are_not_mutated() -> None:
    a = [_ranked(PB, "pb1", "Same", 47.0, 8.0, 10.0, bikes=2, batteries=(10.0,))]
    b = [_ranked(VS, "vs1", "same", 47.0, 8.0, 11.0, batteries=(90.0,))]
    before_a, before_b = a[0].item, b[0].item
    reconcile_stations(a, b)
    assert a[0].item == before_a and len(a[0].item.ebikes) == 1
    assert b[0].item == before_b and len(b[0].item.ebikes) == 1


def test_sort_ebikes_unknown_last_and_stable() -> None:
    ebikes = [
        EBike(VS, "v-unknown", None),
        EBike(VS, "v50", 50.0),
        EBike(PB, "p-unknown", None),
        EBike(PB, "p50", 50.0),
        EBike(PB, "p90", 90.0),
    ]
    assert [e.name for e in sort_ebikes(ebikes)] == ["p90", "v50", "p50", "v-unknown", "p-unknown"]
