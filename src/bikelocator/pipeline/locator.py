from __future__ import annotations

import logging
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Mapping, Optional, Sequence

from bikelocator.config.models import RankingSettings
from bikelocator.ingestion.catalog import StationCatalog, StationUnavailable
from bikelocator.ingestion.location import LocationProvider, LocationUnavailable
from bikelocator.preprocessing.ranking import rank_with_settings
from bikelocator.preprocessing.reconcile import SAME_STATION_THRESHOLD_M, reconcile_stations
from bikelocator.schemas.core import (
    Coordinate,
    MergedStation,
    Operator,
    RankedStation,
    Station,
    StationStub,
)


logger = logging.getLogger(__name__)


class StepState(str, Enum):
    PENDING = "pending"
    READY = "ready"
    ERRORED = "errored"


StepCallback = Callable[[str, StepState, Optional[str]], None]


@dataclass(frozen=True)
class LocateResult:
    user: Coordinate
    stations: list[RankedStation[MergedStation]]
    candidates: dict[Operator, int] = field(default_factory=dict)
    fetched: dict[Operator, int] = field(default_factory=dict)
    dropped: list[tuple[Operator, str]] = field(default_factory=list)


def _noop_step(step: str, state: StepState, message: Optional[str]) -> None:
    return None


class StationLocator:
    """
    One point-in-time lookup of the nearest stations across two operators.

    1. User location and both station maps are fetched concurrently; any failure aborts the run.
    2. Each operator's map is ranked independently around the user.
    3. Details of every selected station are fetched concurrently; a failed station is dropped.
    4. Both detailed lists are reconciled into one distance-ordered list.

    Each `locate()` call is independent, so overlapping runs (e.g. repeated refreshes) are safe.
    """

    def __init__(
        self,
        *,
        location: LocationProvider,
        catalogs: Mapping[Operator, StationCatalog],
        preferred: Operator = Operator.VELOSPOT,
        ranking: RankingSettings = RankingSettings(),
        same_station_threshold_m: float = SAME_STATION_THRESHOLD_M,
        location_timeout_s: Optional[float] = 10.0,
        max_workers: int = 8,
    ) -> None:
        if len(catalogs) != 2 or preferred not in catalogs:
            raise ValueError(f"Expected two catalogs including preferred operator {preferred.value}")
        self._location = location
        self._preferred = preferred
        (self._other,) = [op for op in catalogs if op != preferred]
        self._catalogs = dict(catalogs)
        self._ranking = ranking
        self._threshold_m = same_station_threshold_m
        self._location_timeout_s = location_timeout_s
        self._max_workers = max(2, max_workers)

    def locate(self, on_step: Optional[StepCallback] = None) -> LocateResult:
        report = on_step or _noop_step
        operators = [self._other, self._preferred]

        pool = ThreadPoolExecutor(max_workers=self._max_workers, thread_name_prefix="locator")
        try:
            user, maps = self._fetch_inputs(pool, operators, report)

            candidates = {op: rank_with_settings(maps[op], user, self._ranking) for op in operators}
            for op in operators:
                logger.info("%s: %s candidate stations near user", op.value, len(candidates[op]))

            detailed, dropped = self._fetch_details(pool, candidates, report)
        finally:
            # A timed-out location lookup may still be running; never block on it.
            pool.shutdown(wait=False, cancel_futures=True)

        report("stations", StepState.PENDING, None)
        stations = reconcile_stations(
            detailed[self._other],
            detailed[self._preferred],
            threshold_m=self._threshold_m,
        )
        report("stations", StepState.READY, None)
        logger.info("Located %s stations (%s dropped)", len(stations), len(dropped))

        return LocateResult(
            user=user,
            stations=stations,
            candidates={op: len(candidates[op]) for op in operators},
            fetched={op: len(detailed[op]) for op in operators},
            dropped=dropped,
        )

    def _fetch_inputs(
        self,
        pool: ThreadPoolExecutor,
        operators: Sequence[Operator],
        report: StepCallback,
    ) -> tuple[Coordinate, dict[Operator, list[StationStub]]]:
        # Fail-fast join: location and both maps are mandatory.
        steps: dict[Future, str] = {}
        report("location", StepState.PENDING, None)
        location_future = pool.submit(self._location.get_user_location)
        steps[location_future] = "location"
        map_futures: dict[Operator, Future] = {}
        for op in operators:
            report(f"{op.value}_map", StepState.PENDING, None)
            map_futures[op] = pool.submit(self._catalogs[op].list_stations)
            steps[map_futures[op]] = f"{op.value}_map"

        pending: set[Future] = set(steps)
        done, pending = wait(pending, timeout=self._location_timeout_s, return_when=FIRST_EXCEPTION)
        self._raise_first_failure(done, steps, report)
        if location_future not in done:
            error = LocationUnavailable(f"timed out after {self._location_timeout_s}s")
            self._fail(pending, "location", error, report)
        if pending:
            done, pending = wait(pending, return_when=FIRST_EXCEPTION)
            self._raise_first_failure(done, steps, report)

        for future, step in steps.items():
            report(step, StepState.READY, None)
        return location_future.result(), {op: list(future.result()) for op, future in map_futures.items()}

    def _raise_first_failure(self, done: set[Future], steps: Mapping[Future, str], report: StepCallback) -> None:
        # Report in submission order so the location error wins over a simultaneous map error.
        for future, step in steps.items():
            if future in done and future.exception() is not None:
                others = {f for f in steps if f is not future}
                self._fail(others, step, future.exception(), report)

    def _fail(self, others: set[Future], step: str, error: BaseException, report: StepCallback) -> None:
        for future in others:
            future.cancel()
        logger.error("Step %s failed: %s", step, error)
        report(step, StepState.ERRORED, str(error))
        raise error

    def _fetch_details(
        self,
        pool: ThreadPoolExecutor,
        candidates: Mapping[Operator, list[RankedStation[StationStub]]],
        report: StepCallback,
    ) -> tuple[dict[Operator, list[RankedStation[Station]]], list[tuple[Operator, str]]]:
        # Best-effort join: a failing station disappears, the run goes on.
        futures: dict[Operator, list[tuple[RankedStation[StationStub], Future]]] = {}
        for op, ranked in candidates.items():
            report(f"{op.value}_stations", StepState.PENDING, None)
            catalog = self._catalogs[op]
            futures[op] = [(entry, pool.submit(catalog.get_station_detail, entry.item.station_id)) for entry in ranked]

        detailed: dict[Operator, list[RankedStation[Station]]] = {}
        dropped: list[tuple[Operator, str]] = []
        for op, pairs in futures.items():
            kept: list[RankedStation[Station]] = []
            for entry, future in pairs:
                try:
                    station = future.result()
                except StationUnavailable as exc:
                    logger.warning("Dropping %s station %s: %s", exc.operator.value, exc.station_id, exc.reason)
                    dropped.append((op, entry.item.station_id))
                    continue
                # Distance stays the one computed from the map, in rank order.
                kept.append(RankedStation(item=station, distance_m=entry.distance_m))
            detailed[op] = kept
            report(f"{op.value}_stations", StepState.READY, None)
        return detailed, dropped
