from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional

from bikelocator.config.models import AppConfig
from bikelocator.demo.source import DirectoryOperatorSource
from bikelocator.ingestion.catalog import StationCatalog
from bikelocator.ingestion.http_base import OperatorHttpClient
from bikelocator.ingestion.location import LocationProvider
from bikelocator.ingestion.publibike_client import PubliBikeCatalog
from bikelocator.ingestion.sources import HttpOperatorSource, OperatorSource
from bikelocator.ingestion.velospot_client import VelospotCatalog
from bikelocator.pipeline.locator import StationLocator
from bikelocator.schemas.core import Operator
from bikelocator.utils.cache import JsonFileCache


def build_catalogs(
    config: AppConfig,
    sources: dict[Operator, OperatorSource],
) -> dict[Operator, StationCatalog]:
    return {
        Operator.PUBLIBIKE: PubliBikeCatalog(sources[Operator.PUBLIBIKE]),
        Operator.VELOSPOT: VelospotCatalog(sources[Operator.VELOSPOT], battery=config.battery),
    }


@contextmanager
def open_sources(config: AppConfig, *, use_cache: bool = True) -> Iterator[dict[Operator, OperatorSource]]:
    """Demo files in demo mode, otherwise one HTTP session per operator (closed on exit)."""

    if config.app.demo_mode:
        yield {op: DirectoryOperatorSource(config.demo.data_dir, op) for op in Operator}
        return

    cache: Optional[JsonFileCache] = JsonFileCache(config.cache) if use_cache else None
    sources: dict[Operator, HttpOperatorSource] = {}
    try:
        for op in Operator:
            http = OperatorHttpClient.from_settings(config.operators[op.value].base_url, config.http)
            sources[op] = HttpOperatorSource(http=http, settings=config.operators[op.value], cache=cache)
        yield dict(sources)
    finally:
        for source in sources.values():
            source.close()


def build_locator(
    config: AppConfig,
    *,
    location: LocationProvider,
    catalogs: dict[Operator, StationCatalog],
) -> StationLocator:
    return StationLocator(
        location=location,
        catalogs=catalogs,
        preferred=Operator(config.reconcile.preferred_operator),
        ranking=config.ranking,
        same_station_threshold_m=config.reconcile.same_station_threshold_m,
        location_timeout_s=config.location.timeout_s,
    )
