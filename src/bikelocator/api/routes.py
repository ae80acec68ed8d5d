from __future__ import annotations

import logging
# `Optional[...]` parameters can be omitted so the server falls back to the configured location.
from typing import Optional

# - `APIRouter` groups endpoints so the app factory can include them cleanly.
# - `Depends` performs dependency injection per request (no global variables needed).
# - `HTTPException` converts fatal pipeline errors into 503 responses with a readable message.
from fastapi import APIRouter, Depends, HTTPException, Query, Request

from bikelocator.api.schemas import AppConfigOut, HealthOut, NearbyResponseOut
from bikelocator.api.service import LocatorService
from bikelocator.ingestion.catalog import CatalogUnavailable
from bikelocator.ingestion.location import LocationUnavailable


logger = logging.getLogger(__name__)

router = APIRouter()


def get_service(request: Request) -> LocatorService:
    return request.app.state.locator_service  # type: ignore[attr-defined]


@router.get("/health", response_model=HealthOut)
def health() -> HealthOut:
    return HealthOut()


# Config endpoint: a UI uses this to show the search radius and how many ebikes to display.
@router.get("/config", response_model=AppConfigOut)
def get_config(service: LocatorService = Depends(get_service)) -> AppConfigOut:
    cfg = service.config
    return AppConfigOut(
        app_name=cfg.app.name,
        demo_mode=cfg.app.demo_mode,
        ranking={
            "max_distance_m": cfg.ranking.max_distance_m,
            "max_stations": cfg.ranking.max_stations,
        },
        reconcile={
            "same_station_threshold_m": cfg.reconcile.same_station_threshold_m,
            "preferred_operator": cfg.reconcile.preferred_operator,
        },
        max_shown_ebikes=cfg.display.max_shown_ebikes,
    )


@router.get("/stations/nearby", response_model=NearbyResponseOut)
def nearby_stations(
    lat: Optional[float] = Query(default=None, ge=-90, le=90),
    lon: Optional[float] = Query(default=None, ge=-180, le=180),
    service: LocatorService = Depends(get_service),
) -> NearbyResponseOut:
    # Location and station maps are mandatory: without them there is no partial table to return.
    try:
        payload = service.nearby_payload(lat=lat, lon=lon)
    except (LocationUnavailable, CatalogUnavailable) as exc:
        logger.error("Nearby lookup failed: %s", exc)
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return NearbyResponseOut(**payload)
