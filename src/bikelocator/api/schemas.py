from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class RankingConfigOut(BaseModel):
    max_distance_m: float
    max_stations: int


class ReconcileConfigOut(BaseModel):
    same_station_threshold_m: float
    preferred_operator: str


class AppConfigOut(BaseModel):
    app_name: str
    demo_mode: bool
    ranking: RankingConfigOut
    reconcile: ReconcileConfigOut
    max_shown_ebikes: int


class CoordinateOut(BaseModel):
    lat: float
    lon: float


class EBikeOut(BaseModel):
    name: str
    operator: str
    battery: Optional[float] = Field(default=None, description="Percent; null when unknown.")
    style: Optional[str] = Field(default=None, description="Battery style class; null when unknown.")


class StationSourceOut(BaseModel):
    operator: str
    station_id: str


class NearbyStationOut(BaseModel):
    station_id: str
    operator: str
    name: str
    lat: float
    lon: float
    distance_m: float
    bikes: int
    ebike_count: int
    ebikes: list[EBikeOut] = Field(default_factory=list)
    sources: list[StationSourceOut] = Field(default_factory=list)
    maps_url: str


class NearbyResponseOut(BaseModel):
    user: CoordinateOut
    items: list[NearbyStationOut] = Field(default_factory=list)
    meta: dict[str, object] = Field(default_factory=dict)


class HealthOut(BaseModel):
    status: str = "ok"
