from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Optional


OperatorName = Literal["publibike", "velospot"]


@dataclass(frozen=True)
class AppSettings:
    name: str = "Bike Locator"
    demo_mode: bool = False


@dataclass(frozen=True)
class OperatorSettings:
    base_url: str
    stations_path: str = "stations"
    station_path_template: str = "stations/{station_id}"


@dataclass(frozen=True)
class HttpSettings:
    timeout_s: float = 10.0
    max_retries: int = 2
    backoff_factor: float = 0.5
    user_agent: str = "bikelocator/0.1.0"


@dataclass(frozen=True)
class RankingSettings:
    max_distance_m: float = 1000.0
    max_stations: int = 10


@dataclass(frozen=True)
class ReconcileSettings:
    same_station_threshold_m: float = 12.0
    preferred_operator: OperatorName = "velospot"


@dataclass(frozen=True)
class BatterySettings:
    """Logistic discharge curve of a 36V pack (empirical fit)."""

    v_max: float = 42.3
    v_min: float = 34.0
    steepness: float = 0.03
    midpoint: float = 50.0


@dataclass(frozen=True)
class DisplaySettings:
    max_shown_ebikes: int = 6


@dataclass(frozen=True)
class LocationSettings:
    timeout_s: float = 10.0
    default_lat: Optional[float] = None
    default_lon: Optional[float] = None


@dataclass(frozen=True)
class CacheSettings:
    dir: Path
    ttl_seconds: int


@dataclass(frozen=True)
class DemoSettings:
    data_dir: Path
    lat: float = 47.38752933398596
    lon: float = 8.52717


@dataclass(frozen=True)
class LoggingSettings:
    level: str
    format: str
    file: Optional[Path] = None


@dataclass(frozen=True)
class AppConfig:
    app: AppSettings
    operators: dict[str, OperatorSettings]
    http: HttpSettings
    ranking: RankingSettings
    reconcile: ReconcileSettings
    battery: BatterySettings
    display: DisplaySettings
    location: LocationSettings
    cache: CacheSettings
    demo: DemoSettings
    logging: LoggingSettings
