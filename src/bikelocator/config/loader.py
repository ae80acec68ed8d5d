from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Mapping, Optional

from dotenv import load_dotenv

from bikelocator.config.models import (
    AppConfig,
    AppSettings,
    BatterySettings,
    CacheSettings,
    DemoSettings,
    DisplaySettings,
    HttpSettings,
    LocationSettings,
    LoggingSettings,
    OperatorSettings,
    RankingSettings,
    ReconcileSettings,
)


logger = logging.getLogger(__name__)

KNOWN_OPERATORS = ("publibike", "velospot")

DEFAULT_OPERATORS: Mapping[str, Mapping[str, str]] = {
    "publibike": {
        "base_url": "https://publibike-api.delroth.net/v1/public",
        "stations_path": "stations",
        "station_path_template": "stations/{station_id}",
    },
    "velospot": {
        "base_url": "https://velospot.info/customer/public/api/pbvsng",
        "stations_path": "stations",
        "station_path_template": "stationDetails?stationId={station_id}",
    },
}

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _as_path(value: str, *, base_dir: Path) -> Path:
    candidate = Path(value)
    return candidate if candidate.is_absolute() else (base_dir / candidate)


def _optional_float(value: Any) -> Optional[float]:
    return None if value is None else float(value)


def _env_bool(name: str) -> Optional[bool]:
    raw = os.getenv(name)
    if raw is None:
        return None
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    logger.warning("Ignoring invalid boolean for %s: %r", name, raw)
    return None


def load_config(path: Optional[str | Path] = None, *, base_dir: Optional[Path] = None) -> AppConfig:
    """
    Load typed application config from JSON.

    - Path resolution is relative to `base_dir` (defaults to current working directory).
    - `.env` is loaded first so environment overrides can live next to the project.
    """

    load_dotenv()

    config_path = Path(path or os.getenv("BIKELOCATOR_CONFIG_PATH", "config/default.json")).resolve()
    base_dir = (base_dir or Path.cwd()).resolve()

    raw = json.loads(config_path.read_text(encoding="utf-8"))
    if not isinstance(raw, Mapping):
        raise ValueError(f"Config root must be a JSON object: {config_path}")
    return config_from_mapping(raw, base_dir=base_dir)


def config_from_mapping(raw: Mapping[str, Any], *, base_dir: Optional[Path] = None) -> AppConfig:
    base_dir = (base_dir or Path.cwd()).resolve()

    app_raw: Mapping[str, Any] = raw.get("app", {})
    demo_mode = bool(app_raw.get("demo_mode", False))
    env_demo = _env_bool("BIKELOCATOR_DEMO_MODE")
    if env_demo is not None:
        demo_mode = env_demo
    app = AppSettings(name=str(app_raw.get("name", "Bike Locator")), demo_mode=demo_mode)

    operators_raw: Mapping[str, Any] = raw.get("operators", {})
    unknown = sorted(set(operators_raw) - set(KNOWN_OPERATORS))
    if unknown:
        raise ValueError(f"Unknown operators in config: {unknown}")
    operators: dict[str, OperatorSettings] = {}
    for name in KNOWN_OPERATORS:
        op_raw = {**DEFAULT_OPERATORS[name], **dict(operators_raw.get(name, {}))}
        base_url = os.getenv(f"{name.upper()}_BASE_URL") or op_raw.get("base_url")
        if not base_url:
            raise ValueError(f"Config missing required field: operators.{name}.base_url")
        operators[name] = OperatorSettings(
            base_url=str(base_url),
            stations_path=str(op_raw["stations_path"]),
            station_path_template=str(op_raw["station_path_template"]),
        )

    http_raw: Mapping[str, Any] = raw.get("http", {})
    http = HttpSettings(
        timeout_s=float(http_raw.get("timeout_s", 10.0)),
        max_retries=int(http_raw.get("max_retries", 2)),
        backoff_factor=float(http_raw.get("backoff_factor", 0.5)),
        user_agent=str(http_raw.get("user_agent", "bikelocator/0.1.0")),
    )
    if http.timeout_s <= 0:
        raise ValueError(f"http.timeout_s must be > 0, got {http.timeout_s}")
    if http.max_retries < 0:
        raise ValueError(f"http.max_retries must be >= 0, got {http.max_retries}")

    ranking_raw: Mapping[str, Any] = raw.get("ranking", {})
    ranking = RankingSettings(
        max_distance_m=float(os.getenv("BIKELOCATOR_MAX_DISTANCE_M") or ranking_raw.get("max_distance_m", 1000)),
        max_stations=int(os.getenv("BIKELOCATOR_MAX_STATIONS") or ranking_raw.get("max_stations", 10)),
    )
    if ranking.max_distance_m <= 0:
        raise ValueError(f"ranking.max_distance_m must be > 0, got {ranking.max_distance_m}")
    if ranking.max_stations < 1:
        raise ValueError(f"ranking.max_stations must be >= 1, got {ranking.max_stations}")

    reconcile_raw: Mapping[str, Any] = raw.get("reconcile", {})
    reconcile = ReconcileSettings(
        same_station_threshold_m=float(reconcile_raw.get("same_station_threshold_m", 12.0)),
        preferred_operator=str(reconcile_raw.get("preferred_operator", "velospot")),  # type: ignore[arg-type]
    )
    if reconcile.preferred_operator not in KNOWN_OPERATORS:
        raise ValueError(f"Unsupported reconcile.preferred_operator: {reconcile.preferred_operator}")
    if reconcile.same_station_threshold_m < 0:
        raise ValueError("reconcile.same_station_threshold_m must be >= 0")

    battery_raw: Mapping[str, Any] = raw.get("battery", {})
    battery = BatterySettings(
        v_max=float(battery_raw.get("v_max", 42.3)),
        v_min=float(battery_raw.get("v_min", 34.0)),
        steepness=float(battery_raw.get("steepness", 0.03)),
        midpoint=float(battery_raw.get("midpoint", 50.0)),
    )
    if battery.v_min >= battery.v_max:
        raise ValueError(f"battery.v_min ({battery.v_min}) must be below battery.v_max ({battery.v_max})")
    if battery.steepness <= 0:
        raise ValueError(f"battery.steepness must be > 0, got {battery.steepness}")

    display_raw: Mapping[str, Any] = raw.get("display", {})
    display = DisplaySettings(max_shown_ebikes=int(display_raw.get("max_shown_ebikes", 6)))
    if display.max_shown_ebikes < 0:
        raise ValueError("display.max_shown_ebikes must be >= 0")

    location_raw: Mapping[str, Any] = raw.get("location", {})
    location = LocationSettings(
        timeout_s=float(location_raw.get("timeout_s", 10.0)),
        default_lat=_optional_float(location_raw.get("default_lat")),
        default_lon=_optional_float(location_raw.get("default_lon")),
    )
    if (location.default_lat is None) != (location.default_lon is None):
        raise ValueError("location.default_lat and location.default_lon must be set together")

    cache_raw: Mapping[str, Any] = raw.get("cache", {})
    cache = CacheSettings(
        dir=_as_path(str(cache_raw.get("dir", "data/cache")), base_dir=base_dir),
        ttl_seconds=int(cache_raw.get("ttl_seconds", 3600)),
    )

    demo_raw: Mapping[str, Any] = raw.get("demo", {})
    demo = DemoSettings(
        data_dir=_as_path(str(demo_raw.get("data_dir", "testdata")), base_dir=base_dir),
        lat=float(demo_raw.get("lat", 47.38752933398596)),
        lon=float(demo_raw.get("lon", 8.52717)),
    )

    logging_raw: Mapping[str, Any] = raw.get("logging", {})
    file_value = logging_raw.get("file")
    log_file = None if not file_value else _as_path(str(file_value), base_dir=base_dir)
    logging_settings = LoggingSettings(
        level=str(os.getenv("BIKELOCATOR_LOG_LEVEL") or logging_raw.get("level", "INFO")),
        format=str(logging_raw.get("format", "%(asctime)s %(levelname)s %(name)s - %(message)s")),
        file=log_file,
    )

    return AppConfig(
        app=app,
        operators=operators,
        http=http,
        ranking=ranking,
        reconcile=reconcile,
        battery=battery,
        display=display,
        location=location,
        cache=cache,
        demo=demo,
        logging=logging_settings,
    )
