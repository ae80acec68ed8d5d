from __future__ import annotations

import json

import pytest

from bikelocator.config.loader import config_from_mapping, load_config


def _write_config(tmp_path, *, demo_mode: bool = True, **overrides) -> str:
    cfg = {
        "app": {"name": "Test", "demo_mode": demo_mode},
        "operators": {
            "publibike": {"base_url": "https://json.publibike"},
            "velospot": {"base_url": "https://json.velospot"},
        },
        "http": {"timeout_s": 5, "max_retries": 1, "backoff_factor": 0.1},
        "ranking": {"max_distance_m": 800, "max_stations": 5},
        "reconcile": {"same_station_threshold_m": 12, "preferred_operator": "velospot"},
        "cache": {"dir": "data/cache", "ttl_seconds": 60},
        "demo": {"data_dir": "testdata"},
        "logging": {"level": "INFO", "format": "%(message)s"},
    }
    cfg.update(overrides)
    path = tmp_path / "config.json"
    path.write_text(json.dumps(cfg), encoding="utf-8")
    return str(path)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch) -> None:
    for name in (
        "BIKELOCATOR_DEMO_MODE",
        "BIKELOCATOR_MAX_DISTANCE_M",
        "BIKELOCATOR_MAX_STATIONS",
        "BIKELOCATOR_LOG_LEVEL",
        "PUBLIBIKE_BASE_URL",
        "VELOSPOT_BASE_URL",
    ):
        monkeypatch.delenv(name, raising=False)


def test_loads_sections_and_resolves_paths(tmp_path) -> None:
    cfg = load_config(_write_config(tmp_path), base_dir=tmp_path)
    assert cfg.app.name == "Test"
    assert cfg.operators["publibike"].base_url == "https://json.publibike"
    assert cfg.operators["velospot"].station_path_template == "stationDetails?stationId={station_id}"
    assert cfg.ranking.max_distance_m == 800
    assert cfg.ranking.max_stations == 5
    assert cfg.cache.dir == tmp_path.resolve() / "data/cache"
    assert cfg.demo.data_dir == tmp_path.resolve() / "testdata"
    assert cfg.battery.v_max == 42.3


def test_env_overrides_operator_urls(monkeypatch, tmp_path) -> None:
    path = _write_config(tmp_path)
    monkeypatch.setenv("PUBLIBIKE_BASE_URL", "https://env.publibike")
    monkeypatch.setenv("VELOSPOT_BASE_URL", "https://env.velospot")

    cfg = load_config(path, base_dir=tmp_path)
    assert cfg.operators["publibike"].base_url == "https://env.publibike"
    assert cfg.operators["velospot"].base_url == "https://env.velospot"


def test_env_overrides_ranking(monkeypatch, tmp_path) -> None:
    path = _write_config(tmp_path)
    monkeypatch.setenv("BIKELOCATOR_MAX_DISTANCE_M", "1500")
    monkeypatch.setenv("BIKELOCATOR_MAX_STATIONS", "3")

    cfg = load_config(path, base_dir=tmp_path)
    assert cfg.ranking.max_distance_m == 1500
    assert cfg.ranking.max_stations == 3


def test_env_overrides_demo_mode(monkeypatch, tmp_path) -> None:
    path = _write_config(tmp_path, demo_mode=True)
    monkeypatch.setenv("BIKELOCATOR_DEMO_MODE", "false")

    cfg = load_config(path, base_dir=tmp_path)
    assert cfg.app.demo_mode is False


def test_invalid_demo_mode_does_not_override(monkeypatch, tmp_path) -> None:
    path = _write_config(tmp_path, demo_mode=False)
    monkeypatch.setenv("BIKELOCATOR_DEMO_MODE", "maybe")

    cfg = load_config(path, base_dir=tmp_path)
    assert cfg.app.demo_mode is False


def test_defaults_from_empty_mapping(tmp_path) -> None:
    cfg = config_from_mapping({}, base_dir=tmp_path)
    assert cfg.app.demo_mode is False
    assert cfg.ranking.max_distance_m == 1000
    assert cfg.ranking.max_stations == 10
    assert cfg.reconcile.same_station_threshold_m == 12.0
    assert cfg.reconcile.preferred_operator == "velospot"
    assert cfg.display.max_shown_ebikes == 6
    assert set(cfg.operators) == {"publibike", "velospot"}


@pytest.mark.parametrize(
    "raw",
    [
        {"operators": {"nextbike": {"base_url": "https://x"}}},
        {"ranking": {"max_distance_m": 0}},
        {"ranking": {"max_stations": 0}},
        {"reconcile": {"preferred_operator": "nextbike"}},
        {"battery": {"v_min": 43.0}},
        {"location": {"default_lat": 47.0}},
        {"http": {"timeout_s": 0}},
    ],
)
def test_invalid_values_raise(raw, tmp_path) -> None:
    with pytest.raises(ValueError):
        config_from_mapping(raw, base_dir=tmp_path)
