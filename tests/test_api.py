from __future__ import annotations

from pathlib import Path

from fastapi.testclient import TestClient

from bikelocator.api.app import create_app
from bikelocator.config.loader import config_from_mapping


PROJECT_ROOT = Path(__file__).resolve().parents[1]


def _client(monkeypatch, *, demo_mode: bool, tmp_path: Path) -> TestClient:
    # Keep these tests deterministic even if the developer environment overrides demo mode.
    monkeypatch.setenv("BIKELOCATOR_DEMO_MODE", "true" if demo_mode else "false")
    raw = {
        "operators": {
            "publibike": {"base_url": "http://127.0.0.1:9/publibike"},
            "velospot": {"base_url": "http://127.0.0.1:9/velospot"},
        },
        "http": {"timeout_s": 1, "max_retries": 0},
        "cache": {"dir": str(tmp_path / "cache")},
        "demo": {"data_dir": str(PROJECT_ROOT / "testdata")},
        "logging": {"level": "WARNING"},
    }
    config = config_from_mapping(raw, base_dir=PROJECT_ROOT)
    return TestClient(create_app(config))


def test_health(monkeypatch, tmp_path) -> None:
    resp = _client(monkeypatch, demo_mode=True, tmp_path=tmp_path).get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_config_endpoint(monkeypatch, tmp_path) -> None:
    payload = _client(monkeypatch, demo_mode=True, tmp_path=tmp_path).get("/config").json()
    assert payload["demo_mode"] is True
    assert payload["ranking"] == {"max_distance_m": 1000.0, "max_stations": 10}
    assert payload["reconcile"]["preferred_operator"] == "velospot"
    assert payload["max_shown_ebikes"] == 6


def test_nearby_in_demo_mode(monkeypatch, tmp_path) -> None:
    resp = _client(monkeypatch, demo_mode=True, tmp_path=tmp_path).get("/stations/nearby")
    assert resp.status_code == 200
    payload = resp.json()

    names = [item["name"] for item in payload["items"]]
    assert names == ["Hardbrücke", "Schiffbau", "Limmatplatz Nord", "Escher-Wyss-Platz"]
    first = payload["items"][0]
    assert first["bikes"] == 3
    assert first["ebike_count"] == 4
    assert [e["battery"] for e in first["ebikes"]] == [88.0, 64.0, None, None]
    assert [e["style"] for e in first["ebikes"]] == ["bat-meh", "bat-meh", None, None]
    assert {s["operator"] for s in first["sources"]} == {"publibike", "velospot"}
    assert payload["meta"]["dropped"] == [{"operator": "velospot", "station_id": "2005"}]


def test_nearby_with_explicit_far_location_is_empty(monkeypatch, tmp_path) -> None:
    resp = _client(monkeypatch, demo_mode=True, tmp_path=tmp_path).get("/stations/nearby", params={"lat": 46.0, "lon": 7.0})
    assert resp.status_code == 200
    assert resp.json()["items"] == []


def test_nearby_without_location_is_unavailable(monkeypatch, tmp_path) -> None:
    resp = _client(monkeypatch, demo_mode=False, tmp_path=tmp_path).get("/stations/nearby")
    assert resp.status_code == 503
    assert "unavailable" in resp.json()["detail"]


def test_nearby_rejects_out_of_range_coordinates(monkeypatch, tmp_path) -> None:
    resp = _client(monkeypatch, demo_mode=True, tmp_path=tmp_path).get("/stations/nearby", params={"lat": 100, "lon": 8.5})
    assert resp.status_code == 422
