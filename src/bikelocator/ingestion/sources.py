from __future__ import annotations

from typing import Any, Optional, Protocol
from urllib.parse import quote

from bikelocator.config.models import OperatorSettings
from bikelocator.ingestion.http_base import OperatorHttpClient
from bikelocator.utils.cache import JsonFileCache


def _is_station_map(payload: Any) -> bool:
    # Both operators publish their station map as a non-empty JSON list.
    return isinstance(payload, list) and len(payload) > 0


class OperatorSource(Protocol):
    """Raw JSON access to one operator: the station map and one station's detail."""

    def station_list(self) -> Any: ...

    def station_detail(self, station_id: str) -> Any: ...


class HttpOperatorSource:
    def __init__(
        self,
        *,
        http: OperatorHttpClient,
        settings: OperatorSettings,
        cache: Optional[JsonFileCache] = None,
    ) -> None:
        self._http = http
        self._settings = settings
        self._cache = cache

    def station_list(self) -> Any:
        path = self._settings.stations_path
        if self._cache is None:
            return self._http.get_json(path)
        # The station map barely changes between runs; details are always fetched live.
        key = self._cache.make_key("stations", {"base_url": self._http.base_url, "path": path})
        return self._cache.get_or_fetch(key, lambda: self._http.get_json(path), validate=_is_station_map)

    def station_detail(self, station_id: str) -> Any:
        path = self._settings.station_path_template.format(station_id=quote(str(station_id), safe=""))
        return self._http.get_json(path)

    def close(self) -> None:
        self._http.close()
