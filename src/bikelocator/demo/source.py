from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from bikelocator.schemas.core import Operator


class DirectoryOperatorSource:
    """
    Deterministic operator payloads read from disk so the locator works offline.

    Layout (one directory for all operators):
    - `<operator>.stations.json`: the station map
    - `<operator>.<station_id>.json`: one station detail
    """

    def __init__(self, data_dir: Path, operator: Operator) -> None:
        self._dir = data_dir
        self._operator = operator

    def _read(self, name: str) -> Any:
        # A missing file surfaces as `FileNotFoundError` (an `OSError`), like a failed request.
        path = self._dir / f"{self._operator.value}.{name}.json"
        return json.loads(path.read_text(encoding="utf-8"))

    def station_list(self) -> Any:
        return self._read("stations")

    def station_detail(self, station_id: str) -> Any:
        if "/" in station_id or "\\" in station_id or station_id.startswith("."):
            raise FileNotFoundError(f"Invalid demo station id: {station_id!r}")
        return self._read(station_id)
