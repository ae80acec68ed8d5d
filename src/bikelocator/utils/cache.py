from __future__ import annotations

import hashlib
import json
import logging
from pathlib import Path
import tempfile
import time
from typing import Any, Callable, Optional

from bikelocator.config.models import CacheSettings


logger = logging.getLogger(__name__)


class JsonFileCache:
    """
    File-based JSON cache for operator payloads that rarely change (station maps).

    Entries older than `ttl_seconds` are treated as missing; a TTL of 0 keeps entries forever.
    The directory is created on first write; filesystem failures surface as `OSError`.
    """

    def __init__(self, settings: CacheSettings, *, clock: Callable[[], float] = time.time) -> None:
        self._dir = settings.dir
        self._ttl = settings.ttl_seconds
        self._clock = clock

    def make_key(self, namespace: str, payload: Any) -> str:
        raw = json.dumps({"ns": namespace, "payload": payload}, sort_keys=True, ensure_ascii=False)
        return hashlib.sha256(raw.encode("utf-8")).hexdigest()

    def _path(self, key: str) -> Path:
        return self._dir / f"{key}.json"

    def get(self, key: str) -> Optional[Any]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            wrapper = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning("Discarding corrupt cache entry %s", path)
            return None

        created_at = wrapper.get("_created_at")
        if not isinstance(created_at, (int, float)):
            return None
        if self._ttl > 0 and (self._clock() - float(created_at)) > self._ttl:
            return None
        return wrapper.get("payload")

    def set(self, key: str, payload: Any) -> None:
        path = self._path(key)
        wrapper = {"_created_at": self._clock(), "payload": payload}
        serialized = json.dumps(wrapper, ensure_ascii=False)

        # Write-then-rename so concurrent readers never see a half-written entry.
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile("w", delete=False, encoding="utf-8", dir=path.parent) as tmp:
            tmp.write(serialized)
            tmp_path = Path(tmp.name)
        tmp_path.replace(path)

    def get_or_fetch(
        self,
        key: str,
        fetch: Callable[[], Any],
        *,
        validate: Optional[Callable[[Any], bool]] = None,
    ) -> Any:
        """
        Return the cached payload, or fetch and store it.

        A fetched payload rejected by `validate` is returned as-is but never stored, and a stored
        entry rejected by `validate` is fetched again.
        """

        cached = self.get(key)
        if cached is not None and (validate is None or validate(cached)):
            return cached
        payload = fetch()
        if validate is not None and not validate(payload):
            logger.warning("Not caching unexpected payload for key %s", key)
            return payload
        self.set(key, payload)
        return payload
