from __future__ import annotations

# `logging` records transport failures with the URL so operators can be debugged from logs alone.
import logging
# Typing helpers keep the client interface explicit while payloads stay raw JSON.
from typing import Any, Mapping, MutableMapping, Optional

# `requests` performs HTTP calls; we wrap it to centralize retries, timeouts, and error handling.
import requests
# `HTTPAdapter` lets us mount a retry policy onto a `requests.Session`.
from requests.adapters import HTTPAdapter
# `Retry` implements backoff for transient failures (rate limits, 5xx), without manual sleep loops.
from urllib3.util.retry import Retry

from bikelocator.config.models import HttpSettings


logger = logging.getLogger(__name__)


class OperatorRequestError(RuntimeError):
    """
    Raised when an operator endpoint cannot be reached or answers with 4xx/5xx.

    `status_code` is `None` for network-level failures (DNS, connection reset, timeout).
    """

    def __init__(self, message: str, *, url: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


# `OperatorHttpClient` is a small HTTP client shared by every call against one operator's public API.
class OperatorHttpClient:
    """
    Session-backed JSON client for one bike-sharing operator.

    - Connections are reused across the station map and detail requests.
    - Retries for transient failures live here, in the transport; callers never retry.
    - No `Referer` header is sent: the public endpoints reject cross-site referrers.
    """

    def __init__(
        self,
        *,
        base_url: str,
        timeout_s: float = 10.0,
        max_retries: int = 2,
        backoff_factor: float = 0.5,
        user_agent: str = "bikelocator/0.1.0",
        session: Optional[requests.Session] = None,
    ) -> None:
        # Normalize `base_url` so later path joins are consistent (avoid double slashes).
        self._base_url = base_url.rstrip("/")
        # A single timeout value keeps behavior predictable and avoids hanging requests.
        self._timeout_s = timeout_s

        # A `Session` reuses connections (keep-alive), which matters when fetching ten stations in a row.
        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": user_agent, "Accept": "application/json"})

        retry = Retry(
            total=max_retries,
            connect=max_retries,
            read=max_retries,
            status=max_retries,
            backoff_factor=backoff_factor,
            # Retry only on status codes that are likely transient or rate-limit related.
            status_forcelist=(429, 500, 502, 503, 504),
            allowed_methods=("GET",),
            respect_retry_after_header=True,
            # Do not raise inside urllib3; we want to surface a single `OperatorRequestError` with context.
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry)
        self._session.mount("https://", adapter)
        self._session.mount("http://", adapter)

    @classmethod
    def from_settings(cls, base_url: str, settings: HttpSettings) -> "OperatorHttpClient":
        return cls(
            base_url=base_url,
            timeout_s=settings.timeout_s,
            max_retries=settings.max_retries,
            backoff_factor=settings.backoff_factor,
            user_agent=settings.user_agent,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    def build_url(self, path: str) -> str:
        if path.startswith("https://") or path.startswith("http://"):
            return path
        # Callers may pass either "/path" or "path".
        return f"{self._base_url}/{path.lstrip('/')}"

    def get_json(
        self,
        path: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        # Build the full URL early so we can include it in error messages.
        url = self.build_url(path)
        req_headers: MutableMapping[str, str] = {}
        if headers:
            req_headers.update(headers)
        req_headers.pop("Referer", None)

        try:
            resp = self._session.get(url, params=params, headers=req_headers, timeout=self._timeout_s)
        except requests.RequestException as exc:
            logger.debug("Request to %s failed: %s", url, exc)
            raise OperatorRequestError(f"Request failed url={url}: {exc}", url=url) from exc

        if resp.status_code >= 400:
            raise OperatorRequestError(
                f"Request failed ({resp.status_code}) url={url} params={params} body={resp.text[:500]}",
                url=url,
                status_code=resp.status_code,
            )
        try:
            return resp.json()
        except ValueError as exc:
            raise OperatorRequestError(f"Response is not JSON url={url}", url=url, status_code=resp.status_code) from exc

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "OperatorHttpClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
