# ============================================
# Remote Record API Client
# ============================================
"""
Thin JSON client for the remote record API.

Endpoints (relative to MEDISCAN_API_BASE_URL):
    /patients, /patients/{id}, /patients/{id}/scans, /patients/{id}/reports,
    /patients/{id}/analytics, /scans, /scans/{id}, /reports, /reports/{id},
    /reports/{id}/share

Every failure (no base URL configured, connection error, timeout, non-2xx,
non-JSON body) is raised as RemoteUnavailable. Record services catch it and
fall back to the local cache; no retry or backoff is applied.
"""

import logging
from typing import Any, Optional

import requests

from mediscan.utils.config import get_api_base_url, get_api_timeout


logger = logging.getLogger(__name__)


class RemoteUnavailable(Exception):
    """The remote record API could not serve a request."""


class RecordApiClient:
    """
    Generic GET/POST/PUT/DELETE client.

    Args:
        base_url: API root; None disables all remote calls
        session: Optional requests.Session (injected in tests)
        timeout: Per-request timeout in seconds
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ):
        self.base_url = base_url.rstrip("/") if base_url else get_api_base_url()
        self.session = session or requests.Session()
        self.timeout = timeout or get_api_timeout()

    @property
    def configured(self) -> bool:
        return bool(self.base_url)

    def _request(self, method: str, path: str, payload: Any = None) -> Any:
        if not self.base_url:
            raise RemoteUnavailable("MEDISCAN_API_BASE_URL is not configured")

        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            response = self.session.request(
                method,
                url,
                json=payload,
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise RemoteUnavailable(f"{method} {url} failed: {e}") from e

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise RemoteUnavailable(f"{method} {url} returned a non-JSON body") from e

    def get(self, path: str) -> Any:
        return self._request("GET", path)

    def post(self, path: str, payload: Any) -> Any:
        return self._request("POST", path, payload)

    def put(self, path: str, payload: Any) -> Any:
        return self._request("PUT", path, payload)

    def delete(self, path: str) -> Any:
        return self._request("DELETE", path)
