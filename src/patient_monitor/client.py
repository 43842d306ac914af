"""
Blocking HTTP client for the remote analysis/storage service.

All methods perform a single request and either return the decoded JSON body
or raise `MonitorClientError`. The session runs them through an executor so
the event loop never blocks on the network.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional

import requests

root_package_name = __name__.split(".")[0] if "." in __name__ else __name__
logger = logging.getLogger(root_package_name)


class MonitorClientError(Exception):
    """Transport failure, non-2xx response or undecodable body.

    Parameters
    ----------
    message : str
        Human-readable description.
    status_code : int, optional
        HTTP status when the server answered.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class MonitorClient:
    """
    Thin wrapper around the service's JSON endpoints.

    Parameters
    ----------
    api_base : str
        Base URL of the service, e.g. "http://127.0.0.1:8000".
    timeout : float, optional
        Per-request timeout in seconds, by default 5.0
    session : requests.Session, optional
        Session to reuse; a new one is created when omitted.
    """

    def __init__(
        self,
        api_base: str,
        timeout: float = 5.0,
        session: Optional[requests.Session] = None,
    ):
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.api_base}{path}"
        try:
            response = self.session.request(
                method, url, timeout=self.timeout, **kwargs
            )
        except requests.RequestException as e:
            raise MonitorClientError(f"{method} {path} failed: {e}") from e

        if not response.ok:
            raise MonitorClientError(
                f"{method} {path} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise MonitorClientError(
                f"{method} {path} returned invalid JSON: {e}",
                status_code=response.status_code,
            ) from e

    def analyze(self, image: str) -> Dict[str, Any]:
        """Submit an encoded snapshot (data URL) for behavioral analysis."""
        return self._request("POST", "/api/analyze", json={"image": image})

    def alerts(self, limit: int = 20) -> List[Dict[str, Any]]:
        """Fetch up to `limit` most recent alerts, oldest first."""
        body = self._request("GET", "/api/alerts", params={"limit": limit})
        return body or []

    def clear_alerts(self) -> None:
        self._request("POST", "/api/alerts/clear")

    def status(self) -> Dict[str, Any]:
        return self._request("GET", "/api/status")

    def toggle_status(self) -> None:
        self._request("POST", "/api/status/toggle")

    def upload_video(self, path: str) -> Any:
        """
        Upload a recorded video for offline analysis.

        Parameters
        ----------
        path : str
            Local video file.

        Returns
        -------
        Any
            The service's JSON analysis result.
        """
        with open(path, "rb") as f:
            files = {"video": (os.path.basename(path), f)}
            return self._request("POST", "/upload_video", files=files)

    def close(self) -> None:
        self.session.close()
