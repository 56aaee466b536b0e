"""HTTP client for the VidGrid server API."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

LOGGER = logging.getLogger("vidgrid.browse.client")


class VidGridClient:
    """Thin wrapper over ``/api/list``, ``/api/catalog`` and ``/api/config``."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = float(timeout)
        self._session = session or requests.Session()

    def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        response = self._session.get(f"{self.base_url}{path}", params=params, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def list_directory(self, path: str = "") -> List[Dict[str, Any]]:
        payload = self._get_json("/api/list", params={"path": path})
        return payload if isinstance(payload, list) else []

    def fetch_catalog(self) -> List[Dict[str, Any]]:
        payload = self._get_json("/api/catalog")
        if not isinstance(payload, list):
            LOGGER.warning("Unexpected catalog payload type: %s", type(payload).__name__)
            return []
        return payload

    def get_config(self) -> Dict[str, Any]:
        payload = self._get_json("/api/config")
        return payload if isinstance(payload, dict) else {}

    def save_config(self, config: Dict[str, Any]) -> bool:
        response = self._session.post(f"{self.base_url}/api/config", json=config, timeout=self.timeout)
        response.raise_for_status()
        return bool(response.json().get("success"))

    def thumbnail_url(self, path: str) -> str:
        return f"{self.base_url}/thumbs/{quote(path)}.jpg"

    def video_url(self, path: str) -> str:
        return f"{self.base_url}/videos/{quote(path)}"

    def close(self) -> None:
        self._session.close()


__all__ = ["VidGridClient"]
