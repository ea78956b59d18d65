"""HTTP client for the SiteMaster DPR API."""

from __future__ import annotations

import logging
from typing import Any, Optional
from urllib.parse import urljoin

import requests

from .models import StatusUpdatePayload
from .schemas import DprRecord, TaskBuckets, unwrap_buckets, unwrap_records

logger = logging.getLogger(__name__)


class ApiError(RuntimeError):
    """Failure while talking to the API."""

    def __init__(self, message: str, *, response: Optional[requests.Response] = None) -> None:
        super().__init__(message)
        self.response = response

    @property
    def status_code(self) -> Optional[int]:
        return self.response.status_code if self.response is not None else None


class ApiClient:
    """Wraps the DPR endpoints used by the field client."""

    def __init__(self, base_url: str, token: Optional[str] = None, timeout: int = 15) -> None:
        self.base_url = base_url.rstrip("/") + "/"
        self.token = token
        self.timeout = timeout

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["x-auth-token"] = self.token
        return headers

    def _request(self, method: str, path: str, **kwargs) -> Any:
        url = urljoin(self.base_url, path.lstrip("/"))
        kwargs.setdefault("timeout", self.timeout)
        headers = kwargs.setdefault("headers", {})
        headers.update(self._headers())
        logger.debug("%s %s", method, url)
        try:
            response = requests.request(method, url, **kwargs)
        except requests.RequestException as exc:
            raise ApiError(str(exc)) from exc

        if response.status_code >= 400:
            raise ApiError(f"API error {response.status_code}: {response.text}", response=response)

        if response.headers.get("Content-Type", "").startswith("application/json"):
            return response.json()
        return response.content

    # ------------------------------------------------------------------
    # DPR
    # ------------------------------------------------------------------
    def list_dpr(
        self,
        *,
        page: int = 1,
        limit: int = 10,
        search: Optional[str] = None,
        project_id: Optional[str] = None,
        card_status: Optional[str] = None,
    ) -> list[DprRecord]:
        params: dict[str, Any] = {"page": page, "limit": limit}
        if search:
            params["search"] = search
        if project_id:
            params["projectId"] = project_id
        if card_status:
            params["cardStatus"] = card_status
        return unwrap_records(self._request("GET", "/dpr/dpr", params=params))

    def get_task_buckets(self) -> TaskBuckets:
        return unwrap_buckets(self._request("GET", "/dpr/dpr-status"))

    def update_status(self, record_id: str, payload: StatusUpdatePayload) -> Any:
        """Append one entry to the server-side status history."""
        if not record_id:
            raise ApiError("Cannot update a record without id")
        return self._request("PATCH", f"/dpr/{record_id}/updateStatus", json=payload.to_json())


__all__ = ["ApiClient", "ApiError"]
