"""Segment service API client.

A thin wrapper around the HTTP API of ``segment_service_api`` for
scripts and other services.  It uses the ``requests`` library and
never raises on HTTP or network errors: every method returns a tuple
``(data, error)`` where exactly one side is set.  ``error`` is a
dictionary with the keys ``status_code``, ``message`` and ``payload``
(the decoded response body, if any).

Example::

    client = SegmentServiceClient(base_url="http://localhost:8000")
    results, error = client.update_user_segments(1, add=["vip"], remove=["trial"])
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

import requests


logger = logging.getLogger(__name__)

Result = Tuple[Optional[Any], Optional[Dict[str, Any]]]


def _error_message(payload: Any) -> str:
    """Pull a human readable message out of an error body.

    The service answers with ``{"status", "message"}`` objects, lists of
    them for batch requests, or FastAPI's ``{"detail": ...}`` for
    validation errors.
    """
    if isinstance(payload, dict):
        return str(payload.get("message") or payload.get("detail") or payload)
    if isinstance(payload, list):
        messages = [item.get("message", "") for item in payload if isinstance(item, dict)]
        return "; ".join(m for m in messages if m) or str(payload)
    return str(payload)


class SegmentServiceClient:
    """Client for the segment service HTTP API."""

    def __init__(
        self,
        *,
        base_url: str,
        session: Optional[requests.Session] = None,
        timeout: float = 15,
    ) -> None:
        """Initialise the API client.

        Args:
            base_url: Base URL including the API prefix, if the server
                uses one, e.g. ``http://localhost:8000/api/v1``.
            session: Optional requests session.  A new one is created
                when omitted.
            timeout: Seconds to wait for each response.
        """
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    # ------------------------------------------------------------------
    # Low level HTTP helper
    # ------------------------------------------------------------------
    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Dict[str, Any] | None = None,
        json_body: Any | None = None,
        as_text: bool = False,
    ) -> Result:
        url = f"{self.base_url}{path}"
        try:
            logger.debug("Sending %s request to %s", method, url)
            response = self.session.request(
                method=method,
                url=url,
                params=params,
                json=json_body,
                timeout=self.timeout,
            )
            response.raise_for_status()
            if as_text:
                return response.text, None
            if response.content:
                return response.json(), None
            return None, None
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            payload: Any = None
            message = ""
            if exc.response is not None:
                try:
                    payload = exc.response.json()
                    message = _error_message(payload)
                except ValueError:
                    message = exc.response.text
            if not message:
                message = str(exc)
            logger.error("API request failed (%s): %s", status, message)
            return None, {"status_code": status, "message": message, "payload": payload}
        except requests.RequestException as exc:
            logger.error("API request failed: %s", exc)
            return None, {"status_code": None, "message": str(exc), "payload": None}

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------
    def list_users(self) -> Result:
        return self._request("GET", "/users")

    def create_user(self, name: str) -> Result:
        return self._request("POST", "/users", json_body={"name": name})

    def delete_user(self, user_id: int) -> Result:
        return self._request("DELETE", f"/users/{user_id}")

    # ------------------------------------------------------------------
    # Segments
    # ------------------------------------------------------------------
    def list_segments(self) -> Result:
        return self._request("GET", "/segments")

    def create_segment(self, name: str) -> Result:
        return self._request("POST", "/segments", json_body={"name": name})

    def delete_segment(self, name: str) -> Result:
        return self._request("DELETE", f"/segments/{quote(name, safe='')}")

    # ------------------------------------------------------------------
    # Memberships
    # ------------------------------------------------------------------
    def update_user_segments(
        self,
        user_id: int,
        add: Optional[List[str]] = None,
        remove: Optional[List[str]] = None,
    ) -> Result:
        """Add and remove segments for a user in one batch.

        On success ``data`` is the list of per-item ``{status, message}``
        results.  Per-item errors (unknown segment, duplicate add) still
        count as success at the HTTP level; inspect each item's status.
        """
        body = {
            "user-id": user_id,
            "segments": list(add or []),
            "segments-for-delete": list(remove or []),
        }
        return self._request("POST", "/user-segments", json_body=body)

    def list_user_segments(self) -> Result:
        return self._request("GET", "/user-segments")

    def get_user_segments(self, user_id: int) -> Tuple[List[str], Optional[Dict[str, Any]]]:
        """Return the segment names of one user as a list.

        A user without segments yields ``([], None)`` rather than an
        error, although the server answers 404 in that case.
        """
        data, error = self._request("GET", f"/user-segments/{user_id}")
        if error:
            if error["status_code"] == 404:
                return [], None
            return [], error
        names = data.get("segment-names", "") if isinstance(data, dict) else ""
        return [name for name in names.split(",") if name], None

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------
    def csv_report(self, year: int, month: int) -> Result:
        """Download the CSV history report for one month as text."""
        return self._request(
            "GET",
            "/csv-report",
            params={"year": year, "month": month},
            as_text=True,
        )
