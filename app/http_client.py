"""HTTP client for the ossca-status JSON API v1.

Used by the CLI in client-server mode to read from a running dashboard
instance over HTTP instead of querying GitHub directly.
"""

from __future__ import annotations

from typing import Any

import httpx


class StatusError(Exception):
    """Error from the ossca-status API."""

    def __init__(self, message: str, code: str = "", status: int = 0):
        super().__init__(message)
        self.code = code
        self.status = status


class StatusClient:
    """Synchronous HTTP client for the dashboard API v1.

    Returns plain dicts shaped like ``Issue.to_dict()`` so CLI commands work
    with either backend.
    """

    def __init__(self, base_url: str, **kwargs: Any):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.Client(
            base_url=f"{self.base_url}/api/v1",
            timeout=30.0,
            **kwargs,
        )

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict | None = None,
    ) -> httpx.Response:
        """Make a request and handle errors.

        Wraps httpx transport errors (connection refused, timeout, DNS failure)
        as StatusError so callers only need to catch one exception type.
        """
        try:
            resp = self._client.request(method, path, params=params)
        except httpx.RequestError as exc:
            raise StatusError(
                f"Connection error: {exc}", code="connection_error", status=0
            ) from exc
        if resp.status_code >= 400:
            try:
                body = resp.json()
                msg = body.get("error", resp.text)
                code = body.get("code", "")
            except Exception:
                msg = resp.text
                code = ""
            raise StatusError(msg, code=code, status=resp.status_code)
        return resp

    def list_issues(
        self,
        *,
        repo: str | None = None,
        sort: str | None = None,
        direction: str = "asc",
    ) -> list[dict]:
        params: dict[str, str] = {"dir": direction}
        if repo:
            params["repo"] = repo
        if sort:
            params["sort"] = sort
        resp = self._request("GET", "/issues", params=params)
        result: list[dict] = resp.json()
        return result

    def get_summary(self, *, repo: str | None = None) -> dict:
        params = {"repo": repo} if repo else None
        resp = self._request("GET", "/summary", params=params)
        result: dict = resp.json()
        return result

    def close(self) -> None:
        self._client.close()
