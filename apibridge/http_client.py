"""Async client for the wrapped REST API with normalized errors."""
from __future__ import annotations

import json
import logging
from typing import Any, Mapping
from urllib.parse import urlencode

import httpx

from .errors import FetchError, error_for_status

logger = logging.getLogger(__name__)

SUCCESS_MARKER: dict[str, Any] = {"success": True, "message": "Operation completed successfully"}

_BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})
_DEFAULT_HEADERS = {"Content-Type": "application/json", "Accept": "application/json"}


def build_url(
    base_url: str,
    path: str,
    path_params: Mapping[str, Any] | None = None,
    query_params: Mapping[str, Any] | None = None,
) -> str:
    """Substitute ``{name}`` placeholders and append a query string.

    Example: ``/api/v1/Books/{id}`` with ``{"id": 1}`` -> ``/api/v1/Books/1``.
    Placeholders without a value are left as they are.
    """
    url = f"{base_url}{path}"
    for key, value in (path_params or {}).items():
        url = url.replace("{" + key + "}", str(value))
    if query_params:
        url += "?" + urlencode({k: str(v) for k, v in query_params.items()})
    return url


def normalize_response(response: httpx.Response) -> Any:
    """Return the JSON payload of a 2xx response, or the success marker."""
    if response.status_code == 204 or response.headers.get("content-length") == "0" or not response.content:
        return dict(SUCCESS_MARKER)
    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return dict(SUCCESS_MARKER)


class ApiClient:
    """Issue JSON requests against ``base_url``.

    The underlying ``httpx.AsyncClient`` keeps its default timeout; requests
    are never retried.
    """

    def __init__(self, base_url: str, client: httpx.AsyncClient | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient()
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def request(
        self,
        method: str,
        path: str,
        path_params: Mapping[str, Any] | None = None,
        query_params: Mapping[str, Any] | None = None,
        body: Any | None = None,
    ) -> Any:
        """Send one request and return its normalized payload.

        Raises:
            FetchError: On transport failure.
            ClientError, NotFoundError, UpstreamError, UnclassifiedError: On non-2xx statuses.
        """
        method = method.upper()
        url = build_url(self.base_url, path, path_params, query_params)
        content = None
        if body and method in _BODY_METHODS:
            content = json.dumps(body)

        logger.debug("%s %s", method, url)
        try:
            response = await self._get_client().request(
                method, url, headers=_DEFAULT_HEADERS, content=content
            )
        except httpx.HTTPError as e:
            logger.warning("Request failed: %s %s: %s", method, url, e)
            raise FetchError(f"Request failed: {e}", url=url) from e

        if not response.is_success:
            error = error_for_status(response.status_code, url, response.text or "Unknown error")
            logger.warning("%s %s -> %s", method, url, type(error).__name__)
            raise error

        return normalize_response(response)

    async def get(self, path: str, path_params: Mapping[str, Any] | None = None,
                  query_params: Mapping[str, Any] | None = None) -> Any:
        return await self.request("GET", path, path_params=path_params, query_params=query_params)

    async def post(self, path: str, body: Any, path_params: Mapping[str, Any] | None = None) -> Any:
        return await self.request("POST", path, path_params=path_params, body=body)

    async def put(self, path: str, body: Any, path_params: Mapping[str, Any] | None = None) -> Any:
        return await self.request("PUT", path, path_params=path_params, body=body)

    async def delete(self, path: str, path_params: Mapping[str, Any] | None = None) -> Any:
        return await self.request("DELETE", path, path_params=path_params)


__all__ = ["SUCCESS_MARKER", "ApiClient", "build_url", "normalize_response"]
