"""HTTP element backend built on httpx.

Endpoints (relative to ``base_url``):

- ``POST   /elements``        create ``{typeTag, attributes}``
- ``GET    /elements``        list, query params from ``QueryRequest.to_params``
- ``GET    /elements/<id>``   fetch one
- ``PATCH  /elements/<id>``   partial update
- ``DELETE /elements/<id>``   idempotent removal

Every request carries ``projectId``. Transport failures and timeouts
become NetworkFailure; error responses are decoded from the error
envelope into the matching taxonomy exception.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping
from urllib.parse import quote

import httpx

from sysview.client.base import ElementBackend
from sysview.codec import page_from_payload, record_from_payload
from sysview.errors import NetworkFailure, error_from_response
from sysview.model.ElementRecord import ElementRecord
from sysview.query.pagination import Page, QueryRequest

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8080/api/v1"


class HttpElementBackend(ElementBackend):
    """ElementBackend that talks to a remote service over HTTP.

    Args:
        base_url: Service root, e.g. ``http://localhost:8080/api/v1``.
        project_id: Project scope sent with every request.
        timeout: Request timeout in seconds.
        transport: Optional httpx transport (tests pass ``httpx.MockTransport``).
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        project_id: str = "default",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._project_id = project_id
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    @property
    def project_id(self) -> str:
        return self._project_id

    def set_project_id(self, project_id: str) -> None:
        """Switch project scope for subsequent requests."""
        self._project_id = project_id

    async def __aenter__(self) -> HttpElementBackend:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ─────────────────────────────────────────────────────────────────────────
    # Contract
    # ─────────────────────────────────────────────────────────────────────────

    async def create(self, type_tag: str, attributes: Mapping[str, Any]) -> ElementRecord:
        body = await self._request(
            "POST", "/elements", json={"typeTag": type_tag, "attributes": dict(attributes)}
        )
        return record_from_payload(body)

    async def list_elements(self, request: QueryRequest) -> Page:
        body = await self._request("GET", "/elements", params=request.to_params())
        return page_from_payload(body, request)

    async def get(self, element_id: str) -> ElementRecord:
        body = await self._request("GET", _element_path(element_id))
        return record_from_payload(body)

    async def update(self, element_id: str, changes: Mapping[str, Any]) -> ElementRecord:
        body = await self._request("PATCH", _element_path(element_id), json=dict(changes))
        return record_from_payload(body)

    async def delete(self, element_id: str) -> None:
        await self._request("DELETE", _element_path(element_id))

    # ─────────────────────────────────────────────────────────────────────────
    # Transport
    # ─────────────────────────────────────────────────────────────────────────

    async def _request(
        self,
        method: str,
        path: str,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        """Issue one request and decode the JSON body.

        Returns:
            Decoded JSON, or None for an empty body.

        Raises:
            StoreError: A taxonomy subclass for every failure.
        """
        query: dict[str, Any] = {"projectId": self._project_id}
        if params:
            query.update(params)

        try:
            response = await self._client.request(method, path, params=query, json=json)
        except httpx.TimeoutException as e:
            logger.warning("%s %s timed out", method, path)
            raise NetworkFailure("Request timed out", str(e)) from e
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise NetworkFailure("Network Error: Unable to connect to server", str(e)) from e

        if response.is_error:
            error = error_from_response(response.status_code, _json_or_none(response))
            logger.debug("%s %s -> %s (%s)", method, path, response.status_code, error.category)
            raise error

        if not response.content:
            return None
        body = _json_or_none(response)
        if body is None:
            raise NetworkFailure("Malformed response", "response body is not JSON")
        return body


def _element_path(element_id: str) -> str:
    return f"/elements/{quote(element_id, safe='')}"


def _json_or_none(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


__all__ = ["DEFAULT_BASE_URL", "HttpElementBackend"]
