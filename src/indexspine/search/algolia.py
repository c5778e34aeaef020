"""
Algolia REST client.

Talks to the Algolia indexing API directly over httpx:

    POST https://{appId}.algolia.net/1/indexes/{name}/batch
        {"requests": [{"action": "updateObject", "body": {...}}, ...]}
    POST https://{appId}.algolia.net/1/indexes/{name}/clear

Items carrying an ``objectID`` are sent as ``updateObject`` (replace);
items without one as ``addObject`` so Algolia generates the id.

Manifesto:
    The engine only needs two calls and a truthful answer about whether a
    batch landed. Every HTTP or transport failure becomes a
    :class:`RemoteRequestError`; a 2xx answer missing its ``taskID`` or
    acknowledging fewer objects than were sent comes back as an invalid
    :class:`UpsertResponse` for the committer to report.

Examples:
    >>> service = AlgoliaSearchService("APPID", "admin-key")
    >>> service.explorer_url("pages")
    'https://www.algolia.com/apps/APPID/explorer/indices'

    Testing with a mock transport::

        transport = httpx.MockTransport(handler)
        service = AlgoliaSearchService(
            "APPID", "key", http_client=httpx.Client(transport=transport)
        )

Tags:
    algolia, search-service, httpx, rest-client, indexspine

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any
from urllib.parse import quote

import httpx

from indexspine.core.errors import InvalidConfigError, RemoteRequestError
from indexspine.core.logging import get_logger
from indexspine.core.models import AttributeMap, UpsertResponse

logger = get_logger(__name__)

EXPLORER_URL = "https://www.algolia.com/apps/{app_id}/explorer/indices"


class AlgoliaSearchService:
    """SearchService speaking the Algolia REST API.

    Args:
        app_id: Algolia application id.
        api_key: Admin (write) API key.
        timeout: Request timeout in seconds.
        http_client: Optional pre-built client, for testing (mock injection).
    """

    def __init__(
        self,
        app_id: str,
        api_key: str,
        *,
        timeout: float = 30.0,
        http_client: httpx.Client | None = None,
    ) -> None:
        if not app_id:
            raise InvalidConfigError("algolia_app_id", app_id, "Algolia application id is required")
        if not api_key:
            raise InvalidConfigError("algolia_api_key", "***", "Algolia API key is required")
        self.app_id = app_id
        self.base_url = f"https://{app_id}.algolia.net"
        self._headers = {
            "X-Algolia-Application-Id": app_id,
            "X-Algolia-API-Key": api_key,
        }
        self._client = http_client or httpx.Client(timeout=timeout)
        self._owns_client = http_client is None

    # -- SearchService -----------------------------------------------------

    def clear_index(self, name: str) -> None:
        self._post(f"/1/indexes/{quote(name, safe='')}/clear", {})

    def upsert(
        self,
        name: str,
        items: Sequence[AttributeMap],
        *,
        auto_generate_id_if_absent: bool = True,
    ) -> UpsertResponse:
        requests = []
        for item in items:
            if item.get("objectID"):
                requests.append({"action": "updateObject", "body": dict(item)})
            elif auto_generate_id_if_absent:
                body = {k: v for k, v in item.items() if k != "objectID"}
                requests.append({"action": "addObject", "body": body})
            else:
                return UpsertResponse(valid=False, message="item without objectID")

        data = self._post(f"/1/indexes/{quote(name, safe='')}/batch", {"requests": requests})

        task_id = data.get("taskID")
        object_ids = data.get("objectIDs") or []
        if task_id is None:
            return UpsertResponse(
                valid=False,
                object_ids=tuple(str(i) for i in object_ids),
                message="response has no taskID",
            )
        if len(object_ids) != len(items):
            return UpsertResponse(
                valid=False,
                object_ids=tuple(str(i) for i in object_ids),
                task_id=task_id,
                message=f"response acknowledged {len(object_ids)} of {len(items)} objects",
            )
        return UpsertResponse(valid=True, object_ids=tuple(str(i) for i in object_ids), task_id=task_id)

    def explorer_url(self, name: str) -> str | None:
        return EXPLORER_URL.format(app_id=self.app_id)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    # -- transport ---------------------------------------------------------

    def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = self._client.post(url, json=payload, headers=self._headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise RemoteRequestError(
                f"Algolia returned {status} for {path}: {_error_message(e.response)}",
                http_status=status,
                url=url,
                cause=e,
            ) from e
        except httpx.HTTPError as e:
            raise RemoteRequestError(f"Algolia request to {path} failed: {e}", url=url, cause=e) from e

        try:
            data = response.json()
        except ValueError as e:
            raise RemoteRequestError(
                f"Algolia returned a non-JSON body for {path}",
                http_status=response.status_code,
                url=url,
                cause=e,
            ) from e

        logger.debug("algolia.request", path=path, status=response.status_code, task_id=data.get("taskID"))
        return data if isinstance(data, dict) else {}


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.reason_phrase


__all__ = [
    "EXPLORER_URL",
    "AlgoliaSearchService",
]
