"""Remote document store client.

The store exposes one collection, ``items``, over a small REST surface:

- ``GET    {base}/items?uid=<owner>&orderBy=name`` → ``{"documents": [...]}``
- ``POST   {base}/items``                        → ``{"id": "<new id>"}``
- ``PATCH  {base}/items/<id>``                   (top-level field overwrite)
- ``DELETE {base}/items/<id>``

Each document carries its ``id`` next to the item fields.
"""

import logging
from typing import Any

import httpx

from backbar.core.config import Settings
from backbar.core.exceptions import TransportError
from backbar.schemas.item import StockItem
from backbar.services.store.base import BaseItemStore, decode_items, register_store

logger = logging.getLogger(__name__)


@register_store
class HttpItemStore(BaseItemStore):
    """Item store backed by a remote document store over HTTP."""

    backend = "http"

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        self.timeout = timeout
        self.transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "HttpItemStore":
        return cls(
            settings.DOCUMENT_STORE_URL,
            api_key=settings.DOCUMENT_STORE_API_KEY,
            timeout=settings.DOCUMENT_STORE_TIMEOUT,
        )

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self.transport
            ) as client:
                response = await client.request(
                    method, url, headers=self.headers, **kwargs
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TransportError(
                f"{method} {path} failed with status {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {path} failed: {e}") from e

        if response.status_code == 204 or not response.content:
            return {}
        try:
            data = response.json()
        except ValueError as e:
            raise TransportError(f"{method} {path} returned a non-JSON body") from e
        if not isinstance(data, dict):
            raise TransportError(f"{method} {path} returned {type(data).__name__}, expected an object")
        return data

    async def fetch_items(self, owner_id: str) -> list[StockItem]:
        data = await self._request(
            "GET", "/items", params={"uid": owner_id, "orderBy": "name"}
        )
        documents = data.get("documents", [])
        if not isinstance(documents, list):
            raise TransportError("Document store returned malformed documents")
        items = decode_items(documents)
        logger.debug("Fetched %d items for owner %s", len(items), owner_id)
        return items

    async def create_item(self, fields: dict[str, Any]) -> str:
        data = await self._request("POST", "/items", json=fields)
        item_id = data.get("id")
        if not item_id:
            raise TransportError("Document store did not return an id")
        return str(item_id)

    async def update_item(self, item_id: str, fields: dict[str, Any]) -> None:
        await self._request("PATCH", f"/items/{item_id}", json=fields)

    async def delete_item(self, item_id: str) -> None:
        await self._request("DELETE", f"/items/{item_id}")
