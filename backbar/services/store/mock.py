"""In-memory item store for development and tests."""

import copy
import uuid
from typing import Any

from backbar.core.exceptions import TransportError
from backbar.schemas.item import StockItem
from backbar.services.store.base import BaseItemStore, decode_items, register_store


@register_store
class MockItemStore(BaseItemStore):
    """Keeps documents in a dict, copying on every read and write."""

    backend = "mock"

    def __init__(self) -> None:
        self.documents: dict[str, dict[str, Any]] = {}

    async def fetch_items(self, owner_id: str) -> list[StockItem]:
        items = decode_items(
            {**copy.deepcopy(doc), "id": item_id}
            for item_id, doc in self.documents.items()
            if doc.get("uid") == owner_id
        )
        return sorted(items, key=lambda item: item.name)

    async def create_item(self, fields: dict[str, Any]) -> str:
        item_id = uuid.uuid4().hex
        self.documents[item_id] = copy.deepcopy(fields)
        return item_id

    async def update_item(self, item_id: str, fields: dict[str, Any]) -> None:
        doc = self.documents.get(item_id)
        if doc is None:
            raise TransportError(f"No document to update: items/{item_id}")
        doc.update(copy.deepcopy(fields))

    async def delete_item(self, item_id: str) -> None:
        self.documents.pop(item_id, None)
