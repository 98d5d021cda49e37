"""Item store abstraction: the persistence collaborator interface and backend registry.

Stores speak the wire form (camelCase dicts, ISO timestamps) on the write
side and return decoded ``StockItem`` objects on the read side.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from typing import Any

from backbar.core.config import Settings
from backbar.core.exceptions import TransportError
from backbar.schemas.item import StockItem

logger = logging.getLogger(__name__)


def decode_items(documents: Iterable[Mapping[str, Any]]) -> list[StockItem]:
    """Decode fetched documents; one malformed document fails the whole fetch.

    Raises:
        TransportError: if any document cannot be decoded.
    """
    try:
        return [StockItem.from_wire(doc) for doc in documents]
    except (TypeError, ValueError) as e:
        # pydantic's ValidationError is a ValueError
        raise TransportError(f"Malformed item document: {e}") from e


class BaseItemStore(ABC):
    """Abstract item store interface."""

    backend: str

    @classmethod
    def from_settings(cls, settings: Settings) -> "BaseItemStore":
        return cls()

    @abstractmethod
    async def fetch_items(self, owner_id: str) -> list[StockItem]:
        """Get all items owned by ``owner_id``, ordered by name ascending."""

    @abstractmethod
    async def create_item(self, fields: dict[str, Any]) -> str:
        """Persist a new item document and return its id."""

    @abstractmethod
    async def update_item(self, item_id: str, fields: dict[str, Any]) -> None:
        """Overwrite the given top-level fields of one item."""

    @abstractmethod
    async def delete_item(self, item_id: str) -> None:
        """Remove one item."""

    async def open(self) -> None:
        """Prepare the store before first use."""

    async def close(self) -> None:
        """Release connections held by the store."""


# Store registry
_registry: dict[str, type[BaseItemStore]] = {}


def register_store(store_class: type[BaseItemStore]):
    """Register an item store class under its backend name."""
    _registry[store_class.backend] = store_class
    return store_class


def build_item_store(settings: Settings) -> BaseItemStore:
    """Instantiate the store selected by ``STORE_BACKEND``."""
    store_class = _registry.get(settings.STORE_BACKEND)
    if store_class is None:
        raise ValueError(f"Unknown STORE_BACKEND '{settings.STORE_BACKEND}'")
    logger.info("Using %s item store", settings.STORE_BACKEND)
    return store_class.from_settings(settings)
