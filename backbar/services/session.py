"""Per-owner inventory session: one cache and one mutation service.

A session is opened when an owner signs in and closed on sign-out, which
drops the cached collection. Consumers receive the session by reference
instead of reaching for a process-wide client.
"""

import logging

from backbar.core.config import settings
from backbar.core.exceptions import ItemNotFoundError
from backbar.schemas.item import StockItem
from backbar.services.cache import ItemCache
from backbar.services.classification import StockSummary, summarize
from backbar.services.identity import StaticIdentity
from backbar.services.mutations import StockMutationService
from backbar.services.search import ItemFilter, filter_items
from backbar.services.store.base import BaseItemStore

logger = logging.getLogger(__name__)


class InventorySession:
    def __init__(
        self,
        store: BaseItemStore,
        owner_id: str,
        refresh_min_visible: float = settings.REFRESH_MIN_VISIBLE_SECONDS,
        search_threshold: float = settings.SEARCH_THRESHOLD,
    ):
        self.identity = StaticIdentity(owner_id)
        self.cache = ItemCache(store, self.identity, refresh_min_visible=refresh_min_visible)
        self.mutations = StockMutationService(store, self.cache, self.identity)
        self.search_threshold = search_threshold

    @property
    def owner_id(self) -> str | None:
        return self.identity.current_owner_id()

    async def query(self, criteria: ItemFilter) -> tuple[list[StockItem], StockSummary]:
        """Run the pipeline over the cached collection, loading it on first use.

        Returns the filtered items and the status counts of the whole collection.
        """
        items = await self.cache.load()
        return filter_items(items, criteria, self.search_threshold), summarize(items)

    async def get_item(self, item_id: str) -> StockItem:
        """Look up one item in the cached collection.

        Raises:
            ItemNotFoundError: if the owner has no such item.
        """
        await self.cache.load()
        item = self.cache.find(item_id)
        if item is None:
            raise ItemNotFoundError(item_id)
        return item

    async def close(self) -> None:
        self.identity.sign_out()
        await self.cache.close()


class SessionRegistry:
    """Open sessions keyed by owner id."""

    def __init__(self, store: BaseItemStore, **session_options):
        self.store = store
        self.session_options = session_options
        self._sessions: dict[str, InventorySession] = {}

    def get_or_open(self, owner_id: str) -> InventorySession:
        session = self._sessions.get(owner_id)
        if session is None:
            session = InventorySession(self.store, owner_id, **self.session_options)
            self._sessions[owner_id] = session
            logger.info("Opened inventory session for owner %s", owner_id)
        return session

    async def close(self, owner_id: str) -> bool:
        session = self._sessions.pop(owner_id, None)
        if session is None:
            return False
        await session.close()
        logger.info("Closed inventory session for owner %s", owner_id)
        return True

    async def close_all(self) -> None:
        for owner_id in list(self._sessions):
            await self.close(owner_id)
