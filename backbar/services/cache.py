"""Read cache and invalidation coordinator for one owner session.

The cache is the only writer of the fetched collection. Consumers read
snapshots through ``get()``; mutations call ``invalidate()`` after a
successful write and the next fetch replaces the collection wholesale.
"""

import asyncio
import logging

from backbar.core.config import settings
from backbar.core.exceptions import TransportError
from backbar.schemas.item import StockItem
from backbar.services.identity import BaseIdentity
from backbar.services.store.base import BaseItemStore

logger = logging.getLogger(__name__)


class ItemCache:
    def __init__(
        self,
        store: BaseItemStore,
        identity: BaseIdentity,
        refresh_min_visible: float = settings.REFRESH_MIN_VISIBLE_SECONDS,
    ):
        self.store = store
        self.identity = identity
        self.refresh_min_visible = refresh_min_visible
        self.last_error: TransportError | None = None

        self._items: list[StockItem] | None = None
        self._stale = False
        self._generation = 0  # last fetch started
        self._applied = 0  # fetch whose result is held
        self._task: asyncio.Task | None = None
        self._tasks: set[asyncio.Task] = set()
        self._refreshing = 0

    def get(self) -> list[StockItem] | None:
        """The last fetched collection, or ``None`` before the first fetch."""
        if self._items is None:
            return None
        return list(self._items)

    def find(self, item_id: str) -> StockItem | None:
        for item in self._items or ():
            if item.id == item_id:
                return item
        return None

    @property
    def is_loading(self) -> bool:
        return self._items is None and self._task is not None and not self._task.done()

    @property
    def is_refreshing(self) -> bool:
        return self._refreshing > 0

    @property
    def is_stale(self) -> bool:
        return self._stale

    async def load(self) -> list[StockItem]:
        """Fetch on first use; afterwards serve the cached collection.

        A refetch already in flight is awaited. If it fails while an older
        collection is held, the older collection is served.
        """
        if self._task is not None and not self._task.done():
            try:
                return await self._task
            except TransportError:
                if self._items is None:
                    raise
                return self.get()
        if self._items is not None:
            return self.get()
        return await self._start_fetch()

    def invalidate(self) -> asyncio.Task:
        """Mark the collection stale and start a refetch.

        Returns the fetch task; awaiting it yields the new collection.
        """
        self._stale = True
        return self._start_fetch()

    async def refresh(self) -> list[StockItem]:
        """User-initiated refetch.

        ``is_refreshing`` stays set for at least ``refresh_min_visible``
        seconds so that a fast refetch is still visible.
        """
        loop = asyncio.get_running_loop()
        started = loop.time()
        self._refreshing += 1
        try:
            items = await self.invalidate()
            remaining = self.refresh_min_visible - (loop.time() - started)
            if remaining > 0:
                await asyncio.sleep(remaining)
            return items
        finally:
            self._refreshing -= 1

    async def close(self) -> None:
        """Cancel pending fetches and drop the collection."""
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._items = None
        self._task = None
        self._stale = False

    def _start_fetch(self) -> asyncio.Task:
        owner_id = self.identity.require_owner_id()
        self._generation += 1
        task = asyncio.create_task(self._fetch(owner_id, self._generation))
        self._task = task
        self._tasks.add(task)
        task.add_done_callback(self._on_fetch_done)
        return task

    def _on_fetch_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled():
            # Mark the exception retrieved; _fetch already logged it.
            task.exception()

    async def _fetch(self, owner_id: str, generation: int) -> list[StockItem]:
        try:
            items = await self.store.fetch_items(owner_id)
        except TransportError as e:
            self.last_error = e
            logger.warning("Fetch %d for owner %s failed: %s", generation, owner_id, e)
            raise

        # An older fetch finishing late must not overwrite a newer result
        if generation > self._applied:
            self._items = items
            self._applied = generation
            self._stale = generation < self._generation
            self.last_error = None
            logger.debug("Cached %d items (fetch %d)", len(items), generation)
        return self.get()
