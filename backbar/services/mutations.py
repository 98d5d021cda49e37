"""Stock mutation service: create, edit, increase/decrease stock, delete.

Every operation issues exactly one write to the item store. On success it
invalidates the session's read cache and waits for the refetch; the cache
is never patched in place. Transport failures are logged and reported
through ``MutationResult.ok``; they never propagate past this module.

Stock adjustments for a single item go through a per-item queue: one write
is in flight at a time, and a queued adjustment computes its delta from the
state written by the one before it rather than from the snapshot it was
called with.
"""

import asyncio
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from backbar.core.exceptions import InvariantViolation, TransportError
from backbar.core.timestamps import format_timestamp, now_ms
from backbar.schemas.item import (
    ChangeType,
    HistoryChange,
    StockItem,
    validate_create,
    validate_edit,
)
from backbar.services.cache import ItemCache
from backbar.services.identity import BaseIdentity
from backbar.services.store.base import BaseItemStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ItemCreated:
    item_id: str
    name: str


@dataclass(frozen=True)
class StockChanged:
    item_id: str
    change: HistoryChange


MutationEvent = ItemCreated | StockChanged
Notify = Callable[[MutationEvent], None]


@dataclass(frozen=True)
class MutationResult:
    """Outcome of one mutation. ``ok=False`` means nothing was written."""

    ok: bool
    item_id: str | None = None
    quantity_in_stock: int | None = None
    error: str | None = None


@dataclass
class _ItemQueue:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    latest: StockItem | None = None  # state after the last successful write
    waiters: int = 0


def _check_invariants(fields: Mapping[str, Any]) -> None:
    if fields.get("quantityInStock", 0) < 0:
        raise InvariantViolation(
            f"Refusing to write negative stock: {fields['quantityInStock']}"
        )
    if "quantity" in fields and fields["quantity"] < 1:
        raise InvariantViolation(f"Refusing to write quantity {fields['quantity']}")


class StockMutationService:
    def __init__(self, store: BaseItemStore, cache: ItemCache, identity: BaseIdentity):
        self.store = store
        self.cache = cache
        self.identity = identity
        self._queues: dict[str, _ItemQueue] = {}

    async def create(
        self, data: Mapping[str, Any], notify: Notify | None = None
    ) -> MutationResult:
        """Validate and persist a new item.

        Raises:
            ValidationError: before any write, with every failing field.
        """
        owner_id = self.identity.require_owner_id()
        fields = validate_create(data)
        doc = {
            **fields.to_wire(),
            "uid": owner_id,
            "dateCreated": format_timestamp(now_ms()),
            "changes": [],
        }
        _check_invariants(doc)

        try:
            item_id = await self.store.create_item(doc)
        except TransportError as e:
            logger.warning("Create item '%s' failed: %s", fields.name, e)
            return MutationResult(ok=False, error=str(e))

        logger.info("Created item %s (%s)", item_id, fields.name)
        await self._invalidate()
        if notify is not None:
            notify(ItemCreated(item_id=item_id, name=fields.name))
        return MutationResult(
            ok=True, item_id=item_id, quantity_in_stock=fields.quantity_in_stock
        )

    async def edit(self, item_id: str, data: Mapping[str, Any]) -> MutationResult:
        """Persist name, brand, quantity and low-stock threshold only."""
        self.identity.require_owner_id()
        fields = validate_edit(data).to_wire()
        _check_invariants(fields)

        try:
            await self.store.update_item(item_id, fields)
        except TransportError as e:
            logger.warning("Edit item %s failed: %s", item_id, e)
            return MutationResult(ok=False, item_id=item_id, error=str(e))

        await self._invalidate()
        return MutationResult(ok=True, item_id=item_id)

    async def increase_stock(
        self, item: StockItem, notify: Notify | None = None
    ) -> MutationResult:
        return await self._adjust(item, 1, ChangeType.INCREASED, notify)

    async def decrease_stock(
        self, item: StockItem, notify: Notify | None = None
    ) -> MutationResult:
        """Decrement by one, floored at zero. At zero nothing is written."""
        return await self._adjust(item, -1, ChangeType.DECREASED, notify)

    async def delete(self, item_id: str) -> MutationResult:
        self.identity.require_owner_id()
        try:
            await self.store.delete_item(item_id)
        except TransportError as e:
            logger.warning("Delete item %s failed: %s", item_id, e)
            return MutationResult(ok=False, item_id=item_id, error=str(e))

        logger.info("Deleted item %s", item_id)
        await self._invalidate()
        return MutationResult(ok=True, item_id=item_id)

    async def _adjust(
        self,
        item: StockItem,
        delta: int,
        change_type: ChangeType,
        notify: Notify | None,
    ) -> MutationResult:
        self.identity.require_owner_id()
        queue = self._queues.setdefault(item.id, _ItemQueue())
        queue.waiters += 1
        try:
            async with queue.lock:
                current = queue.latest or item
                previous = current.quantity_in_stock
                next_count = max(0, previous + delta)
                if next_count == previous:
                    logger.debug("Item %s already at zero stock, nothing to write", item.id)
                    return MutationResult(ok=True, item_id=item.id, quantity_in_stock=previous)

                change = HistoryChange(
                    change_type=change_type,
                    value=next_count,
                    previous_value=previous,
                    date=now_ms(),
                )
                changes = (*current.changes, change)
                fields = {
                    "quantityInStock": next_count,
                    "changes": [c.model_dump(mode="json", by_alias=True) for c in changes],
                }
                _check_invariants(fields)

                try:
                    await self.store.update_item(item.id, fields)
                except TransportError as e:
                    logger.warning("Stock %s on item %s failed: %s", change_type, item.id, e)
                    return MutationResult(ok=False, item_id=item.id, error=str(e))

                queue.latest = current.model_copy(
                    update={"quantity_in_stock": next_count, "changes": changes}
                )
        finally:
            queue.waiters -= 1
            if queue.waiters == 0:
                self._queues.pop(item.id, None)

        await self._invalidate()
        if notify is not None:
            notify(StockChanged(item_id=item.id, change=change))
        return MutationResult(ok=True, item_id=item.id, quantity_in_stock=next_count)

    async def _invalidate(self) -> None:
        try:
            await self.cache.invalidate()
        except TransportError as e:
            # The write succeeded; the cache stays stale until the next refetch
            logger.warning("Refetch after write failed: %s", e)
