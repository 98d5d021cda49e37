import asyncio

import pytest

from backbar.core.exceptions import (
    InvariantViolation,
    NotAuthenticatedError,
    TransportError,
    ValidationError,
)
from backbar.core.timestamps import parse_timestamp
from backbar.schemas.item import ChangeType
from backbar.services.cache import ItemCache
from backbar.services.identity import StaticIdentity
from backbar.services.mutations import ItemCreated, StockChanged, StockMutationService
from backbar.services.store.mock import MockItemStore

NEW_ITEM = {
    "name": "Gloss 8N",
    "brand": "Shades EQ",
    "quantity": 6,
    "quantityInStock": 4,
    "lowStockThreshold": 1,
}


class RecordingStore(MockItemStore):
    """Counts writes; can be told to fail them."""

    def __init__(self):
        super().__init__()
        self.writes: list[tuple[str, dict]] = []
        self.fail_writes = False

    async def create_item(self, fields):
        if self.fail_writes:
            raise TransportError("permission denied")
        item_id = await super().create_item(fields)
        self.writes.append((item_id, fields))
        return item_id

    async def update_item(self, item_id, fields):
        # Yield so that concurrent callers interleave at the network boundary
        await asyncio.sleep(0)
        if self.fail_writes:
            raise TransportError("permission denied")
        self.writes.append((item_id, fields))
        await super().update_item(item_id, fields)


@pytest.fixture
def recording_store():
    return RecordingStore()


@pytest.fixture
def recording_service(recording_store, identity):
    cache = ItemCache(recording_store, identity, refresh_min_visible=0)
    return StockMutationService(recording_store, cache, identity)


async def test_create_stamps_owner_date_and_empty_history(service, store):
    events = []

    result = await service.create(NEW_ITEM, notify=events.append)

    assert result.ok is True
    doc = store.documents[result.item_id]
    assert doc["uid"] == "owner-1"
    assert doc["changes"] == []
    assert parse_timestamp(doc["dateCreated"]).microsecond % 1000 == 0
    assert events == [ItemCreated(item_id=result.item_id, name="Gloss 8N")]


async def test_create_invalidates_cache(service, cache):
    await cache.load()
    assert cache.get() == []

    result = await service.create(NEW_ITEM)

    assert [item.id for item in cache.get()] == [result.item_id]
    assert cache.find(result.item_id).quantity_in_stock == 4


async def test_invalid_create_stops_before_any_write(recording_service, recording_store):
    with pytest.raises(ValidationError) as exc_info:
        await recording_service.create({**NEW_ITEM, "brand": "Wella", "quantity": 0})

    assert exc_info.value.fields == {"brand": True, "quantity": True}
    assert recording_store.writes == []


async def test_increase_appends_one_entry(make_item, seed, service, store, cache):
    (item,) = seed(make_item(id="1", quantityInStock=2))
    events = []

    result = await service.increase_stock(item, notify=events.append)

    assert result.ok is True
    assert result.quantity_in_stock == 3
    updated = cache.find("1")
    assert updated.quantity_in_stock == 3
    assert len(updated.changes) == 1
    change = updated.changes[0]
    assert change.change_type is ChangeType.INCREASED
    assert (change.previous_value, change.value) == (2, 3)
    assert events == [StockChanged(item_id="1", change=change)]
    # The caller's snapshot is untouched
    assert item.changes == ()


async def test_decrease_reduces_by_one_and_records_previous(make_item, seed, service, cache, history_change):
    (item,) = seed(make_item(id="1", quantityInStock=3, changes=[history_change]))

    await service.decrease_stock(item)

    updated = cache.find("1")
    assert updated.quantity_in_stock == 2
    assert len(updated.changes) == 2
    assert updated.changes[0] == history_change
    last = updated.changes[-1]
    assert last.change_type is ChangeType.DECREASED
    assert (last.previous_value, last.value) == (3, 2)


async def test_decrease_at_zero_is_a_floor(make_item, recording_store, recording_service):
    item = make_item(id="1", quantityInStock=0)
    doc = item.to_wire()
    recording_store.documents[doc.pop("id")] = doc

    result = await recording_service.decrease_stock(item)

    assert result.ok is True
    assert result.quantity_in_stock == 0
    assert recording_store.writes == []
    assert recording_store.documents["1"]["quantityInStock"] == 0
    assert recording_store.documents["1"]["changes"] == []


async def test_rapid_decreases_from_stale_snapshot_are_serialized(make_item, recording_store, recording_service):
    item = make_item(id="1", quantityInStock=5)
    doc = item.to_wire()
    recording_store.documents[doc.pop("id")] = doc

    results = await asyncio.gather(*(recording_service.decrease_stock(item) for _ in range(3)))

    assert [r.quantity_in_stock for r in results] == [4, 3, 2]
    stored = recording_store.documents["1"]
    assert stored["quantityInStock"] == 2
    assert [(c["previousValue"], c["value"]) for c in stored["changes"]] == [(5, 4), (4, 3), (3, 2)]
    assert len(recording_store.writes) == 3


async def test_edit_writes_only_editable_fields(make_item, recording_store, recording_service, history_change):
    item = make_item(id="1", quantityInStock=2, changes=[history_change])
    doc = item.to_wire()
    recording_store.documents[doc.pop("id")] = doc

    result = await recording_service.edit("1", {
        "name": "Toner A+",
        "brand": "Faction8",
        "quantity": 12,
        "lowStockThreshold": 4,
        "quantityInStock": 40,
    })

    assert result.ok is True
    assert recording_store.writes == [("1", {
        "name": "Toner A+",
        "brand": "Faction8",
        "quantity": 12,
        "lowStockThreshold": 4,
    })]
    stored = recording_store.documents["1"]
    assert stored["quantityInStock"] == 2
    assert len(stored["changes"]) == 1


async def test_edit_validation_errors(recording_service, recording_store):
    with pytest.raises(ValidationError) as exc_info:
        await recording_service.edit("1", {"name": "", "brand": "Rhapsody", "quantity": 1, "lowStockThreshold": -1})

    assert exc_info.value.fields == {"name": True, "low_stock_threshold": True}
    assert recording_store.writes == []


async def test_transport_failure_is_reported_and_cache_untouched(make_item, recording_store, recording_service):
    item = make_item(id="1", quantityInStock=2)
    doc = item.to_wire()
    recording_store.documents[doc.pop("id")] = doc
    cache = recording_service.cache
    before = await cache.load()

    recording_store.fail_writes = True
    result = await recording_service.increase_stock(item)

    assert result.ok is False
    assert "permission denied" in result.error
    assert cache.get() == before
    assert cache.is_stale is False
    assert recording_store.documents["1"]["quantityInStock"] == 2


async def test_failed_create_returns_inert_result(recording_store, recording_service):
    recording_store.fail_writes = True

    result = await recording_service.create(NEW_ITEM)

    assert result.ok is False
    assert result.item_id is None
    assert recording_store.documents == {}


async def test_negative_stock_never_reaches_the_store(make_item, recording_store, recording_service):
    corrupt = make_item(id="1", quantityInStock=-3)

    with pytest.raises(InvariantViolation):
        await recording_service.increase_stock(corrupt)

    assert recording_store.writes == []


async def test_delete_removes_item_and_refetches(make_item, seed, service, store, cache):
    seed(make_item(id="1"), make_item(id="2", name="Toner B"))
    await cache.load()

    result = await service.delete("1")

    assert result.ok is True
    assert "1" not in store.documents
    assert [item.id for item in cache.get()] == ["2"]


async def test_mutations_require_an_owner(make_item, store):
    identity = StaticIdentity(None)
    service = StockMutationService(store, ItemCache(store, identity), identity)

    with pytest.raises(NotAuthenticatedError):
        await service.create(NEW_ITEM)
    with pytest.raises(NotAuthenticatedError):
        await service.increase_stock(make_item())
    assert store.documents == {}


async def test_committed_write_survives_undecodable_refetch(make_item, seed, service, store, cache):
    (item,) = seed(make_item(id="1", quantityInStock=2))
    await cache.load()
    store.documents["2"] = {**store.documents["1"], "brand": "Wella"}

    result = await service.increase_stock(item)

    assert result.ok is True
    assert result.quantity_in_stock == 3
    assert store.documents["1"]["quantityInStock"] == 3
    # The refetch failed, so the previous collection is still held
    assert cache.find("1").quantity_in_stock == 2
