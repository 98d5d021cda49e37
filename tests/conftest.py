from datetime import UTC, datetime

import pytest

from backbar.schemas.item import Brand, ChangeType, HistoryChange, StockItem
from backbar.services.cache import ItemCache
from backbar.services.identity import StaticIdentity
from backbar.services.mutations import StockMutationService
from backbar.services.store.mock import MockItemStore

OWNER = "owner-1"


def build_item(**overrides) -> StockItem:
    values = {
        "id": "item-1",
        "uid": OWNER,
        "name": "Toner A",
        "brand": Brand.RHAPSODY,
        "quantity": 10,
        "quantityInStock": 2,
        "lowStockThreshold": 3,
        "dateCreated": datetime(2026, 10, 1, 9, 30, 0, 125000, tzinfo=UTC),
        "changes": [],
    }
    values.update(overrides)
    return StockItem.model_validate(values)


@pytest.fixture
def make_item():
    return build_item


@pytest.fixture
def history_change():
    return HistoryChange(
        change_type=ChangeType.DECREASED,
        value=2,
        previous_value=3,
        date=datetime(2026, 10, 2, 14, 5, 7, 891000, tzinfo=UTC),
    )


@pytest.fixture
def store():
    return MockItemStore()


@pytest.fixture
def identity():
    return StaticIdentity(OWNER)


@pytest.fixture
def cache(store, identity):
    return ItemCache(store, identity, refresh_min_visible=0.05)


@pytest.fixture
def service(store, cache, identity):
    return StockMutationService(store, cache, identity)


@pytest.fixture
def seed(store):
    """Write items into the mock store under their own ids."""

    def _seed(*items: StockItem) -> list[StockItem]:
        for item in items:
            doc = item.to_wire()
            store.documents[doc.pop("id")] = doc
        return list(items)

    return _seed
