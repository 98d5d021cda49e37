"""SQL item store: one row per item, history kept inline as JSON."""

import json as json_module
import logging
import uuid
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from backbar.core.config import Settings
from backbar.core.database import (
    create_tables,
    make_engine,
    make_session_factory,
    session_scope,
)
from backbar.core.exceptions import TransportError
from backbar.models.item import ItemRecord
from backbar.schemas.item import StockItem
from backbar.services.store.base import BaseItemStore, decode_items, register_store

logger = logging.getLogger(__name__)

# wire key -> column attribute
_COLUMNS = {
    "uid": "uid",
    "name": "name",
    "brand": "brand",
    "quantity": "quantity",
    "quantityInStock": "quantity_in_stock",
    "lowStockThreshold": "low_stock_threshold",
    "dateCreated": "date_created",
    "changes": "changes_json",
}


def _to_columns(fields: dict[str, Any]) -> dict[str, Any]:
    values = {}
    for key, value in fields.items():
        column = _COLUMNS.get(key)
        if column is None:
            raise ValueError(f"Unknown item field '{key}'")
        if column == "changes_json":
            value = json_module.dumps(value)
        values[column] = value
    return values


def _to_wire(record: ItemRecord) -> dict[str, Any]:
    return {
        "id": record.id,
        "uid": record.uid,
        "name": record.name,
        "brand": record.brand,
        "quantity": record.quantity,
        "quantityInStock": record.quantity_in_stock,
        "lowStockThreshold": record.low_stock_threshold,
        "dateCreated": record.date_created,
        "changes": json_module.loads(record.changes_json or "[]"),
    }


@register_store
class SqlItemStore(BaseItemStore):
    backend = "sql"

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        engine: AsyncEngine | None = None,
    ):
        self.session_factory = session_factory
        self.engine = engine

    @classmethod
    def from_settings(cls, settings: Settings) -> "SqlItemStore":
        engine = make_engine(settings.database_url, echo=False)
        return cls(make_session_factory(engine), engine=engine)

    async def fetch_items(self, owner_id: str) -> list[StockItem]:
        try:
            async with session_scope(self.session_factory) as db:
                result = await db.execute(
                    select(ItemRecord)
                    .where(ItemRecord.uid == owner_id)
                    .order_by(ItemRecord.name.asc())
                )
                records = list(result.scalars().all())
        except SQLAlchemyError as e:
            raise TransportError(f"Failed to fetch items: {e}") from e
        return decode_items(_to_wire(r) for r in records)

    async def create_item(self, fields: dict[str, Any]) -> str:
        item_id = uuid.uuid4().hex
        try:
            async with session_scope(self.session_factory) as db:
                db.add(ItemRecord(id=item_id, **_to_columns(fields)))
        except SQLAlchemyError as e:
            raise TransportError(f"Failed to create item: {e}") from e
        return item_id

    async def update_item(self, item_id: str, fields: dict[str, Any]) -> None:
        values = _to_columns(fields)
        try:
            async with session_scope(self.session_factory) as db:
                record = await db.get(ItemRecord, item_id)
                if record is None:
                    raise TransportError(f"No document to update: items/{item_id}")
                for column, value in values.items():
                    setattr(record, column, value)
        except SQLAlchemyError as e:
            raise TransportError(f"Failed to update item {item_id}: {e}") from e

    async def delete_item(self, item_id: str) -> None:
        try:
            async with session_scope(self.session_factory) as db:
                await db.execute(delete(ItemRecord).where(ItemRecord.id == item_id))
        except SQLAlchemyError as e:
            raise TransportError(f"Failed to delete item {item_id}: {e}") from e

    async def open(self) -> None:
        if self.engine is not None:
            await create_tables(self.engine)

    async def close(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()
