"""Stock item schemas: entity, history entries, wire codec and input validation."""

from collections.abc import Mapping
from datetime import datetime
from enum import StrEnum
from typing import Annotated, Any

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    StringConstraints,
)
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from backbar.core.exceptions import ValidationError
from backbar.core.timestamps import format_timestamp, parse_timestamp


class Brand(StrEnum):
    RHAPSODY = "Rhapsody"
    SHADES_EQ = "Shades EQ"
    FACTION8 = "Faction8"
    HIGH_SPEED_TONERS = "High Speed Toners"
    BLONDE_VOYAGE_POWDER = "Blonde Voyage Powder Lightener"
    BLONDE_VOYAGE_CLAY = "Blonde Voyage Clay Lightener"


class ChangeType(StrEnum):
    INCREASED = "increasedQuantity"
    DECREASED = "decreasedQuantity"


class StockStatus(StrEnum):
    LOW_STOCK = "low_stock"
    OUT_OF_STOCK = "out_of_stock"


Timestamp = Annotated[
    datetime,
    BeforeValidator(parse_timestamp),
    PlainSerializer(format_timestamp, return_type=str, when_used="json"),
]

_WIRE_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    frozen=True,
)


class HistoryChange(BaseModel):
    """One entry of an item's stock history."""

    model_config = _WIRE_CONFIG

    change_type: ChangeType
    value: int  # stock count after the change
    previous_value: int
    date: Timestamp


class StockItem(BaseModel):
    """A tracked inventory unit, as fetched from the persistence collaborator."""

    model_config = _WIRE_CONFIG

    id: str
    owner_id: str = Field(alias="uid")
    name: str
    brand: Brand
    quantity: int
    quantity_in_stock: int
    low_stock_threshold: int
    date_created: Timestamp
    changes: tuple[HistoryChange, ...] = ()

    @classmethod
    def from_wire(cls, doc: Mapping[str, Any]) -> "StockItem":
        return cls.model_validate(dict(doc))

    def to_wire(self) -> dict[str, Any]:
        """Serialize to the document-store representation (camelCase, ISO timestamps)."""
        return self.model_dump(mode="json", by_alias=True)


Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class ItemEdit(BaseModel):
    """Fields a user may change on an existing item."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: Name
    brand: Brand
    quantity: int = Field(ge=1)
    low_stock_threshold: int = Field(ge=0)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class ItemCreate(ItemEdit):
    """Fields required to create an item. Current stock is only set here."""

    quantity_in_stock: int = Field(ge=0)


def _field_names(model: type[BaseModel], exc: PydanticValidationError) -> list[str]:
    by_alias = {info.alias: name for name, info in model.model_fields.items() if info.alias}
    names = []
    for error in exc.errors():
        if not error["loc"]:
            continue
        key = str(error["loc"][0])
        names.append(by_alias.get(key, key))
    return names


def _validate(model: type[BaseModel], data: Mapping[str, Any]):
    try:
        return model.model_validate(dict(data))
    except PydanticValidationError as e:
        raise ValidationError(_field_names(model, e)) from e


def validate_create(data: Mapping[str, Any]) -> ItemCreate:
    """Validate a create request.

    Raises:
        ValidationError: with every failing field flagged.
    """
    return _validate(ItemCreate, data)


def validate_edit(data: Mapping[str, Any]) -> ItemEdit:
    """Validate an edit request. ``quantity_in_stock`` is not editable."""
    return _validate(ItemEdit, data)


class ItemListResponse(BaseModel):
    """Filtered items plus the flags and counts a list screen needs."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    items: list[StockItem]
    total: int
    low_stock: int = 0
    out_of_stock: int = 0
    is_loading: bool = False
    is_refreshing: bool = False
    is_stale: bool = False


class MutationResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    ok: bool
    item_id: str | None = None
    quantity_in_stock: int | None = None
