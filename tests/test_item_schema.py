from datetime import UTC, datetime, timedelta, timezone

import pytest
from pydantic import ValidationError as PydanticValidationError

from backbar.core.exceptions import ValidationError
from backbar.core.timestamps import format_timestamp, now_ms, parse_timestamp
from backbar.schemas.item import Brand, StockItem, validate_create, validate_edit

VALID_CREATE = {
    "name": "Toner A",
    "brand": "Rhapsody",
    "quantity": 10,
    "quantityInStock": 2,
    "lowStockThreshold": 3,
}


def test_validate_create_accepts_camel_case_input():
    fields = validate_create(VALID_CREATE)

    assert fields.name == "Toner A"
    assert fields.brand is Brand.RHAPSODY
    assert fields.quantity_in_stock == 2
    assert fields.low_stock_threshold == 3


def test_validate_create_accepts_snake_case_and_strips_name():
    fields = validate_create({
        "name": "  Gloss 8N ",
        "brand": "Shades EQ",
        "quantity": 1,
        "quantity_in_stock": 0,
        "low_stock_threshold": 0,
    })

    assert fields.name == "Gloss 8N"
    assert fields.to_wire() == {
        "name": "Gloss 8N",
        "brand": "Shades EQ",
        "quantity": 1,
        "lowStockThreshold": 0,
        "quantityInStock": 0,
    }


def test_validate_create_reports_every_failing_field():
    with pytest.raises(ValidationError) as exc_info:
        validate_create({
            "name": "   ",
            "brand": "Wella",
            "quantity": 0,
            "quantityInStock": -1,
            "lowStockThreshold": -2,
        })

    assert exc_info.value.fields == {
        "name": True,
        "brand": True,
        "quantity": True,
        "quantity_in_stock": True,
        "low_stock_threshold": True,
    }
    assert exc_info.value.code == "validation_error"


def test_validate_create_flags_missing_fields():
    with pytest.raises(ValidationError) as exc_info:
        validate_create({"name": "Toner A", "quantity": 4})

    assert exc_info.value.fields == {
        "brand": True,
        "quantity_in_stock": True,
        "low_stock_threshold": True,
    }


def test_validate_edit_never_carries_stock():
    fields = validate_edit({**VALID_CREATE, "quantityInStock": 99})

    assert "quantityInStock" not in fields.to_wire()
    assert set(fields.to_wire()) == {"name", "brand", "quantity", "lowStockThreshold"}


def test_validate_edit_rejects_zero_quantity():
    with pytest.raises(ValidationError) as exc_info:
        validate_edit({"name": "Toner A", "brand": "Rhapsody", "quantity": 0, "lowStockThreshold": 1})

    assert exc_info.value.fields == {"quantity": True}


def test_wire_form_uses_camel_case_and_millisecond_timestamps(make_item, history_change):
    item = make_item(changes=[history_change])

    wire = item.to_wire()

    assert wire["uid"] == "owner-1"
    assert wire["quantityInStock"] == 2
    assert wire["dateCreated"] == "2026-10-01T09:30:00.125Z"
    assert wire["changes"] == [{
        "changeType": "decreasedQuantity",
        "value": 2,
        "previousValue": 3,
        "date": "2026-10-02T14:05:07.891Z",
    }]


def test_wire_round_trip_is_field_for_field_equal(make_item, history_change):
    item = make_item(changes=[history_change, history_change.model_copy(update={"value": 1})])

    assert StockItem.from_wire(item.to_wire()) == item


def test_round_trip_of_freshly_stamped_timestamp():
    stamped = now_ms()

    assert parse_timestamp(format_timestamp(stamped)) == stamped


def test_from_wire_accepts_document_store_timestamps(make_item):
    wire = make_item().to_wire()
    wire["dateCreated"] = {"seconds": 1790847000, "nanoseconds": 125000000}

    item = StockItem.from_wire(wire)

    assert item.date_created == datetime.fromtimestamp(1790847000, UTC) + timedelta(milliseconds=125)


def test_from_wire_normalizes_offsets(make_item):
    wire = make_item().to_wire()
    wire["dateCreated"] = "2026-10-01T11:30:00.125+02:00"

    item = StockItem.from_wire(wire)

    assert item.date_created == datetime(2026, 10, 1, 9, 30, 0, 125000, tzinfo=UTC)
    assert item.to_wire()["dateCreated"] == "2026-10-01T09:30:00.125Z"


def test_from_wire_rejects_unknown_brand(make_item):
    wire = make_item().to_wire()
    wire["brand"] = "Wella"

    with pytest.raises(PydanticValidationError):
        StockItem.from_wire(wire)


def test_format_timestamp_treats_naive_values_as_utc():
    naive = datetime(2026, 1, 2, 3, 4, 5, 6000)

    assert format_timestamp(naive) == "2026-01-02T03:04:05.006Z"
    assert format_timestamp(naive.replace(tzinfo=timezone(timedelta(hours=-5)))) == (
        "2026-01-02T08:04:05.006Z"
    )
