"""Stock status classification. Pure functions over an item snapshot."""

from collections.abc import Iterable
from dataclasses import dataclass

from backbar.schemas.item import StockItem, StockStatus


def is_out_of_stock(item: StockItem) -> bool:
    return item.quantity_in_stock == 0


def is_low_stock(item: StockItem) -> bool:
    """Above zero but at or below the item's threshold.

    An out-of-stock item is never low-stock.
    """
    if is_out_of_stock(item):
        return False
    return item.quantity_in_stock <= item.low_stock_threshold


CLASSIFIERS = {
    StockStatus.LOW_STOCK: is_low_stock,
    StockStatus.OUT_OF_STOCK: is_out_of_stock,
}


def stock_status(item: StockItem) -> StockStatus | None:
    if is_out_of_stock(item):
        return StockStatus.OUT_OF_STOCK
    if is_low_stock(item):
        return StockStatus.LOW_STOCK
    return None


@dataclass(frozen=True)
class StockSummary:
    low_stock: int = 0
    out_of_stock: int = 0


def summarize(items: Iterable[StockItem]) -> StockSummary:
    """Count low-stock and out-of-stock items."""
    low = out = 0
    for item in items:
        status = stock_status(item)
        if status is StockStatus.LOW_STOCK:
            low += 1
        elif status is StockStatus.OUT_OF_STOCK:
            out += 1
    return StockSummary(low_stock=low, out_of_stock=out)
