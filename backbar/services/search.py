"""Filter/search pipeline over the cached item collection.

Stages run in a fixed order, always starting from the full collection:

1. brand subset
2. fuzzy text search on ``name`` (ranked by relevance)
3. stock status
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace

from rapidfuzz import fuzz, utils

from backbar.core.config import settings
from backbar.schemas.item import Brand, StockItem, StockStatus
from backbar.services.classification import CLASSIFIERS

DEFAULT_SEARCH_THRESHOLD = settings.SEARCH_THRESHOLD


@dataclass(frozen=True)
class ItemFilter:
    """Selection criteria. ``None`` means the stage is skipped.

    The HTTP API builds criteria directly from query parameters. The toggle
    helpers are for interactive clients that keep one filter and flip chips
    on and off, so that a status tap clears the text query and removing the
    last brand lifts the brand restriction.
    """

    brands: frozenset[Brand] | None = None
    query: str | None = None
    status: StockStatus | None = None

    def toggle_brand(self, brand: Brand) -> "ItemFilter":
        """Add or remove one brand. Removing the last brand lifts the restriction."""
        if self.brands is None:
            return replace(self, brands=frozenset({brand}))
        if brand in self.brands:
            remaining = self.brands - {brand}
            return replace(self, brands=remaining or None)
        return replace(self, brands=self.brands | {brand})

    def all_brands(self) -> "ItemFilter":
        return replace(self, brands=None)

    def toggle_status(self, status: StockStatus) -> "ItemFilter":
        """Select a status, or clear it if already selected. Clears the text query."""
        new_status = None if self.status is status else status
        return replace(self, status=new_status, query=None)

    @property
    def is_empty(self) -> bool:
        return self.brands is None and not self.query and self.status is None


def similarity(query: str, name: str) -> float:
    """Case-insensitive similarity in [0, 1].

    A query no longer than the name is aligned against its best-matching
    part, so "tonr" scores well against "Toner 9V". A longer query is
    compared whole, so a short name does not score perfectly just by
    appearing inside it.
    """
    query = utils.default_process(query)
    name = utils.default_process(name)
    if len(query) <= len(name):
        return fuzz.partial_ratio(query, name) / 100
    return fuzz.ratio(query, name) / 100


def search_items(
    items: Iterable[StockItem],
    query: str,
    threshold: float = DEFAULT_SEARCH_THRESHOLD,
) -> list[StockItem]:
    """Fuzzy-match ``query`` against item names.

    ``threshold`` is a distance: 0.0 keeps perfect matches only, 1.0 keeps
    everything. Results are ordered by descending similarity; equal scores
    keep their incoming order.
    """
    scored = []
    for item in items:
        score = similarity(query, item.name)
        if 1.0 - score <= threshold:
            scored.append((score, item))
    scored.sort(key=lambda pair: pair[0], reverse=True)
    return [item for _, item in scored]


def filter_items(
    items: Sequence[StockItem],
    criteria: ItemFilter,
    threshold: float = DEFAULT_SEARCH_THRESHOLD,
) -> list[StockItem]:
    """Apply brand, search and status stages to the full collection."""
    result = list(items)

    if criteria.brands is not None:
        result = [item for item in result if item.brand in criteria.brands]

    if criteria.query and criteria.query.strip():
        result = search_items(result, criteria.query, threshold)

    if criteria.status is not None:
        classify = CLASSIFIERS[criteria.status]
        result = [item for item in result if classify(item)]

    return result
