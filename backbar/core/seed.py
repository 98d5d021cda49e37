"""Seed demo items on startup."""

import logging
import random

from backbar.core.config import settings
from backbar.core.timestamps import format_timestamp, now_ms
from backbar.schemas.item import Brand
from backbar.services.store.base import BaseItemStore

logger = logging.getLogger(__name__)

DEMO_PRODUCTS = [
    "Toner 9V",
    "Toner 10P",
    "Gloss 8N",
    "Developer 20 Vol",
    "Developer 30 Vol",
    "Bond Builder",
    "Purple Shampoo",
    "Clay Lightener",
]


async def seed_demo_items(store: BaseItemStore, owner_id: str | None = None) -> list[str]:
    """Create demo items for DEMO_SEED_OWNER if it is set and owns nothing yet."""
    owner_id = owner_id or settings.DEMO_SEED_OWNER
    if not owner_id:
        logger.info("DEMO_SEED_OWNER not set, skipping seed")
        return []

    if await store.fetch_items(owner_id):
        logger.info("Owner %s already has items, skipping seed", owner_id)
        return []

    ids = []
    for name in DEMO_PRODUCTS:
        quantity = random.randint(2, 12)
        ids.append(
            await store.create_item(
                {
                    "uid": owner_id,
                    "name": name,
                    "brand": random.choice(list(Brand)).value,
                    "quantity": quantity,
                    "quantityInStock": random.randint(0, quantity),
                    "lowStockThreshold": random.randint(0, 3),
                    "dateCreated": format_timestamp(now_ms()),
                    "changes": [],
                }
            )
        )
    logger.info("Seeded %d demo items for owner %s", len(ids), owner_id)
    return ids
