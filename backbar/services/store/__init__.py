"""Item stores (persistence collaborators).

Importing this package registers every backend with ``build_item_store``.
"""

from backbar.services.store.base import BaseItemStore, build_item_store, register_store
from backbar.services.store.http import HttpItemStore
from backbar.services.store.mock import MockItemStore
from backbar.services.store.sql import SqlItemStore

__all__ = [
    "BaseItemStore",
    "HttpItemStore",
    "MockItemStore",
    "SqlItemStore",
    "build_item_store",
    "register_store",
]
