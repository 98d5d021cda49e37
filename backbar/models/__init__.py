"""SQLAlchemy models."""

from backbar.models.item import ItemRecord

__all__ = ["ItemRecord"]
