"""Stock item table used by the SQL item store."""

from datetime import UTC, datetime

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from backbar.core.database import Base


class ItemRecord(Base):
    __tablename__ = "items"
    __table_args__ = (
        Index("idx_items_uid_name", "uid", "name"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    uid: Mapped[str] = mapped_column(String(128), index=True)  # owner id
    name: Mapped[str] = mapped_column(String(255))
    brand: Mapped[str] = mapped_column(String(100), index=True)
    quantity: Mapped[int] = mapped_column(default=1)
    quantity_in_stock: Mapped[int] = mapped_column(default=0)
    low_stock_threshold: Mapped[int] = mapped_column(default=0)
    # Stored as ISO text so millisecond precision survives every dialect
    date_created: Mapped[str] = mapped_column(String(32))
    changes_json: Mapped[str] = mapped_column(Text, default="[]")  # JSON list of history entries
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )
