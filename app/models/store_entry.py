"""
StoreEntry — one row per durable collection.

The engine persists whole JSON-encoded values under fixed string keys
(see app/db/kv_store.py::StorageKey). There are no partial updates:
every write replaces the full value of its key.
"""
from datetime import datetime
from sqlalchemy import String, LargeBinary, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class StoreEntry(Base):
    __tablename__ = "store_entries"

    key: Mapped[str] = mapped_column(String(128), primary_key=True)
    value: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
