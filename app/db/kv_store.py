"""
Durable key-value store.

Contract
--------
get(key)        -> bytes | None
set(key, value) -> None
remove(key)     -> None

Every collection is a whole JSON-encoded value under one fixed key.
I/O errors raised by the backend propagate unmodified: callers retry
the whole operation, there is no partial commit.
"""
from __future__ import annotations

import logging
from typing import Optional, Protocol, TypeVar

from fastapi import Depends
from pydantic import TypeAdapter, ValidationError
from sqlalchemy.orm import Session

from app.core.errors import CorruptCollectionError
from app.db.base import get_db
from app.models.store_entry import StoreEntry

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StorageKey:
    PROJECTS            = "skyforge_projects"
    ACTIVE_PROJECT_ID   = "skyforge_active_project_id"
    METRICS             = "skyforge_metrics"
    ASSETS              = "skyforge_assets"
    CONTENT             = "skyforge_content"
    COMPLETION_LOGS     = "skyforge_completion_logs"
    WEEKLY_REVIEWS      = "skyforge_weekly_reviews"
    MEMORY_CHUNKS       = "skyforge_memory_chunks"
    EVENT_LOG           = "skyforge_event_log"
    USER_SETTINGS       = "skyforge_user_settings"
    ONBOARDING_COMPLETE = "skyforge_onboarding_complete"


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[bytes]: ...

    def set(self, key: str, value: bytes) -> None: ...

    def remove(self, key: str) -> None: ...


class SqlKeyValueStore:
    """KeyValueStore backed by the `store_entries` table. Commits per write."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, key: str) -> Optional[bytes]:
        row = self.db.get(StoreEntry, key)
        return row.value if row is not None else None

    def set(self, key: str, value: bytes) -> None:
        row = self.db.get(StoreEntry, key)
        if row is None:
            self.db.add(StoreEntry(key=key, value=value))
        else:
            row.value = value
        self.db.commit()

    def remove(self, key: str) -> None:
        row = self.db.get(StoreEntry, key)
        if row is not None:
            self.db.delete(row)
            self.db.commit()


# ---------------------------------------------------------------------------
# JSON collections
# ---------------------------------------------------------------------------

def load_collection(store: KeyValueStore, key: str, item_type: type[T]) -> list[T]:
    """Decode the list stored under `key`; a missing key is an empty list."""
    raw = store.get(key)
    if not raw:
        return []
    try:
        return TypeAdapter(list[item_type]).validate_json(raw)
    except ValidationError as exc:
        logger.error("Collection %s failed validation: %s", key, exc.error_count())
        raise CorruptCollectionError(key=key, reason=str(exc)) from exc


def save_collection(store: KeyValueStore, key: str, items: list[T], item_type: type[T]) -> None:
    store.set(key, TypeAdapter(list[item_type]).dump_json(items))


# ---------------------------------------------------------------------------
# FastAPI dependency
# ---------------------------------------------------------------------------

def get_store(db: Session = Depends(get_db)) -> SqlKeyValueStore:
    return SqlKeyValueStore(db)
