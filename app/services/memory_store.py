"""
Memory store — tagged chunks and the event log, persisted through the
durable key-value store.

Rules:
- Both collections are global lists (all projects) under one key each.
- Every write is a read-modify-write of the whole list, serialised by a
  process-wide lock. Store I/O errors propagate to the caller.
- After appending, only the newest MEMORY_MAX_CHUNKS chunks and
  MEMORY_MAX_EVENTS events survive, across all projects.
- Chunk content is truncated to 500 characters. Tags are deduplicated in
  order, then capped at 5.

Public API
----------
MemoryStore(store).write_chunks(project_id, writes)         -> list[MemoryChunk]
MemoryStore(store).log_events(project_id, requests)         -> list[EventLogEntry]
MemoryStore(store).write_memory_and_events(pid, w, e)       -> None
MemoryStore(store).project_chunks(project_id)               -> list[MemoryChunk]   newest first
                                                             (later in a batch = newer)
MemoryStore(store).project_events(project_id)               -> list[EventLogEntry] newest first
MemoryStore(store).project_stats(project_id, now)           -> MemoryStats
MemoryStore(store).clear_project(project_id)                -> tuple[int, int]
MemoryStore(store).retrieve(project_id, query, now)         -> MemoryRetrievalResult
MemoryStore(store).formatted_context(project_id, query, now) -> str
"""
from __future__ import annotations

import logging
import threading
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence

from app.core.config import settings
from app.db.kv_store import KeyValueStore, StorageKey, load_collection, save_collection
from app.schemas.memory import (
    MAX_CHUNK_CONTENT,
    MAX_CHUNK_TAGS,
    EventLogEntry,
    EventLogRequest,
    MemoryChunk,
    MemoryRetrievalResult,
    MemoryStats,
    MemoryWriteRequest,
    TagCount,
)
from app.services.memory_retriever import retrieve_relevant_memory
from app.services.prompt_context import format_memory_for_prompt

logger = logging.getLogger(__name__)

_WRITE_LOCK = threading.Lock()

STATS_TOP_TAGS = 5
STATS_RECENT_WINDOW = timedelta(days=30)


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


def _aware(ts: datetime) -> datetime:
    return ts if ts.tzinfo is not None else ts.replace(tzinfo=timezone.utc)


def _keep_newest(items: list, limit: int) -> list:
    return items[-limit:] if len(items) > limit else items


class MemoryStore:

    def __init__(
        self,
        store: KeyValueStore,
        max_chunks: Optional[int] = None,
        max_events: Optional[int] = None,
        top_k: Optional[int] = None,
    ):
        self.store = store
        self.max_chunks = max_chunks or settings.MEMORY_MAX_CHUNKS
        self.max_events = max_events or settings.MEMORY_MAX_EVENTS
        self.top_k = top_k or settings.RETRIEVAL_TOP_K

    # -----------------------------------------------------------------------
    # Raw collections
    # -----------------------------------------------------------------------

    def all_chunks(self) -> list[MemoryChunk]:
        return load_collection(self.store, StorageKey.MEMORY_CHUNKS, MemoryChunk)

    def all_events(self) -> list[EventLogEntry]:
        return load_collection(self.store, StorageKey.EVENT_LOG, EventLogEntry)

    # -----------------------------------------------------------------------
    # Writes
    # -----------------------------------------------------------------------

    def write_chunks(
        self, project_id: str, writes: Sequence[MemoryWriteRequest]
    ) -> list[MemoryChunk]:
        if not writes:
            return []
        now = _now()
        new_chunks = [
            MemoryChunk(
                project_id=project_id,
                content=w.content[:MAX_CHUNK_CONTENT],
                tags=list(dict.fromkeys(w.tags))[:MAX_CHUNK_TAGS],
                source_type=w.source_type,
                reason=w.reason,
                timestamp=now,
            )
            for w in writes
        ]
        with _WRITE_LOCK:
            updated = self.all_chunks() + new_chunks
            trimmed = _keep_newest(updated, self.max_chunks)
            save_collection(self.store, StorageKey.MEMORY_CHUNKS, trimmed, MemoryChunk)

        logger.info("Wrote %d memory chunks for project %s", len(new_chunks), project_id)
        if len(trimmed) < len(updated):
            logger.info("Evicted %d oldest memory chunks", len(updated) - len(trimmed))
        return new_chunks

    def log_events(
        self, project_id: str, requests: Sequence[EventLogRequest]
    ) -> list[EventLogEntry]:
        if not requests:
            return []
        now = _now()
        new_entries = [
            EventLogEntry(
                project_id=project_id,
                event_type=r.event_type,
                metadata=dict(r.metadata),
                timestamp=now,
            )
            for r in requests
        ]
        with _WRITE_LOCK:
            updated = self.all_events() + new_entries
            trimmed = _keep_newest(updated, self.max_events)
            save_collection(self.store, StorageKey.EVENT_LOG, trimmed, EventLogEntry)

        logger.info("Logged %d events for project %s", len(new_entries), project_id)
        if len(trimmed) < len(updated):
            logger.info("Evicted %d oldest events", len(updated) - len(trimmed))
        return new_entries

    def write_memory_and_events(
        self,
        project_id: str,
        writes: Sequence[MemoryWriteRequest],
        events: Sequence[EventLogRequest],
    ) -> None:
        self.write_chunks(project_id, writes)
        self.log_events(project_id, events)

    def clear_project(self, project_id: str) -> tuple[int, int]:
        """
        Drop every chunk and event of a project. Returns (chunks, events) removed.

        The two collections are saved one after the other, not atomically. If
        the event-log save fails the chunks are already gone; calling again
        removes what is left.
        """
        with _WRITE_LOCK:
            chunks = self.all_chunks()
            events = self.all_events()
            kept_chunks = [c for c in chunks if c.project_id != project_id]
            kept_events = [e for e in events if e.project_id != project_id]
            save_collection(self.store, StorageKey.MEMORY_CHUNKS, kept_chunks, MemoryChunk)
            save_collection(self.store, StorageKey.EVENT_LOG, kept_events, EventLogEntry)

        removed = (len(chunks) - len(kept_chunks), len(events) - len(kept_events))
        logger.info(
            "Cleared memory for project %s: %d chunks, %d events", project_id, *removed
        )
        return removed

    # -----------------------------------------------------------------------
    # Queries
    # -----------------------------------------------------------------------

    def project_chunks(self, project_id: str) -> list[MemoryChunk]:
        # reversed first so entries of one batch come out latest-appended first
        items = [c for c in reversed(self.all_chunks()) if c.project_id == project_id]
        items.sort(key=lambda c: _aware(c.timestamp), reverse=True)
        return items

    def project_events(self, project_id: str) -> list[EventLogEntry]:
        items = [e for e in reversed(self.all_events()) if e.project_id == project_id]
        items.sort(key=lambda e: _aware(e.timestamp), reverse=True)
        return items

    def project_stats(self, project_id: str, now: Optional[datetime] = None) -> MemoryStats:
        chunks = [c for c in self.all_chunks() if c.project_id == project_id]
        events = [e for e in self.all_events() if e.project_id == project_id]

        counts = Counter(t for c in chunks for t in c.tags)
        cutoff = (now or _now()) - STATS_RECENT_WINDOW
        return MemoryStats(
            total_chunks=len(chunks),
            total_events=len(events),
            recent_chunks=sum(1 for c in chunks if _aware(c.timestamp) >= cutoff),
            top_tags=[TagCount(tag=t, count=n) for t, n in counts.most_common(STATS_TOP_TAGS)],
        )

    def retrieve(
        self, project_id: str, query_text: str, now: Optional[datetime] = None
    ) -> MemoryRetrievalResult:
        return retrieve_relevant_memory(
            self.all_chunks(),
            self.all_events(),
            project_id,
            query_text,
            top_k=self.top_k,
            now=now,
        )

    def formatted_context(
        self, project_id: str, query_text: str, now: Optional[datetime] = None
    ) -> str:
        return format_memory_for_prompt(self.retrieve(project_id, query_text, now))
