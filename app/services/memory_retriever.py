"""
Memory retriever — ranks a project's chunks against a query.

Scoring
-------
  +3  per query tag the chunk also carries
  +1  per query word (len > 3) found in the chunk content, case-insensitive
  +2  chunk younger than 24 h, otherwise +1 when younger than 7 days

Results: top_k chunks by descending score (stable, so equal scores keep
their input order), plus up to 8 events from the last 30 days, newest first.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence

from app.schemas.memory import EventLogEntry, MemoryChunk, MemoryRetrievalResult, MemoryTag
from app.services.memory_tagger import infer_tags


DEFAULT_TOP_K = 10
MAX_RECENT_EVENTS = 8
EVENT_WINDOW = timedelta(days=30)
SHORT_WORD_LEN = 3


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


def _aware(ts: datetime) -> datetime:
    return ts if ts.tzinfo is not None else ts.replace(tzinfo=timezone.utc)


def score_relevance(
    chunk: MemoryChunk,
    query_tags: Sequence[MemoryTag],
    query_text: str,
    now: Optional[datetime] = None,
) -> int:
    score = 3 * sum(1 for t in chunk.tags if t in query_tags)

    content = chunk.content.lower()
    score += sum(
        1 for w in query_text.lower().split()
        if len(w) > SHORT_WORD_LEN and w in content
    )

    age = (now or _now()) - _aware(chunk.timestamp)
    if age < timedelta(hours=24):
        score += 2
    elif age < timedelta(days=7):
        score += 1
    return score


def retrieve_relevant_memory(
    chunks: Sequence[MemoryChunk],
    events: Sequence[EventLogEntry],
    project_id: str,
    query_text: str,
    top_k: int = DEFAULT_TOP_K,
    now: Optional[datetime] = None,
) -> MemoryRetrievalResult:
    ref = now or _now()
    query_tags = infer_tags(query_text)

    project_chunks = [c for c in chunks if c.project_id == project_id]
    scored = sorted(
        project_chunks,
        key=lambda c: score_relevance(c, query_tags, query_text, ref),
        reverse=True,
    )

    cutoff = ref - EVENT_WINDOW
    recent = [
        e for e in events
        if e.project_id == project_id and _aware(e.timestamp) > cutoff
    ]
    recent.sort(key=lambda e: _aware(e.timestamp), reverse=True)

    return MemoryRetrievalResult(
        chunks=scored[:max(top_k, 0)],
        recent_events=recent[:MAX_RECENT_EVENTS],
    )
