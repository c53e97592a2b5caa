"""
Memory router — workspace memory of a project.

GET    /projects/{project_id}/memory           — Chunks, newest first
POST   /projects/{project_id}/memory           — Save a fact manually
DELETE /projects/{project_id}/memory           — Clear all chunks and events of the project
GET    /projects/{project_id}/memory/events    — Event log, newest first
GET    /projects/{project_id}/memory/stats     — Totals and top tags
GET    /projects/{project_id}/memory/retrieve  — Chunks ranked against a query
GET    /projects/{project_id}/memory/context   — Prompt-ready memory block
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from app.db.kv_store import SqlKeyValueStore, get_store
from app.schemas.memory import (
    ClearMemoryResponse,
    EventLogListResponse,
    EventLogRequest,
    EventType,
    ManualMemoryRequest,
    MemoryChunk,
    MemoryChunkListResponse,
    MemoryContextResponse,
    MemoryRetrievalResult,
    MemorySourceType,
    MemoryStats,
    MemoryWriteRequest,
)
from app.services.memory_store import MemoryStore
from app.services.memory_tagger import infer_tags

router = APIRouter(prefix="/projects/{project_id}/memory", tags=["memory"])


def get_memory(store: SqlKeyValueStore = Depends(get_store)) -> MemoryStore:
    return MemoryStore(store)


@router.get("", response_model=MemoryChunkListResponse, summary="List memory chunks")
def list_chunks(project_id: str, memory: MemoryStore = Depends(get_memory)):
    chunks = memory.project_chunks(project_id)
    return MemoryChunkListResponse(total=len(chunks), items=chunks)


@router.post(
    "",
    response_model=MemoryChunk,
    status_code=status.HTTP_201_CREATED,
    summary="Save a memory manually",
)
def save_memory(
    project_id: str,
    payload: ManualMemoryRequest,
    memory: MemoryStore = Depends(get_memory),
):
    """
    Store a fact the user wants the advisor to remember. Tags are inferred
    from the content when not given. A `decision_made` event is logged
    alongside.
    """
    write = MemoryWriteRequest(
        content=payload.content,
        tags=payload.tags or infer_tags(payload.content),
        source_type=MemorySourceType.manual,
        reason=payload.reason,
    )
    chunk = memory.write_chunks(project_id, [write])[0]
    memory.log_events(
        project_id,
        [EventLogRequest(event_type=EventType.decision_made, metadata={"chunk_id": chunk.id})],
    )
    return chunk


@router.delete("", response_model=ClearMemoryResponse, summary="Clear project memory")
def clear_memory(project_id: str, memory: MemoryStore = Depends(get_memory)):
    chunks_removed, events_removed = memory.clear_project(project_id)
    return ClearMemoryResponse(
        project_id=project_id,
        chunks_removed=chunks_removed,
        events_removed=events_removed,
    )


@router.get("/events", response_model=EventLogListResponse, summary="List events")
def list_events(project_id: str, memory: MemoryStore = Depends(get_memory)):
    events = memory.project_events(project_id)
    return EventLogListResponse(total=len(events), items=events)


@router.get("/stats", response_model=MemoryStats, summary="Memory statistics")
def memory_stats(project_id: str, memory: MemoryStore = Depends(get_memory)):
    """Chunk and event totals, chunks of the last 30 days, and the 5 most used tags."""
    return memory.project_stats(project_id)


@router.get(
    "/retrieve",
    response_model=MemoryRetrievalResult,
    summary="Retrieve relevant memory",
)
def retrieve_memory(
    project_id: str,
    q: str = Query(default="", description="Query text; tags are inferred from it."),
    memory: MemoryStore = Depends(get_memory),
):
    """
    Rank the project's chunks: +3 per shared tag, +1 per query word longer
    than 3 characters found in the content, +2 when under 24 h old or +1
    when under 7 days. Returns the top chunks plus up to 8 events from the
    last 30 days.
    """
    return memory.retrieve(project_id, q)


@router.get(
    "/context",
    response_model=MemoryContextResponse,
    summary="Formatted memory context",
)
def memory_context(
    project_id: str,
    q: str = Query(default=""),
    memory: MemoryStore = Depends(get_memory),
):
    return MemoryContextResponse(
        project_id=project_id,
        query=q,
        context=memory.formatted_context(project_id, q),
    )
