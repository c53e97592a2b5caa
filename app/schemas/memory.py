"""
Memory schemas — tagged chunks, event log, retrieval results.

GET    /projects/{id}/memory           → MemoryChunkListResponse
POST   /projects/{id}/memory           → ManualMemoryRequest → MemoryChunk
DELETE /projects/{id}/memory           → ClearMemoryResponse
GET    /projects/{id}/memory/events    → EventLogListResponse
GET    /projects/{id}/memory/stats     → MemoryStats
GET    /projects/{id}/memory/retrieve  → MemoryRetrievalResult
GET    /projects/{id}/memory/context   → MemoryContextResponse
"""
from __future__ import annotations

import enum
import uuid
from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class MemoryTag(str, enum.Enum):
    brand = "brand"
    offer = "offer"
    pricing = "pricing"
    audience = "audience"
    objection = "objection"
    creative = "creative"
    channel = "channel"
    ops = "ops"
    kpi = "kpi"
    milestone = "milestone"
    decision = "decision"
    approval = "approval"
    sales = "sales"
    web = "web"
    seo = "seo"
    gmb = "gmb"


class MemorySourceType(str, enum.Enum):
    advisor_response = "advisor_response"
    user_message = "user_message"
    metric_log = "metric_log"
    asset_created = "asset_created"
    directive_completed = "directive_completed"
    decision = "decision"
    approval = "approval"
    kpi_change = "kpi_change"
    profile_update = "profile_update"
    manual = "manual"


class EventType(str, enum.Enum):
    decision_made = "decision_made"
    approval_given = "approval_given"
    asset_created = "asset_created"
    asset_updated = "asset_updated"
    metric_logged = "metric_logged"
    kpi_changed = "kpi_changed"
    directive_completed = "directive_completed"
    milestone_hit = "milestone_hit"
    bottleneck_changed = "bottleneck_changed"
    project_created = "project_created"
    project_updated = "project_updated"
    review_generated = "review_generated"
    focus_changed = "focus_changed"


MetadataValue = Union[bool, int, float, str, None]

MAX_CHUNK_CONTENT = 500
MAX_CHUNK_TAGS = 5


class MemoryChunk(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    project_id: str
    content: str = Field(max_length=MAX_CHUNK_CONTENT)
    tags: list[MemoryTag] = Field(max_length=MAX_CHUNK_TAGS)
    source_type: MemorySourceType
    reason: str
    timestamp: datetime


class EventLogEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    project_id: str
    event_type: EventType
    metadata: dict[str, MetadataValue] = Field(default_factory=dict)
    timestamp: datetime


class MemoryWriteRequest(BaseModel):
    content: str
    tags: list[MemoryTag]
    source_type: MemorySourceType
    reason: str


class EventLogRequest(BaseModel):
    event_type: EventType
    metadata: dict[str, MetadataValue] = Field(default_factory=dict)


class MemoryRetrievalResult(BaseModel):
    chunks: list[MemoryChunk] = Field(default_factory=list)
    recent_events: list[EventLogEntry] = Field(default_factory=list)


class TagCount(BaseModel):
    tag: MemoryTag
    count: int


class MemoryStats(BaseModel):
    total_chunks: int
    total_events: int
    recent_chunks: int = Field(description="Chunks written in the last 30 days.")
    top_tags: list[TagCount]


class ManualMemoryRequest(BaseModel):
    """Save a fact by hand. Tags are inferred from the content when omitted."""
    content: str = Field(min_length=1, max_length=MAX_CHUNK_CONTENT)
    tags: Optional[list[MemoryTag]] = Field(default=None, max_length=MAX_CHUNK_TAGS)
    reason: str = Field(default="Saved manually", max_length=200)


class MemoryChunkListResponse(BaseModel):
    total: int
    items: list[MemoryChunk]


class EventLogListResponse(BaseModel):
    total: int
    items: list[EventLogEntry]


class MemoryContextResponse(BaseModel):
    project_id: str
    query: str
    context: str = Field(description="Prompt-ready memory block; empty when nothing is stored.")


class ClearMemoryResponse(BaseModel):
    project_id: str
    chunks_removed: int
    events_removed: int
