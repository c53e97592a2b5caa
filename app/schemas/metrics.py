"""
Metric schemas.

POST /projects/{id}/metrics          → MetricCreateRequest → MetricRecord
GET  /projects/{id}/metrics          → MetricListResponse
GET  /projects/{id}/metrics/summary  → MetricsSummaryResponse
GET  /projects/{id}/diagnosis        → DiagnosisResponse
"""
from __future__ import annotations

import enum
import uuid
import datetime as dt
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class BottleneckCategory(str, enum.Enum):
    traffic = "traffic"
    conversion = "conversion"
    pricing = "pricing"
    follow_up = "follow-up"
    operations = "operations"


class MetricRecord(BaseModel):
    """One day of funnel counts for a project. Immutable once stored."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    project_id: str
    date: dt.date
    views: int = Field(default=0, ge=0)
    clicks: int = Field(default=0, ge=0)
    messages: int = Field(default=0, ge=0)
    calls: int = Field(default=0, ge=0)
    sales: int = Field(default=0, ge=0)
    notes: Optional[str] = None


class MetricCreateRequest(BaseModel):
    date: Optional[dt.date] = Field(
        default=None,
        description="Calendar day the counts belong to. Defaults to today (UTC).",
        examples=["2026-10-18"],
    )
    views: int = Field(default=0, ge=0)
    clicks: int = Field(default=0, ge=0)
    messages: int = Field(default=0, ge=0)
    calls: int = Field(default=0, ge=0)
    sales: int = Field(default=0, ge=0)
    notes: Optional[str] = Field(default=None, max_length=1000)
    project_name: Optional[str] = Field(
        default=None,
        description="Display name used in the memory entry. Defaults to the project id.",
    )


class MetricListResponse(BaseModel):
    total: int
    items: list[MetricRecord]


class MetricsSnapshotResponse(BaseModel):
    period_label: str
    views: int
    clicks: int
    messages: int
    calls: int
    sales: int


class MetricsSummaryResponse(BaseModel):
    """Recent (0–7 days ago) and prior (7–14 days ago) window totals."""
    recent: MetricsSnapshotResponse
    prior: MetricsSnapshotResponse


class BottleneckDiagnosisResponse(BaseModel):
    category: BottleneckCategory
    confidence: int = Field(ge=0, le=100)
    reasoning: str
    diagnosed_at: str


class DiagnosisResponse(BaseModel):
    project_id: str
    diagnosis: Optional[BottleneckDiagnosisResponse] = Field(
        default=None,
        description="Null while fewer than 2 metric records exist (not yet diagnosable).",
    )
