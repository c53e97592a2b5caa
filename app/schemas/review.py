"""
Weekly review schemas.

POST /projects/{id}/reviews              → GenerateReviewRequest → WeeklyReview
GET  /projects/{id}/reviews              → WeeklyReviewListResponse
GET  /projects/{id}/reviews/{review_id}  → WeeklyReview
"""
from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.execution import FocusArea
from app.schemas.metrics import BottleneckCategory


class MetricTotals(BaseModel):
    views: int = 0
    clicks: int = 0
    messages: int = 0
    calls: int = 0
    sales: int = 0


class FocusRecommendation(BaseModel):
    title: str
    reason: str
    focus_area: FocusArea


class WeeklyReview(BaseModel):
    """Immutable snapshot of one week of execution and funnel movement."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    project_id: str
    period_start: date
    period_end: date
    streak: int
    directives_completed: int
    consistency_score: int
    metrics_totals: MetricTotals
    metrics_prior: MetricTotals
    deltas: MetricTotals = Field(description="Integer percent change per metric; 0 when prior is 0.")
    bottleneck_current: Optional[BottleneckCategory] = None
    bottleneck_prior: Optional[BottleneckCategory] = None
    bottleneck_changed: bool = False
    next_week_focus: list[FocusRecommendation] = Field(min_length=1, max_length=3)
    created_at: datetime


class GenerateReviewRequest(BaseModel):
    project_name: Optional[str] = None


class WeeklyReviewListResponse(BaseModel):
    total: int
    items: list[WeeklyReview]
