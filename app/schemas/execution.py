"""
Execution schemas — directive completions, execution stats, daily directives.

POST /projects/{id}/completions      → CompletionCreateRequest → DirectiveCompletionLog
GET  /projects/{id}/completions      → CompletionListResponse
GET  /projects/{id}/execution-stats  → ExecutionStatsResponse
GET  /projects/{id}/directive        → DailyDirective
"""
from __future__ import annotations

import enum
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class FocusArea(str, enum.Enum):
    leads = "leads"
    content = "content"
    outreach = "outreach"
    offer = "offer"
    pricing = "pricing"
    conversion = "conversion"
    fulfillment = "fulfillment"
    audience_building = "audience building"
    brand_expansion = "brand expansion"
    sales = "sales"
    systems = "systems"


class DirectiveCompletionLog(BaseModel):
    """One completed daily directive. Append-only."""
    model_config = ConfigDict(frozen=True)

    directive_id: str
    project_id: str
    completed_at: datetime
    title: str
    mode_tag: str = "general"


class CompletionCreateRequest(BaseModel):
    directive_id: str = Field(min_length=1)
    title: str = Field(min_length=1, max_length=256)
    mode_tag: str = Field(default="general", max_length=64)
    completed_at: Optional[datetime] = Field(
        default=None, description="Completion instant. Defaults to now (UTC)."
    )
    project_name: Optional[str] = None


class CompletionListResponse(BaseModel):
    total: int
    items: list[DirectiveCompletionLog]


class ExecutionStatsResponse(BaseModel):
    project_id: str
    streak: int = Field(description="Consecutive days with a completion, ending today or yesterday.")
    weekly_completion_pct: int = Field(ge=0, le=100)
    consistency_score: int = Field(ge=0, le=100, description="Share of the last 14 days with a completion.")
    revenue_per_directive: Optional[float] = None
    last_updated: str


class DirectiveStep(BaseModel):
    order: int
    action: str
    done: bool = False


class DailyDirective(BaseModel):
    """A single prescribed daily task with ordered steps and a time budget."""
    id: str
    title: str
    description: str
    reason: str
    estimated_time: str
    objective: str
    steps: list[DirectiveStep]
    timebox_minutes: int
    success_metric: str
    mode_tag: str
    status: Literal["pending", "complete"] = "pending"
    created_at: datetime
    blockers: list[str] = Field(default_factory=list)
    countermoves: list[str] = Field(default_factory=list)
    linked_assets: list[str] = Field(default_factory=list)
