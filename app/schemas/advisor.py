"""
Advisor schemas.

POST /advisor/extract-directive         → ExtractDirectiveRequest → AdvisorDirective
POST /projects/{id}/advisor/prompt      → PromptRequest → PromptResponse
"""
from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field


class BusinessProfile(BaseModel):
    """Business context rendered into the advisor system prompt."""
    name: str = Field(min_length=1)
    business_type: str = ""
    target_customer: str = ""
    is_local: bool = False
    location: Optional[str] = None
    core_offer_summary: str = ""
    pricing: str = ""
    revenue_goal: str = ""
    available_daily_time: str = ""
    current_focus: Optional[str] = None
    focus_mode: Literal["manual", "autopilot"] = "autopilot"
    marketing_preference: Optional[Literal["video", "text", "both"]] = None


class AdvisorDirective(BaseModel):
    id: str
    title: str
    description: str
    reason: str
    estimated_time: str
    created_at: datetime


class ExtractDirectiveRequest(BaseModel):
    text: str = Field(min_length=1, description="Free-form advisor response.")


class PromptRequest(BaseModel):
    profile: BusinessProfile
    query: str = Field(default="", description="User message used to select relevant memory.")


class PromptResponse(BaseModel):
    project_id: str
    prompt: str
