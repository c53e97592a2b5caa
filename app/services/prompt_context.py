"""
Prompt context — renders memory and business context as advisor prompt text.

Public API
----------
format_memory_for_prompt(result)                                    -> str  ("" when empty)
build_system_prompt(profile, recent_metrics, memory_context, bottleneck) -> str
"""
from __future__ import annotations

from typing import Optional, Sequence

from app.schemas.advisor import BusinessProfile
from app.schemas.memory import EventLogEntry, MemoryRetrievalResult, MetadataValue
from app.schemas.metrics import BottleneckCategory, MetricRecord


MEMORY_HEADER = "=== WORKSPACE MEMORY ==="
MEMORY_FOOTER = "\nUse this context to inform your responses. Reference specific facts when relevant."
PROMPT_METRICS_LIMIT = 5


def _meta_value(v: MetadataValue) -> str:
    if isinstance(v, bool):
        return "true" if v else "false"
    return str(v)


def _format_event(event: EventLogEntry) -> str:
    meta = ", ".join(
        f"{k}={_meta_value(v)}" for k, v in event.metadata.items() if v is not None
    )
    line = f"- [{event.timestamp.date().isoformat()}] {event.event_type.value}"
    return f"{line}: {meta}" if meta else line


def format_memory_for_prompt(result: MemoryRetrievalResult) -> str:
    if not result.chunks and not result.recent_events:
        return ""

    parts = [MEMORY_HEADER]
    if result.chunks:
        parts.append("\n--- Relevant Context ---")
        for i, chunk in enumerate(result.chunks, start=1):
            tags = ", ".join(t.value for t in chunk.tags)
            parts.append(f"[{i}] ({tags}) {chunk.content}")

    if result.recent_events:
        parts.append("\n--- Recent Events ---")
        parts.extend(_format_event(e) for e in result.recent_events)

    parts.append(MEMORY_FOOTER)
    return "\n".join(parts)


# ---------------------------------------------------------------------------
# System prompt
# ---------------------------------------------------------------------------

_INTRO = (
    "You are SKYFORGE — a recursive, adaptive, hyper-intelligent business advisor "
    "designed for SMBs. Your purpose is to help this specific business grow revenue "
    "with minimal friction."
)

_DIRECTIVES = """=== YOUR DIRECTIVES ===
1. ALWAYS reference this specific business in your responses
2. NEVER give generic advice - be specific to their industry, location, and situation
3. ALWAYS provide exact scripts, templates, and copy they can use immediately
4. ALWAYS optimize for CASHFLOW FIRST, then scale
5. Keep responses concise and actionable
6. When analyzing metrics:
   - Views ↑ clicks ↓ = hook/offer mismatch
   - Clicks ↑ bookings ↓ = page friction
   - Calls ↑ sales ↓ = sales script issue
   - DMs ↑ conversions ↓ = wrong offer"""

_RESPONSE_FORMAT = """=== RESPONSE FORMAT ===
Be direct and action-oriented. Use clear sections when providing:
- DIAGNOSIS: What's the real problem
- ACTION: What to do (1-3 steps max)
- SCRIPT/COPY: Exact words to use
- NEXT: What to measure/report back

Never overwhelm. One clear direction at a time."""


def _current_focus(profile: BusinessProfile, bottleneck: Optional[BottleneckCategory]) -> str:
    if profile.focus_mode == "manual" and profile.current_focus:
        return profile.current_focus
    if bottleneck is not None:
        return bottleneck.value
    return profile.current_focus or "leads"


def _business_context(
    profile: Optional[BusinessProfile],
    bottleneck: Optional[BottleneckCategory],
) -> str:
    if profile is None:
        return "No project set up yet. Help them get started."
    kind = f"Local business in {profile.location}" if profile.is_local else "Online business"
    return "\n".join([
        f"Project: {profile.name}",
        f"Business Type: {profile.business_type}",
        f"Target Customer: {profile.target_customer}",
        f"Type: {kind}",
        f"Current Offer: {profile.core_offer_summary}",
        f"Pricing: {profile.pricing}",
        f"Revenue Goal: {profile.revenue_goal}",
        f"Time Available: {profile.available_daily_time} per day",
        f"Current Focus: {_current_focus(profile, bottleneck)}",
        f"Focus Mode: {profile.focus_mode}",
        f"Marketing Preference: {profile.marketing_preference or 'Not specified'}",
    ])


def _metrics_block(records: Sequence[MetricRecord]) -> str:
    lines = ["=== RECENT METRICS ==="]
    for m in records:
        lines.append(f"Date: {m.date.isoformat()}")
        lines.append(
            f"Views: {m.views} | Clicks: {m.clicks} | Messages: {m.messages} "
            f"| Calls: {m.calls} | Sales: {m.sales}"
        )
        if m.notes:
            lines.append(f"Notes: {m.notes}")
    return "\n".join(lines)


def build_system_prompt(
    profile: Optional[BusinessProfile],
    recent_metrics: Sequence[MetricRecord],
    memory_context: str = "",
    bottleneck: Optional[BottleneckCategory] = None,
) -> str:
    """
    Advisor system prompt: business context, the last five metric records
    (oldest first), the memory block when present, then directives and the
    response format.
    """
    latest = sorted(recent_metrics, key=lambda m: m.date)[-PROMPT_METRICS_LIMIT:]

    sections = [_INTRO, "=== BUSINESS CONTEXT ===\n" + _business_context(profile, bottleneck)]
    if latest:
        sections.append(_metrics_block(latest))
    if memory_context:
        sections.append(memory_context)
    sections.append(_DIRECTIVES)
    sections.append(_RESPONSE_FORMAT)
    return "\n\n".join(sections)
