"""
Memory write generators — turn domain events into MemoryWriteRequests.

Each generator is pure and returns the request only; storing it is the
memory store's job. Tag lists that lead with a fixed tag are capped at 4.
"""
from __future__ import annotations

import re
from typing import Optional, Sequence

from app.schemas.memory import (
    MAX_CHUNK_CONTENT,
    MemorySourceType,
    MemoryTag,
    MemoryWriteRequest,
)
from app.schemas.metrics import BottleneckCategory, MetricRecord
from app.schemas.review import WeeklyReview
from app.services.memory_tagger import infer_tags, should_write_memory


LEADING_TAG_CAP = 4
MAX_ADVISOR_WRITES = 5
MAX_RECOMMENDATION_LEN = 400
MAX_USER_REPORT_LEN = 300
MIN_SENTENCE_LEN = 15
MAX_ACTION_SENTENCES = 3

ACTION_PHRASES = (
    "you should", "do this", "action:", "recommendation", "i suggest", "next step", "priority",
)

_SENTENCE_SPLIT_RE = re.compile(r"[.!?\n]+")


def _lead_with(tag: MemoryTag, text: str) -> list[MemoryTag]:
    tags = [tag]
    for t in infer_tags(text):
        if t not in tags:
            tags.append(t)
    return tags[:LEADING_TAG_CAP]


def _truncate(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[:limit - 3] + "..."


# ---------------------------------------------------------------------------
# Structural writes
# ---------------------------------------------------------------------------

def metric_memory(record: MetricRecord, project_name: str) -> MemoryWriteRequest:
    content = (
        f"Metrics logged for {project_name} on {record.date.isoformat()}: "
        f"V:{record.views} C:{record.clicks} M:{record.messages} "
        f"Ca:{record.calls} S:{record.sales}"
    )
    if record.notes:
        content += f" Notes: {record.notes}"
    return MemoryWriteRequest(
        content=_truncate(content, MAX_CHUNK_CONTENT),
        tags=[MemoryTag.kpi],
        source_type=MemorySourceType.metric_log,
        reason="New metrics recorded",
    )


def asset_memory(asset_type: str, title: str, status: str, project_name: str) -> MemoryWriteRequest:
    return MemoryWriteRequest(
        content=_truncate(
            f'New {asset_type} asset created for {project_name}: "{title}". Status: {status}.',
            MAX_CHUNK_CONTENT,
        ),
        tags=_lead_with(MemoryTag.creative, title),
        source_type=MemorySourceType.asset_created,
        reason="Revenue asset or content item created",
    )


def directive_completion_memory(
    title: str, mode_tag: str, project_name: str, streak: int
) -> MemoryWriteRequest:
    return MemoryWriteRequest(
        content=_truncate(
            f'Directive completed for {project_name}: "{title}" ({mode_tag}). '
            f"Current streak: {streak} days.",
            MAX_CHUNK_CONTENT,
        ),
        tags=_lead_with(MemoryTag.milestone, title),
        source_type=MemorySourceType.directive_completed,
        reason="Daily directive completed",
    )


def bottleneck_change_memory(
    old: Optional[BottleneckCategory],
    new: BottleneckCategory,
    confidence: int,
    project_name: str,
) -> MemoryWriteRequest:
    if old is not None:
        change = f"Bottleneck shifted from {old.value} to {new.value}"
    else:
        change = f"Initial bottleneck identified as {new.value}"
    return MemoryWriteRequest(
        content=f"{change} for {project_name} ({confidence}% confidence).",
        tags=[MemoryTag.kpi, MemoryTag.decision],
        source_type=MemorySourceType.kpi_change,
        reason="Bottleneck diagnosis changed",
    )


def project_update_memory(project_name: str, updated_fields: Sequence[str]) -> MemoryWriteRequest:
    fields = ", ".join(updated_fields)
    return MemoryWriteRequest(
        content=_truncate(
            f'Project "{project_name}" updated. Fields changed: {fields}.', MAX_CHUNK_CONTENT
        ),
        tags=_lead_with(MemoryTag.decision, " ".join(updated_fields)),
        source_type=MemorySourceType.profile_update,
        reason="Business profile updated",
    )


def review_memory(review: WeeklyReview, project_name: str) -> MemoryWriteRequest:
    bottleneck = review.bottleneck_current.value if review.bottleneck_current else "none"
    focus = ", ".join(f.focus_area.value for f in review.next_week_focus)
    return MemoryWriteRequest(
        content=_truncate(
            f"Weekly review for {project_name} ({review.period_start.isoformat()} to "
            f"{review.period_end.isoformat()}): {review.directives_completed} directives completed, "
            f"consistency {review.consistency_score}%, bottleneck {bottleneck}. "
            f"Next week focus: {focus}.",
            MAX_CHUNK_CONTENT,
        ),
        tags=[MemoryTag.kpi, MemoryTag.milestone],
        source_type=MemorySourceType.kpi_change,
        reason="Weekly review generated",
    )


# ---------------------------------------------------------------------------
# Advisor exchange
# ---------------------------------------------------------------------------

def extract_advisor_memories(
    response_text: str,
    user_message: str,
    project_name: str,
) -> list[MemoryWriteRequest]:
    """
    Memories worth keeping from one advisor exchange.

    Nothing is written unless the user message or the response passes the
    admission filter. The response contributes its first three action
    sentences as one recommendation; a qualifying user message is stored
    as a user report.
    """
    user_qualifies = should_write_memory(user_message, MemorySourceType.user_message)
    if not user_qualifies and not should_write_memory(
        response_text, MemorySourceType.advisor_response
    ):
        return []

    writes: list[MemoryWriteRequest] = []

    sentences = [
        s for s in _SENTENCE_SPLIT_RE.split(response_text) if len(s.strip()) > MIN_SENTENCE_LEN
    ]
    actions = [s for s in sentences if any(p in s.lower() for p in ACTION_PHRASES)]
    if actions:
        summary = _truncate(
            ". ".join(s.strip() for s in actions[:MAX_ACTION_SENTENCES]), MAX_RECOMMENDATION_LEN
        )
        writes.append(MemoryWriteRequest(
            content=f"Advisor recommendation for {project_name}: {summary}"[:MAX_CHUNK_CONTENT],
            tags=infer_tags(summary),
            source_type=MemorySourceType.advisor_response,
            reason="Key recommendation from advisor session",
        ))

    if user_qualifies:
        report = _truncate(user_message, MAX_USER_REPORT_LEN)
        writes.append(MemoryWriteRequest(
            content=f"User reported for {project_name}: {report}"[:MAX_CHUNK_CONTENT],
            tags=infer_tags(report),
            source_type=MemorySourceType.user_message,
            reason="User provided significant context or decision",
        ))

    return writes[:MAX_ADVISOR_WRITES]
