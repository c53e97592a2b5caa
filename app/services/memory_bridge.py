"""
Memory bridge — records domain events into workspace memory.

Called by the routers after a state change has been persisted:
  metric logged        → metric memory        + metric_logged event
  directive completed  → completion memory    + directive_completed event
  bottleneck evaluated → change memory        + bottleneck_changed event  (only on change)
  review generated     → review memory        + review_generated event

The previous bottleneck of a project is the `to` value of its latest
bottleneck_changed event, so change detection survives restarts.
"""
from __future__ import annotations

import logging
from typing import Optional

from app.schemas.execution import DirectiveCompletionLog
from app.schemas.memory import EventLogRequest, EventType
from app.schemas.metrics import BottleneckCategory, MetricRecord
from app.schemas.review import WeeklyReview
from app.services.bottleneck import BottleneckDiagnosis
from app.services.memory_store import MemoryStore
from app.services.memory_writers import (
    bottleneck_change_memory,
    directive_completion_memory,
    metric_memory,
    review_memory,
)

logger = logging.getLogger(__name__)


def on_metric_logged(memory: MemoryStore, record: MetricRecord, project_name: str) -> None:
    memory.write_memory_and_events(
        record.project_id,
        [metric_memory(record, project_name)],
        [EventLogRequest(
            event_type=EventType.metric_logged,
            metadata={
                "views": record.views,
                "clicks": record.clicks,
                "messages": record.messages,
                "calls": record.calls,
                "sales": record.sales,
                "date": record.date.isoformat(),
            },
        )],
    )


def on_directive_completed(
    memory: MemoryStore, log: DirectiveCompletionLog, project_name: str, streak: int
) -> None:
    memory.write_memory_and_events(
        log.project_id,
        [directive_completion_memory(log.title, log.mode_tag, project_name, streak)],
        [EventLogRequest(
            event_type=EventType.directive_completed,
            metadata={"title": log.title, "mode_tag": log.mode_tag, "streak": streak},
        )],
    )


def last_recorded_bottleneck(memory: MemoryStore, project_id: str) -> Optional[BottleneckCategory]:
    # append-only log: the last matching entry is the latest
    for event in reversed(memory.all_events()):
        if event.project_id == project_id and event.event_type == EventType.bottleneck_changed:
            value = event.metadata.get("to")
            try:
                return BottleneckCategory(value)
            except ValueError:
                return None
    return None


def on_bottleneck_evaluated(
    memory: MemoryStore,
    project_id: str,
    project_name: str,
    diagnosis: Optional[BottleneckDiagnosis],
) -> bool:
    """Record the diagnosis if its category differs from the last one recorded."""
    if diagnosis is None:
        return False
    previous = last_recorded_bottleneck(memory, project_id)
    if previous == diagnosis.category:
        return False

    memory.write_memory_and_events(
        project_id,
        [bottleneck_change_memory(previous, diagnosis.category, diagnosis.confidence, project_name)],
        [EventLogRequest(
            event_type=EventType.bottleneck_changed,
            metadata={
                "from": previous.value if previous else "none",
                "to": diagnosis.category.value,
                "confidence": diagnosis.confidence,
            },
        )],
    )
    logger.info(
        "Bottleneck changed for project %s: %s -> %s",
        project_id, previous.value if previous else None, diagnosis.category.value,
    )
    return True


def on_review_generated(memory: MemoryStore, review: WeeklyReview, project_name: str) -> None:
    memory.write_memory_and_events(
        review.project_id,
        [review_memory(review, project_name)],
        [EventLogRequest(
            event_type=EventType.review_generated,
            metadata={
                "review_id": review.id,
                "period_start": review.period_start.isoformat(),
                "period_end": review.period_end.isoformat(),
                "directives_completed": review.directives_completed,
                "bottleneck": review.bottleneck_current.value if review.bottleneck_current else None,
                "bottleneck_changed": review.bottleneck_changed,
            },
        )],
    )
