"""
Execution statistics — streak, weekly completion, consistency, revenue per directive.

All counts use DISTINCT completion days (UTC calendar day of completed_at);
completing three directives on one day counts as one day.

Public API
----------
compute_streak(logs, project_id, today)                  -> int
compute_weekly_completion_pct(logs, project_id, today)   -> int   0..100
compute_consistency_score(logs, project_id, today)       -> int   0..100
compute_revenue_per_directive(records, logs, project_id) -> float | None
compute_execution_stats(records, logs, project_id, today) -> ExecutionStats
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Sequence

from app.schemas.execution import DirectiveCompletionLog
from app.schemas.metrics import MetricRecord


WEEK_DAYS = 7
CONSISTENCY_DAYS = 14


@dataclass
class ExecutionStats:
    streak: int
    weekly_completion_pct: int
    consistency_score: int
    revenue_per_directive: Optional[float]
    last_updated: datetime


def _today() -> date:
    return datetime.now(tz=timezone.utc).date()


def completion_day(log: DirectiveCompletionLog) -> date:
    ts = log.completed_at
    if ts.tzinfo is not None:
        ts = ts.astimezone(timezone.utc)
    return ts.date()


def completion_days(logs: Sequence[DirectiveCompletionLog], project_id: str) -> set[date]:
    return {completion_day(l) for l in logs if l.project_id == project_id}


def _window_pct(days: set[date], today: date, window: int) -> int:
    start = today - timedelta(days=window - 1)
    n = sum(1 for d in days if start <= d <= today)
    return min(100, round(100 * n / window))


# ---------------------------------------------------------------------------
# Public
# ---------------------------------------------------------------------------

def compute_streak(
    logs: Sequence[DirectiveCompletionLog],
    project_id: str,
    today: Optional[date] = None,
) -> int:
    """
    Consecutive completion days counted back from the newest one.
    The streak is broken (0) when the newest completion is older than yesterday.
    """
    ref = today or _today()
    days = sorted(completion_days(logs, project_id), reverse=True)
    if not days:
        return 0
    if days[0] not in (ref, ref - timedelta(days=1)):
        return 0

    streak = 1
    for newer, older in zip(days, days[1:]):
        if (newer - older).days != 1:
            break
        streak += 1
    return streak


def compute_weekly_completion_pct(
    logs: Sequence[DirectiveCompletionLog],
    project_id: str,
    today: Optional[date] = None,
) -> int:
    """Share of the 7 days ending today that have at least one completion."""
    return _window_pct(completion_days(logs, project_id), today or _today(), WEEK_DAYS)


def compute_consistency_score(
    logs: Sequence[DirectiveCompletionLog],
    project_id: str,
    today: Optional[date] = None,
) -> int:
    """Share of the 14 days ending today that have at least one completion."""
    return _window_pct(completion_days(logs, project_id), today or _today(), CONSISTENCY_DAYS)


def compute_revenue_per_directive(
    records: Sequence[MetricRecord],
    logs: Sequence[DirectiveCompletionLog],
    project_id: str,
) -> Optional[float]:
    completions = sum(1 for l in logs if l.project_id == project_id)
    if completions == 0:
        return None
    total_sales = sum(r.sales for r in records if r.project_id == project_id)
    if total_sales == 0:
        return None
    return round(total_sales / completions, 2)


def compute_execution_stats(
    records: Sequence[MetricRecord],
    logs: Sequence[DirectiveCompletionLog],
    project_id: str,
    today: Optional[date] = None,
) -> ExecutionStats:
    ref = today or _today()
    return ExecutionStats(
        streak=compute_streak(logs, project_id, ref),
        weekly_completion_pct=compute_weekly_completion_pct(logs, project_id, ref),
        consistency_score=compute_consistency_score(logs, project_id, ref),
        revenue_per_directive=compute_revenue_per_directive(records, logs, project_id),
        last_updated=datetime.now(tz=timezone.utc),
    )
