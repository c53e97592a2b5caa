"""
Weekly review generator.

Rules:
- Pure: takes the project's records and completion logs, returns a WeeklyReview.
  Persisting the review is the caller's job.
- Period is [today - 7, today]; totals cover aggregate(0, 7), prior covers
  aggregate(7, 14).
- Deltas are integer percent changes; 0 when the prior value is 0.
- The prior bottleneck is diagnosed as of today - 7 using only records
  dated on or before that day.

next_week_focus (1..3 items, in this order)
-------------------------------------------
1. The focus area that addresses the current bottleneck.
2. One item per declining metric, funnel order, skipping focus areas
   already recommended.
3. A systems item when the consistency score is below 50.
4. If nothing applied: a "keep momentum" audience-building item.
"""
from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Optional, Sequence

from app.schemas.execution import DirectiveCompletionLog, FocusArea
from app.schemas.metrics import MetricRecord
from app.schemas.review import FocusRecommendation, MetricTotals, WeeklyReview
from app.services.bottleneck import BottleneckDiagnosis, diagnose
from app.services.directives import focus_for_category, template_for
from app.services.execution_stats import (
    completion_day,
    compute_consistency_score,
    compute_streak,
)
from app.services.metrics_aggregator import METRIC_FIELDS, MetricsSnapshot, aggregate_period


REVIEW_DAYS = 7
MAX_FOCUS_ITEMS = 3
LOW_CONSISTENCY = 50

# funnel order; messages and calls share a focus area
_METRIC_FOCUS: dict[str, FocusArea] = {
    "views": FocusArea.content,
    "clicks": FocusArea.offer,
    "messages": FocusArea.outreach,
    "calls": FocusArea.outreach,
    "sales": FocusArea.sales,
}


def _today() -> date:
    return datetime.now(tz=timezone.utc).date()


def _totals(snapshot: MetricsSnapshot) -> MetricTotals:
    return MetricTotals(**snapshot.as_dict())


def percent_change(current: int, prior: int) -> int:
    if prior == 0:
        return 0
    return round((current - prior) / prior * 100)


def _deltas(totals: MetricTotals, prior: MetricTotals) -> MetricTotals:
    return MetricTotals(**{
        f: percent_change(getattr(totals, f), getattr(prior, f)) for f in METRIC_FIELDS
    })


# ---------------------------------------------------------------------------
# Focus recommendations
# ---------------------------------------------------------------------------

def _recommend(area: FocusArea, reason: str) -> FocusRecommendation:
    return FocusRecommendation(title=template_for(area)["title"], reason=reason, focus_area=area)


def build_next_week_focus(
    current: Optional[BottleneckDiagnosis],
    totals: MetricTotals,
    prior: MetricTotals,
    deltas: MetricTotals,
    consistency_score: int,
) -> list[FocusRecommendation]:
    items: list[FocusRecommendation] = []
    used: set[FocusArea] = set()

    def add(area: FocusArea, reason: str) -> None:
        if area in used or len(items) >= MAX_FOCUS_ITEMS:
            return
        used.add(area)
        items.append(_recommend(area, reason))

    if current is not None:
        add(
            focus_for_category(current.category),
            f"Current bottleneck is {current.category.value} "
            f"({current.confidence}% confidence). {current.reasoning}",
        )

    for field, area in _METRIC_FOCUS.items():
        change = getattr(deltas, field)
        if change < 0:
            add(
                area,
                f"{field.capitalize()} fell {abs(change)}% week over week "
                f"({getattr(prior, field)}→{getattr(totals, field)}).",
            )

    if consistency_score < LOW_CONSISTENCY:
        add(
            FocusArea.systems,
            f"Consistency is {consistency_score}%. Directives were completed on fewer "
            "than half of the last 14 days.",
        )

    if not items:
        add(
            FocusArea.audience_building,
            "Keep momentum. No metric declined and execution is consistent.",
        )
    return items


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def generate_weekly_review(
    records: Sequence[MetricRecord],
    logs: Sequence[DirectiveCompletionLog],
    project_id: str,
    today: Optional[date] = None,
) -> WeeklyReview:
    ref = today or _today()
    period_start = ref - timedelta(days=REVIEW_DAYS)
    prior_ref = period_start

    project_records = [r for r in records if r.project_id == project_id]
    project_logs = [l for l in logs if l.project_id == project_id]

    totals = _totals(aggregate_period(project_records, 0, 7, today=ref))
    prior = _totals(aggregate_period(project_records, 7, 14, today=ref))
    deltas = _deltas(totals, prior)

    current = diagnose(project_records, today=ref)
    previous = diagnose([r for r in project_records if r.date <= prior_ref], today=prior_ref)
    current_category = current.category if current else None
    previous_category = previous.category if previous else None

    consistency = compute_consistency_score(project_logs, project_id, ref)
    completed = sum(1 for l in project_logs if period_start <= completion_day(l) <= ref)

    return WeeklyReview(
        project_id=project_id,
        period_start=period_start,
        period_end=ref,
        streak=compute_streak(project_logs, project_id, ref),
        directives_completed=completed,
        consistency_score=consistency,
        metrics_totals=totals,
        metrics_prior=prior,
        deltas=deltas,
        bottleneck_current=current_category,
        bottleneck_prior=previous_category,
        bottleneck_changed=current_category != previous_category,
        next_week_focus=build_next_week_focus(current, totals, prior, deltas, consistency),
        created_at=datetime.now(tz=timezone.utc),
    )
