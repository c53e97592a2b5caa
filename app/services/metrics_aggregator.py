"""
Metrics aggregator — sums daily metric records into day windows.

Window semantics
----------------
aggregate_period(records, start_days_ago, end_days_ago) keeps every record
whose calendar day d satisfies

    today - end_days_ago <= d <= today - start_days_ago      (inclusive)

Comparison is by calendar day, never by instant. The caller filters by
project first; this module only sums.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, Optional

from app.schemas.metrics import MetricRecord


METRIC_FIELDS = ("views", "clicks", "messages", "calls", "sales")


@dataclass
class MetricsSnapshot:
    period_label: str
    views: int = 0
    clicks: int = 0
    messages: int = 0
    calls: int = 0
    sales: int = 0

    @property
    def total(self) -> int:
        return self.views + self.clicks + self.messages + self.calls + self.sales

    def as_dict(self) -> dict[str, int]:
        return {f: getattr(self, f) for f in METRIC_FIELDS}


def _today() -> date:
    return datetime.now(tz=timezone.utc).date()


def days_ago(days: int, today: Optional[date] = None) -> date:
    return (today or _today()) - timedelta(days=days)


def aggregate_period(
    records: Iterable[MetricRecord],
    start_days_ago: int,
    end_days_ago: int,
    today: Optional[date] = None,
) -> MetricsSnapshot:
    """Element-wise sum of the records inside the window; zeros when empty."""
    ref = today or _today()
    window_start = days_ago(end_days_ago, ref)
    window_end = days_ago(start_days_ago, ref)

    snapshot = MetricsSnapshot(period_label=f"{start_days_ago}-{end_days_ago} days ago")
    for r in records:
        if window_start <= r.date <= window_end:
            snapshot.views += r.views
            snapshot.clicks += r.clicks
            snapshot.messages += r.messages
            snapshot.calls += r.calls
            snapshot.sales += r.sales
    return snapshot
