"""
Bottleneck diagnoser — picks the weakest funnel stage from two 7-day windows.

Windows
-------
  recent = aggregate_period(records, 0, 7)
  prior  = aggregate_period(records, 7, 14)

Signals (evaluated in this order; first of equal scores wins)
-------------------------------------------------------------
  1. traffic     recent.views < 20, or views fell vs a non-empty prior
                 score 85 (views < 10) / 70 (views < 30) / 55
  2. conversion  views > 20 and CTR < 5%                         → 75
                 else CTR < 70% of prior CTR, prior.views > 10   → 65
  3. pricing     clicks > 10 and zero sales                      → 70
                 else conv. rate < 60% of prior, prior sales > 0 → 60
  4. follow-up   clicks > 5, follow-through < 0.3, msgs+calls < 3 → 68
                 else follow-through < 50% of prior, prior clicks > 5 → 58
  5. operations  sales > 0 but down while views and clicks held  → 55

Sentinels instead of errors
---------------------------
  < 2 records            → None (not yet diagnosable)
  both windows all zero  → traffic @ 90
  no signal fired        → traffic @ 50 if views is the weakest metric,
                           else conversion @ 45
  confidence is capped at 95.

Pure function: no I/O, no exceptions.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Optional, Sequence

from app.schemas.metrics import BottleneckCategory, MetricRecord
from app.services.metrics_aggregator import MetricsSnapshot, aggregate_period


MIN_RECORDS = 2
MAX_CONFIDENCE = 95
NO_DATA_CONFIDENCE = 90


@dataclass
class BottleneckDiagnosis:
    category: BottleneckCategory
    confidence: int
    reasoning: str
    diagnosed_at: datetime


@dataclass
class _Signal:
    category: BottleneckCategory
    score: int
    reasoning: str


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


def _safe_div(a: float, b: float) -> float:
    return 0.0 if b == 0 else a / b


def _pct(ratio: float) -> str:
    return f"{ratio * 100:.1f}%"


# ---------------------------------------------------------------------------
# Signal evaluators: each returns a candidate or None
# ---------------------------------------------------------------------------

def _traffic_signal(recent: MetricsSnapshot, prior: MetricsSnapshot) -> Optional[_Signal]:
    if not (recent.views < 20 or (prior.views > 0 and recent.views < prior.views)):
        return None
    if recent.views < 10:
        score = 85
    elif recent.views < 30:
        score = 70
    else:
        score = 55
    trend = "very low" if recent.views < 20 else "declining"
    return _Signal(
        BottleneckCategory.traffic,
        score,
        f"Views are {trend} ({prior.views}→{recent.views}). Not enough eyeballs on your offer.",
    )


def _conversion_signal(
    recent: MetricsSnapshot, prior: MetricsSnapshot, recent_ctr: float, prior_ctr: float
) -> Optional[_Signal]:
    if recent.views > 20 and recent_ctr < 0.05:
        return _Signal(
            BottleneckCategory.conversion,
            75,
            f"Views up ({recent.views}) but CTR is {_pct(recent_ctr)}. "
            "People see you but don't engage.",
        )
    if recent_ctr < prior_ctr * 0.7 and prior.views > 10:
        return _Signal(
            BottleneckCategory.conversion,
            65,
            f"CTR dropped from {_pct(prior_ctr)} to {_pct(recent_ctr)}. Engagement is slipping.",
        )
    return None


def _pricing_signal(
    recent: MetricsSnapshot, prior: MetricsSnapshot, recent_conv: float, prior_conv: float
) -> Optional[_Signal]:
    if recent.clicks > 10 and recent.sales == 0:
        return _Signal(
            BottleneckCategory.pricing,
            70,
            f"{recent.clicks} clicks but 0 sales. People are interested but not buying. "
            "Pricing or offer friction likely.",
        )
    if recent_conv < prior_conv * 0.6 and prior.sales > 0:
        return _Signal(
            BottleneckCategory.pricing,
            60,
            f"Conversion rate dropped from {_pct(prior_conv)} to {_pct(recent_conv)}. "
            "Check pricing or offer.",
        )
    return None


def _follow_up_signal(
    recent: MetricsSnapshot, prior: MetricsSnapshot, recent_ft: float, prior_ft: float
) -> Optional[_Signal]:
    conversations = recent.messages + recent.calls
    if recent.clicks > 5 and recent_ft < 0.3 and conversations < 3:
        return _Signal(
            BottleneckCategory.follow_up,
            68,
            f"{recent.clicks} clicks but only {conversations} follow-through "
            "(messages+calls). Leads are leaking.",
        )
    if recent_ft < prior_ft * 0.5 and prior.clicks > 5:
        return _Signal(
            BottleneckCategory.follow_up,
            58,
            "Follow-through rate dropped. Fewer leads are converting to conversations.",
        )
    return None


def _operations_signal(recent: MetricsSnapshot, prior: MetricsSnapshot) -> Optional[_Signal]:
    if (
        recent.sales > 0
        and recent.sales < prior.sales
        and recent.views >= prior.views
        and recent.clicks >= prior.clicks
    ):
        return _Signal(
            BottleneckCategory.operations,
            55,
            f"Traffic and clicks are stable/up but sales dropped ({prior.sales}→{recent.sales}). "
            "Possible fulfillment bottleneck.",
        )
    return None


def collect_signals(recent: MetricsSnapshot, prior: MetricsSnapshot) -> list[_Signal]:
    """All signals that fire for the two windows, in evaluation order."""
    recent_ctr = _safe_div(recent.clicks, recent.views)
    prior_ctr = _safe_div(prior.clicks, prior.views)
    recent_conv = _safe_div(recent.sales, recent.clicks + recent.messages + recent.calls)
    prior_conv = _safe_div(prior.sales, prior.clicks + prior.messages + prior.calls)
    recent_ft = _safe_div(recent.calls + recent.messages, recent.clicks)
    prior_ft = _safe_div(prior.calls + prior.messages, prior.clicks)

    candidates = [
        _traffic_signal(recent, prior),
        _conversion_signal(recent, prior, recent_ctr, prior_ctr),
        _pricing_signal(recent, prior, recent_conv, prior_conv),
        _follow_up_signal(recent, prior, recent_ft, prior_ft),
        _operations_signal(recent, prior),
    ]
    return [s for s in candidates if s is not None]


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def diagnose(
    records: Sequence[MetricRecord],
    today: Optional[date] = None,
) -> Optional[BottleneckDiagnosis]:
    """
    Diagnose the project's current bottleneck from its metric history.
    `records` must already be filtered to a single project.
    """
    if len(records) < MIN_RECORDS:
        return None

    recent = aggregate_period(records, 0, 7, today=today)
    prior = aggregate_period(records, 7, 14, today=today)
    now = _now()

    if recent.total == 0 and prior.total == 0:
        return BottleneckDiagnosis(
            category=BottleneckCategory.traffic,
            confidence=NO_DATA_CONFIDENCE,
            reasoning="No metrics recorded in the last 14 days. "
                      "Primary issue is generating visibility.",
            diagnosed_at=now,
        )

    signals = collect_signals(recent, prior)

    if not signals:
        conversations = recent.messages + recent.calls
        if (
            recent.views <= recent.clicks
            and recent.views <= conversations
            and recent.views <= recent.sales
        ):
            return BottleneckDiagnosis(
                category=BottleneckCategory.traffic,
                confidence=50,
                reasoning="No strong signals detected. Views are the weakest metric — "
                          "focus on visibility.",
                diagnosed_at=now,
            )
        return BottleneckDiagnosis(
            category=BottleneckCategory.conversion,
            confidence=45,
            reasoning="No strong signals detected. General optimization recommended.",
            diagnosed_at=now,
        )

    # max() keeps the first of equal scores, i.e. evaluation order breaks ties
    top = max(signals, key=lambda s: s.score)
    return BottleneckDiagnosis(
        category=top.category,
        confidence=min(top.score, MAX_CONFIDENCE),
        reasoning=top.reasoning,
        diagnosed_at=now,
    )
