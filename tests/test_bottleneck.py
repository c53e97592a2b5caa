"""
Tests for the metrics aggregator and the bottleneck diagnoser.

All tests pin `today` so window boundaries are deterministic.
"""
from __future__ import annotations

from datetime import date, timedelta

import pytest

from app.schemas.metrics import BottleneckCategory, MetricRecord
from app.services.bottleneck import MAX_CONFIDENCE, diagnose
from app.services.metrics_aggregator import aggregate_period

TODAY = date(2026, 3, 15)


def _rec(days_ago: int, views=0, clicks=0, messages=0, calls=0, sales=0, project="p1"):
    return MetricRecord(
        project_id=project,
        date=TODAY - timedelta(days=days_ago),
        views=views,
        clicks=clicks,
        messages=messages,
        calls=calls,
        sales=sales,
    )


# ---------------------------------------------------------------------------
# Aggregator
# ---------------------------------------------------------------------------

class TestAggregatePeriod:
    def test_empty_window_is_zero_vector(self):
        snap = aggregate_period([], 0, 7, today=TODAY)
        assert snap.as_dict() == {"views": 0, "clicks": 0, "messages": 0, "calls": 0, "sales": 0}
        assert snap.period_label == "0-7 days ago"

    def test_sums_element_wise(self):
        records = [_rec(0, views=10, clicks=2, sales=1), _rec(3, views=5, messages=4, calls=1)]
        snap = aggregate_period(records, 0, 7, today=TODAY)
        assert snap.views == 15
        assert snap.clicks == 2
        assert snap.messages == 4
        assert snap.calls == 1
        assert snap.sales == 1

    def test_boundaries_are_inclusive(self):
        records = [_rec(7, views=1), _rec(14, views=10), _rec(15, views=100)]
        recent = aggregate_period(records, 0, 7, today=TODAY)
        prior = aggregate_period(records, 7, 14, today=TODAY)
        # the day exactly 7 days ago belongs to both windows
        assert recent.views == 1
        assert prior.views == 11

    def test_windows_add_up_when_boundary_day_empty(self):
        records = [
            _rec(d, views=d + 1, clicks=2 * d, messages=d % 3, calls=1, sales=d % 2)
            for d in range(15) if d != 7
        ]
        recent = aggregate_period(records, 0, 7, today=TODAY).as_dict()
        prior = aggregate_period(records, 7, 14, today=TODAY).as_dict()
        whole = aggregate_period(records, 0, 14, today=TODAY).as_dict()
        assert {k: recent[k] + prior[k] for k in whole} == whole

    def test_future_records_excluded(self):
        records = [_rec(-1, views=50), _rec(0, views=5)]
        assert aggregate_period(records, 0, 7, today=TODAY).views == 5


# ---------------------------------------------------------------------------
# Diagnoser: sentinels
# ---------------------------------------------------------------------------

class TestDiagnoseSentinels:
    def test_no_records_is_none(self):
        assert diagnose([], today=TODAY) is None

    def test_single_record_is_none(self):
        assert diagnose([_rec(0, views=500)], today=TODAY) is None

    def test_all_zero_windows_is_traffic_90(self):
        result = diagnose([_rec(0), _rec(1)], today=TODAY)
        assert result.category == BottleneckCategory.traffic
        assert result.confidence == 90
        assert result.reasoning == (
            "No metrics recorded in the last 14 days. Primary issue is generating visibility."
        )

    def test_only_old_records_count_as_no_data(self):
        result = diagnose([_rec(20, views=300), _rec(30, views=300)], today=TODAY)
        assert result.category == BottleneckCategory.traffic
        assert result.confidence == 90


# ---------------------------------------------------------------------------
# Diagnoser: signals
# ---------------------------------------------------------------------------

class TestDiagnoseSignals:
    def test_very_low_views_is_traffic_85(self):
        result = diagnose([_rec(0, views=2), _rec(1, views=3)], today=TODAY)
        assert result.category == BottleneckCategory.traffic
        assert result.confidence == 85
        assert result.reasoning == "Views are very low (0→5). Not enough eyeballs on your offer."

    def test_declining_views_is_traffic_55(self):
        records = [
            _rec(0, views=40, clicks=4, messages=2, calls=1, sales=1),
            _rec(8, views=100, clicks=10, messages=2, calls=1, sales=1),
        ]
        result = diagnose(records, today=TODAY)
        assert result.category == BottleneckCategory.traffic
        assert result.confidence == 55
        assert "declining (100→40)" in result.reasoning

    def test_low_ctr_is_conversion_75(self):
        records = [_rec(0, views=100, clicks=2), _rec(1, views=100, clicks=2)]
        result = diagnose(records, today=TODAY)
        assert result.category == BottleneckCategory.conversion
        assert result.confidence == 75
        assert result.reasoning == (
            "Views up (200) but CTR is 2.0%. People see you but don't engage."
        )

    def test_clicks_without_sales_is_pricing_70(self):
        records = [
            _rec(0, views=100, clicks=15, messages=5, calls=2),
            _rec(1, views=100, clicks=15, messages=5, calls=3),
        ]
        result = diagnose(records, today=TODAY)
        assert result.category == BottleneckCategory.pricing
        assert result.confidence == 70
        assert result.reasoning.startswith("30 clicks but 0 sales.")

    def test_leaking_leads_is_follow_up_68(self):
        records = [
            _rec(0, views=100, clicks=10, messages=1, sales=1),
            _rec(1, views=100, clicks=10),
        ]
        result = diagnose(records, today=TODAY)
        assert result.category == BottleneckCategory.follow_up
        assert result.confidence == 68
        assert result.reasoning == (
            "20 clicks but only 1 follow-through (messages+calls). Leads are leaking."
        )

    def test_sales_drop_with_stable_traffic_is_operations_55(self):
        records = [
            _rec(0, views=200, clicks=20, messages=10, calls=5, sales=4),
            _rec(8, views=200, clicks=20, messages=10, calls=5, sales=5),
        ]
        result = diagnose(records, today=TODAY)
        assert result.category == BottleneckCategory.operations
        assert result.confidence == 55
        assert "sales dropped (5→4)" in result.reasoning

    def test_equal_scores_resolve_to_first_evaluated(self):
        # traffic (70) and pricing (70) both fire; traffic is evaluated first
        records = [
            _rec(0, views=25, clicks=12, messages=5),
            _rec(8, views=50, clicks=5, messages=1),
        ]
        result = diagnose(records, today=TODAY)
        assert result.category == BottleneckCategory.traffic
        assert result.confidence == 70
        assert result.reasoning.startswith("Views are declining (50→25).")


# ---------------------------------------------------------------------------
# Diagnoser: no-signal fallback
# ---------------------------------------------------------------------------

class TestDiagnoseFallback:
    def test_healthy_funnel_falls_back_to_conversion_45(self):
        records = [
            _rec(0, views=100, clicks=20, messages=10, calls=5, sales=5),
            _rec(8, views=100, clicks=20, messages=10, calls=5, sales=5),
        ]
        result = diagnose(records, today=TODAY)
        assert result.category == BottleneckCategory.conversion
        assert result.confidence == 45
        assert result.reasoning == "No strong signals detected. General optimization recommended."

    def test_views_weakest_falls_back_to_traffic_50(self):
        records = [
            _rec(0, views=20, clicks=20, messages=20, sales=20),
            _rec(8, views=20, clicks=20, messages=20, sales=20),
        ]
        result = diagnose(records, today=TODAY)
        assert result.category == BottleneckCategory.traffic
        assert result.confidence == 50
        assert result.reasoning.startswith("No strong signals detected.")


class TestDiagnoseProperties:
    @pytest.mark.parametrize("views,clicks,messages,calls,sales", [
        (0, 0, 0, 0, 0),
        (1, 0, 0, 0, 0),
        (500, 1, 0, 0, 0),
        (100, 50, 0, 0, 0),
        (100, 50, 40, 30, 0),
        (1000, 900, 800, 700, 600),
    ])
    def test_confidence_never_exceeds_cap(self, views, clicks, messages, calls, sales):
        records = [
            _rec(0, views, clicks, messages, calls, sales),
            _rec(9, views * 2, clicks, messages, calls, sales + 1),
        ]
        result = diagnose(records, today=TODAY)
        assert result is not None
        assert 0 <= result.confidence <= MAX_CONFIDENCE

    def test_diagnosis_is_deterministic(self):
        records = [_rec(0, views=100, clicks=2), _rec(1, views=100, clicks=2)]
        a = diagnose(records, today=TODAY)
        b = diagnose(records, today=TODAY)
        assert (a.category, a.confidence, a.reasoning) == (b.category, b.confidence, b.reasoning)
