"""
Tests for the weekly review generator.
"""
from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone

from app.schemas.execution import DirectiveCompletionLog, FocusArea
from app.schemas.metrics import BottleneckCategory, MetricRecord
from app.services.weekly_review import generate_weekly_review, percent_change

TODAY = date(2026, 3, 15)


def _rec(days_ago: int, project: str = "p1", **counts):
    return MetricRecord(project_id=project, date=TODAY - timedelta(days=days_ago), **counts)


def _log(days_ago: int, hour: int = 12, project: str = "p1"):
    day = TODAY - timedelta(days=days_ago)
    return DirectiveCompletionLog(
        directive_id=f"d-{days_ago}-{hour}",
        project_id=project,
        completed_at=datetime.combine(day, time(hour), tzinfo=timezone.utc),
        title="Write and schedule 3 social posts",
        mode_tag="content",
    )


class TestPercentChange:
    def test_zero_prior_is_zero(self):
        assert percent_change(40, 0) == 0

    def test_decline(self):
        assert percent_change(40, 100) == -60

    def test_growth(self):
        assert percent_change(150, 100) == 50


class TestGenerateWeeklyReview:
    def test_empty_project(self):
        review = generate_weekly_review([], [], "p1", today=TODAY)
        assert review.project_id == "p1"
        assert review.period_start == TODAY - timedelta(days=7)
        assert review.period_end == TODAY
        assert review.metrics_totals.views == 0
        assert review.deltas.views == 0
        assert review.bottleneck_current is None
        assert review.bottleneck_prior is None
        assert review.bottleneck_changed is False
        assert review.streak == 0
        assert review.directives_completed == 0
        # no data, no completions: only the consistency recommendation applies
        assert [f.focus_area for f in review.next_week_focus] == [FocusArea.systems]

    def test_totals_deltas_and_bottleneck_change(self):
        records = [
            _rec(0, views=40, clicks=4, messages=2, calls=1, sales=1),
            _rec(8, views=100, clicks=10, messages=2, calls=1, sales=1),
        ]
        review = generate_weekly_review(records, [], "p1", today=TODAY)

        assert review.metrics_totals.views == 40
        assert review.metrics_prior.views == 100
        assert review.deltas.views == -60
        assert review.deltas.clicks == -60
        assert review.deltas.sales == 0

        assert review.bottleneck_current == BottleneckCategory.traffic
        # only one record existed a week ago: not diagnosable then
        assert review.bottleneck_prior is None
        assert review.bottleneck_changed is True

    def test_focus_is_ordered_and_capped(self):
        records = [
            _rec(0, views=40, clicks=4, messages=2, calls=1, sales=1),
            _rec(8, views=100, clicks=10, messages=2, calls=1, sales=1),
        ]
        review = generate_weekly_review(records, [], "p1", today=TODAY)
        areas = [f.focus_area for f in review.next_week_focus]
        assert areas == [FocusArea.leads, FocusArea.content, FocusArea.offer]
        assert review.next_week_focus[0].title == "Record 1 short-form video addressing a pain point"
        assert "traffic" in review.next_week_focus[0].reason

    def test_directives_completed_counts_logs_in_period(self):
        logs = [_log(0, hour=9), _log(0, hour=17), _log(3), _log(9)]
        review = generate_weekly_review([], logs, "p1", today=TODAY)
        assert review.directives_completed == 3
        assert review.streak == 1

    def test_keep_momentum_when_nothing_to_fix(self):
        logs = [_log(i) for i in range(8)]
        review = generate_weekly_review([_rec(0, views=50)], logs, "p1", today=TODAY)
        assert review.consistency_score == 57
        assert [f.focus_area for f in review.next_week_focus] == [FocusArea.audience_building]

    def test_other_projects_ignored(self):
        records = [_rec(0, project="other", views=999), _rec(1, project="other", views=999)]
        logs = [_log(0, project="other")]
        review = generate_weekly_review(records, logs, "p1", today=TODAY)
        assert review.metrics_totals.views == 0
        assert review.directives_completed == 0

    def test_stable_bottleneck_is_not_a_change(self):
        records = [
            _rec(0, views=2), _rec(1, views=3),
            _rec(8, views=1), _rec(9, views=2),
        ]
        review = generate_weekly_review(records, [], "p1", today=TODAY)
        assert review.bottleneck_current == BottleneckCategory.traffic
        assert review.bottleneck_prior == BottleneckCategory.traffic
        assert review.bottleneck_changed is False
