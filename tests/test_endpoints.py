"""
Integration tests for API endpoints using the SQLite test database.

Records are logged with today's date (the server's UTC day), so the
diagnosis windows line up with the data.
"""
import pytest
from datetime import datetime, timedelta, timezone


def _today() -> str:
    return datetime.now(tz=timezone.utc).date().isoformat()


def _days_ago(n: int) -> str:
    return (datetime.now(tz=timezone.utc).date() - timedelta(days=n)).isoformat()


class TestHealth:
    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json()["status"] == "ok"


class TestMetrics:
    def test_log_metrics(self, client):
        r = client.post("/projects/acme/metrics", json={"views": 120, "clicks": 8, "sales": 1})
        assert r.status_code == 201
        body = r.json()
        assert body["project_id"] == "acme"
        assert body["date"] == _today()
        assert body["views"] == 120
        assert body["messages"] == 0

    def test_list_metrics_scoped_to_project(self, client):
        client.post("/projects/acme/metrics", json={"views": 1})
        client.post("/projects/other/metrics", json={"views": 2})
        r = client.get("/projects/acme/metrics")
        assert r.status_code == 200
        assert r.json()["total"] == 1
        assert r.json()["items"][0]["views"] == 1

    def test_summary_windows(self, client):
        client.post("/projects/acme/metrics", json={"date": _today(), "views": 10})
        client.post("/projects/acme/metrics", json={"date": _days_ago(10), "views": 30})
        r = client.get("/projects/acme/metrics/summary")
        body = r.json()
        assert body["recent"]["views"] == 10
        assert body["recent"]["period_label"] == "0-7 days ago"
        assert body["prior"]["views"] == 30

    def test_diagnosis_null_until_two_records(self, client):
        client.post("/projects/acme/metrics", json={"views": 3})
        r = client.get("/projects/acme/diagnosis")
        assert r.status_code == 200
        assert r.json()["diagnosis"] is None

    def test_diagnosis_after_two_records(self, client):
        client.post("/projects/acme/metrics", json={"date": _today(), "views": 3})
        client.post("/projects/acme/metrics", json={"date": _days_ago(1), "views": 2})
        diagnosis = client.get("/projects/acme/diagnosis").json()["diagnosis"]
        assert diagnosis["category"] == "traffic"
        assert diagnosis["confidence"] == 85

    def test_metric_logging_writes_memory(self, client):
        client.post("/projects/acme/metrics", json={"views": 3, "project_name": "Acme"})
        client.post("/projects/acme/metrics", json={"views": 2, "project_name": "Acme"})
        client.post("/projects/acme/metrics", json={"views": 1, "project_name": "Acme"})

        events = client.get("/projects/acme/memory/events").json()["items"]
        types = [e["event_type"] for e in events]
        assert types.count("metric_logged") == 3
        # traffic diagnosed once; unchanged afterwards
        assert types.count("bottleneck_changed") == 1

        chunks = client.get("/projects/acme/memory").json()["items"]
        assert any(c["content"].startswith("Metrics logged for Acme") for c in chunks)
        assert any("Initial bottleneck identified as traffic" in c["content"] for c in chunks)

    def test_negative_count_rejected(self, client):
        r = client.post("/projects/acme/metrics", json={"views": -1})
        assert r.status_code == 422
        assert r.json()["code"] == "VALIDATION_ERROR"


class TestExecution:
    def test_complete_directive_and_stats(self, client):
        r = client.post(
            "/projects/acme/completions",
            json={"directive_id": "d1", "title": "Send 10 personalized DMs", "mode_tag": "outreach"},
        )
        assert r.status_code == 201
        assert r.json()["project_id"] == "acme"

        stats = client.get("/projects/acme/execution-stats").json()
        assert stats["streak"] == 1
        assert stats["weekly_completion_pct"] == 14
        assert stats["consistency_score"] == 7
        assert stats["revenue_per_directive"] is None

        events = client.get("/projects/acme/memory/events").json()["items"]
        assert events[0]["event_type"] == "directive_completed"
        assert events[0]["metadata"]["streak"] == 1

    def test_revenue_per_directive(self, client):
        client.post("/projects/acme/metrics", json={"sales": 5})
        client.post("/projects/acme/completions", json={"directive_id": "d1", "title": "t"})
        client.post("/projects/acme/completions", json={"directive_id": "d2", "title": "t"})
        stats = client.get("/projects/acme/execution-stats").json()
        assert stats["revenue_per_directive"] == 2.5

    def test_list_completions(self, client):
        client.post("/projects/acme/completions", json={"directive_id": "d1", "title": "t"})
        r = client.get("/projects/acme/completions")
        assert r.json()["total"] == 1

    def test_directive_defaults_to_leads(self, client):
        r = client.get("/projects/acme/directive")
        assert r.status_code == 200
        assert r.json()["mode_tag"] == "leads"

    def test_directive_follows_bottleneck(self, client):
        client.post("/projects/acme/metrics", json={"date": _today(), "views": 100, "clicks": 2})
        client.post("/projects/acme/metrics", json={"date": _days_ago(1), "views": 100, "clicks": 2})
        assert client.get("/projects/acme/directive").json()["mode_tag"] == "conversion"

    def test_directive_manual_focus(self, client):
        r = client.get("/projects/acme/directive", params={"focus": "brand expansion"})
        assert r.json()["mode_tag"] == "brand expansion"

    def test_directive_unknown_focus_rejected(self, client):
        r = client.get("/projects/acme/directive", params={"focus": "astrology"})
        assert r.status_code == 422


class TestReviews:
    def test_generate_list_and_get(self, client):
        client.post("/projects/acme/metrics", json={"views": 40})
        r = client.post("/projects/acme/reviews", json={"project_name": "Acme"})
        assert r.status_code == 201
        review = r.json()
        assert review["period_end"] == _today()
        assert 1 <= len(review["next_week_focus"]) <= 3

        listing = client.get("/projects/acme/reviews").json()
        assert listing["total"] == 1

        single = client.get(f"/projects/acme/reviews/{review['id']}")
        assert single.status_code == 200
        assert single.json()["id"] == review["id"]

    def test_generate_without_body(self, client):
        r = client.post("/projects/acme/reviews")
        assert r.status_code == 201

    def test_review_recorded_in_memory(self, client):
        client.post("/projects/acme/reviews", json={"project_name": "Acme"})
        events = client.get("/projects/acme/memory/events").json()["items"]
        assert events[0]["event_type"] == "review_generated"

    def test_unknown_review_is_404(self, client):
        r = client.get("/projects/acme/reviews/nope")
        assert r.status_code == 404
        body = r.json()
        assert body["code"] == "REVIEW_NOT_FOUND"
        assert body["details"]["review_id"] == "nope"

    def test_review_of_other_project_is_404(self, client):
        review = client.post("/projects/acme/reviews").json()
        r = client.get(f"/projects/other/reviews/{review['id']}")
        assert r.status_code == 404


class TestMemory:
    def test_manual_memory_infers_tags(self, client):
        r = client.post("/projects/acme/memory", json={"content": "We decided on a $99 price"})
        assert r.status_code == 201
        body = r.json()
        assert body["source_type"] == "manual"
        assert "pricing" in body["tags"]

    def test_manual_memory_explicit_tags(self, client):
        r = client.post("/projects/acme/memory", json={"content": "anything", "tags": ["brand"]})
        assert r.json()["tags"] == ["brand"]

    def test_manual_memory_duplicate_tags_stored_once(self, client):
        r = client.post(
            "/projects/acme/memory",
            json={"content": "Price is 50", "tags": ["pricing", "pricing", "pricing"]},
        )
        assert r.status_code == 201
        assert r.json()["tags"] == ["pricing"]

    def test_manual_memory_too_long_rejected(self, client):
        r = client.post("/projects/acme/memory", json={"content": "x" * 501})
        assert r.status_code == 422

    def test_stats_retrieve_and_context(self, client):
        client.post("/projects/acme/memory", json={"content": "Instagram reels bring most leads"})
        client.post("/projects/acme/memory", json={"content": "Pricing raised to $120"})

        stats = client.get("/projects/acme/memory/stats").json()
        assert stats["total_chunks"] == 2
        assert stats["total_events"] == 2

        result = client.get("/projects/acme/memory/retrieve", params={"q": "instagram reels"}).json()
        assert result["chunks"][0]["content"] == "Instagram reels bring most leads"
        assert len(result["recent_events"]) == 2

        context = client.get("/projects/acme/memory/context", params={"q": "pricing"}).json()
        assert context["context"].startswith("=== WORKSPACE MEMORY ===")

    def test_context_empty_for_new_project(self, client):
        r = client.get("/projects/fresh/memory/context", params={"q": "anything"})
        assert r.json()["context"] == ""

    def test_clear_memory(self, client):
        client.post("/projects/acme/memory", json={"content": "one"})
        client.post("/projects/other/memory", json={"content": "two"})
        r = client.delete("/projects/acme/memory")
        assert r.status_code == 200
        assert r.json()["chunks_removed"] == 1
        assert r.json()["events_removed"] == 1
        assert client.get("/projects/acme/memory").json()["total"] == 0
        assert client.get("/projects/other/memory").json()["total"] == 1


class TestAdvisor:
    def test_extract_directive(self, client):
        r = client.post(
            "/advisor/extract-directive",
            json={"text": "Task: Send 5 follow-ups\nWhy: Warm leads are going cold"},
        )
        assert r.status_code == 200
        body = r.json()
        assert body["title"] == "Send 5 follow-ups"
        assert body["reason"] == "Warm leads are going cold"

    def test_extract_directive_nothing_found(self, client):
        r = client.post("/advisor/extract-directive", json={"text": "x" * 150})
        assert r.status_code == 422
        assert r.json()["code"] == "DIRECTIVE_NOT_FOUND"

    def test_prompt(self, client):
        client.post("/projects/acme/metrics", json={"views": 12, "clicks": 3})
        client.post("/projects/acme/memory", json={"content": "We decided to target landlords"})
        r = client.post(
            "/projects/acme/advisor/prompt",
            json={"profile": {"name": "Acme Plumbing", "is_local": True, "location": "Austin"},
                  "query": "landlords"},
        )
        assert r.status_code == 200
        prompt = r.json()["prompt"]
        assert "Project: Acme Plumbing" in prompt
        assert "Views: 12 | Clicks: 3" in prompt
        assert "We decided to target landlords" in prompt

    @pytest.mark.parametrize("payload", [{}, {"profile": {"name": ""}}])
    def test_prompt_validation(self, client, payload):
        r = client.post("/projects/acme/advisor/prompt", json=payload)
        assert r.status_code == 422
