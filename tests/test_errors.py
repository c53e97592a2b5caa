"""
Tests for error handling: structured error responses, HTTP status codes,
and the custom exception classes.
"""
import pytest

from app.core.errors import (
    CorruptCollectionError,
    DirectiveNotFoundError,
    ReviewNotFoundError,
    SkyforgeException,
)
from app.db.kv_store import StorageKey


# ---------------------------------------------------------------------------
# Unit tests on exception classes
# ---------------------------------------------------------------------------

class TestExceptionClasses:
    def test_review_not_found_error(self):
        err = ReviewNotFoundError(project_id="acme", review_id="r1")
        assert err.http_status == 404
        assert err.code == "REVIEW_NOT_FOUND"
        assert "r1" in err.message
        d = err.to_dict()
        assert d["code"] == "REVIEW_NOT_FOUND"
        assert d["details"] == {"project_id": "acme", "review_id": "r1"}

    def test_directive_not_found_error_has_no_details(self):
        err = DirectiveNotFoundError()
        assert err.http_status == 422
        assert err.code == "DIRECTIVE_NOT_FOUND"
        assert "details" not in err.to_dict()

    def test_corrupt_collection_error(self):
        err = CorruptCollectionError(key=StorageKey.METRICS, reason="bad json")
        assert err.http_status == 500
        assert err.code == "CORRUPT_COLLECTION"
        assert err.details["key"] == StorageKey.METRICS
        assert err.details["reason"] == "bad json"

    def test_all_inherit_from_base(self):
        for cls in (ReviewNotFoundError, DirectiveNotFoundError, CorruptCollectionError):
            assert issubclass(cls, SkyforgeException)

    def test_base_defaults(self):
        err = SkyforgeException("boom")
        assert err.http_status == 500
        assert err.to_dict() == {"code": "INTERNAL_ERROR", "message": "boom"}


# ---------------------------------------------------------------------------
# HTTP-level error responses
# ---------------------------------------------------------------------------

class TestValidationErrors:
    def test_structured_422(self, client):
        r = client.post("/projects/acme/metrics", json={"views": -5, "clicks": "many"})
        assert r.status_code == 422
        body = r.json()
        assert body["code"] == "VALIDATION_ERROR"
        fields = {e["field"] for e in body["details"]["errors"]}
        assert fields == {"views", "clicks"}

    def test_missing_required_field(self, client):
        r = client.post("/projects/acme/completions", json={"title": "t"})
        assert r.status_code == 422
        fields = [e["field"] for e in r.json()["details"]["errors"]]
        assert "directive_id" in fields

    def test_invalid_query_enum(self, client):
        r = client.get("/projects/acme/directive", params={"focus": "nope"})
        assert r.status_code == 422
        assert r.json()["details"]["errors"][0]["field"] == "query.focus"


class TestDomainErrors:
    def test_review_not_found(self, client):
        r = client.get("/projects/acme/reviews/missing")
        assert r.status_code == 404
        assert r.json()["code"] == "REVIEW_NOT_FOUND"

    def test_directive_not_found(self, client):
        r = client.post("/advisor/extract-directive", json={"text": "y" * 120})
        assert r.status_code == 422
        assert r.json()["code"] == "DIRECTIVE_NOT_FOUND"

    def test_corrupt_collection_surfaces_as_500(self, client, store):
        store.set(StorageKey.METRICS, b"not json at all")
        r = client.get("/projects/acme/metrics")
        assert r.status_code == 500
        body = r.json()
        assert body["code"] == "CORRUPT_COLLECTION"
        assert body["details"]["key"] == StorageKey.METRICS

    def test_corrupt_collection_blocks_writes(self, client, store):
        store.set(StorageKey.COMPLETION_LOGS, b'{"not": "a list"}')
        r = client.post("/projects/acme/completions", json={"directive_id": "d1", "title": "t"})
        assert r.status_code == 500
        assert r.json()["code"] == "CORRUPT_COLLECTION"
        # the bad value is left untouched
        assert store.get(StorageKey.COMPLETION_LOGS) == b'{"not": "a list"}'
