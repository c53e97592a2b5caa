"""
Workspace collections — metric records, completion logs, weekly reviews.

Each collection is one global JSON list in the key-value store. Appends are
read-modify-write under a process-wide lock; reads filter by project.

Public API
----------
add_metric_record(store, record)       -> MetricRecord
project_metric_records(store, pid)     -> list[MetricRecord]          oldest first
add_completion_log(store, log)         -> DirectiveCompletionLog
project_completion_logs(store, pid)    -> list[DirectiveCompletionLog] oldest first
add_weekly_review(store, review)       -> WeeklyReview
project_weekly_reviews(store, pid)     -> list[WeeklyReview]          newest first
get_weekly_review(store, pid, rid)     -> WeeklyReview                (ReviewNotFoundError)
"""
from __future__ import annotations

import logging
import threading
from typing import TypeVar

from app.core.errors import ReviewNotFoundError
from app.db.kv_store import KeyValueStore, StorageKey, load_collection, save_collection
from app.schemas.execution import DirectiveCompletionLog
from app.schemas.metrics import MetricRecord
from app.schemas.review import WeeklyReview

logger = logging.getLogger(__name__)

T = TypeVar("T")

_WRITE_LOCK = threading.Lock()


def _append(store: KeyValueStore, key: str, item: T, item_type: type[T]) -> T:
    with _WRITE_LOCK:
        items = load_collection(store, key, item_type)
        items.append(item)
        save_collection(store, key, items, item_type)
    return item


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------

def add_metric_record(store: KeyValueStore, record: MetricRecord) -> MetricRecord:
    _append(store, StorageKey.METRICS, record, MetricRecord)
    logger.info("Metric record %s stored for project %s", record.date, record.project_id)
    return record


def project_metric_records(store: KeyValueStore, project_id: str) -> list[MetricRecord]:
    records = load_collection(store, StorageKey.METRICS, MetricRecord)
    return sorted((r for r in records if r.project_id == project_id), key=lambda r: r.date)


# ---------------------------------------------------------------------------
# Completion logs
# ---------------------------------------------------------------------------

def add_completion_log(store: KeyValueStore, log: DirectiveCompletionLog) -> DirectiveCompletionLog:
    _append(store, StorageKey.COMPLETION_LOGS, log, DirectiveCompletionLog)
    logger.info("Directive %s completed for project %s", log.directive_id, log.project_id)
    return log


def project_completion_logs(store: KeyValueStore, project_id: str) -> list[DirectiveCompletionLog]:
    logs = load_collection(store, StorageKey.COMPLETION_LOGS, DirectiveCompletionLog)
    return [l for l in logs if l.project_id == project_id]


# ---------------------------------------------------------------------------
# Weekly reviews
# ---------------------------------------------------------------------------

def add_weekly_review(store: KeyValueStore, review: WeeklyReview) -> WeeklyReview:
    _append(store, StorageKey.WEEKLY_REVIEWS, review, WeeklyReview)
    logger.info("Weekly review %s stored for project %s", review.id, review.project_id)
    return review


def project_weekly_reviews(store: KeyValueStore, project_id: str) -> list[WeeklyReview]:
    reviews = load_collection(store, StorageKey.WEEKLY_REVIEWS, WeeklyReview)
    return sorted(
        (r for r in reviews if r.project_id == project_id),
        key=lambda r: r.created_at,
        reverse=True,
    )


def get_weekly_review(store: KeyValueStore, project_id: str, review_id: str) -> WeeklyReview:
    for review in project_weekly_reviews(store, project_id):
        if review.id == review_id:
            return review
    raise ReviewNotFoundError(project_id=project_id, review_id=review_id)
