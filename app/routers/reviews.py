"""
Weekly review router.

POST /projects/{project_id}/reviews              — Generate and store a review for the last 7 days
GET  /projects/{project_id}/reviews              — List reviews (newest first)
GET  /projects/{project_id}/reviews/{review_id}  — Single review
"""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends, status

from app.db.kv_store import SqlKeyValueStore, get_store
from app.schemas.review import GenerateReviewRequest, WeeklyReview, WeeklyReviewListResponse
from app.services.memory_bridge import on_review_generated
from app.services.memory_store import MemoryStore
from app.services.weekly_review import generate_weekly_review
from app.services.workspace import (
    add_weekly_review,
    get_weekly_review,
    project_completion_logs,
    project_metric_records,
    project_weekly_reviews,
)

router = APIRouter(prefix="/projects/{project_id}/reviews", tags=["reviews"])


@router.post(
    "",
    response_model=WeeklyReview,
    status_code=status.HTTP_201_CREATED,
    summary="Generate a weekly review",
    responses={
        201: {"description": "Review generated, stored and recorded in memory."},
    },
)
def create_review(
    project_id: str,
    payload: Optional[GenerateReviewRequest] = Body(default=None),
    store: SqlKeyValueStore = Depends(get_store),
):
    """
    Summarise the last 7 days: metric totals against the previous week,
    percent deltas, streak, directives completed, consistency, the current
    and prior bottleneck, and 1–3 focus recommendations for next week.

    Reviews are immutable; generating again appends a new one.
    """
    review = generate_weekly_review(
        project_metric_records(store, project_id),
        project_completion_logs(store, project_id),
        project_id,
    )
    add_weekly_review(store, review)

    name = (payload.project_name if payload else None) or project_id
    on_review_generated(MemoryStore(store), review, name)
    return review


@router.get(
    "",
    response_model=WeeklyReviewListResponse,
    summary="List weekly reviews",
)
def list_reviews(project_id: str, store: SqlKeyValueStore = Depends(get_store)):
    reviews = project_weekly_reviews(store, project_id)
    return WeeklyReviewListResponse(total=len(reviews), items=reviews)


@router.get(
    "/{review_id}",
    response_model=WeeklyReview,
    summary="Get a weekly review",
    responses={404: {"description": "No review with this id for the project."}},
)
def get_review(project_id: str, review_id: str, store: SqlKeyValueStore = Depends(get_store)):
    return get_weekly_review(store, project_id, review_id)
