"""
Execution router — directive completions, execution stats, today's directive.

POST /projects/{project_id}/completions      — Log a completed directive
GET  /projects/{project_id}/completions      — List completions
GET  /projects/{project_id}/execution-stats  — Streak, weekly %, consistency, revenue/directive
GET  /projects/{project_id}/directive        — Daily directive for the current focus
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from app.db.kv_store import SqlKeyValueStore, get_store
from app.schemas.execution import (
    CompletionCreateRequest,
    CompletionListResponse,
    DailyDirective,
    DirectiveCompletionLog,
    ExecutionStatsResponse,
    FocusArea,
)
from app.services.bottleneck import diagnose
from app.services.directives import build_daily_directive, focus_for_category
from app.services.execution_stats import ExecutionStats, compute_execution_stats, compute_streak
from app.services.memory_bridge import on_directive_completed
from app.services.memory_store import MemoryStore
from app.services.workspace import (
    add_completion_log,
    project_completion_logs,
    project_metric_records,
)

router = APIRouter(prefix="/projects/{project_id}", tags=["execution"])


def _stats_to_response(project_id: str, s: ExecutionStats) -> ExecutionStatsResponse:
    return ExecutionStatsResponse(
        project_id=project_id,
        streak=s.streak,
        weekly_completion_pct=s.weekly_completion_pct,
        consistency_score=s.consistency_score,
        revenue_per_directive=s.revenue_per_directive,
        last_updated=s.last_updated.isoformat(),
    )


# ---------------------------------------------------------------------------
# POST /projects/{project_id}/completions
# ---------------------------------------------------------------------------

@router.post(
    "/completions",
    response_model=DirectiveCompletionLog,
    status_code=status.HTTP_201_CREATED,
    summary="Log a completed daily directive",
)
def complete_directive(
    project_id: str,
    payload: CompletionCreateRequest,
    store: SqlKeyValueStore = Depends(get_store),
):
    """
    Append a completion to the log. The streak after this completion is
    written to workspace memory together with a `directive_completed` event.
    """
    log = DirectiveCompletionLog(
        directive_id=payload.directive_id,
        project_id=project_id,
        completed_at=payload.completed_at or datetime.now(tz=timezone.utc),
        title=payload.title,
        mode_tag=payload.mode_tag,
    )
    add_completion_log(store, log)

    streak = compute_streak(project_completion_logs(store, project_id), project_id)
    on_directive_completed(MemoryStore(store), log, payload.project_name or project_id, streak)
    return log


# ---------------------------------------------------------------------------
# GET /projects/{project_id}/completions
# ---------------------------------------------------------------------------

@router.get(
    "/completions",
    response_model=CompletionListResponse,
    summary="List directive completions",
)
def list_completions(project_id: str, store: SqlKeyValueStore = Depends(get_store)):
    logs = project_completion_logs(store, project_id)
    return CompletionListResponse(total=len(logs), items=logs)


# ---------------------------------------------------------------------------
# GET /projects/{project_id}/execution-stats
# ---------------------------------------------------------------------------

@router.get(
    "/execution-stats",
    response_model=ExecutionStatsResponse,
    summary="Execution statistics",
)
def execution_stats(project_id: str, store: SqlKeyValueStore = Depends(get_store)):
    """
    - **streak**: consecutive completion days ending today or yesterday.
    - **weekly_completion_pct**: distinct completion days in the last 7 days, as %.
    - **consistency_score**: distinct completion days in the last 14 days, as %.
    - **revenue_per_directive**: total sales / completions; null without
      completions or without sales.
    """
    stats = compute_execution_stats(
        project_metric_records(store, project_id),
        project_completion_logs(store, project_id),
        project_id,
    )
    return _stats_to_response(project_id, stats)


# ---------------------------------------------------------------------------
# GET /projects/{project_id}/directive
# ---------------------------------------------------------------------------

@router.get(
    "/directive",
    response_model=DailyDirective,
    summary="Today's directive",
)
def daily_directive(
    project_id: str,
    focus: Optional[FocusArea] = Query(
        default=None,
        description="Manual focus area. Defaults to the area addressing the current bottleneck.",
    ),
    store: SqlKeyValueStore = Depends(get_store),
):
    """
    Build a daily directive from the template for the focus area. Without an
    explicit `focus` the area is derived from the current diagnosis
    (`leads` while the project cannot be diagnosed yet).
    """
    if focus is None:
        diagnosis = diagnose(project_metric_records(store, project_id))
        focus = focus_for_category(diagnosis.category if diagnosis else None)
    return build_daily_directive(focus)
