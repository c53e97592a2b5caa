"""
Metrics router — daily funnel counts and bottleneck diagnosis.

POST /projects/{project_id}/metrics          — Log one day of counts
GET  /projects/{project_id}/metrics          — List the project's records (oldest first)
GET  /projects/{project_id}/metrics/summary  — Recent vs prior 7-day totals
GET  /projects/{project_id}/diagnosis        — Current bottleneck (null until 2 records)
"""
from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status

from app.db.kv_store import SqlKeyValueStore, get_store
from app.schemas.metrics import (
    BottleneckDiagnosisResponse,
    DiagnosisResponse,
    MetricCreateRequest,
    MetricListResponse,
    MetricRecord,
    MetricsSnapshotResponse,
    MetricsSummaryResponse,
)
from app.services.bottleneck import BottleneckDiagnosis, diagnose
from app.services.memory_bridge import on_bottleneck_evaluated, on_metric_logged
from app.services.memory_store import MemoryStore
from app.services.metrics_aggregator import MetricsSnapshot, aggregate_period
from app.services.workspace import add_metric_record, project_metric_records

router = APIRouter(prefix="/projects/{project_id}", tags=["metrics"])


# ---------------------------------------------------------------------------
# Serialization helpers
# ---------------------------------------------------------------------------

def _snapshot_to_response(s: MetricsSnapshot) -> MetricsSnapshotResponse:
    return MetricsSnapshotResponse(period_label=s.period_label, **s.as_dict())


def _diagnosis_to_response(d: BottleneckDiagnosis) -> BottleneckDiagnosisResponse:
    return BottleneckDiagnosisResponse(
        category=d.category,
        confidence=d.confidence,
        reasoning=d.reasoning,
        diagnosed_at=d.diagnosed_at.isoformat(),
    )


# ---------------------------------------------------------------------------
# POST /projects/{project_id}/metrics
# ---------------------------------------------------------------------------

@router.post(
    "/metrics",
    response_model=MetricRecord,
    status_code=status.HTTP_201_CREATED,
    summary="Log one day of funnel metrics",
    responses={
        201: {"description": "Record stored; memory and bottleneck change recorded."},
        422: {"description": "Validation error (e.g. negative count)."},
    },
)
def log_metrics(
    project_id: str,
    payload: MetricCreateRequest,
    store: SqlKeyValueStore = Depends(get_store),
):
    """
    Store one day of views, clicks, messages, calls and sales.

    Side effects:
    - a `metric_log` memory chunk and a `metric_logged` event are written;
    - the bottleneck is re-diagnosed and, if its category changed since the
      last recorded change, a `bottleneck_changed` event is logged.
    """
    record = MetricRecord(
        project_id=project_id,
        date=payload.date or datetime.now(tz=timezone.utc).date(),
        views=payload.views,
        clicks=payload.clicks,
        messages=payload.messages,
        calls=payload.calls,
        sales=payload.sales,
        notes=payload.notes,
    )
    add_metric_record(store, record)

    name = payload.project_name or project_id
    memory = MemoryStore(store)
    on_metric_logged(memory, record, name)
    diagnosis = diagnose(project_metric_records(store, project_id))
    on_bottleneck_evaluated(memory, project_id, name, diagnosis)
    return record


# ---------------------------------------------------------------------------
# GET /projects/{project_id}/metrics
# ---------------------------------------------------------------------------

@router.get(
    "/metrics",
    response_model=MetricListResponse,
    summary="List metric records",
)
def list_metrics(project_id: str, store: SqlKeyValueStore = Depends(get_store)):
    records = project_metric_records(store, project_id)
    return MetricListResponse(total=len(records), items=records)


# ---------------------------------------------------------------------------
# GET /projects/{project_id}/metrics/summary
# ---------------------------------------------------------------------------

@router.get(
    "/metrics/summary",
    response_model=MetricsSummaryResponse,
    summary="Recent and prior 7-day totals",
)
def metrics_summary(project_id: str, store: SqlKeyValueStore = Depends(get_store)):
    """
    Element-wise totals for the windows used by the diagnoser:
    **recent** = 0–7 days ago, **prior** = 7–14 days ago (both inclusive,
    by calendar day in UTC).
    """
    records = project_metric_records(store, project_id)
    return MetricsSummaryResponse(
        recent=_snapshot_to_response(aggregate_period(records, 0, 7)),
        prior=_snapshot_to_response(aggregate_period(records, 7, 14)),
    )


# ---------------------------------------------------------------------------
# GET /projects/{project_id}/diagnosis
# ---------------------------------------------------------------------------

@router.get(
    "/diagnosis",
    response_model=DiagnosisResponse,
    summary="Diagnose the current bottleneck",
    responses={
        200: {"description": "Diagnosis, or null while fewer than 2 records exist."},
    },
)
def get_diagnosis(project_id: str, store: SqlKeyValueStore = Depends(get_store)):
    """
    Compare the recent and prior 7-day windows and name the weakest funnel
    stage: `traffic`, `conversion`, `pricing`, `follow-up` or `operations`.

    Confidence is capped at 95. With no data in either window the result is
    `traffic` at 90; with data but no clear signal it is a low-confidence
    default (50 or 45). Recomputed on every call.
    """
    diagnosis = diagnose(project_metric_records(store, project_id))
    return DiagnosisResponse(
        project_id=project_id,
        diagnosis=_diagnosis_to_response(diagnosis) if diagnosis else None,
    )
