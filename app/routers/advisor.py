"""
Advisor router — prompt assembly and response parsing. The text
generator itself is external and not called from here.

POST /advisor/extract-directive             — Pull a task out of an advisor reply
POST /projects/{project_id}/advisor/prompt  — Build the advisor system prompt
"""
from __future__ import annotations

from fastapi import APIRouter, Depends

from app.core.errors import DirectiveNotFoundError
from app.db.kv_store import SqlKeyValueStore, get_store
from app.schemas.advisor import (
    AdvisorDirective,
    ExtractDirectiveRequest,
    PromptRequest,
    PromptResponse,
)
from app.services.advisor import build_advisor_prompt
from app.services.directives import extract_directive_from_response
from app.services.memory_store import MemoryStore
from app.services.workspace import project_metric_records

router = APIRouter(tags=["advisor"])


@router.post(
    "/advisor/extract-directive",
    response_model=AdvisorDirective,
    summary="Extract a directive from an advisor response",
    responses={422: {"description": "Nothing task-like found in the text."}},
)
def extract_directive(payload: ExtractDirectiveRequest):
    """
    Lines containing `task:`, `action:` or `do this:` become the title;
    `why:` / `reason:` lines become the reason. Without a marker the first
    sentence is used when it is shorter than 100 characters.
    """
    directive = extract_directive_from_response(payload.text)
    if directive is None:
        raise DirectiveNotFoundError()
    return directive


@router.post(
    "/projects/{project_id}/advisor/prompt",
    response_model=PromptResponse,
    summary="Build the advisor system prompt",
)
def advisor_prompt(
    project_id: str,
    payload: PromptRequest,
    store: SqlKeyValueStore = Depends(get_store),
):
    """
    Business context, the last five metric records, the memory retrieved
    for `query`, and the advisor's standing directives, as one prompt.
    """
    prompt = build_advisor_prompt(
        MemoryStore(store),
        payload.profile,
        project_metric_records(store, project_id),
        project_id,
        payload.query,
    )
    return PromptResponse(project_id=project_id, prompt=prompt)
