"""
Advisor orchestration.

One consultation:
  1. retrieve project memory relevant to the user message
  2. build the system prompt (business context, recent metrics, memory)
  3. call the text generator (any Callable[[str], str]; errors propagate)
  4. store the memories the exchange earns
  5. extract a task-like directive from the reply, if there is one
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Optional, Sequence

from app.schemas.advisor import AdvisorDirective, BusinessProfile
from app.schemas.memory import MemoryChunk
from app.schemas.metrics import MetricRecord
from app.services.bottleneck import diagnose
from app.services.directives import extract_directive_from_response
from app.services.memory_store import MemoryStore
from app.services.memory_writers import extract_advisor_memories
from app.services.prompt_context import build_system_prompt

logger = logging.getLogger(__name__)

TextGenerator = Callable[[str], str]


@dataclass
class AdvisorReply:
    prompt: str
    reply: str
    directive: Optional[AdvisorDirective]
    memories: list[MemoryChunk] = field(default_factory=list)


def build_advisor_prompt(
    memory: MemoryStore,
    profile: BusinessProfile,
    records: Sequence[MetricRecord],
    project_id: str,
    query: str,
    today: Optional[date] = None,
) -> str:
    diagnosis = diagnose(records, today=today)
    return build_system_prompt(
        profile,
        records,
        memory_context=memory.formatted_context(project_id, query),
        bottleneck=diagnosis.category if diagnosis else None,
    )


def consult_advisor(
    generate: TextGenerator,
    memory: MemoryStore,
    profile: BusinessProfile,
    records: Sequence[MetricRecord],
    project_id: str,
    message: str,
    today: Optional[date] = None,
) -> AdvisorReply:
    system_prompt = build_advisor_prompt(memory, profile, records, project_id, message, today)
    prompt = f"{system_prompt}\n\n=== USER MESSAGE ===\n{message}"

    reply = generate(prompt)

    writes = extract_advisor_memories(reply, message, profile.name)
    stored = memory.write_chunks(project_id, writes)
    directive = extract_directive_from_response(reply)
    logger.info(
        "Advisor consulted for project %s: %d memories stored, directive=%s",
        project_id, len(stored), directive is not None,
    )
    return AdvisorReply(prompt=prompt, reply=reply, directive=directive, memories=stored)
