"""
Memory tagger — keyword tags and the admission filter for memory writes.

Rules:
- Deterministic substring matching on lower-cased text; no NLP.
- Tags come out in declaration order of TAG_KEYWORDS, at most 5.
- Text that matches nothing is tagged [ops].
"""
from __future__ import annotations

from app.schemas.memory import MAX_CHUNK_TAGS, MemorySourceType, MemoryTag


TAG_KEYWORDS: dict[MemoryTag, tuple[str, ...]] = {
    MemoryTag.brand:     ("brand", "logo", "identity", "voice", "tone", "style", "design"),
    MemoryTag.offer:     ("offer", "package", "service", "product", "bundle", "deal"),
    MemoryTag.pricing:   ("price", "pricing", "cost", "fee", "rate", "discount", "payment"),
    MemoryTag.audience:  ("audience", "customer", "client", "target", "demographic", "persona", "avatar"),
    MemoryTag.objection: ("objection", "concern", "hesitation", "pushback", "worry", "doubt", "complaint"),
    MemoryTag.creative:  ("creative", "copy", "script", "video", "post", "content", "caption", "ad"),
    MemoryTag.channel:   ("channel", "platform", "instagram", "facebook", "tiktok", "youtube", "google", "email"),
    MemoryTag.ops:       ("operations", "process", "workflow", "system", "automate", "delegate", "sop"),
    MemoryTag.kpi:       ("kpi", "metric", "views", "clicks", "sales", "conversion", "rate", "revenue"),
    MemoryTag.milestone: ("milestone", "goal", "achieve", "reached", "hit", "target", "complete"),
    MemoryTag.decision:  ("decide", "decision", "chose", "pivot", "switch", "change", "strategy"),
    MemoryTag.approval:  ("approve", "approval", "confirm", "go-ahead", "sign off", "launch"),
    MemoryTag.sales:     ("sale", "sales", "close", "deal", "revenue", "income", "profit", "lead"),
    MemoryTag.web:       ("website", "landing page", "funnel", "page", "seo", "web"),
    MemoryTag.seo:       ("seo", "search", "rank", "keyword", "organic", "google"),
    MemoryTag.gmb:       ("gmb", "google business", "google maps", "local listing", "reviews"),
}

# Sources that are always worth remembering, regardless of wording.
STRUCTURAL_SOURCES = frozenset({
    MemorySourceType.metric_log,
    MemorySourceType.asset_created,
    MemorySourceType.directive_completed,
    MemorySourceType.decision,
    MemorySourceType.approval,
    MemorySourceType.profile_update,
    MemorySourceType.manual,
})

DECISION_PHRASES = (
    "decided", "going with", "approved", "confirmed", "launched",
    "let's go with", "we'll do", "save this", "remember",
)
MILESTONE_PHRASES = (
    "first sale", "milestone", "reached", "hit our", "new record", "breakthrough",
)
OBJECTION_PHRASES = (
    "objection", "keeps saying", "common pushback", "they always ask", "concern about",
)


def infer_tags(text: str) -> list[MemoryTag]:
    lowered = text.lower()
    tags = [
        tag for tag, keywords in TAG_KEYWORDS.items()
        if any(k in lowered for k in keywords)
    ]
    return tags[:MAX_CHUNK_TAGS] if tags else [MemoryTag.ops]


def should_write_memory(text: str, source_type: MemorySourceType) -> bool:
    if source_type in STRUCTURAL_SOURCES:
        return True
    lowered = text.lower()
    return any(
        p in lowered for p in DECISION_PHRASES + MILESTONE_PHRASES + OBJECTION_PHRASES
    )
