"""
Daily directives — template table, bottleneck → focus mapping, advisor parsing.

Public API
----------
focus_for_category(category)            -> FocusArea
build_daily_directive(focus, now)       -> DailyDirective    (unknown focus → leads)
extract_directive_from_response(text)   -> AdvisorDirective | None
"""
from __future__ import annotations

import re
import uuid
from datetime import datetime, timezone
from typing import Optional, Union

from app.schemas.advisor import AdvisorDirective
from app.schemas.execution import DailyDirective, DirectiveStep, FocusArea
from app.schemas.metrics import BottleneckCategory


DEFAULT_FOCUS = FocusArea.leads
DEFAULT_ADVISOR_REASON = "Based on Skyforge analysis of your current situation."
DEFAULT_ESTIMATED_TIME = "20-30 minutes"
MAX_TITLE_LEN = 100
MAX_DESCRIPTION_LEN = 200


_CATEGORY_FOCUS: dict[BottleneckCategory, FocusArea] = {
    BottleneckCategory.traffic: FocusArea.leads,
    BottleneckCategory.conversion: FocusArea.conversion,
    BottleneckCategory.pricing: FocusArea.pricing,
    BottleneckCategory.follow_up: FocusArea.outreach,
    BottleneckCategory.operations: FocusArea.fulfillment,
}


# ---------------------------------------------------------------------------
# Template table
# ---------------------------------------------------------------------------

_TEMPLATES: dict[FocusArea, dict] = {
    FocusArea.leads: {
        "title": "Record 1 short-form video addressing a pain point",
        "description": "Create a 30-60 second video that speaks directly to your ideal customer's "
                       "biggest frustration. Use a hook that grabs attention in the first 3 seconds.",
        "reason": "Your main bottleneck is lead generation. This task directly increases your "
                  "visibility and attracts potential customers.",
        "estimated_time": "20-30 minutes",
        "objective": "Generate new inbound leads through short-form content",
        "steps": ["Pick a customer pain point", "Write a 3-second hook", "Record and post the video"],
        "timebox_minutes": 25,
        "success_metric": "1 video published",
    },
    FocusArea.content: {
        "title": "Write and schedule 3 social posts",
        "description": "Create 3 value-driven posts: 1 educational tip, 1 customer success story, "
                       "and 1 behind-the-scenes look.",
        "reason": "Consistent content builds trust and keeps you top-of-mind with your audience.",
        "estimated_time": "30-45 minutes",
        "objective": "Build consistent content pipeline",
        "steps": [
            "Draft educational tip post",
            "Draft success story post",
            "Draft behind-the-scenes post",
            "Schedule all 3",
        ],
        "timebox_minutes": 40,
        "success_metric": "3 posts scheduled",
    },
    FocusArea.outreach: {
        "title": "Send 10 personalized DMs to potential clients",
        "description": "Identify 10 people who fit your ideal customer profile and send them a "
                       "genuine, non-salesy message.",
        "reason": "Direct outreach is the fastest path to new conversations and opportunities.",
        "estimated_time": "30-40 minutes",
        "objective": "Start 10 new prospect conversations",
        "steps": ["Identify 10 prospects", "Personalize each message", "Send all 10 DMs"],
        "timebox_minutes": 35,
        "success_metric": "10 DMs sent",
    },
    FocusArea.offer: {
        "title": "Refine your core offer statement",
        "description": "Write out: Who you help, what specific result you deliver, and why you're "
                       "the best choice.",
        "reason": "A clear, compelling offer is the foundation of all your marketing.",
        "estimated_time": "20-30 minutes",
        "objective": "Sharpen offer clarity and positioning",
        "steps": [
            "Define target customer in one sentence",
            "State the result you deliver",
            "Add your unique differentiator",
        ],
        "timebox_minutes": 25,
        "success_metric": "Offer statement written",
    },
    FocusArea.pricing: {
        "title": "Review and test a new pricing angle",
        "description": "Consider: package deals, payment plans, or value-based pricing. Pick one "
                       "and draft a new pricing option.",
        "reason": "Pricing directly impacts your revenue. Small changes can lead to significant gains.",
        "estimated_time": "15-25 minutes",
        "objective": "Test a pricing variation to increase conversion",
        "steps": ["Review current pricing", "Draft one new pricing option", "Prepare to A/B test"],
        "timebox_minutes": 20,
        "success_metric": "New pricing option drafted",
    },
    FocusArea.conversion: {
        "title": "Optimize your booking or checkout flow",
        "description": "Walk through your own process as a customer. Identify and remove any "
                       "friction points.",
        "reason": "You're getting traffic but losing people at the conversion step.",
        "estimated_time": "25-35 minutes",
        "objective": "Reduce friction in the conversion funnel",
        "steps": [
            "Walk through your funnel as a customer",
            "Identify 3 friction points",
            "Fix at least 1",
        ],
        "timebox_minutes": 30,
        "success_metric": "1 friction point eliminated",
    },
    FocusArea.fulfillment: {
        "title": "Document one key process in your delivery",
        "description": "Pick one recurring task in how you serve clients and write out the exact steps.",
        "reason": "Systematizing your delivery frees up time and ensures consistent quality.",
        "estimated_time": "20-30 minutes",
        "objective": "Create one repeatable SOP",
        "steps": ["Pick a recurring task", "Write step-by-step instructions", "Save the document"],
        "timebox_minutes": 25,
        "success_metric": "1 SOP documented",
    },
    FocusArea.audience_building: {
        "title": "Engage with 20 posts in your niche",
        "description": "Find 20 posts from people in your industry or your ideal customers. "
                       "Leave thoughtful comments.",
        "reason": "Building an audience starts with genuine engagement.",
        "estimated_time": "25-35 minutes",
        "objective": "Increase organic visibility through engagement",
        "steps": ["Find 20 relevant posts", "Leave thoughtful comments on each"],
        "timebox_minutes": 30,
        "success_metric": "20 comments posted",
    },
    FocusArea.brand_expansion: {
        "title": "Reach out to 3 potential collaboration partners",
        "description": "Identify 3 complementary businesses or creators. Send a message proposing "
                       "mutual benefit.",
        "reason": "Partnerships accelerate growth by tapping into established audiences.",
        "estimated_time": "20-30 minutes",
        "objective": "Initiate 3 partnership conversations",
        "steps": [
            "Identify 3 complementary businesses",
            "Craft personalized outreach for each",
            "Send all 3 messages",
        ],
        "timebox_minutes": 25,
        "success_metric": "3 partnership messages sent",
    },
    FocusArea.sales: {
        "title": "Follow up with 5 warm leads",
        "description": "Reach out to people who showed interest but haven't bought. Ask about "
                       "their situation.",
        "reason": "Most sales happen after multiple touchpoints. Following up closes deals.",
        "estimated_time": "20-30 minutes",
        "objective": "Re-engage warm leads and close deals",
        "steps": ["List 5 warm leads", "Personalize follow-up for each", "Send all follow-ups"],
        "timebox_minutes": 25,
        "success_metric": "5 follow-ups sent",
    },
    FocusArea.systems: {
        "title": "Automate or delegate one repetitive task",
        "description": "Identify something you do repeatedly each week. Set up an automation or "
                       "document it for delegation.",
        "reason": "Every task you automate or delegate gives you more time for high-impact work.",
        "estimated_time": "30-45 minutes",
        "objective": "Free up time by systematizing one task",
        "steps": [
            "Identify a repetitive weekly task",
            "Choose: automate or delegate",
            "Set up the automation or write the delegation doc",
        ],
        "timebox_minutes": 40,
        "success_metric": "1 task automated or delegated",
    },
}


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


def _to_focus(focus: Union[FocusArea, str, None]) -> FocusArea:
    if isinstance(focus, FocusArea):
        return focus
    try:
        return FocusArea(focus)
    except ValueError:
        return DEFAULT_FOCUS


# ---------------------------------------------------------------------------
# Public
# ---------------------------------------------------------------------------

def focus_for_category(category: Optional[BottleneckCategory]) -> FocusArea:
    """Focus area that addresses a bottleneck; leads while nothing is diagnosed."""
    if category is None:
        return DEFAULT_FOCUS
    return _CATEGORY_FOCUS[category]


def template_for(focus: Union[FocusArea, str, None]) -> dict:
    return _TEMPLATES[_to_focus(focus)]


def build_daily_directive(
    focus: Union[FocusArea, str, None],
    now: Optional[datetime] = None,
) -> DailyDirective:
    area = _to_focus(focus)
    tpl = _TEMPLATES[area]
    return DailyDirective(
        id=uuid.uuid4().hex,
        title=tpl["title"],
        description=tpl["description"],
        reason=tpl["reason"],
        estimated_time=tpl["estimated_time"],
        objective=tpl["objective"],
        steps=[DirectiveStep(order=i, action=a) for i, a in enumerate(tpl["steps"], start=1)],
        timebox_minutes=tpl["timebox_minutes"],
        success_metric=tpl["success_metric"],
        mode_tag=area.value,
        created_at=now or _now(),
    )


# ---------------------------------------------------------------------------
# Advisor response parsing
# ---------------------------------------------------------------------------

_TITLE_MARKERS = ("task:", "action:", "do this:")
_REASON_MARKERS = ("why:", "reason:")
_TITLE_PREFIX_RE = re.compile(r"^(task:|action:|do this:)", re.IGNORECASE)
_REASON_PREFIX_RE = re.compile(r"^(why:|reason:)", re.IGNORECASE)
_SENTENCE_END_RE = re.compile(r"[.!?]")


def extract_directive_from_response(
    text: str,
    now: Optional[datetime] = None,
) -> Optional[AdvisorDirective]:
    """
    Best-effort: pull a one-line task out of a free-form advisor reply.

    A line mentioning task:/action:/do this: becomes the title (the last
    such line wins); why:/reason: lines become the reason. Without a marker
    the first sentence is used if it is short enough. Returns None when no
    title can be found.
    """
    title = ""
    reason = ""
    for raw in text.split("\n"):
        line = raw.strip()
        lowered = line.lower()
        if any(m in lowered for m in _TITLE_MARKERS):
            title = _TITLE_PREFIX_RE.sub("", line).strip()
        elif any(m in lowered for m in _REASON_MARKERS):
            reason = _REASON_PREFIX_RE.sub("", line).strip()

    if not title:
        first_sentence = _SENTENCE_END_RE.split(text, maxsplit=1)[0]
        if len(first_sentence) < MAX_TITLE_LEN:
            title = first_sentence.strip()

    if not title:
        return None

    description = text[:MAX_DESCRIPTION_LEN].strip()
    if len(text) > MAX_DESCRIPTION_LEN:
        description += "..."

    return AdvisorDirective(
        id=uuid.uuid4().hex,
        title=title[:MAX_TITLE_LEN],
        description=description,
        reason=reason or DEFAULT_ADVISOR_REASON,
        estimated_time=DEFAULT_ESTIMATED_TIME,
        created_at=now or _now(),
    )
