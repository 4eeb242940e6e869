# src/agent_monitor/monitor/signatures.py

"""
Recognising the agent's own comments.

The tracker shows every comment under the same API user, so the agent's replies are
identified by how they look: a leading status emoji, a provider response header, or
one of a few fixed error phrases.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from ..core.models import Comment

AGENT_PREFIXES: tuple[str, ...] = (
    "✅",
    "❌",
    "🤖",
    "⚠️",
    "🔄",
    "📧",
    "Gemini Code Response:",
    "Claude Code Response:",
)

AGENT_MARKERS: tuple[str, ...] = (
    "Workflow failed",
    "Agent error",
    "GEPA Multi-Step Execution",
)

AGENT_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"━━━ Step \d+"),
    re.compile(r"Step \d+/\d+ : "),
)

ERROR_MARKERS: tuple[str, ...] = ("❌", "Workflow failed", "Agent error", "Error:")

RETRY_KEYWORDS: tuple[str, ...] = ("retry", "again", "redo", "rerun", "re-run", "try again")

FOLLOWUP_KEYWORDS: tuple[str, ...] = (
    "show",
    "can you",
    "could you",
    "would you",
    "please",
    "what",
    "where",
    "how",
    "why",
    "explain",
    "clarify",
    "tell me",
    "give me",
    "provide",
    "display",
)

_EMAIL_HINT_RE = re.compile(r"(Subject:|To:|From:|Dear |Hi |Hello )", re.IGNORECASE)
_STEP_EMAIL_RE = re.compile(r"━━━ Step \d+ : Email Draft ━━━\n(.*?)(?=\n━━━|\Z)", re.DOTALL)
_STEP_RESULT_RE = re.compile(r"━━━ Step \d+ Result ━━━\n(.*?)(?=\n━━━|\Z)", re.DOTALL)
_CODE_RESPONSE_RE = re.compile(r"Code Response:\n\n(.*)", re.DOTALL)
_EMAIL_DRAFT_RE = re.compile(r"📧 Email Draft[^\n]*:\n\n(.*)", re.DOTALL)


def is_agent_generated(text: str) -> bool:
    stripped = (text or "").strip()
    if stripped.startswith(AGENT_PREFIXES):
        return True
    if any(marker in stripped for marker in AGENT_MARKERS):
        return True
    return any(p.search(stripped) for p in AGENT_PATTERNS)


def is_error_response(text: str) -> bool:
    return any(marker in (text or "") for marker in ERROR_MARKERS)


def latest_agent_reply(comments: Sequence[Comment]) -> Comment | None:
    for comment in reversed(comments):
        if is_agent_generated(comment.text):
            return comment
    return None


def has_successful_response(comments: Sequence[Comment]) -> bool:
    """True when the most recent agent reply exists and is not an error."""
    reply = latest_agent_reply(comments)
    return reply is not None and not is_error_response(reply.text)


def asks_for_retry(text: str) -> bool:
    lowered = (text or "").lower()
    return any(k in lowered for k in RETRY_KEYWORDS)


def asks_followup(text: str) -> bool:
    lowered = (text or "").lower()
    return "?" in (text or "") or any(k in lowered for k in FOLLOWUP_KEYWORDS)


def asks_for_email_draft(text: str) -> bool:
    lowered = (text or "").lower()
    return "show" in lowered and ("email" in lowered or "draft" in lowered)


def extract_email_draft(comments: Sequence[Comment]) -> str | None:
    """Latest email draft found in the agent's own replies, newest first."""
    for comment in reversed(comments):
        text = comment.text or ""
        if not is_agent_generated(text):
            continue

        m = _EMAIL_DRAFT_RE.search(text)
        if m and m.group(1).strip():
            return m.group(1).strip()

        lowered = text.lower()
        if "━━━" in text and ("email" in lowered or "draft" in lowered):
            m = _STEP_EMAIL_RE.search(text)
            if m:
                return m.group(1).strip()
            for m in _STEP_RESULT_RE.finditer(text):
                if _EMAIL_HINT_RE.search(m.group(1)):
                    return m.group(1).strip()

        if "Code Response:" in text and _EMAIL_HINT_RE.search(text):
            m = _CODE_RESPONSE_RE.search(text)
            if m:
                return m.group(1).strip()

    return None
