# src/agent_monitor/workflows/prompts.py

"""
Prompt templates.

Every template has the same skeleton:
    task context -> conversation history (if any) -> latest request -> instructions
Only the instructions differ between template kinds.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from enum import StrEnum

from ..core.models import Comment, Task

MAX_HISTORY_COMMENTS = 10
MAX_COMMENT_CHARS = 1500


class PromptKind(StrEnum):
    EMAIL = "email"
    COMPANY_RESEARCH = "company_research"
    GENERAL = "general"


_EMAIL_RE = re.compile(r"\b(email|e-mail|draft|reply to|write to|send to)\b")
_RESEARCH_RE = re.compile(r"\b(company|companies|competitor|competitors|market|startup|research)\b")
_DOMAIN_RE = re.compile(r"[a-z0-9-]+\.(?:com|ai|io|co|net|org)\b")


def classify_request(task: Task, comment_text: str | None = None) -> PromptKind:
    """Light keyword classifier choosing the instruction block for the generic assistant."""
    text = f"{task.title} {task.notes} {comment_text or ''}".lower()
    if _EMAIL_RE.search(text):
        return PromptKind.EMAIL
    if _RESEARCH_RE.search(text) and (_DOMAIN_RE.search(text) or "company" in text):
        return PromptKind.COMPANY_RESEARCH
    return PromptKind.GENERAL


EMAIL_INSTRUCTIONS = """\
INSTRUCTIONS:

You are an AI assistant helping to draft emails.

1. DRAFTING:
   - Write clear, professional emails based on the task context.
   - Pay attention to tone and audience.

2. OUTPUT REQUIREMENT:
   - You MUST include the full text of the email (Subject, To, Body) in your response.
   - Do NOT just say 'I drafted the email'. Show the draft so the user can review it.
"""

COMPANY_RESEARCH_INSTRUCTIONS = """\
INSTRUCTIONS:

You are an AI research assistant.

1. RESEARCH:
   - Analyze the companies or markets mentioned.
   - Provide key metrics, business model, and competitive landscape.
   - Use your internal knowledge to provide insights.

2. OUTPUT:
   - Provide a clear, structured summary.
"""

GENERAL_INSTRUCTIONS = """\
INSTRUCTIONS:

You are a helpful assistant working through a task list.
Answer the latest request directly and completely, using the task context and
conversation history. If something is ambiguous, state your assumption and continue.
Plain text only: no markdown headings or tables.
"""

_INSTRUCTIONS: dict[PromptKind, str] = {
    PromptKind.EMAIL: EMAIL_INSTRUCTIONS,
    PromptKind.COMPANY_RESEARCH: COMPANY_RESEARCH_INSTRUCTIONS,
    PromptKind.GENERAL: GENERAL_INSTRUCTIONS,
}


def _task_context(task: Task) -> str:
    parts = [f"TASK: {task.title.strip() or '(untitled)'}"]
    if task.notes.strip():
        parts.append(f"DETAILS:\n{task.notes.strip()}")
    return "\n\n".join(parts)


def _conversation_history(comments: Sequence[Comment]) -> str:
    recent = list(comments)[-MAX_HISTORY_COMMENTS:]
    lines = ["CONVERSATION HISTORY (oldest first):"]
    for c in recent:
        text = c.text.strip()
        if len(text) > MAX_COMMENT_CHARS:
            text = text[:MAX_COMMENT_CHARS] + " ...(truncated)"
        lines.append(f"- {c.author_name or 'unknown'}: {text}")
    return "\n".join(lines)


def _latest_request(task: Task, comment_text: str | None, from_comment: bool) -> str:
    if from_comment and comment_text:
        return f"LATEST REQUEST (comment):\n{comment_text.strip()}"
    return f"LATEST REQUEST:\n{(task.notes or task.title).strip()}"


def build_prompt(
    kind: PromptKind,
    task: Task,
    *,
    comments: Sequence[Comment] = (),
    comment_text: str | None = None,
    from_comment: bool = False,
) -> str:
    parts = [_task_context(task)]
    if comments:
        parts.append(_conversation_history(comments))
    parts.append(_latest_request(task, comment_text, from_comment))
    parts.append(_INSTRUCTIONS[kind])
    return "\n\n".join(parts).strip()


def article_summary_prompt(title: str, url: str, content: str) -> str:
    return f"""\
You are an intelligent research assistant.

Article Title: {title}
URL: {url}

Please provide:
1. A concise 3-5 sentence summary
2. 5-7 key takeaways or insights (bullet points)
3. Why this matters (1-2 sentences)

Article content:
{content}
"""


def search_prompt(query: str) -> str:
    return f"""\
You are a helpful research assistant. Please answer this search query with accurate, up-to-date information:

{query}

Provide a comprehensive response with:
1. Direct answer to the query
2. Specific recommendations (if applicable)
3. Key details and comparisons
4. Source references or reasoning

Be specific and actionable. If this is a product search, include specific product names, prices, and why you recommend them.
"""
