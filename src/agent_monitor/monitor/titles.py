# src/agent_monitor/monitor/titles.py

"""
Task title rewriting.

After a task is handled its title may be replaced with something more descriptive.
Only generic, short (< 50 chars) or failed titles are touched. Everything here is a
pure text transform except the optional LLM title, whose failures yield None.
"""

from __future__ import annotations

import logging
import re

from ..core.models import LLMResult, Task, WorkflowResult
from ..core.ports import LanguageModelClient
from ..workflows.text import strip_markdown

logger = logging.getLogger(__name__)

MAX_TITLE_CHARS = 121
MIN_REWRITE_CHARS = 50
FAILED = "❌"
TIMEOUT = "⏱️"

_GENERIC_TITLES = frozenset(
    {"task", "todo", "new task", "untitled", "research", "draft", "email", "write", "create", "update"}
)

_URL_RE = re.compile(r"https?://\S+")
_URL_DOMAIN_RE = re.compile(r"https?://(?:www\.)?([^/\s]+)")
_DOMAIN_RE = re.compile(r"([a-z0-9.-]+\.(?:com|io|ai|co|net|org))", re.IGNORECASE)
_EMAIL_ADDR_RE = re.compile(r"([a-z0-9._%+-]+@[a-z0-9.-]+\.[a-z]{2,})", re.IGNORECASE)
_AGENT_EMOJI_RE = re.compile("[🤖✅❌⚠️🔄📧]")
_AGENT_LINE_RE = re.compile(r"^[🤖✅❌⚠🔄📧]")


def is_generic_title(title: str) -> bool:
    return (title or "").strip().lower() in _GENERIC_TITLES


def clean_title(title: str) -> str:
    out = _URL_RE.sub("", title or "")
    out = strip_markdown(out)
    out = re.sub(r"^#{1,6}\s+", "", out)
    out = _AGENT_EMOJI_RE.sub("", out)
    return re.sub(r"\s+", " ", out).strip()


def _person_from_address(address: str) -> str:
    local = address.split("@", 1)[0]
    return " ".join(part.capitalize() for part in re.split(r"[._]", local) if part)


def first_meaningful_phrase(text: str) -> str:
    if not text or not text.strip():
        return "Task"
    lines = [ln.strip() for ln in _URL_RE.sub("", text).splitlines() if ln.strip()]
    if not lines:
        return "Task"
    first_line = lines[0]
    sentence = re.split(r"[.!?]", first_line)[0].strip()
    return (sentence or first_line)[:61]


def partial_progress(comment: str) -> str | None:
    if not comment or not comment.strip():
        return None
    m = re.search(r"Completed (\d+)/(\d+) steps", comment)
    if m and int(m.group(1)) > 0:
        return f"{m.group(1)}/{m.group(2)} steps"
    steps = re.findall(r"✅ Step (\d+)", comment)
    if steps:
        return f"through step {steps[-1]}"
    return None


def context_from_notes(notes: str) -> str | None:
    if not notes or not notes.strip():
        return None

    m = _DOMAIN_RE.search(notes)
    if m:
        domain = m.group(1)
        action = re.search(
            r"(research|analyze|review|find|check|add|create|update)\s+.*?" + re.escape(domain),
            notes,
            re.IGNORECASE,
        )
        if action:
            return f"{action.group(1).capitalize()} {domain}"
        return domain

    m = _EMAIL_ADDR_RE.search(notes)
    if m:
        name = _person_from_address(m.group(1))
        return f"Email to {name}" if name else f"Email to {m.group(1)}"

    m = _URL_DOMAIN_RE.search(notes)
    if m:
        return f"Article from {m.group(1)}"

    for line in notes.splitlines():
        line = line.strip()
        if 10 <= len(line) <= 100:
            return line
    return None


def title_from_workflow(notes: str, comment: str) -> str | None:
    m = re.search(r"research\s+([a-z0-9.-]+\.[a-z]{2,})", notes, re.IGNORECASE) or re.search(
        r"research.*?([a-z0-9.-]+\.[a-z]{2,})", comment, re.IGNORECASE
    )
    if m:
        return f"Research : {m.group(1)}"

    m = re.search(r"company.*?([a-z0-9.-]+\.[a-z]{2,})", comment, re.IGNORECASE)
    if m:
        return f"Company Review : {m.group(1)}"

    m = re.search(r"Subject:\s*(.+?)(?:\n|$)", comment)
    if m and len(m.group(1).strip()) > 5:
        return f"Email : {m.group(1).strip()}"

    m = re.search(r"(?:email|write to|send to)\s+" + _EMAIL_ADDR_RE.pattern, notes, re.IGNORECASE)
    if m:
        return f"Email to {_person_from_address(m.group(1))}"

    m = _URL_DOMAIN_RE.search(notes)
    if m:
        return f"Summary : {m.group(1)}"

    m = re.search(r"\bsearch\s+(?:for\s+)?[\"']?(.{10,50})[\"']?", notes, re.IGNORECASE)
    if m:
        return f"Search : {m.group(1).strip()}"

    if len(notes) > 20:
        sentence = re.split(r"[.!?]", notes)[0].strip()
        if 15 < len(sentence) < 100:
            return sentence
    return None


def _failure_title(task: Task, result: WorkflowResult) -> str:
    current = task.title.strip()
    notes = task.notes.strip()
    context = context_from_notes(notes)
    usable_current = len(current) > 15 and not is_generic_title(current)

    if "timeout" in (result.error or "").lower():
        progress = partial_progress(result.comment)
        if progress and len(progress) >= 10:
            return f"{TIMEOUT} Timeout ({progress})"
        if context and len(context) >= 10:
            return f"{TIMEOUT} Timeout : {context}"
        if usable_current:
            return f"{TIMEOUT} Timeout : {current}"
        return f"{TIMEOUT} Workflow timeout : {first_meaningful_phrase(notes)}"

    if context and len(context) >= 10:
        return f"{FAILED} {context}"
    if usable_current:
        return f"{FAILED} Failed : {current}"
    return f"{FAILED} Failed : {first_meaningful_phrase(notes)}"


def ai_title(llm: LanguageModelClient | None, task: Task, result: WorkflowResult) -> str | None:
    if llm is None:
        return None
    prompt = (
        "Generate a concise task title (max 10 words) for this task based on its context "
        "and processing result.\n\n"
        f"Task Name: {task.title}\n"
        f"Task Notes: {task.notes[:500]}\n"
        f"Processing Result: {'Success' if result.success else 'Failure'}\n"
        f"Result Summary: {result.comment[:500]}\n\n"
        "Output ONLY the title."
    )
    try:
        response: LLMResult = llm.complete(prompt)
    except Exception:
        logger.warning("AI title generation failed task_id=%s", task.id, exc_info=True)
        return None
    if not response.success:
        return None
    return response.text.strip() or None


def generate_descriptive_title(
    task: Task,
    result: WorkflowResult,
    llm: LanguageModelClient | None = None,
) -> str | None:
    """New title for the task, or None when the current one should stay."""
    current = task.title.strip()
    if result.success and not is_generic_title(current) and len(current) >= MIN_REWRITE_CHARS:
        return None

    notes = task.notes.strip()

    extracted = title_from_workflow(notes, result.comment or "")
    if extracted and len(extracted) >= 10:
        title = clean_title(extracted)
        if not result.success and not title.startswith((FAILED, TIMEOUT)):
            title = f"{FAILED} {title}"
        return title[:MAX_TITLE_CHARS]

    if not result.success:
        # clean_title() would strip the status emoji we just added.
        title = _failure_title(task, result)
        marker, _, rest = title.partition(" ")
        return f"{marker} {clean_title(rest)}"[:MAX_TITLE_CHARS]

    generated = ai_title(llm, task, result)
    if generated and len(generated) > 10:
        return clean_title(generated)[:MAX_TITLE_CHARS]

    first_line = next((ln.strip() for ln in notes.splitlines() if ln.strip()), "")
    summary_lines = [
        ln.strip()
        for ln in (result.comment or "").splitlines()
        if ln.strip()
        and not _AGENT_LINE_RE.match(ln.strip())
        and "Code Response:" not in ln
        and "━━━" not in ln
    ]
    summary = summary_lines[0][:101] if summary_lines else ""

    if len(first_line) > 10:
        title = first_line[:81]
    elif len(summary) > 10:
        title = summary[:81]
    else:
        title = f"{first_meaningful_phrase(notes)} - Processed"
    return clean_title(title)[:MAX_TITLE_CHARS]
