# tests/test_titles.py

from __future__ import annotations

import pytest

from agent_monitor.core.models import Task, WorkflowResult
from agent_monitor.monitor import titles

from .fakes import FakeLLMClient

LONG_TITLE = "Prepare the quarterly planning document for the whole platform team"


def test_long_title_on_success_is_kept() -> None:
    task = Task(id="1", title=LONG_TITLE, notes="research acme.com")
    assert titles.generate_descriptive_title(task, WorkflowResult.ok("✅ done")) is None


def test_research_domain_title() -> None:
    task = Task(id="1", title="Research", notes="Please research acme.io before the call")
    assert titles.generate_descriptive_title(task, WorkflowResult.ok("🤖 Response")) == "Research : acme.io"


def test_email_subject_title() -> None:
    task = Task(id="1", title="Email")
    result = WorkflowResult.ok("📧 Email Draft:\n\nSubject: Quarterly update\nHi all")
    assert titles.generate_descriptive_title(task, result) == "Email : Quarterly update"


def test_email_recipient_title() -> None:
    task = Task(id="1", title="todo", notes="email jane.doe@example.com about dinner")
    assert titles.generate_descriptive_title(task, WorkflowResult.ok("ok")) == "Email to Jane Doe"


def test_article_domain_title_strips_www() -> None:
    task = Task(id="1", title="Read", notes="https://www.example.org/post/1")
    assert titles.generate_descriptive_title(task, WorkflowResult.ok("✅ summarized")) == "Summary : example.org"


def test_failed_result_gets_failure_marker() -> None:
    task = Task(id="1", title="Plan the offsite agenda", notes="")
    title = titles.generate_descriptive_title(task, WorkflowResult.failed("LLM down"))
    assert title == "❌ Failed : Plan the offsite agenda"


def test_timeout_title_uses_notes_context() -> None:
    task = Task(id="1", title="task", notes="check stripe.com")
    title = titles.generate_descriptive_title(task, WorkflowResult.failed("Workflow timeout"))
    assert title == "⏱️ Timeout : Check stripe.com"


def test_ai_title_used_when_nothing_else_matches() -> None:
    llm = FakeLLMClient("**Offsite agenda** for March")
    task = Task(id="1", title="Offsite")
    assert titles.generate_descriptive_title(task, WorkflowResult.ok("ok"), llm) == "Offsite agenda for March"
    assert "concise task title" in llm.calls[0]


def test_failing_ai_title_falls_back_to_notes() -> None:
    llm = FakeLLMClient(error="quota")
    task = Task(id="1", title="Offsite", notes="Book venue")
    assert titles.generate_descriptive_title(task, WorkflowResult.ok("ok"), llm) == "Book venue - Processed"


def test_titles_are_capped() -> None:
    llm = FakeLLMClient("x" * 300)
    title = titles.generate_descriptive_title(Task(id="1", title="task"), WorkflowResult.ok("ok"), llm)
    assert title is not None and len(title) == titles.MAX_TITLE_CHARS


@pytest.mark.parametrize(
    ("raw", "clean"),
    [
        ("✅ **Done** with `code`", "Done with code"),
        ("See https://example.com now", "See now"),
        ("## Heading", "Heading"),
        ("  many   spaces ", "many spaces"),
    ],
)
def test_clean_title(raw: str, clean: str) -> None:
    assert titles.clean_title(raw) == clean


@pytest.mark.parametrize("title", ["Task", "todo", "New Task", "UNTITLED", "email"])
def test_generic_titles(title: str) -> None:
    assert titles.is_generic_title(title)
