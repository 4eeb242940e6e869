# tests/test_signatures.py

from __future__ import annotations

import pytest

from agent_monitor.core.models import Comment
from agent_monitor.monitor import signatures


@pytest.mark.parametrize(
    "text",
    [
        "✅ Search completed : laptops",
        "❌ Workflow failed: boom",
        "  🤖 Gemini Response:\n\nhello",
        "⚠️ Newsletter summary requires an email provider",
        "🔄 Step 1/2 : collect",
        "📧 Email Draft:\n\nSubject: hi",
        "Gemini Code Response:\n\nx",
        "Claude Code Response:\n\nx",
        "something something Agent error here",
        "🤖 GEPA Multi-Step Execution:\n\n...",
        "━━━ Step 2 Result ━━━\nbody",
        "progress Step 3/5 : writing",
    ],
)
def test_agent_generated_signatures(text: str) -> None:
    assert signatures.is_agent_generated(text)


@pytest.mark.parametrize("text", ["please retry", "What is the status?", "Step 3 of the plan", ""])
def test_human_comments_are_not_agent_generated(text: str) -> None:
    assert not signatures.is_agent_generated(text)


def _c(i: int, text: str) -> Comment:
    return Comment(id=f"c{i}", text=text)


def test_successful_response_uses_latest_agent_reply() -> None:
    assert not signatures.has_successful_response([])
    assert not signatures.has_successful_response([_c(1, "hello")])
    assert signatures.has_successful_response([_c(1, "✅ done"), _c(2, "thanks")])
    assert not signatures.has_successful_response([_c(1, "✅ done"), _c(2, "❌ Workflow failed: x")])
    assert not signatures.has_successful_response([_c(1, "🤖 Claude Response:\n\nError: quota")])


@pytest.mark.parametrize(
    ("text", "retry", "followup"),
    [
        ("please try again", True, True),
        ("rerun it", True, False),
        ("Re-run with more detail", True, False),
        ("ok?", False, True),
        ("could you shorten it", False, True),
        ("thanks", False, False),
    ],
)
def test_retry_and_followup_intents(text: str, retry: bool, followup: bool) -> None:
    assert signatures.asks_for_retry(text) is retry
    assert signatures.asks_followup(text) is followup


def test_asks_for_email_draft() -> None:
    assert signatures.asks_for_email_draft("Show me the draft")
    assert signatures.asks_for_email_draft("can you show the email")
    assert not signatures.asks_for_email_draft("send the email")


def test_extract_email_draft_prefers_newest_agent_reply() -> None:
    comments = [
        _c(1, "📧 Email Draft:\n\nSubject: Old"),
        _c(2, "📧 Email Draft:\n\nSubject: New\n\nHi Ann,"),
        _c(3, "Subject: written by a human"),
    ]
    assert signatures.extract_email_draft(comments) == "Subject: New\n\nHi Ann,"


def test_extract_email_draft_from_step_results() -> None:
    text = (
        "🤖 GEPA Multi-Step Execution:\n\n"
        "━━━ Step 1 Result ━━━\nresearch notes\n\n"
        "━━━ Step 2 Result ━━━\nSubject: Intro\nDear Sam, draft below"
    )
    assert signatures.extract_email_draft([_c(1, text)]) == "Subject: Intro\nDear Sam, draft below"


def test_extract_email_draft_from_code_response() -> None:
    text = "Claude Code Response:\n\nTo: sam@example.com\nHello Sam"
    assert signatures.extract_email_draft([_c(1, text)]) == "To: sam@example.com\nHello Sam"


def test_extract_email_draft_none_when_absent() -> None:
    assert signatures.extract_email_draft([_c(1, "✅ Search completed : x"), _c(2, "hello")]) is None
