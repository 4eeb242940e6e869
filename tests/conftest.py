# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from agent_monitor.core.state import MonitorState
from agent_monitor.runtime.ledger import ProcessedCommentLedger

from .fakes import FakeLLMClient, FakeTracker


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with MonitorState and the monitor.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        # Paths (tmp per test run)
        ledger_path=tmp_path / "processed_comments.json",
        lock_path=tmp_path / "agent_monitor.lock",
        # Tracker
        project_ids=["p1"],
        agent_name="AI Agent",
        assignees={"owner": "u-owner"},
        followup_assignee="owner",
        # Monitoring
        enable_comment_monitoring=True,
        max_concurrent_workers=3,
        task_timeout_seconds=5.0,
        auto_complete_tasks=False,
    )


@pytest.fixture()
def tracker() -> FakeTracker:
    return FakeTracker()


@pytest.fixture()
def llm() -> FakeLLMClient:
    return FakeLLMClient("Generated answer")


@pytest.fixture()
def state(settings: SimpleNamespace, tracker: FakeTracker, llm: FakeLLMClient) -> MonitorState:
    """
    MonitorState wired with deterministic fakes.

    NOTE: the ledger is the real JSON-backed one because its persistence is part
    of what we want to test.
    """
    return MonitorState(
        settings=settings,
        tracker=tracker,
        llm=llm,
        ledger=ProcessedCommentLedger(settings.ledger_path),
    )
