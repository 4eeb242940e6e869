# src/agent_monitor/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The engine depends on Protocols instead of concrete implementations.
This keeps the tracker / LLM providers swappable and makes testing easier.
"""

from datetime import date
from typing import Any, Protocol, Sequence

from .models import Comment, LLMResult, Task, TrackerResult, WorkflowResult


class TaskTrackerClient(Protocol):
    """Task tracker API. Implementations never raise: failures come back as data."""

    def fetch_open_tasks(self, project_id: str) -> list[Task]: ...
    def fetch_comments(self, task_id: str) -> list[Comment]: ...
    def post_comment(self, task_id: str, text: str) -> TrackerResult: ...
    def rename_task(self, task_id: str, new_title: str) -> TrackerResult: ...
    def complete_task(self, task_id: str) -> TrackerResult: ...

    def create_task(
            self,
            *,
            title: str,
            notes: str = "",
            assignee: str | None = None,
            due_on: date | None = None,
            project_id: str | None = None,
    ) -> TrackerResult: ...


class LanguageModelClient(Protocol):
    """Provider-agnostic completion client."""

    def complete(self, prompt: str) -> LLMResult: ...


class CommentLedger(Protocol):
    def is_processed(self, task_id: str, comment_id: str) -> bool: ...
    def mark_processed(self, task_id: str, comment_id: str) -> None: ...


class Workflow(Protocol):
    """A handler variant instance bound to one task (and maybe one comment)."""

    def execute(self) -> WorkflowResult: ...


class NewsletterSource(Protocol):
    """
    Where newsletters come from (mailbox integration).

    Each item is a dict with at least: subject, from, date; optional preview.
    """

    def fetch_newsletters(self, days: int) -> Sequence[dict[str, Any]]: ...
