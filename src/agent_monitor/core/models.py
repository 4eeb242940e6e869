# src/agent_monitor/core/models.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any


class HandlerVariant(StrEnum):
    """Closed set of request-handling variants a task or comment can be routed to."""

    EMAIL_DRAFT = "email_draft"
    ARTICLE_SUMMARY = "article_summary"
    NEWSLETTER_SUMMARY = "newsletter_summary"
    GENERAL_SEARCH = "general_search"
    GENERIC_ASSISTANT = "generic_assistant"


class TriggerKind(StrEnum):
    NEW_TASK = "new_task"
    COMMENT_FOLLOW_UP = "comment_follow_up"


@dataclass(frozen=True, slots=True)
class Task:
    """Snapshot of a tracker task, re-fetched every cycle."""

    id: str
    title: str
    notes: str = ""
    completed: bool = False

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> Task:
        return cls(
            id=str(raw.get("gid") or raw.get("id") or ""),
            title=str(raw.get("name") or ""),
            notes=str(raw.get("notes") or ""),
            completed=bool(raw.get("completed", False)),
        )


@dataclass(frozen=True, slots=True)
class Comment:
    id: str
    text: str
    created_at: datetime | None = None
    author_name: str = ""

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> Comment:
        author = raw.get("created_by") or {}
        return cls(
            id=str(raw.get("gid") or raw.get("id") or ""),
            text=str(raw.get("text") or ""),
            created_at=parse_timestamp(raw.get("created_at")),
            author_name=str(author.get("name") or "") if isinstance(author, dict) else "",
        )


def parse_timestamp(raw: Any) -> datetime | None:
    if not raw or not isinstance(raw, str):
        return None
    try:
        return datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return None


@dataclass(frozen=True, slots=True)
class WorkItem:
    """Transient unit of work submitted to the worker pool; never persisted."""

    task: Task
    trigger: TriggerKind = TriggerKind.NEW_TASK
    comment: Comment | None = None

    @property
    def key(self) -> str:
        if self.comment is None:
            return self.task.id
        return f"{self.task.id}:{self.comment.id}"


@dataclass(slots=True)
class WorkflowResult:
    """Uniform result every handler variant returns."""

    success: bool
    comment: str
    error: str | None = None

    @classmethod
    def ok(cls, comment: str) -> WorkflowResult:
        return cls(success=True, comment=comment)

    @classmethod
    def failed(cls, error: str, comment: str = "") -> WorkflowResult:
        return cls(success=False, comment=comment, error=error)


@dataclass(slots=True)
class TrackerResult:
    success: bool
    data: dict[str, Any] = field(default_factory=dict)
    error: str | None = None

    @property
    def gid(self) -> str | None:
        value = self.data.get("gid")
        return str(value) if value else None


@dataclass(slots=True)
class LLMResult:
    success: bool
    text: str = ""
    error: str | None = None
    provider: str = ""
