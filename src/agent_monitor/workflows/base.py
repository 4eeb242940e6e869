# src/agent_monitor/workflows/base.py

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import date
from urllib.parse import urlparse

from ..core.models import Comment, Task, TriggerKind, WorkflowResult
from ..core.state import MonitorState

logger = logging.getLogger(__name__)

DOMAIN_RE = re.compile(r"([a-z0-9.-]+\.(?:com|ai|io|co|net|org))", re.IGNORECASE)


def extract_domain(text: str) -> str | None:
    """Host of a URL (without www.), or the first bare domain mentioned in the text."""
    text = (text or "").strip()
    if re.match(r"^https?://", text):
        host = urlparse(text).hostname or ""
        return host.removeprefix("www.") or None
    m = DOMAIN_RE.search(text)
    return m.group(1) if m else None


class BaseWorkflow(ABC):
    """
    One handler variant bound to a single task (and, for follow-ups, one comment).

    Subclasses implement `_run()`. `execute()` never raises: anything escaping
    `_run()` becomes a failed WorkflowResult, so the monitor always has a reply to post.
    """

    name = "workflow"

    def __init__(
        self,
        task: Task,
        state: MonitorState,
        *,
        trigger: TriggerKind = TriggerKind.NEW_TASK,
        comment_text: str | None = None,
        all_comments: Sequence[Comment] = (),
    ) -> None:
        self.task = task
        self.state = state
        self.trigger = trigger
        self.comment_text = comment_text
        self.all_comments = list(all_comments or ())

    @property
    def from_comment(self) -> bool:
        return self.trigger == TriggerKind.COMMENT_FOLLOW_UP

    def execute(self) -> WorkflowResult:
        try:
            return self._run()
        except Exception as e:
            logger.exception("%s failed task_id=%s", self.name, self.task.id)
            return WorkflowResult.failed(str(e) or e.__class__.__name__)

    @abstractmethod
    def _run(self) -> WorkflowResult:
        """Do the actual work; may raise."""

    # ---- helpers ----

    def create_followup_task(self, *, title: str, notes: str, assignee_key: str | None = None) -> bool:
        """
        Create a follow-up task due today in the first monitored project.

        Returns False when creation failed (logged, never raised).
        """
        settings = self.state.settings
        key = assignee_key or getattr(settings, "followup_assignee", "")
        assignee = (getattr(settings, "assignees", {}) or {}).get(key)
        project_ids = list(getattr(settings, "project_ids", []) or [])

        result = self.state.tracker.create_task(
            title=title,
            notes=notes,
            assignee=assignee,
            due_on=date.today(),
            project_id=project_ids[0] if project_ids else None,
        )
        if not result.success:
            logger.error("Failed to create follow-up task task_id=%s error=%s", self.task.id, result.error)
            return False

        logger.info("Follow-up task created task_id=%s new_task_id=%s", self.task.id, result.gid)
        return True
