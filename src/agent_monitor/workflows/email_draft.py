# src/agent_monitor/workflows/email_draft.py

from __future__ import annotations

import logging

from ..core.models import WorkflowResult
from .base import BaseWorkflow
from .prompts import PromptKind, build_prompt

logger = logging.getLogger(__name__)


class EmailDraft(BaseWorkflow):
    name = "EmailDraft"

    def _run(self) -> WorkflowResult:
        prompt = build_prompt(
            PromptKind.EMAIL,
            self.task,
            comments=self.all_comments,
            comment_text=self.comment_text,
            from_comment=self.from_comment,
        )

        logger.info("Drafting email task_id=%s from_comment=%s", self.task.id, self.from_comment)
        response = self.state.llm.complete(prompt)

        if not response.success:
            return WorkflowResult.failed(response.error or "LLM error")

        return WorkflowResult.ok(f"📧 Email Draft:\n\n{response.text.strip()}")
