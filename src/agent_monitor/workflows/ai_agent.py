# src/agent_monitor/workflows/ai_agent.py

from __future__ import annotations

import logging

from ..core.models import WorkflowResult
from ..llm.client import friendly_llm_error_message
from .base import BaseWorkflow
from .prompts import build_prompt, classify_request
from .text import strip_markdown

logger = logging.getLogger(__name__)


def format_response(output: str, provider: str) -> str:
    name = (provider or "AI").capitalize()
    return f"🤖 {name} Response:\n\n{strip_markdown(output).strip()}"


class AiAgent(BaseWorkflow):
    """Generic assistant: anything the keyword router could not place elsewhere."""

    name = "AiAgent"

    def _run(self) -> WorkflowResult:
        kind = classify_request(self.task, self.comment_text)
        logger.info("AI workflow task_id=%s template=%s", self.task.id, kind.value)

        prompt = build_prompt(
            kind,
            self.task,
            comments=self.all_comments,
            comment_text=self.comment_text,
            from_comment=self.from_comment,
        )

        response = self.state.llm.complete(prompt)
        if not response.success:
            logger.error("AI workflow failed task_id=%s error=%s", self.task.id, response.error)
            error = response.error or "LLM error"
            hint = friendly_llm_error_message(error, response.provider)
            return WorkflowResult.failed(error, comment=hint if hint != error else "")

        return WorkflowResult.ok(format_response(response.text, response.provider))
