# src/agent_monitor/workflows/general_search.py

from __future__ import annotations

import logging

from ..core.models import WorkflowResult
from .base import BaseWorkflow
from .prompts import search_prompt

logger = logging.getLogger(__name__)


def short_title(query: str, limit: int = 50) -> str:
    return query if len(query) <= limit else query[:limit] + "..."


class GeneralSearch(BaseWorkflow):
    name = "GeneralSearch"

    def _query(self) -> str | None:
        text = (self.comment_text or "") if self.from_comment else self.task.notes
        if not text.strip():
            text = self.task.title
        return text.strip() or None

    def _run(self) -> WorkflowResult:
        query = self._query()
        if not query:
            return WorkflowResult.failed(
                "Could not extract search query from task",
                comment="Please describe what to search for in the task notes or a comment.",
            )

        logger.info("General search task_id=%s query=%r", self.task.id, query[:80])

        response = self.state.searcher.complete(search_prompt(query))
        if not response.success:
            return WorkflowResult.failed(response.error or "LLM error")

        answer = response.text.strip()

        created = False
        if self.from_comment:
            logger.info("Skipping results task creation (triggered by comment) task_id=%s", self.task.id)
        else:
            created = self.create_followup_task(
                title=f"Search Results: {short_title(query)}",
                notes=f"Search Query :\n{query}\n\nAI Research Results :\n\n{answer}\n",
            )

        comment = f"✅ Search completed : {short_title(query)}\n\n{answer}\n\n"
        if created:
            comment += "Detailed results also saved in follow-up task."
        return WorkflowResult.ok(comment.rstrip())
