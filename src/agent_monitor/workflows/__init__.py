# src/agent_monitor/workflows/__init__.py

"""
Handler variants.

Each variant is bound to one task (and optionally one triggering comment) and exposes
execute() -> WorkflowResult. build_workflow() maps a routed HandlerVariant to its class.
"""

from __future__ import annotations

from collections.abc import Sequence

from ..core.models import Comment, HandlerVariant, Task, TriggerKind
from ..core.state import MonitorState
from .ai_agent import AiAgent
from .article_summary import ArticleSummary
from .base import BaseWorkflow
from .email_draft import EmailDraft
from .general_search import GeneralSearch
from .newsletter_summary import NewsletterSummary

WORKFLOWS: dict[HandlerVariant, type[BaseWorkflow]] = {
    HandlerVariant.EMAIL_DRAFT: EmailDraft,
    HandlerVariant.ARTICLE_SUMMARY: ArticleSummary,
    HandlerVariant.NEWSLETTER_SUMMARY: NewsletterSummary,
    HandlerVariant.GENERAL_SEARCH: GeneralSearch,
    HandlerVariant.GENERIC_ASSISTANT: AiAgent,
}


def build_workflow(
    variant: HandlerVariant,
    task: Task,
    state: MonitorState,
    *,
    trigger: TriggerKind = TriggerKind.NEW_TASK,
    comment_text: str | None = None,
    all_comments: Sequence[Comment] = (),
) -> BaseWorkflow:
    cls = WORKFLOWS.get(variant, AiAgent)
    return cls(task, state, trigger=trigger, comment_text=comment_text, all_comments=all_comments)


__all__ = [
    "AiAgent",
    "ArticleSummary",
    "BaseWorkflow",
    "EmailDraft",
    "GeneralSearch",
    "NewsletterSummary",
    "WORKFLOWS",
    "build_workflow",
]
