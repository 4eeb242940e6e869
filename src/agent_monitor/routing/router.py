# src/agent_monitor/routing/router.py

"""
Workflow routing.

Pure keyword classification. Rules are checked top to bottom and the first match
wins, so text mentioning both "email" and "search" always becomes an email draft:

    1. newsletter / digest             -> NEWSLETTER_SUMMARY
    2. email / draft                   -> EMAIL_DRAFT
    3. a URL and summarize / summary   -> ARTICLE_SUMMARY
    4. search / find                   -> GENERAL_SEARCH
    (no match)                         -> GENERIC_ASSISTANT

Tasks are classified on "<title> <notes>", comments on the comment text alone.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from ..core.models import HandlerVariant, Task

URL_RE = re.compile(r"https?://")


@dataclass(frozen=True, slots=True)
class RoutingRule:
    variant: HandlerVariant
    keywords: tuple[str, ...]
    requires_url: bool = False

    def matches(self, text: str) -> bool:
        if self.requires_url and not URL_RE.search(text):
            return False
        return any(k in text for k in self.keywords)


ROUTING_RULES: tuple[RoutingRule, ...] = (
    RoutingRule(HandlerVariant.NEWSLETTER_SUMMARY, ("newsletter", "digest")),
    RoutingRule(HandlerVariant.EMAIL_DRAFT, ("email", "draft")),
    RoutingRule(HandlerVariant.ARTICLE_SUMMARY, ("summarize", "summary"), requires_url=True),
    RoutingRule(HandlerVariant.GENERAL_SEARCH, ("search", "find")),
)

DEFAULT_VARIANT = HandlerVariant.GENERIC_ASSISTANT


def classify_text(text: str, rules: tuple[RoutingRule, ...] = ROUTING_RULES) -> HandlerVariant:
    lowered = (text or "").lower()
    for rule in rules:
        if rule.matches(lowered):
            return rule.variant
    return DEFAULT_VARIANT


def route(task: Task) -> HandlerVariant:
    return classify_text(f"{task.title} {task.notes}")


def route_from_comment(comment_text: str, task: Task) -> HandlerVariant:
    # The task is only context for the handler; routing looks at the comment alone.
    return classify_text(comment_text)
