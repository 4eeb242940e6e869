# src/agent_monitor/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .ports import CommentLedger, LanguageModelClient, NewsletterSource, TaskTrackerClient

if TYPE_CHECKING:
    from ..net.http_executor import ResilientRequestExecutor


@dataclass
class MonitorState:
    """
    Everything a cycle and its workflows need, wired once by cli/bootstrap.py.

    settings is kept loosely typed so tests can pass a SimpleNamespace.
    """

    settings: Any
    tracker: TaskTrackerClient
    llm: LanguageModelClient
    ledger: CommentLedger
    executor: ResilientRequestExecutor | None = None

    # Research-style queries (GeneralSearch); falls back to `llm` when None.
    search_llm: LanguageModelClient | None = None
    newsletter_source: NewsletterSource | None = None

    @property
    def agent_name(self) -> str:
        return str(getattr(self.settings, "agent_name", "AI Agent"))

    @property
    def searcher(self) -> LanguageModelClient:
        return self.search_llm or self.llm
