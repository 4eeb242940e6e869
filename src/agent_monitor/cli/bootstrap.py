# src/agent_monitor/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- validates settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations (executor, tracker, LLMs, ledger, lock, pool)
  into MonitorState and AgentMonitor.
"""

from __future__ import annotations

import logging

from ..config import Settings, get_settings
from ..core.errors import ConfigError
from ..core.state import MonitorState
from ..llm.client import build_llm_client
from ..net.http_executor import ResilientRequestExecutor, RetryPolicy
from ..monitor.agent_monitor import AgentMonitor
from ..runtime.ledger import ProcessedCommentLedger
from ..runtime.run_lock import RunLock
from ..runtime.worker_pool import BoundedWorkerPool
from ..tracker.asana_client import AsanaClient

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings: Settings) -> None:
    try:
        settings.data_dir.mkdir(parents=True, exist_ok=True)
        settings.log_dir.mkdir(parents=True, exist_ok=True)
        settings.ledger_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ConfigError(f"Cannot create local data directories: {e}") from e


def create_monitor_state(*, settings: Settings | None = None) -> MonitorState:
    """
    Build MonitorState from the provided settings.

    Raises ConfigError (a FatalStartupError) when required settings are missing.
    """
    if settings is None:
        settings = get_settings()

    settings.validate()
    _ensure_local_dirs(settings)

    executor = ResilientRequestExecutor(
        RetryPolicy.from_settings(settings),
        headers={"User-Agent": f"{settings.app_name}/0.1"},
    )

    tracker = AsanaClient(
        executor,
        api_key=settings.asana_api_key or "",
        base_url=settings.asana_base_url,
        workspace_id=settings.workspace_id,
    )

    llm = build_llm_client(settings, executor)
    search_llm = None
    if settings.search_provider and settings.search_provider != settings.ai_provider:
        if settings.api_key_for(settings.search_provider):
            search_llm = build_llm_client(settings, executor, provider=settings.search_provider)
        else:
            logger.warning(
                "No API key for search provider=%s; search requests use provider=%s",
                settings.search_provider,
                settings.ai_provider,
            )

    state = MonitorState(
        settings=settings,
        tracker=tracker,
        llm=llm,
        ledger=ProcessedCommentLedger(settings.ledger_path),
        executor=executor,
        search_llm=search_llm,
    )

    logger.info(
        "Monitor state ready projects=%s provider=%s search_provider=%s",
        ",".join(settings.project_ids),
        settings.ai_provider,
        settings.search_provider,
    )
    return state


def create_monitor(*, settings: Settings | None = None) -> AgentMonitor:
    if settings is None:
        settings = get_settings()

    state = create_monitor_state(settings=settings)
    pool = BoundedWorkerPool(
        settings.max_concurrent_workers,
        settings.task_timeout_seconds,
        name="monitor",
    )

    logger.info(
        "AgentMonitor initialized comment_monitoring=%s max_workers=%d task_timeout=%.0fs",
        "enabled" if settings.enable_comment_monitoring else "disabled",
        settings.max_concurrent_workers,
        settings.task_timeout_seconds,
    )
    return AgentMonitor(state, RunLock(settings.lock_path), pool)
