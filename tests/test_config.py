# tests/test_config.py

from __future__ import annotations

import os
from pathlib import Path

import pytest

from agent_monitor.config import SUPPORTED_PROVIDERS, Settings
from agent_monitor.core.errors import ConfigError, FatalStartupError

_ENV_NAMES = [
    "ASANA_API_KEY",
    "ASANA_PROJECT_GIDS",
    "ASANA_WORKSPACE_GID",
    *[f"{p.upper()}_API_KEY" for p in SUPPORTED_PROVIDERS],
]


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> pytest.MonkeyPatch:
    # No stray .env from the working tree.
    monkeypatch.chdir(tmp_path)

    for name in list(os.environ):
        if name.startswith("AGENT_"):
            monkeypatch.delenv(name, raising=False)
    for name in _ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env) -> None:
    s = Settings.from_env()

    assert s.asana_api_key is None
    assert s.project_ids == []
    assert s.agent_name == "AI Agent"
    assert s.check_interval_seconds == 300
    assert s.max_concurrent_workers == 5
    assert s.task_timeout_seconds == 300.0
    assert s.enable_comment_monitoring is True
    assert s.auto_complete_tasks is False
    assert s.ai_provider == "gemini"
    assert s.search_provider == "perplexity"
    assert s.llm_offline_demo is False
    assert s.http_max_retries == 3
    assert s.lock_path == Path("/tmp/agent_monitor.lock")
    assert s.ledger_path.name == "processed_comments.json"


def test_values_from_env(clean_env) -> None:
    clean_env.setenv("AGENT_ASANA_API_KEY", "tok")
    clean_env.setenv("AGENT_ASANA_PROJECT_IDS", "111, 222 333")
    clean_env.setenv("AGENT_ASSIGNEES", "owner=u1, helper=u2,broken")
    clean_env.setenv("AGENT_MAX_CONCURRENT_WORKERS", "2")
    clean_env.setenv("AGENT_ENABLE_COMMENT_MONITORING", "no")
    clean_env.setenv("AGENT_AI_PROVIDER", " Claude ")
    clean_env.setenv("CLAUDE_API_KEY", "ck")
    clean_env.setenv("AGENT_LLM_MODELS", "m1,m2")
    clean_env.setenv("AGENT_LLM_OFFLINE_DEMO", "true")

    s = Settings.from_env()

    assert s.asana_api_key == "tok"
    assert s.project_ids == ["111", "222", "333"]
    assert s.assignees == {"owner": "u1", "helper": "u2"}
    assert s.max_concurrent_workers == 2
    assert s.enable_comment_monitoring is False
    assert s.ai_provider == "claude"
    assert s.api_key_for("Claude") == "ck"
    assert s.llm_models == ["m1", "m2"]
    assert s.llm_offline_demo is True


def test_unprefixed_fallbacks(clean_env) -> None:
    clean_env.setenv("ASANA_API_KEY", "legacy")
    clean_env.setenv("ASANA_PROJECT_GIDS", "9")

    s = Settings.from_env()

    assert s.asana_api_key == "legacy"
    assert s.project_ids == ["9"]


def test_malformed_numbers_fall_back_to_defaults(clean_env) -> None:
    clean_env.setenv("AGENT_CHECK_INTERVAL_MINUTES", "five")
    clean_env.setenv("AGENT_TASK_TIMEOUT_SECONDS", "soon")
    clean_env.setenv("AGENT_HTTP_MAX_RETRIES", "")

    s = Settings.from_env()

    assert s.check_interval_minutes == 5
    assert s.task_timeout_seconds == 300.0
    assert s.http_max_retries == 3


def test_validate_lists_every_problem(clean_env) -> None:
    clean_env.setenv("AGENT_MAX_CONCURRENT_WORKERS", "0")

    with pytest.raises(ConfigError) as exc:
        Settings.from_env().validate()

    message = str(exc.value)
    assert "AGENT_ASANA_API_KEY" in message
    assert "AGENT_ASANA_PROJECT_IDS" in message
    assert "AGENT_MAX_CONCURRENT_WORKERS" in message
    assert isinstance(exc.value, FatalStartupError)


def test_validate_accepts_minimal_config(clean_env) -> None:
    clean_env.setenv("AGENT_ASANA_API_KEY", "tok")
    clean_env.setenv("AGENT_ASANA_PROJECT_IDS", "1")
    Settings.from_env().validate()
