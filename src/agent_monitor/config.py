# src/agent_monitor/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- No secrets required at import time; `Settings.validate()` is called by the bootstrap.
- Every numeric/boolean value falls back to its default when malformed.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from .core.errors import ConfigError

ENV_PREFIX = "AGENT"

SUPPORTED_PROVIDERS = ("gemini", "claude", "openai", "perplexity", "openrouter")


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _load_dotenv_if_available() -> None:
    """Load .env locally if python-dotenv is installed. Safe no-op otherwise."""
    try:
        from dotenv import load_dotenv  # type: ignore
    except Exception:
        return
    load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    return [p.strip() for p in raw.replace(",", " ").split() if p.strip()]


def _env_mapping(name: str) -> Dict[str, str]:
    """Parse `key=value,key=value` (whitespace also separates pairs)."""
    out: Dict[str, str] = {}
    for pair in _env_list(name, []):
        key, sep, value = pair.partition("=")
        if sep and key.strip() and value.strip():
            out[key.strip()] = value.strip()
    return out


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Local paths ----
    data_dir: Path
    log_dir: Path
    ledger_path: Path
    lock_path: Path

    # ---- Task tracker (Asana) ----
    asana_api_key: Optional[str]
    asana_base_url: str
    project_ids: List[str]
    workspace_id: Optional[str]
    agent_name: str
    assignees: Dict[str, str]
    followup_assignee: str

    # ---- Monitoring ----
    check_interval_minutes: int
    enable_comment_monitoring: bool
    max_concurrent_workers: int
    task_timeout_seconds: float
    auto_complete_tasks: bool

    # ---- AI providers ----
    ai_provider: str
    search_provider: str
    llm_models: List[str]
    api_keys: Dict[str, str]

    # ---- Outbound HTTP policy ----
    http_connect_timeout_seconds: float
    http_read_timeout_seconds: float
    http_max_retries: int
    http_backoff_base_seconds: float
    http_default_retry_after_seconds: float

    extra_headers: Dict[str, str] = field(default_factory=dict)
    llm_offline_demo: bool = False

    @property
    def log_file(self) -> Path:
        return self.log_dir / "agent.log"

    @property
    def check_interval_seconds(self) -> int:
        return max(1, int(self.check_interval_minutes)) * 60

    def api_key_for(self, provider: str) -> Optional[str]:
        return self.api_keys.get((provider or "").strip().lower())

    def validate(self) -> None:
        """Raise ConfigError when the monitor cannot possibly run."""
        problems: list[str] = []
        if not self.asana_api_key or not self.asana_api_key.strip():
            problems.append("AGENT_ASANA_API_KEY (or ASANA_API_KEY) is not set")
        if not self.project_ids:
            problems.append("AGENT_ASANA_PROJECT_IDS is empty")
        if self.max_concurrent_workers < 1:
            problems.append("AGENT_MAX_CONCURRENT_WORKERS must be >= 1")
        if self.task_timeout_seconds <= 0:
            problems.append("AGENT_TASK_TIMEOUT_SECONDS must be > 0")
        if problems:
            raise ConfigError("Invalid configuration: " + "; ".join(problems))

    @staticmethod
    def from_env() -> "Settings":
        _load_dotenv_if_available()

        app_name = _env(_k("APP_NAME"), "agent-monitor") or "agent-monitor"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/agent-monitor"))
        log_dir = _env_path(_k("LOG_DIR"), data_dir / "logs")
        ledger_path = _env_path(_k("LEDGER_PATH"), log_dir / "processed_comments.json")
        lock_path = _env_path(_k("LOCK_PATH"), Path("/tmp/agent_monitor.lock"))

        asana_api_key = _first_env(_k("ASANA_API_KEY"), "ASANA_API_KEY", default=None)
        asana_base_url = _env(_k("ASANA_BASE_URL"), "https://app.asana.com/api/1.0")
        project_ids = _env_list(_k("ASANA_PROJECT_IDS"), _env_list("ASANA_PROJECT_GIDS", []))
        workspace_id = _first_env(_k("ASANA_WORKSPACE_ID"), "ASANA_WORKSPACE_GID", default=None)
        agent_name = (_env(_k("NAME"), "AI Agent") or "AI Agent").strip()
        assignees = _env_mapping(_k("ASSIGNEES"))
        followup_assignee = _env(_k("FOLLOWUP_ASSIGNEE"), "owner").strip()

        check_interval_minutes = _env_int(_k("CHECK_INTERVAL_MINUTES"), 5)
        enable_comment_monitoring = _env_bool(_k("ENABLE_COMMENT_MONITORING"), True)
        max_concurrent_workers = _env_int(_k("MAX_CONCURRENT_WORKERS"), 5)
        task_timeout_seconds = _env_float(_k("TASK_TIMEOUT_SECONDS"), 300.0)
        auto_complete_tasks = _env_bool(_k("AUTO_COMPLETE_TASKS"), False)

        ai_provider = _env(_k("AI_PROVIDER"), "gemini").strip().lower() or "gemini"
        search_provider = _env(_k("SEARCH_PROVIDER"), "perplexity").strip().lower() or "perplexity"
        llm_models = _env_list(_k("LLM_MODELS"), [])
        llm_offline_demo = _env_bool(_k("LLM_OFFLINE_DEMO"), False)

        api_keys: Dict[str, str] = {}
        for provider in SUPPORTED_PROVIDERS:
            env_name = f"{provider.upper()}_API_KEY"
            key = _first_env(_k(env_name), env_name, default=None)
            if key:
                api_keys[provider] = key.strip()

        extra_headers = {
            "HTTP-Referer": _env(_k("HTTP_REFERER"), "https://example.com"),
            "X-Title": _env(_k("APP_TITLE"), app_name),
        }

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            log_dir=log_dir,
            ledger_path=ledger_path,
            lock_path=lock_path,
            asana_api_key=asana_api_key,
            asana_base_url=asana_base_url,
            project_ids=project_ids,
            workspace_id=workspace_id,
            agent_name=agent_name,
            assignees=assignees,
            followup_assignee=followup_assignee,
            check_interval_minutes=check_interval_minutes,
            enable_comment_monitoring=enable_comment_monitoring,
            max_concurrent_workers=max_concurrent_workers,
            task_timeout_seconds=task_timeout_seconds,
            auto_complete_tasks=auto_complete_tasks,
            ai_provider=ai_provider,
            search_provider=search_provider,
            llm_models=llm_models,
            api_keys=api_keys,
            http_connect_timeout_seconds=_env_float(_k("HTTP_CONNECT_TIMEOUT_SECONDS"), 10.0),
            http_read_timeout_seconds=_env_float(_k("HTTP_READ_TIMEOUT_SECONDS"), 30.0),
            http_max_retries=_env_int(_k("HTTP_MAX_RETRIES"), 3),
            http_backoff_base_seconds=_env_float(_k("HTTP_BACKOFF_BASE_SECONDS"), 2.0),
            http_default_retry_after_seconds=_env_float(_k("HTTP_DEFAULT_RETRY_AFTER_SECONDS"), 60.0),
            extra_headers=extra_headers,
            llm_offline_demo=llm_offline_demo,
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    """Process-wide settings, built lazily on first use."""
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings.from_env()
    return _SETTINGS
