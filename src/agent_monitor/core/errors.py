# src/agent_monitor/core/errors.py

from __future__ import annotations


class AgentMonitorError(Exception):
    """Base class for errors raised by agent_monitor."""


class FatalStartupError(AgentMonitorError):
    """The process cannot run at all. The only error class allowed to stop the daemon."""


class ConfigError(FatalStartupError):
    """Required configuration is missing or invalid."""


class RunLockError(FatalStartupError):
    """The run-lock file cannot be opened or created."""
