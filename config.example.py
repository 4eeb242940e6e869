# config.example.py

"""
Documentation-only module (safe to commit).

The monitor reads its configuration from environment variables, optionally via a
local .env file (see .env.example). Keep real API keys in .env only.

Most variables also accept an unprefixed legacy name (ASANA_API_KEY, GEMINI_API_KEY, ...).
"""

ENV_VARS = {
    # App / logging
    "AGENT_APP_NAME": "App name used in logs and the User-Agent header (default: agent-monitor).",
    "AGENT_LOG_LEVEL": "Console logging level (default: INFO). The log file always gets DEBUG.",
    # Paths (gitignored)
    "AGENT_DATA_DIR": "Local data directory (default: .local/agent-monitor).",
    "AGENT_LOG_DIR": "Log directory (default: <data_dir>/logs).",
    "AGENT_LEDGER_PATH": "Processed-comment ledger JSON (default: <log_dir>/processed_comments.json).",
    "AGENT_LOCK_PATH": "Single-instance run lock (default: /tmp/agent_monitor.lock).",
    # Asana
    "AGENT_ASANA_API_KEY": "Asana personal access token (required).",
    "AGENT_ASANA_BASE_URL": "Asana API root (default: https://app.asana.com/api/1.0).",
    "AGENT_ASANA_PROJECT_IDS": "Comma/space separated project gids to monitor (required).",
    "AGENT_ASANA_WORKSPACE_ID": "Workspace gid used when creating follow-up tasks.",
    "AGENT_NAME": "Display name of the agent's Asana user (default: AI Agent).",
    "AGENT_ASSIGNEES": "Assignee map for follow-up tasks, e.g. owner=1200000000000001.",
    "AGENT_FOLLOWUP_ASSIGNEE": "Key in AGENT_ASSIGNEES that receives follow-up tasks (default: owner).",
    # Monitoring
    "AGENT_CHECK_INTERVAL_MINUTES": "Minutes between cycles (default: 5).",
    "AGENT_ENABLE_COMMENT_MONITORING": "Handle new comments on open tasks (true/false, default: true).",
    "AGENT_MAX_CONCURRENT_WORKERS": "Worker pool size (default: 5).",
    "AGENT_TASK_TIMEOUT_SECONDS": "Per task/comment deadline (default: 300).",
    "AGENT_AUTO_COMPLETE_TASKS": "Mark tasks complete after a successful reply (default: false).",
    # AI providers
    "AGENT_AI_PROVIDER": "gemini | claude | openai | perplexity | openrouter (default: gemini).",
    "AGENT_SEARCH_PROVIDER": "Provider for search-style requests (default: perplexity).",
    "AGENT_LLM_MODELS": "Comma/space separated models to try in order (primary provider only).",
    "AGENT_LLM_OFFLINE_DEMO": "Canned offline answers for providers without a key (demo only, default: false).",
    "AGENT_GEMINI_API_KEY": "Gemini API key.",
    "AGENT_CLAUDE_API_KEY": "Anthropic API key.",
    "AGENT_OPENAI_API_KEY": "OpenAI API key.",
    "AGENT_PERPLEXITY_API_KEY": "Perplexity API key.",
    "AGENT_OPENROUTER_API_KEY": "OpenRouter API key.",
    "AGENT_HTTP_REFERER": "Optional OpenRouter metadata header.",
    "AGENT_APP_TITLE": "Optional OpenRouter metadata header title.",
    # Outbound HTTP
    "AGENT_HTTP_CONNECT_TIMEOUT_SECONDS": "Connect timeout (default: 10).",
    "AGENT_HTTP_READ_TIMEOUT_SECONDS": "Read timeout (default: 30).",
    "AGENT_HTTP_MAX_RETRIES": "Retries after the first attempt (default: 3).",
    "AGENT_HTTP_BACKOFF_BASE_SECONDS": "Exponential backoff base: base**retry seconds (default: 2).",
    "AGENT_HTTP_DEFAULT_RETRY_AFTER_SECONDS": "Wait on 429 without a usable Retry-After (default: 60).",
}
