# src/agent_monitor/llm/client.py

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Dict, List, Optional

import httpx
import openai
from openai import OpenAI

from ..core.models import LLMResult
from ..net.http_executor import ResilientRequestExecutor
from .offline import OfflineLLMClient

logger = logging.getLogger(__name__)

# provider -> (base_url, default models)
OPENAI_COMPATIBLE: dict[str, tuple[str, tuple[str, ...]]] = {
    "openai": ("https://api.openai.com/v1", ("gpt-4o",)),
    "perplexity": ("https://api.perplexity.ai", ("llama-3.1-sonar-large-128k-online",)),
    "openrouter": ("https://openrouter.ai/api/v1", ("openrouter/auto",)),
}

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
GEMINI_DEFAULT_MODEL = "gemini-1.5-flash"

CLAUDE_URL = "https://api.anthropic.com/v1/messages"
CLAUDE_DEFAULT_MODEL = "claude-3-5-sonnet-20240620"
CLAUDE_API_VERSION = "2023-06-01"
CLAUDE_MAX_TOKENS = 4096

BAD_MODEL_COOLDOWN_SECONDS = 3600.0


def _is_auth_error(exc: Exception) -> bool:
    return exc.__class__.__name__ in {
        "AuthenticationError",
        "PermissionDeniedError",
        "UnauthorizedError",
    }


def _is_rate_limit_error(exc: Exception) -> bool:
    if isinstance(exc, openai.RateLimitError):
        return True
    return exc.__class__.__name__ in {"RateLimitError", "TooManyRequestsError"}


def _is_connection_error(exc: Exception) -> bool:
    return exc.__class__.__name__ in {
        "APIConnectionError",
        "APITimeoutError",
        "Timeout",
        "ConnectTimeout",
        "ReadTimeout",
        "WriteTimeout",
    }


def _is_not_found_error(exc: Exception) -> bool:
    # OpenAI-compatible SDK uses NotFoundError for HTTP 404 (unknown model)
    return exc.__class__.__name__ in {"NotFoundError"}


def friendly_llm_error_message(error: str | None, provider: str = "") -> str:
    """Turn a raw LLMResult.error into something fit for a tracker comment."""
    msg = (error or "").strip() or "LLM error."
    name = (provider or "").upper() or "<PROVIDER>"
    if "API Key missing" in msg or "API key is not set" in msg:
        return f"LLM is not configured (missing API key). Set {name}_API_KEY in .env (see .env.example)."
    if "authentication failed" in msg:
        return f"LLM authentication failed. Check {name}_API_KEY."
    if "rate-limited" in msg:
        return "LLM is rate-limited. Try again later."
    return msg


class OpenAICompatibleClient:
    """
    Chat-completions client for OpenAI-compatible providers (openai, perplexity, openrouter).

    Behavior:
    - Tries models in the configured order.
    - 404 (model not available) -> model parked for an hour, try next.
    - Rate limit / network issues -> try next.
    - Auth issues -> fail fast (no retries across models).
    - SDK retries are disabled; complete() never raises.
    """

    def __init__(
        self,
        *,
        provider: str,
        api_key: str,
        base_url: str,
        models: List[str],
        extra_headers: Optional[Dict[str, str]] = None,
        timeout: httpx.Timeout | None = None,
        client: Any = None,
    ) -> None:
        self.provider = provider
        self._models = [m.strip() for m in models if m and m.strip()]
        self._headers = dict(extra_headers or {})
        self._bad_models: dict[str, float] = {}  # model -> retry_at (monotonic)
        self._bad_lock = threading.Lock()
        self._client = client or OpenAI(
            base_url=base_url,
            api_key=api_key,
            timeout=timeout or httpx.Timeout(connect=10.0, read=60.0, write=10.0, pool=10.0),
            max_retries=0,
        )

    def _usable(self, model: str, now: float) -> bool:
        with self._bad_lock:
            retry_at = self._bad_models.get(model)
        return retry_at is None or retry_at <= now

    def _park(self, model: str) -> None:
        with self._bad_lock:
            self._bad_models[model] = time.monotonic() + BAD_MODEL_COOLDOWN_SECONDS

    def complete(self, prompt: str) -> LLMResult:
        if not self._models:
            return LLMResult(success=False, error="LLM model list is empty.", provider=self.provider)

        last_error: Optional[Exception] = None
        now = time.monotonic()

        for model in self._models:
            if not self._usable(model, now):
                continue

            logger.info("LLM: trying provider=%s model=%s", self.provider, model)
            t0 = time.monotonic()
            try:
                response = self._client.chat.completions.create(
                    model=model,
                    messages=[{"role": "user", "content": prompt}],
                    extra_headers=self._headers or None,
                )
                text = response.choices[0].message.content or ""
            except Exception as e:
                last_error = e

                if _is_auth_error(e):
                    logger.error("LLM: authentication failed provider=%s", self.provider)
                    return LLMResult(
                        success=False,
                        error=f"{self.provider} authentication failed: {e.__class__.__name__}",
                        provider=self.provider,
                    )

                if _is_not_found_error(e):
                    self._park(model)
                    logger.info("LLM: model not available (404): %s", model)
                elif _is_rate_limit_error(e):
                    logger.info("LLM: rate-limited on model=%s, trying next", model)
                elif _is_connection_error(e):
                    logger.info("LLM: network/timeout error on model=%s, trying next", model)
                else:
                    logger.info("LLM: error on model=%s (%s), trying next", model, e.__class__.__name__)
                continue

            if text.strip():
                logger.info("LLM: completed provider=%s model=%s (%.2fs)", self.provider, model, time.monotonic() - t0)
                return LLMResult(success=True, text=text, provider=self.provider)

            last_error = RuntimeError(f"Model returned no content: {model}")

        if last_error is not None and _is_rate_limit_error(last_error):
            error = f"{self.provider} is rate-limited."
        elif last_error is not None and _is_connection_error(last_error):
            error = f"{self.provider} network/timeout error."
        elif last_error is not None:
            error = f"All {self.provider} models failed: {last_error}"
        else:
            error = f"All {self.provider} models failed."
        return LLMResult(success=False, error=error, provider=self.provider)


class RestLLMClient:
    """
    Gemini / Claude over plain JSON POSTs through the ResilientRequestExecutor.

    Only the envelope differs per provider; retries and rate limits are the executor's job.
    """

    def __init__(
        self,
        *,
        provider: str,
        api_key: str | None,
        executor: ResilientRequestExecutor,
        model: str | None = None,
    ) -> None:
        self.provider = provider
        self._api_key = api_key
        self._executor = executor
        if provider == "gemini":
            self._model = model or GEMINI_DEFAULT_MODEL
        elif provider == "claude":
            self._model = model or CLAUDE_DEFAULT_MODEL
        else:
            raise ValueError(f"RestLLMClient does not speak {provider!r}")

    def complete(self, prompt: str) -> LLMResult:
        if not self._api_key:
            return LLMResult(success=False, error=f"{self.provider.capitalize()} API Key missing", provider=self.provider)

        if self.provider == "gemini":
            response = self._executor.post(
                GEMINI_URL.format(model=self._model),
                params={"key": self._api_key},
                json_body={"contents": [{"parts": [{"text": prompt}]}]},
                headers={"Content-Type": "application/json"},
            )
        else:
            response = self._executor.post(
                CLAUDE_URL,
                json_body={
                    "model": self._model,
                    "max_tokens": CLAUDE_MAX_TOKENS,
                    "messages": [{"role": "user", "content": prompt}],
                },
                headers={
                    "Content-Type": "application/json",
                    "x-api-key": self._api_key,
                    "anthropic-version": CLAUDE_API_VERSION,
                },
            )

        label = self.provider.capitalize()
        if response.status_code != 200:
            return LLMResult(success=False, error=f"{label} API Error: {response.describe()}", provider=self.provider)

        text = self._extract_text(response.json())
        if not text:
            return LLMResult(success=False, error=f"{label} API Error: empty response", provider=self.provider)
        return LLMResult(success=True, text=text, provider=self.provider)

    def _extract_text(self, payload: Any) -> str:
        try:
            if self.provider == "gemini":
                return str(payload["candidates"][0]["content"]["parts"][0]["text"] or "")
            return str(payload["content"][0]["text"] or "")
        except (KeyError, IndexError, TypeError):
            return ""


class UnavailableLLMClient:
    """Stands in for a provider that cannot be called: every completion fails with `error`."""

    def __init__(self, provider: str, error: str) -> None:
        self.provider = provider
        self.error = error

    def complete(self, prompt: str) -> LLMResult:
        return LLMResult(success=False, error=self.error, provider=self.provider)


def build_llm_client(settings: Any, executor: ResilientRequestExecutor, provider: str | None = None) -> Any:
    """
    Provider factory.

    - gemini / claude -> RestLLMClient
    - openai / perplexity / openrouter -> OpenAICompatibleClient
    - known provider without an API key -> UnavailableLLMClient ("<Provider> API Key missing"),
      or OfflineLLMClient when settings.llm_offline_demo is on
    - anything else -> UnavailableLLMClient ("Unsupported AI provider: <name>")
    """
    name = (provider or getattr(settings, "ai_provider", "") or "").strip().lower()
    api_key = settings.api_key_for(name) if hasattr(settings, "api_key_for") else None
    # AGENT_LLM_MODELS applies to the primary provider only.
    primary = name == getattr(settings, "ai_provider", "")
    models: List[str] = list(getattr(settings, "llm_models", []) or []) if primary else []

    if name not in ("gemini", "claude") and name not in OPENAI_COMPATIBLE:
        logger.error("Unsupported AI provider: %s", name)
        return UnavailableLLMClient(name, f"Unsupported AI provider: {name}")

    if not api_key:
        if getattr(settings, "llm_offline_demo", False):
            logger.warning("No API key for provider=%s; offline demo mode, answers are canned.", name)
            return OfflineLLMClient(provider=name)
        logger.error("No API key for provider=%s; every LLM call will fail.", name)
        return UnavailableLLMClient(name, f"{name.capitalize()} API Key missing")

    if name in ("gemini", "claude"):
        return RestLLMClient(
            provider=name,
            api_key=api_key,
            executor=executor,
            model=models[0] if models else None,
        )

    base_url, default_models = OPENAI_COMPATIBLE[name]
    models = models or list(default_models)

    return OpenAICompatibleClient(
        provider=name,
        api_key=api_key,
        base_url=base_url,
        models=models,
        extra_headers=dict(getattr(settings, "extra_headers", {}) or {}) if name == "openrouter" else None,
        timeout=executor.policy.timeout(),
    )
