# tests/test_llm_client.py

from __future__ import annotations

import json
from types import SimpleNamespace

import httpx
import pytest

from agent_monitor.llm.client import (
    OpenAICompatibleClient,
    RestLLMClient,
    UnavailableLLMClient,
    build_llm_client,
    friendly_llm_error_message,
)
from agent_monitor.llm.offline import OfflineLLMClient
from agent_monitor.net.http_executor import ResilientRequestExecutor, RetryPolicy

from .fakes import SleepRecorder


class NotFoundError(Exception):
    pass


class AuthenticationError(Exception):
    pass


class APIConnectionError(Exception):
    pass


class FakeCompletions:
    """chat.completions stand-in: per-model outcome is either a text or an exception."""

    def __init__(self, outcomes: dict[str, object]) -> None:
        self.outcomes = outcomes
        self.calls: list[dict] = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        outcome = self.outcomes[kwargs["model"]]
        if isinstance(outcome, Exception):
            raise outcome
        message = SimpleNamespace(content=outcome)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _openai_client(outcomes: dict[str, object], **kwargs) -> tuple[OpenAICompatibleClient, FakeCompletions]:
    completions = FakeCompletions(outcomes)
    fake = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    client = OpenAICompatibleClient(
        provider="openrouter",
        api_key="k",
        base_url="https://llm.test/v1",
        models=list(outcomes),
        client=fake,
        **kwargs,
    )
    return client, completions


def _executor(handler) -> ResilientRequestExecutor:
    http = httpx.Client(transport=httpx.MockTransport(handler))
    return ResilientRequestExecutor(RetryPolicy(max_retries=0), client=http, sleep=SleepRecorder())


def _settings(**overrides) -> SimpleNamespace:
    keys = overrides.pop("api_keys", {})
    values = {
        "ai_provider": "gemini",
        "llm_models": [],
        "extra_headers": {"X-Title": "agent-monitor"},
        "api_key_for": lambda provider: keys.get(provider),
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def test_first_working_model_wins() -> None:
    client, completions = _openai_client(
        {"missing": NotFoundError("404"), "flaky": APIConnectionError("reset"), "good": "Hello"},
        extra_headers={"X-Title": "t"},
    )

    result = client.complete("hi")

    assert result.success and result.text == "Hello"
    assert [c["model"] for c in completions.calls] == ["missing", "flaky", "good"]
    assert completions.calls[-1]["messages"] == [{"role": "user", "content": "hi"}]
    assert completions.calls[-1]["extra_headers"] == {"X-Title": "t"}


def test_missing_model_is_parked() -> None:
    client, completions = _openai_client({"missing": NotFoundError("404"), "good": "Hello"})

    client.complete("one")
    client.complete("two")

    assert [c["model"] for c in completions.calls] == ["missing", "good", "good"]


def test_auth_error_fails_fast() -> None:
    client, completions = _openai_client({"a": AuthenticationError("401"), "b": "never"})

    result = client.complete("hi")

    assert not result.success
    assert result.error == "openrouter authentication failed: AuthenticationError"
    assert len(completions.calls) == 1


def test_all_models_failing_is_a_result_not_an_exception() -> None:
    client, _ = _openai_client({"a": APIConnectionError("reset"), "b": APIConnectionError("reset")})
    result = client.complete("hi")
    assert not result.success
    assert result.error == "openrouter network/timeout error."


def test_empty_content_moves_to_next_model() -> None:
    client, _ = _openai_client({"a": "   ", "b": "real"})
    assert client.complete("hi").text == "real"


def test_gemini_request_and_response() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": "Gemini says hi"}]}}]})

    client = RestLLMClient(provider="gemini", api_key="gk", executor=_executor(handler))
    result = client.complete("hello")

    assert result.success and result.text == "Gemini says hi"
    request = seen[0]
    assert request.url.path.endswith("/models/gemini-1.5-flash:generateContent")
    assert request.url.params["key"] == "gk"
    assert json.loads(request.content) == {"contents": [{"parts": [{"text": "hello"}]}]}


def test_claude_request_and_response() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"content": [{"type": "text", "text": "Claude says hi"}]})

    client = RestLLMClient(provider="claude", api_key="ck", executor=_executor(handler), model="claude-x")
    result = client.complete("hello")

    assert result.success and result.text == "Claude says hi"
    request = seen[0]
    assert request.headers["x-api-key"] == "ck"
    assert request.headers["anthropic-version"] == "2023-06-01"
    body = json.loads(request.content)
    assert body["model"] == "claude-x"
    assert body["max_tokens"] == 4096


def test_rest_client_errors() -> None:
    client = RestLLMClient(provider="claude", api_key=None, executor=_executor(lambda r: httpx.Response(200)))
    assert client.complete("x").error == "Claude API Key missing"

    failing = RestLLMClient(
        provider="gemini",
        api_key="gk",
        executor=_executor(lambda r: httpx.Response(403, text="denied")),
    )
    assert failing.complete("x").error == "Gemini API Error: HTTP 403 - denied"

    empty = RestLLMClient(provider="gemini", api_key="gk", executor=_executor(lambda r: httpx.Response(200, json={})))
    assert empty.complete("x").error == "Gemini API Error: empty response"


def test_rest_client_rejects_other_providers() -> None:
    with pytest.raises(ValueError):
        RestLLMClient(provider="openai", api_key="k", executor=_executor(lambda r: httpx.Response(200)))


def test_factory_picks_client_per_provider() -> None:
    executor = _executor(lambda r: httpx.Response(200))
    settings = _settings(api_keys={"gemini": "g", "perplexity": "p"}, llm_models=["gemini-pro"])

    assert isinstance(build_llm_client(settings, executor), RestLLMClient)
    search = build_llm_client(settings, executor, provider="perplexity")
    assert isinstance(search, OpenAICompatibleClient)
    # Custom models belong to the primary provider only.
    assert search._models == ["llama-3.1-sonar-large-128k-online"]


@pytest.mark.parametrize(("provider", "error"), [("openai", "Openai API Key missing"), ("gemini", "Gemini API Key missing")])
def test_factory_without_key_fails_every_call(provider: str, error: str) -> None:
    client = build_llm_client(_settings(ai_provider=provider), _executor(lambda r: httpx.Response(200)))

    result = client.complete("Plan the offsite")

    assert isinstance(client, UnavailableLLMClient)
    assert not result.success
    assert result.error == error
    assert friendly_llm_error_message(result.error, provider).startswith("LLM is not configured")


def test_factory_without_key_in_demo_mode_goes_offline() -> None:
    settings = _settings(ai_provider="openai", llm_offline_demo=True)
    client = build_llm_client(settings, _executor(lambda r: httpx.Response(200)))
    assert isinstance(client, OfflineLLMClient)
    assert client.provider == "openai"


def test_factory_unknown_provider() -> None:
    client = build_llm_client(_settings(ai_provider="llamafile"), _executor(lambda r: httpx.Response(200)))
    assert isinstance(client, UnavailableLLMClient)
    assert client.complete("x").error == "Unsupported AI provider: llamafile"


def test_offline_client() -> None:
    offline = OfflineLLMClient(provider="gemini")
    assert offline.complete("Generate a concise task title (max 10 words)").text == "Offline demo task"
    reply = offline.complete("Plan the offsite")
    assert reply.success
    assert "GEMINI_API_KEY" in reply.text and "Plan the offsite" in reply.text


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (
            "Gemini API Key missing",
            "LLM is not configured (missing API key). Set GEMINI_API_KEY in .env (see .env.example).",
        ),
        ("gemini authentication failed: AuthenticationError", "LLM authentication failed. Check GEMINI_API_KEY."),
        ("gemini is rate-limited.", "LLM is rate-limited. Try again later."),
        (None, "LLM error."),
        ("boom", "boom"),
    ],
)
def test_friendly_error_messages(error: str | None, expected: str) -> None:
    assert friendly_llm_error_message(error, "gemini") == expected
