# src/agent_monitor/llm/offline.py

from __future__ import annotations

from ..core.models import LLMResult


class OfflineLLMClient:
    """
    Offline deterministic LLM client for demos (AGENT_LLM_OFFLINE_DEMO=true and no provider key).

    Behavior:
    - Title prompts -> returns a fixed short title
    - Everything else -> a reply that echoes the start of the prompt, no external calls
    """

    def __init__(self, provider: str = "offline") -> None:
        self.provider = provider

    def complete(self, prompt: str) -> LLMResult:
        p = (prompt or "").strip()

        if "concise task title" in p.lower():
            return LLMResult(success=True, text="Offline demo task", provider=self.provider)

        excerpt = p[:200] + ("..." if len(p) > 200 else "")
        text = (
            "Offline demo mode: no external LLM is configured.\n"
            f"Set {self.provider.upper()}_API_KEY to enable real responses.\n\n"
            f"Request: {excerpt}"
        )
        return LLMResult(success=True, text=text, provider=self.provider)
