# src/agent_monitor/net/http_executor.py

"""
One outbound HTTP call with bounded retries.

Policy (see RetryPolicy):
- transport failure (connect/read timeout, reset, DNS) -> retry after backoff_base ** n seconds
- 429 -> sleep Retry-After (default 60s), then retry exactly like a transport failure
- 5xx -> retry exactly like a transport failure
- anything else (2xx, 3xx, 4xx except 429) -> returned as-is, never retried

execute() never raises. Exhausted retries come back as a synthetic response with
status_code == 0 and a FailureKind, so callers branch on data instead of exceptions.
"""

from __future__ import annotations

import json
import logging
import math
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, NamedTuple

import httpx

logger = logging.getLogger(__name__)

SENTINEL_STATUS = 0
MAX_RETRY_AFTER_SECONDS = 3600.0


class FailureKind(StrEnum):
    TRANSPORT_EXHAUSTED = "transport_exhausted"
    RATE_LIMIT_EXHAUSTED = "rate_limit_exhausted"
    SERVER_ERROR_EXHAUSTED = "server_error_exhausted"
    INVALID_REQUEST = "invalid_request"


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    max_retries: int = 3
    backoff_base_seconds: float = 2.0
    connect_timeout_seconds: float = 10.0
    read_timeout_seconds: float = 30.0
    default_retry_after_seconds: float = 60.0

    def backoff_seconds(self, retries: int) -> float:
        """Delay before retry number `retries` (1-based): 2, 4, 8, ... with the default base."""
        return float(self.backoff_base_seconds) ** int(retries)

    def timeout(self) -> httpx.Timeout:
        return httpx.Timeout(
            connect=self.connect_timeout_seconds,
            read=self.read_timeout_seconds,
            write=self.read_timeout_seconds,
            pool=self.connect_timeout_seconds,
        )

    @classmethod
    def from_settings(cls, settings: Any) -> RetryPolicy:
        return cls(
            max_retries=int(getattr(settings, "http_max_retries", 3)),
            backoff_base_seconds=float(getattr(settings, "http_backoff_base_seconds", 2.0)),
            connect_timeout_seconds=float(getattr(settings, "http_connect_timeout_seconds", 10.0)),
            read_timeout_seconds=float(getattr(settings, "http_read_timeout_seconds", 30.0)),
            default_retry_after_seconds=float(getattr(settings, "http_default_retry_after_seconds", 60.0)),
        )


@dataclass(slots=True)
class HttpResponse:
    """Uniform success/failure envelope for a single logical request."""

    status_code: int
    text: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    error: str | None = None
    failure: FailureKind | None = None
    attempts: int = 1
    last_status: int | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None and 200 <= self.status_code < 300

    def json(self) -> Any:
        """Decoded body, or None when the body is empty or not JSON."""
        if not self.text:
            return None
        try:
            return json.loads(self.text)
        except ValueError:
            return None

    def describe(self) -> str:
        if self.failure is not None:
            return f"{self.failure.value}: {self.error}"
        return f"HTTP {self.status_code} - {self.text[:500]}"


class _RetryableFailure(NamedTuple):
    kind: FailureKind
    message: str
    status: int | None


class ResilientRequestExecutor:
    """
    Thread-safe wrapper around a shared httpx.Client.

    Backoff sleeps happen on the calling thread only, so a worker stuck in a
    retry loop never blocks its siblings in the pool.
    """

    def __init__(
        self,
        policy: RetryPolicy | None = None,
        *,
        client: httpx.Client | None = None,
        headers: Mapping[str, str] | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.policy = policy or RetryPolicy()
        self._sleep = sleep
        self._owns_client = client is None
        self._client = client or httpx.Client(
            timeout=self.policy.timeout(),
            headers=dict(headers or {}),
            follow_redirects=True,
        )
        if client is not None and headers:
            self._client.headers.update(dict(headers))

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> ResilientRequestExecutor:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()

    # ---- public API ----

    def get(self, url: str, **kwargs: Any) -> HttpResponse:
        return self.execute("GET", url, **kwargs)

    def post(self, url: str, **kwargs: Any) -> HttpResponse:
        return self.execute("POST", url, **kwargs)

    def put(self, url: str, **kwargs: Any) -> HttpResponse:
        return self.execute("PUT", url, **kwargs)

    def execute(
        self,
        method: str,
        url: str,
        *,
        json_body: Any = None,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        max_retries: int | None = None,
    ) -> HttpResponse:
        limit = self.policy.max_retries if max_retries is None else max(0, int(max_retries))
        method = method.upper()
        retries = 0

        while True:
            try:
                response = self._client.request(
                    method,
                    url,
                    json=json_body,
                    params=params,
                    headers=dict(headers) if headers else None,
                )
            except httpx.TransportError as exc:
                failure = _RetryableFailure(
                    FailureKind.TRANSPORT_EXHAUSTED,
                    f"{exc.__class__.__name__}: {exc}",
                    None,
                )
            except Exception as exc:
                # Invalid URL, unserialisable body, ...: a caller bug, retrying cannot help.
                logger.error("HTTP request rejected locally method=%s url=%s error=%s", method, url, exc)
                return HttpResponse(
                    status_code=SENTINEL_STATUS,
                    error=f"{exc.__class__.__name__}: {exc}",
                    failure=FailureKind.INVALID_REQUEST,
                    attempts=retries + 1,
                )
            else:
                failure = self._classify(method, url, response)
                if failure is None:
                    return HttpResponse(
                        status_code=response.status_code,
                        text=response.text,
                        headers=dict(response.headers),
                        attempts=retries + 1,
                        last_status=response.status_code,
                    )

            retries += 1
            if retries > limit:
                logger.error(
                    "HTTP request failed method=%s url=%s attempts=%d kind=%s error=%s",
                    method,
                    url,
                    retries,
                    failure.kind.value,
                    failure.message,
                )
                return HttpResponse(
                    status_code=SENTINEL_STATUS,
                    error=failure.message,
                    failure=failure.kind,
                    attempts=retries,
                    last_status=failure.status,
                )

            delay = self.policy.backoff_seconds(retries)
            logger.warning(
                "HTTP retry method=%s url=%s retry=%d/%d reason=%s sleep=%.1fs",
                method,
                url,
                retries,
                limit,
                failure.message,
                delay,
            )
            self._sleep(delay)

    # ---- helpers ----

    def _classify(self, method: str, url: str, response: httpx.Response) -> _RetryableFailure | None:
        status = response.status_code

        if status == 429:
            wait = self._retry_after_seconds(response.headers.get("Retry-After"))
            logger.warning("HTTP 429 rate limited method=%s url=%s retry_after=%.1fs", method, url, wait)
            self._sleep(wait)
            return _RetryableFailure(FailureKind.RATE_LIMIT_EXHAUSTED, "Rate limit 429", status)

        if status >= 500:
            return _RetryableFailure(FailureKind.SERVER_ERROR_EXHAUSTED, f"Server error {status}", status)

        return None

    def _retry_after_seconds(self, raw: str | None) -> float:
        default = float(self.policy.default_retry_after_seconds)
        if raw is None or not raw.strip():
            return default
        try:
            seconds = float(raw.strip())
        except ValueError:
            return default
        if not math.isfinite(seconds):
            return default
        return min(max(0.0, seconds), MAX_RETRY_AFTER_SECONDS)
