# src/agent_monitor/workflows/article_summary.py

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from ..core.models import WorkflowResult
from .base import BaseWorkflow
from .prompts import article_summary_prompt
from .text import html_title, html_to_text

logger = logging.getLogger(__name__)

MAX_ARTICLE_CHARS = 8000

_URL_RE = re.compile(r"https?://\S+")
_BARE_DOMAIN_RE = re.compile(r"^\S+\.\S+$")


def extract_url(text: str) -> str | None:
    """First http(s) URL in the text, or the whole text when it is a single bare domain."""
    if not text or not text.strip():
        return None
    m = _URL_RE.search(text)
    if m:
        return m.group(0)
    stripped = text.strip()
    if _BARE_DOMAIN_RE.match(stripped):
        return stripped
    return None


def normalize_url(url: str) -> str:
    return url if url.startswith("http") else f"https://{url}"


@dataclass(frozen=True, slots=True)
class ArticleSummaryData:
    url: str
    title: str
    summary: str


class ArticleSummary(BaseWorkflow):
    name = "ArticleSummary"

    def _run(self) -> WorkflowResult:
        url = self._url_from_task()
        if not url:
            return WorkflowResult.failed(
                "No URL found in task name or notes",
                comment="Please include a URL in the task title or notes.",
            )

        logger.info("Summarizing article task_id=%s url=%s", self.task.id, url)

        data, error = self._fetch_and_summarize(url)
        if data is None:
            return WorkflowResult.failed(f"Failed to summarize article: {error or 'unknown error'}")

        created = False
        if self.from_comment:
            logger.info("Skipping read task creation (triggered by comment) task_id=%s", self.task.id)
        else:
            created = self.create_followup_task(title=f"Read: {data.title}", notes=self._followup_notes(data))

        comment = f"✅ Article summarized: {data.title}\n\n{data.summary}\n\n"
        if created:
            comment += "Read task created."
        return WorkflowResult.ok(comment.rstrip())

    def _url_from_task(self) -> str | None:
        for text in (self.task.title, self.task.notes):
            url = extract_url(text)
            if url:
                return normalize_url(url)
        return None

    def _fetch_and_summarize(self, url: str) -> tuple[ArticleSummaryData | None, str | None]:
        executor = self.state.executor
        if executor is None:
            return None, "HTTP client is not configured"

        response = executor.get(url)
        if not response.ok:
            return None, f"Failed to fetch URL ({response.describe()[:200]})"

        title = html_title(response.text) or url
        content = html_to_text(response.text, max_chars=MAX_ARTICLE_CHARS)
        if not content:
            return None, "No text content found"

        ai = self.state.llm.complete(article_summary_prompt(title, url, content))
        if not ai.success:
            return None, ai.error or "LLM error"

        return ArticleSummaryData(url=url, title=title, summary=ai.text.strip()), None

    @staticmethod
    def _followup_notes(data: ArticleSummaryData) -> str:
        return (
            f"Article : {data.url}\n\n"
            f"Title : {data.title}\n\n"
            f"Summary :\n{data.summary}\n\n"
            f"Original URL : {data.url}"
        )
