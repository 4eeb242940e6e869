# src/agent_monitor/workflows/text.py

"""Plain-text helpers shared by workflows and title rewriting."""

from __future__ import annotations

import html
import re

_SCRIPT_STYLE_RE = re.compile(r"<(script|style)\b[^>]*>.*?</\1>", re.IGNORECASE | re.DOTALL)
_TAG_RE = re.compile(r"<[^>]+>")
_WHITESPACE_RE = re.compile(r"\s+")
_TITLE_RE = re.compile(r"<title[^>]*>(.*?)</title>", re.IGNORECASE | re.DOTALL)
_TITLE_SUFFIX_RE = re.compile(r"\s+[|\-–—]\s+.+$")

_FENCE_RE = re.compile(r"```[a-z]*\n(.*?)\n```", re.DOTALL)
_INLINE_CODE_RE = re.compile(r"`([^`]+)`")
_BOLD_RE = re.compile(r"\*\*([^*]+)\*\*")
_ITALIC_RE = re.compile(r"\*([^*]+)\*")
_HEADING_RE = re.compile(r"^#{1,6}\s+(.+)$", re.MULTILINE)
_IMAGE_RE = re.compile(r"!\[([^\]]+)\]\([^)]+\)")


def html_to_text(raw_html: str, max_chars: int = 0) -> str:
    """Visible text of an HTML page: scripts/styles dropped, tags removed, entities unescaped."""
    if not raw_html:
        return ""
    no_scripts = _SCRIPT_STYLE_RE.sub(" ", raw_html)
    stripped = _TAG_RE.sub(" ", no_scripts)
    text = _WHITESPACE_RE.sub(" ", html.unescape(stripped)).strip()
    if max_chars > 0:
        text = text[:max_chars]
    return text


def html_title(raw_html: str) -> str | None:
    """<title> text with a trailing " | Site name" style suffix removed."""
    m = _TITLE_RE.search(raw_html or "")
    if not m:
        return None
    title = _WHITESPACE_RE.sub(" ", html.unescape(m.group(1))).strip()
    title = _TITLE_SUFFIX_RE.sub("", title).strip()
    return title or None


def strip_markdown(text: str) -> str:
    out = _FENCE_RE.sub(r"\1", text or "")
    out = _INLINE_CODE_RE.sub(r"\1", out)
    out = _BOLD_RE.sub(r"\1", out)
    out = _ITALIC_RE.sub(r"\1", out)
    out = _HEADING_RE.sub(r"\1", out)
    out = _IMAGE_RE.sub(r"\1", out)
    return _TAG_RE.sub("", out)
