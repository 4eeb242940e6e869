# src/agent_monitor/workflows/newsletter_summary.py

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from datetime import date, timedelta
from typing import Any

from ..core.models import WorkflowResult
from .base import BaseWorkflow

logger = logging.getLogger(__name__)

DEFAULT_DAYS = 7

_DAYS_RE = re.compile(r"(?:last|past)\s+(\d+)\s+days?")


def days_from_text(text: str) -> int | None:
    """Window size from phrases like "last 3 days", "past 10 days", "this week", "this month"."""
    lowered = (text or "").lower()
    m = _DAYS_RE.search(lowered)
    if m:
        return int(m.group(1))
    if "this week" in lowered:
        return 7
    if "this month" in lowered:
        return 30
    return None


def format_digest(newsletters: Sequence[dict[str, Any]], days: int) -> str:
    lines = [
        "Newsletter Digest",
        "",
        f"Period : Last {days} days",
        f"Count : {len(newsletters)} newsletters",
        "",
        "---",
        "",
    ]
    for i, item in enumerate(newsletters, start=1):
        lines.append(f"{i}. {item.get('subject', '(no subject)')}")
        lines.append(f"From : {item.get('from', '')}")
        lines.append(f"Date : {item.get('date', '')}")
        lines.append("")
        if item.get("preview"):
            lines.append(f"Preview :\n{item['preview']}")
            lines.append("")
        lines.append("---")
        lines.append("")
    return "\n".join(lines)


class NewsletterSummary(BaseWorkflow):
    name = "NewsletterSummary"

    def _run(self) -> WorkflowResult:
        days = days_from_text(f"{self.task.title} {self.task.notes}") or DEFAULT_DAYS
        today = date.today()
        start = today - timedelta(days=days)

        logger.info("Processing newsletters task_id=%s days=%d", self.task.id, days)

        source = self.state.newsletter_source
        newsletters = list(source.fetch_newsletters(days)) if source is not None else []

        if not newsletters:
            return WorkflowResult.failed(
                "Email provider not configured",
                comment=(
                    "Newsletter summary requires an email provider integration. "
                    "Configure a newsletter source for the monitor."
                ),
            )

        logger.info("Found %d newsletters task_id=%s", len(newsletters), self.task.id)
        digest = format_digest(newsletters, days)

        created = False
        if self.from_comment:
            logger.info("Skipping digest task creation (triggered by comment) task_id=%s", self.task.id)
        else:
            created = self.create_followup_task(
                title=f"Newsletter digest - {start.isoformat()} to {today.isoformat()}",
                notes=digest,
            )

        comment = f"✅ Newsletter digest created ({len(newsletters)} newsletters processed)"
        if created:
            comment += "\n\nDigest task created."
        return WorkflowResult.ok(comment)
