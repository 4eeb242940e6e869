# src/agent_monitor/runtime/ledger.py

from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path

logger = logging.getLogger(__name__)


class ProcessedCommentLedger:
    """
    Persistent set of (task_id, comment_id) pairs that were already handled.

    On-disk format (JSON):
        {"<task_id>": ["<comment_id>", ...], ...}

    - The whole file is read once at construction. A missing file is an empty ledger;
      an unreadable or malformed file is logged as a warning and also treated as empty,
      so losing dedup history never stops the monitor.
    - Every new mark is flushed synchronously (tmp file + fsync + os.replace).
    - One lock serialises marks from concurrent workers, in memory and on disk.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()
        self._entries: dict[str, set[str]] = self._load()
        logger.info(
            "Ledger ready path=%s tasks=%d comments=%d",
            self._path,
            len(self._entries),
            sum(len(v) for v in self._entries.values()),
        )

    @property
    def path(self) -> Path:
        return self._path

    # ---- public API ----

    def is_processed(self, task_id: str, comment_id: str) -> bool:
        with self._lock:
            return str(comment_id) in self._entries.get(str(task_id), ())

    def mark_processed(self, task_id: str, comment_id: str) -> None:
        """Idempotent: marking an already-marked pair does nothing."""
        task_key, comment_key = str(task_id), str(comment_id)
        with self._lock:
            bucket = self._entries.setdefault(task_key, set())
            if comment_key in bucket:
                return
            bucket.add(comment_key)
            self._flush_locked()
        logger.debug("Ledger mark task_id=%s comment_id=%s", task_key, comment_key)

    def processed_for(self, task_id: str) -> frozenset[str]:
        with self._lock:
            return frozenset(self._entries.get(str(task_id), ()))

    def __len__(self) -> int:
        with self._lock:
            return sum(len(v) for v in self._entries.values())

    # ---- persistence ----

    def _load(self) -> dict[str, set[str]]:
        if not self._path.exists():
            return {}

        try:
            data = json.loads(self._path.read_text("utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Ledger %s is unreadable (%s); starting with an empty ledger.", self._path, e)
            return {}

        if not isinstance(data, dict):
            logger.warning(
                "Ledger %s has unexpected shape (%s); starting with an empty ledger.",
                self._path,
                type(data).__name__,
            )
            return {}

        out: dict[str, set[str]] = {}
        skipped = 0
        for task_id, comment_ids in data.items():
            if not isinstance(comment_ids, list):
                skipped += 1
                continue
            out[str(task_id)] = {str(c) for c in comment_ids if isinstance(c, (str, int))}
        if skipped:
            logger.warning("Ledger %s: ignored %d malformed task entries.", self._path, skipped)
        return out

    def _flush_locked(self) -> None:
        payload = {task_id: sorted(ids) for task_id, ids in self._entries.items()}
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(payload, f, ensure_ascii=False, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, self._path)
        except OSError:
            # The in-memory mark still holds for this process lifetime.
            logger.exception("Failed to persist ledger to %s", self._path)
