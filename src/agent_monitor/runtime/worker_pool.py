# src/agent_monitor/runtime/worker_pool.py

"""
Fixed-size worker pool with per-item deadlines.

- items go into one shared queue.Queue; exactly `pool_size` threads drain it
- each item runs on its own daemon thread; the worker waits at most
  `item_timeout_seconds` for it, then records a timeout and moves on
- a failing or hanging item never affects its siblings (bulkhead)
- run() returns only after every worker has drained the queue and exited

Python threads cannot be cancelled: a timed-out item keeps running in the
background until its own I/O returns. Such stragglers are accepted, not killed.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

logger = logging.getLogger(__name__)


class ItemStatus(StrEnum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


@dataclass(slots=True)
class ItemOutcome:
    item: Any
    status: ItemStatus
    result: Any = None
    error: str | None = None
    elapsed_seconds: float = 0.0
    worker: str = ""

    @property
    def ok(self) -> bool:
        return self.status == ItemStatus.SUCCEEDED


@dataclass(slots=True)
class PoolReport:
    outcomes: list[ItemOutcome] = field(default_factory=list)

    def _with(self, status: ItemStatus) -> list[ItemOutcome]:
        return [o for o in self.outcomes if o.status == status]

    @property
    def succeeded(self) -> list[ItemOutcome]:
        return self._with(ItemStatus.SUCCEEDED)

    @property
    def failed(self) -> list[ItemOutcome]:
        return self._with(ItemStatus.FAILED)

    @property
    def timed_out(self) -> list[ItemOutcome]:
        return self._with(ItemStatus.TIMED_OUT)

    def __len__(self) -> int:
        return len(self.outcomes)

    def summary(self) -> str:
        return (
            f"total={len(self.outcomes)} succeeded={len(self.succeeded)} "
            f"failed={len(self.failed)} timed_out={len(self.timed_out)}"
        )


Handler = Callable[[Any], Any]
SettledHook = Callable[[Any, ItemOutcome], None]


class BoundedWorkerPool:
    def __init__(
        self,
        pool_size: int,
        item_timeout_seconds: float | None,
        *,
        name: str = "worker",
    ) -> None:
        if pool_size < 1:
            raise ValueError("pool_size must be >= 1")
        if item_timeout_seconds is not None and item_timeout_seconds <= 0:
            raise ValueError("item_timeout_seconds must be > 0 (or None for no deadline)")
        self.pool_size = int(pool_size)
        self.item_timeout_seconds = item_timeout_seconds
        self.name = name

    def run(
        self,
        items: Iterable[Any],
        handler: Handler,
        *,
        on_settled: SettledHook | None = None,
        describe: Callable[[Any], str] = repr,
    ) -> PoolReport:
        """
        Process every item with `handler` and wait for all workers.

        on_settled(item, outcome) is called exactly once per item, on the worker
        thread, right after the item succeeded, failed or timed out.
        """
        work: queue.Queue[Any] = queue.Queue()
        count = 0
        for item in items:
            work.put(item)
            count += 1

        report = PoolReport()
        if count == 0:
            return report

        report_lock = threading.Lock()

        def record(outcome: ItemOutcome) -> None:
            with report_lock:
                report.outcomes.append(outcome)

        workers = [
            threading.Thread(
                target=self._drain,
                args=(work, handler, on_settled, describe, record),
                name=f"{self.name}-{i + 1}",
            )
            for i in range(self.pool_size)
        ]
        logger.debug("Pool %s starting workers=%d items=%d", self.name, len(workers), count)

        for w in workers:
            w.start()
        for w in workers:
            w.join()

        logger.info("Pool %s finished %s", self.name, report.summary())
        return report

    # ---- worker side ----

    def _drain(
        self,
        work: queue.Queue[Any],
        handler: Handler,
        on_settled: SettledHook | None,
        describe: Callable[[Any], str],
        record: Callable[[ItemOutcome], None],
    ) -> None:
        worker_name = threading.current_thread().name
        while True:
            try:
                item = work.get_nowait()
            except queue.Empty:
                return

            outcome = self._run_one(item, handler, describe, worker_name)
            record(outcome)

            if on_settled is not None:
                try:
                    on_settled(item, outcome)
                except Exception:
                    logger.exception("Pool %s settle hook failed item=%s", self.name, describe(item))

    def _run_one(
        self,
        item: Any,
        handler: Handler,
        describe: Callable[[Any], str],
        worker_name: str,
    ) -> ItemOutcome:
        box: dict[str, Any] = {}
        done = threading.Event()

        def target() -> None:
            try:
                box["result"] = handler(item)
            except Exception as e:
                box["error"] = e
            finally:
                done.set()

        started = time.monotonic()
        runner = threading.Thread(target=target, name=f"{worker_name}-item", daemon=True)
        runner.start()
        finished = done.wait(self.item_timeout_seconds)
        elapsed = time.monotonic() - started

        if not finished:
            logger.error(
                "Pool %s item timed out after %.1fs item=%s (left running in background)",
                self.name,
                elapsed,
                describe(item),
            )
            return ItemOutcome(
                item=item,
                status=ItemStatus.TIMED_OUT,
                error=f"Timed out after {self.item_timeout_seconds}s",
                elapsed_seconds=elapsed,
                worker=worker_name,
            )

        error = box.get("error")
        if error is not None:
            logger.error(
                "Pool %s item failed item=%s error=%s: %s",
                self.name,
                describe(item),
                error.__class__.__name__,
                error,
                exc_info=error,
            )
            return ItemOutcome(
                item=item,
                status=ItemStatus.FAILED,
                error=f"{error.__class__.__name__}: {error}",
                elapsed_seconds=elapsed,
                worker=worker_name,
            )

        return ItemOutcome(
            item=item,
            status=ItemStatus.SUCCEEDED,
            result=box.get("result"),
            elapsed_seconds=elapsed,
            worker=worker_name,
        )


def run_bounded(
    items: Iterable[Any],
    handler: Handler,
    *,
    pool_size: int,
    item_timeout_seconds: float | None,
    on_settled: SettledHook | None = None,
) -> PoolReport:
    """Convenience wrapper: one-off pool run."""
    pool = BoundedWorkerPool(pool_size, item_timeout_seconds)
    return pool.run(items, handler, on_settled=on_settled)
