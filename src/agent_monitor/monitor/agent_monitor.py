# src/agent_monitor/monitor/agent_monitor.py

"""
Monitor cycle.

One cycle:
    Idle -> LockAcquired -> FetchingNewTasks -> ProcessingNewTasks
         -> FetchingFollowUps -> ProcessingFollowUps -> Done

- Skipped: the run lock is held by another process (nothing else happens).
- CycleFailed: an unexpected exception in any phase (logged; the lock is still released).

Phase 1 handles open tasks that have no successful agent reply yet.
Phase 2 handles new comments: every comment not yet in the ledger becomes one work item,
except the agent's own comments, which are marked immediately and never handled.
Each follow-up item is marked in the ledger exactly once after its attempt settles,
whatever the outcome. A handler that keeps crashing therefore cannot loop forever.
An item that outlives the per-item timeout gets a failure reply and a timeout title.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import StrEnum

from ..core.errors import FatalStartupError
from ..core.models import Task, TriggerKind, WorkflowResult, WorkItem
from ..core.ports import Workflow
from ..core.state import MonitorState
from ..routing import route, route_from_comment
from ..runtime.run_lock import RunLock
from ..runtime.worker_pool import BoundedWorkerPool, ItemOutcome, ItemStatus, PoolReport
from ..workflows import build_workflow
from . import signatures
from .titles import generate_descriptive_title

logger = logging.getLogger(__name__)

WorkflowFactory = Callable[..., Workflow]


class CycleState(StrEnum):
    IDLE = "idle"
    LOCK_ACQUIRED = "lock_acquired"
    FETCHING_NEW_TASKS = "fetching_new_tasks"
    PROCESSING_NEW_TASKS = "processing_new_tasks"
    FETCHING_FOLLOW_UPS = "fetching_follow_ups"
    PROCESSING_FOLLOW_UPS = "processing_follow_ups"
    DONE = "done"
    SKIPPED = "skipped"
    CYCLE_FAILED = "cycle_failed"


TERMINAL_STATES = frozenset({CycleState.DONE, CycleState.SKIPPED, CycleState.CYCLE_FAILED})


@dataclass(slots=True)
class CycleReport:
    state: CycleState = CycleState.IDLE
    history: list[CycleState] = field(default_factory=lambda: [CycleState.IDLE])
    lock_holder: str | None = None
    new_tasks: PoolReport | None = None
    follow_ups: PoolReport | None = None
    self_comments_marked: int = 0
    error: str | None = None
    started_at: float = field(default_factory=time.monotonic)
    finished_at: float | None = None

    def advance(self, state: CycleState) -> None:
        self.state = state
        self.history.append(state)
        if state in TERMINAL_STATES:
            self.finished_at = time.monotonic()
        logger.debug("Cycle state -> %s", state.value)

    @property
    def elapsed_seconds(self) -> float:
        end = self.finished_at if self.finished_at is not None else time.monotonic()
        return end - self.started_at

    def summary(self) -> str:
        parts = [f"state={self.state.value}", f"elapsed={self.elapsed_seconds:.1f}s"]
        if self.new_tasks is not None:
            parts.append(f"new_tasks[{self.new_tasks.summary()}]")
        if self.follow_ups is not None:
            parts.append(f"follow_ups[{self.follow_ups.summary()}]")
        if self.self_comments_marked:
            parts.append(f"self_comments_marked={self.self_comments_marked}")
        if self.error:
            parts.append(f"error={self.error}")
        return " ".join(parts)


def _describe(item: object) -> str:
    if isinstance(item, WorkItem):
        return item.key
    if isinstance(item, Task):
        return item.id
    return repr(item)


class AgentMonitor:
    def __init__(
        self,
        state: MonitorState,
        run_lock: RunLock,
        pool: BoundedWorkerPool,
        *,
        workflow_factory: WorkflowFactory = build_workflow,
    ) -> None:
        self.state = state
        self.run_lock = run_lock
        self.pool = pool
        self._workflow_factory = workflow_factory

    @property
    def _settings(self):
        return self.state.settings

    # ---- cycle ----

    def run_cycle(self) -> CycleReport:
        """
        Run one monitoring cycle.

        Never raises, except FatalStartupError when the lock file itself is unusable.
        """
        report = CycleReport()
        lease = self.run_lock.try_acquire()

        if not lease.owned:
            report.lock_holder = lease.holder_pid
            report.advance(CycleState.SKIPPED)
            logger.info("Previous run still in progress (PID: %s), skipping cycle.", lease.holder_pid)
            return report

        with lease:
            report.lock_holder = lease.holder_pid
            report.advance(CycleState.LOCK_ACQUIRED)
            logger.info("Starting agent monitor cycle pid=%s", lease.holder_pid)
            try:
                self._run_phases(report)
            except FatalStartupError:
                raise
            except Exception as e:
                report.error = f"{e.__class__.__name__}: {e}"
                report.advance(CycleState.CYCLE_FAILED)
                logger.exception("Agent monitor cycle failed")
            else:
                report.advance(CycleState.DONE)

        logger.info("Agent monitor cycle complete %s", report.summary())
        return report

    def _run_phases(self, report: CycleReport) -> None:
        report.advance(CycleState.FETCHING_NEW_TASKS)
        tasks = self.fetch_open_tasks()
        logger.info("Found %d open tasks", len(tasks))

        report.advance(CycleState.PROCESSING_NEW_TASKS)
        report.new_tasks = self.pool.run(tasks, self.process_task, on_settled=self._settle, describe=_describe)

        if not getattr(self._settings, "enable_comment_monitoring", True):
            logger.info("Comment monitoring disabled; skipping follow-ups.")
            return

        report.advance(CycleState.FETCHING_FOLLOW_UPS)
        items, marked = self.collect_follow_ups(self.fetch_open_tasks())
        report.self_comments_marked = marked
        logger.info("Found %d new comment(s) to handle (%d own comments marked)", len(items), marked)

        report.advance(CycleState.PROCESSING_FOLLOW_UPS)
        report.follow_ups = self.pool.run(
            items,
            self.process_comment,
            on_settled=self._settle,
            describe=_describe,
        )

    # ---- fetching ----

    def fetch_open_tasks(self) -> list[Task]:
        """Open tasks across all monitored projects, de-duplicated by id (first wins)."""
        seen: set[str] = set()
        out: list[Task] = []
        for project_id in getattr(self._settings, "project_ids", []) or []:
            for task in self.state.tracker.fetch_open_tasks(project_id):
                if task.id in seen:
                    continue
                seen.add(task.id)
                out.append(task)
        return out

    def collect_follow_ups(self, tasks: Sequence[Task]) -> tuple[list[WorkItem], int]:
        """
        Build one work item per unprocessed comment.

        Own comments (author is the agent, or the text carries an agent signature) are
        marked in the ledger right here and never reach a handler.
        """
        items: list[WorkItem] = []
        marked = 0
        agent_name = self.state.agent_name
        ledger = self.state.ledger

        for task in tasks:
            for comment in self.state.tracker.fetch_comments(task.id):
                if ledger.is_processed(task.id, comment.id):
                    continue
                if comment.author_name == agent_name or signatures.is_agent_generated(comment.text):
                    logger.debug("Skipping own comment task_id=%s comment_id=%s", task.id, comment.id)
                    ledger.mark_processed(task.id, comment.id)
                    marked += 1
                    continue
                items.append(WorkItem(task=task, trigger=TriggerKind.COMMENT_FOLLOW_UP, comment=comment))
        return items, marked

    # ---- phase 1 ----

    def process_task(self, task: Task) -> WorkflowResult | None:
        comments = self.state.tracker.fetch_comments(task.id)
        if signatures.has_successful_response(comments):
            logger.debug("Task already answered task_id=%s", task.id)
            return None

        logger.info("Processing task task_id=%s title=%r", task.id, task.title)
        variant = route(task)
        logger.info("Routing task_id=%s -> %s", task.id, variant.value)

        result = self._run_workflow(
            task,
            lambda: self._workflow_factory(
                variant,
                task,
                self.state,
                trigger=TriggerKind.NEW_TASK,
                comment_text=None,
                all_comments=comments,
            ),
        )

        if result.success and getattr(self._settings, "auto_complete_tasks", False):
            done = self.state.tracker.complete_task(task.id)
            if not done.success:
                logger.error("Failed to complete task task_id=%s error=%s", task.id, done.error)
        return result

    # ---- phase 2 ----

    def process_comment(self, item: WorkItem) -> WorkflowResult | None:
        task, comment = item.task, item.comment
        if comment is None:
            return self.process_task(task)

        logger.info("Processing comment task_id=%s comment_id=%s text=%r", task.id, comment.id, comment.text[:50])

        comments = self.state.tracker.fetch_comments(task.id)

        if signatures.has_successful_response(comments):
            if signatures.asks_for_email_draft(comment.text):
                draft = signatures.extract_email_draft(comments)
                if draft:
                    logger.info("Replaying previous email draft task_id=%s comment_id=%s", task.id, comment.id)
                    self.post_reply(task.id, f"📧 Email Draft from previous execution:\n\n{draft}")
                    return WorkflowResult.ok(draft)

            if not (signatures.asks_for_retry(comment.text) or signatures.asks_followup(comment.text)):
                logger.info(
                    "Skipping comment task_id=%s comment_id=%s: task already answered, no retry or question",
                    task.id,
                    comment.id,
                )
                return None

        variant = route_from_comment(comment.text, task)
        logger.info("Routing comment task_id=%s comment_id=%s -> %s", task.id, comment.id, variant.value)

        return self._run_workflow(
            task,
            lambda: self._workflow_factory(
                variant,
                task,
                self.state,
                trigger=TriggerKind.COMMENT_FOLLOW_UP,
                comment_text=comment.text,
                all_comments=comments,
            ),
        )

    # ---- settling ----

    def _settle(self, item: Task | WorkItem, outcome: ItemOutcome) -> None:
        """
        Pool hook for both phases, run once per item on the worker thread.

        A timed-out or crashed item still gets a reply; a comment item is marked
        in the ledger whatever happened. A timed-out handler keeps running in the
        background and may post its own reply later.
        """
        task = item.task if isinstance(item, WorkItem) else item

        if outcome.status == ItemStatus.TIMED_OUT:
            self.post_reply(task.id, f"❌ Workflow failed: {outcome.error}")
            self.update_task_title(task, WorkflowResult.failed(f"Workflow timeout: {outcome.error}"))
        elif outcome.status == ItemStatus.FAILED:
            self.post_reply(task.id, f"❌ Agent error: {outcome.error}")

        if isinstance(item, WorkItem) and item.comment is not None:
            if not outcome.ok:
                logger.warning("Marking failed comment as processed key=%s status=%s", item.key, outcome.status.value)
            self.state.ledger.mark_processed(task.id, item.comment.id)

    # ---- shared ----

    def _run_workflow(self, task: Task, make: Callable[[], Workflow]) -> WorkflowResult:
        try:
            result = make().execute()
        except Exception as e:
            logger.exception("Handler error task_id=%s", task.id)
            self.post_reply(task.id, f"❌ Agent error: {e}")
            result = WorkflowResult.failed(str(e) or e.__class__.__name__)
            self.update_task_title(task, result)
            return result

        if result.success:
            logger.info("Workflow succeeded task_id=%s", task.id)
            self.post_reply(task.id, result.comment)
        else:
            logger.error("Workflow failed task_id=%s error=%s", task.id, result.error)
            text = f"❌ Workflow failed: {result.error}"
            if result.comment:
                text = f"{text}\n\n{result.comment}"
            self.post_reply(task.id, text)
        self.update_task_title(task, result)
        return result

    def post_reply(self, task_id: str, text: str) -> bool:
        posted = self.state.tracker.post_comment(task_id, text)
        if not posted.success:
            logger.error("Failed to add comment task_id=%s error=%s", task_id, posted.error)
        return posted.success

    def update_task_title(self, task: Task, result: WorkflowResult) -> None:
        """Best-effort: any failure here is logged and swallowed."""
        try:
            new_title = generate_descriptive_title(task, result, self.state.llm)
            if not new_title or new_title == task.title or len(new_title) <= 5:
                return
            logger.info("Updating task title task_id=%s %r -> %r", task.id, task.title, new_title)
            renamed = self.state.tracker.rename_task(task.id, new_title)
            if not renamed.success:
                logger.error("Failed to update task title task_id=%s error=%s", task.id, renamed.error)
        except Exception:
            logger.exception("Failed to update task title task_id=%s", task.id)

