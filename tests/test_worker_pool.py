# tests/test_worker_pool.py

from __future__ import annotations

import threading
import time
from collections import Counter

import pytest

from agent_monitor.runtime.worker_pool import BoundedWorkerPool, ItemStatus, run_bounded


def test_bulkhead_one_item_times_out_others_complete() -> None:
    release = threading.Event()

    def handler(item: int) -> int:
        if item == 2:
            release.wait(5.0)  # hangs past the deadline
        return item * 10

    pool = BoundedWorkerPool(3, 0.2)
    try:
        report = pool.run([1, 2, 3, 4, 5], handler)
    finally:
        release.set()

    assert len(report) == 5
    by_item = {o.item: o for o in report.outcomes}
    assert by_item[2].status == ItemStatus.TIMED_OUT
    for item in (1, 3, 4, 5):
        assert by_item[item].ok
        assert by_item[item].result == item * 10
    assert len(report.succeeded) == 4
    assert len(report.timed_out) == 1


def test_exception_in_one_item_is_isolated() -> None:
    def handler(item: str) -> str:
        if item == "bad":
            raise RuntimeError("kaboom")
        return item.upper()

    report = BoundedWorkerPool(2, 1.0).run(["a", "bad", "c"], handler)

    failed = report.failed
    assert len(failed) == 1
    assert failed[0].item == "bad"
    assert "RuntimeError: kaboom" in (failed[0].error or "")
    assert sorted(o.result for o in report.succeeded) == ["A", "C"]


def test_on_settled_called_exactly_once_per_item_whatever_the_outcome() -> None:
    settled: Counter[int] = Counter()
    lock = threading.Lock()
    release = threading.Event()

    def handler(item: int) -> None:
        if item == 1:
            raise ValueError("boom")
        if item == 2:
            release.wait(5.0)

    def on_settled(item: int, outcome) -> None:
        with lock:
            settled[item] += 1

    try:
        BoundedWorkerPool(2, 0.2).run([0, 1, 2, 3], handler, on_settled=on_settled)
    finally:
        release.set()

    assert settled == Counter({0: 1, 1: 1, 2: 1, 3: 1})


def test_at_most_pool_size_items_run_at_once() -> None:
    active = 0
    peak = 0
    lock = threading.Lock()

    def handler(item: int) -> None:
        nonlocal active, peak
        with lock:
            active += 1
            peak = max(peak, active)
        time.sleep(0.05)
        with lock:
            active -= 1

    report = run_bounded(range(9), handler, pool_size=3, item_timeout_seconds=2.0)

    assert len(report.succeeded) == 9
    assert peak <= 3


def test_workers_are_named_after_the_pool() -> None:
    report = BoundedWorkerPool(2, 1.0, name="monitor").run([1, 2, 3], lambda i: i)
    assert all(o.worker.startswith("monitor-") for o in report.outcomes)


def test_empty_input_returns_empty_report() -> None:
    report = BoundedWorkerPool(3, 1.0).run([], lambda i: i)
    assert len(report) == 0
    assert report.summary() == "total=0 succeeded=0 failed=0 timed_out=0"


@pytest.mark.parametrize(("size", "timeout"), [(0, 1.0), (2, 0), (2, -1.0)])
def test_invalid_configuration_rejected(size: int, timeout: float) -> None:
    with pytest.raises(ValueError):
        BoundedWorkerPool(size, timeout)
