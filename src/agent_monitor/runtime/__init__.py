"""
Concurrency primitives of a monitoring cycle.

Components:
- run_lock.py: cross-process, non-blocking, single-holder run lock
- ledger.py: persistent set of processed (task, comment) pairs
- worker_pool.py: fixed-size thread pool with per-item deadlines
"""
