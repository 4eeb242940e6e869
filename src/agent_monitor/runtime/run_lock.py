# src/agent_monitor/runtime/run_lock.py

"""
Cross-process run lock.

An advisory OS lock (flock on POSIX, msvcrt byte lock on Windows) on one well-known
file. Acquisition never blocks: when another process holds the lock the caller gets
an ALREADY_HELD lease and is expected to skip its cycle. The owner writes its PID into
the file so a hung run can be identified from outside.

The OS drops the lock when the handle is closed, including when the process dies,
so a crash never leaves a stuck lock behind.
"""

from __future__ import annotations

import logging
import os
from enum import StrEnum
from pathlib import Path
from typing import IO

from ..core.errors import RunLockError

logger = logging.getLogger(__name__)


class LockState(StrEnum):
    OWNED = "owned"
    ALREADY_HELD = "already_held"


def _lock_nonblocking(handle: IO[str]) -> bool:
    try:
        if os.name == "nt":
            import msvcrt

            handle.seek(0)
            msvcrt.locking(handle.fileno(), msvcrt.LK_NBLCK, 1)
        else:
            import fcntl

            fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        return True
    except OSError:
        return False


def _unlock(handle: IO[str]) -> None:
    try:
        if os.name == "nt":
            import msvcrt

            handle.seek(0)
            msvcrt.locking(handle.fileno(), msvcrt.LK_UNLCK, 1)
        else:
            import fcntl

            fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
    except OSError:
        logger.debug("Run lock unlock failed (handle closing anyway).", exc_info=True)


class RunLockLease:
    """
    Result of RunLock.try_acquire().

    Use it as a context manager; leaving the block releases an owned lock.
    """

    def __init__(
        self,
        *,
        state: LockState,
        path: Path,
        holder_pid: str | None,
        handle: IO[str] | None = None,
    ) -> None:
        self.state = state
        self.path = path
        self.holder_pid = holder_pid
        self._handle = handle

    @property
    def owned(self) -> bool:
        return self.state == LockState.OWNED and self._handle is not None

    def release(self) -> None:
        handle, self._handle = self._handle, None
        if handle is None:
            return
        try:
            _unlock(handle)
        finally:
            handle.close()
        logger.debug("Run lock released path=%s", self.path)

    def __enter__(self) -> RunLockLease:
        return self

    def __exit__(self, *_: object) -> None:
        self.release()

    def __repr__(self) -> str:
        return f"RunLockLease(state={self.state.value}, path={str(self.path)!r}, holder_pid={self.holder_pid!r})"


class RunLock:
    """Single-holder, non-reentrant lock scoped to a whole monitoring cycle."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _open(self) -> IO[str]:
        try:
            fd = os.open(str(self.path), os.O_RDWR | os.O_CREAT, 0o644)
        except OSError as e:
            raise RunLockError(f"Cannot open run lock file {self.path}: {e}") from e
        return os.fdopen(fd, "r+", encoding="utf-8")

    def try_acquire(self) -> RunLockLease:
        """
        Try to take the lock without waiting.

        Raises RunLockError only when the lock file itself is unusable
        (missing directory, permissions): that is a startup problem, not contention.
        """
        handle = self._open()

        if not _lock_nonblocking(handle):
            try:
                handle.seek(0)
                holder = handle.read().strip() or "unknown"
            except OSError:
                holder = "unknown"
            finally:
                handle.close()
            return RunLockLease(state=LockState.ALREADY_HELD, path=self.path, holder_pid=holder)

        pid = str(os.getpid())
        try:
            handle.seek(0)
            handle.truncate()
            handle.write(pid)
            handle.flush()
        except OSError:
            # The lock is ours even if the diagnostic PID could not be written.
            logger.warning("Could not write PID into run lock file %s", self.path, exc_info=True)

        logger.debug("Run lock acquired path=%s pid=%s", self.path, pid)
        return RunLockLease(state=LockState.OWNED, path=self.path, holder_pid=pid, handle=handle)
