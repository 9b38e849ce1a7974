"""Per-file serialization for read-modify-write edits.

Zone files, the DNS include config, and the shared crontab are edited by
reading the whole file, changing it in memory, and writing it back. Every
such edit holds the lock for its key: a thread lock within the process and,
when a lock directory is configured, an ``flock`` on a per-key lock file so
separate hostctl processes are serialized too.
"""

from __future__ import annotations

import fcntl
import hashlib
import threading
from contextlib import contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


class FileLocks:
    """Registry of one mutex per backend file key."""

    def __init__(self, lock_dir: Path | None = None) -> None:
        self._lock_dir = lock_dir
        self._guard = threading.Lock()
        self._locks: dict[str, threading.RLock] = {}

    def _thread_lock(self, key: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        """Hold the lock for *key* for the duration of the block."""
        with self._thread_lock(key):
            if self._lock_dir is None:
                yield
                return
            self._lock_dir.mkdir(parents=True, exist_ok=True)
            digest = hashlib.sha1(key.encode("utf-8"), usedforsecurity=False).hexdigest()[:16]
            lock_path = self._lock_dir / f"{digest}.lock"
            with lock_path.open("a") as fh:
                fcntl.flock(fh.fileno(), fcntl.LOCK_EX)
                try:
                    yield
                finally:
                    fcntl.flock(fh.fileno(), fcntl.LOCK_UN)
