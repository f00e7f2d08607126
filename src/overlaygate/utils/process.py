"""Process-wide helpers."""

from __future__ import annotations

import os
from pathlib import Path

import portalocker


class SingleInstance:
    """Lets one focus feed at a time drive the overlay config.

    The holder writes its pid into the lock file so a refused feed can say who
    owns the config.
    """

    def __init__(self, lockfile: Path) -> None:
        self.lockfile = lockfile
        self._lock: portalocker.Lock | None = None

    def holder_pid(self) -> int | None:
        try:
            text = self.lockfile.read_text(encoding="utf-8").strip()
        except OSError:
            return None
        return int(text) if text.isdigit() else None

    def acquire(self) -> bool:
        self.lockfile.parent.mkdir(parents=True, exist_ok=True)
        lock = portalocker.Lock(str(self.lockfile), mode="a", timeout=0, fail_when_locked=True)
        try:
            handle = lock.acquire()
        except portalocker.exceptions.LockException:
            return False
        handle.seek(0)
        handle.truncate()
        handle.write(str(os.getpid()))
        handle.flush()
        self._lock = lock
        return True

    def release(self) -> None:
        if self._lock:
            self._lock.release()
            self._lock = None

    def __enter__(self) -> SingleInstance:
        if not self.acquire():
            raise RuntimeError(f"overlay feed already running (pid {self.holder_pid()}), lock {self.lockfile}")
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # type: ignore[override]
        self.release()
