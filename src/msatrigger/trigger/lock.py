"""Exclusive per-directory lock.

Trigger invocations for the same source directory coordinate only through the
ledger file. The lock serializes the load -> update -> save -> completion
check -> transfer span so two overlapping invocations cannot lose an update
or both run the transfer.

The lock file lives in the lock directory (system temp dir by default), named
after a hash of the source directory, so it never shows up in the tree that
gets copied and cleaned.
"""

from __future__ import annotations

import hashlib
import logging
import os
import sys
import time
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from msatrigger.core.types import LedgerLockTimeoutError

if sys.platform == "win32":
    import msvcrt
else:
    import fcntl

logger = logging.getLogger(__name__)

LOCK_FILE_PREFIX = "msatrigger-"
LOCK_FILE_SUFFIX = ".lock"


def get_lock_file_path(directory: Path, lock_dir: Path) -> Path:
    """Get the lock file path for a source directory."""
    key = os.path.normcase(str(Path(directory).resolve()))
    digest = hashlib.sha1(key.encode("utf-8")).hexdigest()[:16]
    return lock_dir / f"{LOCK_FILE_PREFIX}{digest}{LOCK_FILE_SUFFIX}"


def _try_lock(fd: int) -> bool:
    try:
        if sys.platform == "win32":
            os.lseek(fd, 0, os.SEEK_SET)
            msvcrt.locking(fd, msvcrt.LK_NBLCK, 1)
        else:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
    except OSError:  # BlockingIOError on POSIX, PermissionError on Windows
        return False
    return True


def _unlock(fd: int) -> None:
    if sys.platform == "win32":
        os.lseek(fd, 0, os.SEEK_SET)
        msvcrt.locking(fd, msvcrt.LK_UNLCK, 1)
    else:
        fcntl.flock(fd, fcntl.LOCK_UN)


@contextmanager
def directory_lock(directory: Path, lock_dir: Path, timeout: float) -> Iterator[Path]:
    """Hold an exclusive lock for a source directory.

    Acquisition polls with growing intervals until timeout seconds have
    passed.

    Args:
        directory: Source directory being processed.
        lock_dir: Directory for lock files.
        timeout: Maximum seconds to wait.

    Yields:
        Path of the lock file.

    Raises:
        LedgerLockTimeoutError: If the lock is still held by someone else
            after timeout seconds.
    """
    lock_path = get_lock_file_path(directory, lock_dir)
    lock_path.parent.mkdir(parents=True, exist_ok=True)

    fd = os.open(str(lock_path), os.O_RDWR | os.O_CREAT, 0o644)
    acquired = False
    try:
        start = time.monotonic()
        poll_interval = 0.1
        while not (acquired := _try_lock(fd)):
            elapsed = time.monotonic() - start
            if elapsed >= timeout:
                raise LedgerLockTimeoutError(
                    f"Could not lock {directory} within {timeout:.1f}s "
                    f"(another invocation holds {lock_path})"
                )
            time.sleep(min(poll_interval, timeout - elapsed))
            poll_interval = min(poll_interval * 1.5, 1.0)

        logger.debug("Acquired lock for %s: %s", directory, lock_path)
        yield lock_path
    finally:
        if acquired:
            try:
                _unlock(fd)
                logger.debug("Released lock for %s", directory)
            except OSError as e:
                logger.warning("Could not release lock %s: %s", lock_path, e)
        os.close(fd)
