"""File coordination - cross-process locks on repository lock files."""

import errno
import os
from pathlib import Path

import structlog
from filelock import FileLock

logger = structlog.get_logger()


class LockError(OSError):
    """Lock file could not be created or exclusively obtained."""


def _lock_error(lock_path: Path, exc: Exception) -> LockError:
    return LockError(
        getattr(exc, "errno", None),
        f"Cannot lock {lock_path}: {getattr(exc, 'strerror', None) or exc}",
        str(lock_path),
    )


class Lock:
    """Exclusive hold on a lock file.

    Only created by acquire_lock(). The hold is released by unlock(), by
    leaving a ``with`` block, or when the value is garbage collected,
    whichever happens first. A released Lock cannot be locked again; acquire
    a new one instead.
    """

    def __init__(self, lock_path: Path, file_lock: FileLock):
        self.lock_path = lock_path
        self._file_lock: FileLock | None = file_lock

    @property
    def locked(self) -> bool:
        return self._file_lock is not None

    def _release(self) -> bool:
        file_lock, self._file_lock = self._file_lock, None
        if file_lock is None:
            return False
        file_lock.release(force=True)
        return True

    def unlock(self) -> None:
        """Release the hold. Calling this on a released Lock is a no-op."""
        if self._release():
            logger.debug("Released lock", lock_path=str(self.lock_path))

    def __enter__(self) -> "Lock":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.unlock()

    def __del__(self):
        if getattr(self, "_file_lock", None) is not None:
            self._release()


def acquire_lock(lock_path: str | os.PathLike, poll_interval: float = 0.1) -> Lock:
    """Block until an exclusive hold on ``lock_path`` is obtained.

    The parent directory must already exist. Where the platform has native
    file locks the lock file is created (or truncated) and locked with
    flock/msvcrt. Elsewhere filelock falls back to a soft lock: the lock
    file's existence is the lock, retried every ``poll_interval`` seconds.
    A soft lock left behind by a worker that crashed while holding it is
    never cleaned up, and later acquirers wait forever until it is removed
    by hand.

    Raises:
        LockError: the lock file could not be opened or locked.
    """
    lock_path = Path(lock_path)
    logger.info("Locking repository", lock_path=str(lock_path))

    if not lock_path.parent.is_dir():
        raise LockError(errno.ENOENT, f"Cannot lock {lock_path}: no such directory", str(lock_path))

    file_lock = FileLock(str(lock_path))
    try:
        file_lock.acquire(timeout=-1, poll_interval=poll_interval)
    except (OSError, NotImplementedError) as e:
        raise _lock_error(lock_path, e) from e

    return Lock(lock_path, file_lock)
