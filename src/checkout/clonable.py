"""Git clonable - lock-guarded clone, fetch, clean and checkout of a working copy."""

import os
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path

import structlog

from src.coordination.file_locks import Lock, acquire_lock

from .errors import OperationFailed, SpawnError

logger = structlog.get_logger()


class GitClonable(ABC):
    """A repository descriptor whose working copy is guarded by a lock file.

    Implementations say where to clone from and to, and which lock file
    guards the working copy. Every operation holds the lock while git runs,
    so concurrent workers on one machine never touch the working copy at
    the same time. A lock path must belong to exactly one working copy;
    nothing here checks that.
    """

    git_binary: str = "git"
    lock_poll_interval: float = 0.1

    @abstractmethod
    def clone_from(self) -> str:
        """Source location passed to ``git clone``."""
        ...

    @abstractmethod
    def clone_to(self) -> Path:
        """Working copy path."""
        ...

    @abstractmethod
    def extra_clone_args(self) -> list[str]:
        """Arguments added to ``git clone`` before the source."""
        ...

    @abstractmethod
    def lock_path(self) -> Path:
        """Lock file guarding the working copy."""
        ...

    def lock(self) -> Lock:
        """Block until the working copy's lock is held."""
        return acquire_lock(self.lock_path(), poll_interval=self.lock_poll_interval)

    def _git(
        self,
        *args: str | os.PathLike,
        cwd: Path | None = None,
        capture: bool = False,
        quiet: bool = False,
    ) -> subprocess.CompletedProcess:
        """Run git to completion. Raises SpawnError if it cannot start.

        ``capture`` collects stdout and stderr as text; ``quiet`` discards them.
        """
        cmd = [self.git_binary, *(os.fspath(arg) for arg in args)]
        logger.debug("Running git", args=cmd, cwd=str(cwd) if cwd else None)
        kwargs = {}
        if capture:
            kwargs.update(capture_output=True, text=True)
        elif quiet:
            kwargs.update(stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
        try:
            return subprocess.run(cmd, cwd=cwd, **kwargs)
        except OSError as e:
            raise SpawnError(
                e.errno, f"Cannot run {self.git_binary}: {e.strerror or e}", self.git_binary
            ) from e

    def _run_locked(
        self,
        *args: str | os.PathLike,
        capture: bool = False,
        quiet: bool = False,
    ) -> subprocess.CompletedProcess:
        """Run git in the working copy while holding the lock."""
        with self.lock() as lock:
            result = self._git(*args, cwd=Path(self.clone_to()), capture=capture, quiet=quiet)
            lock.unlock()
        return result

    def _check(self, result: subprocess.CompletedProcess, operation: str) -> None:
        if result.returncode != 0:
            logger.warning(
                "Git command failed",
                operation=operation,
                returncode=result.returncode,
                clone_to=str(self.clone_to()),
            )
            raise OperationFailed(operation, result.returncode)

    def clone_repo(self) -> None:
        """Clone into clone_to() unless that directory already exists.

        An existing directory counts as cloned even if it is not a usable
        repository.
        """
        with self.lock() as lock:
            if Path(self.clone_to()).is_dir():
                return

            result = self._git(
                "clone",
                *self.extra_clone_args(),
                self.clone_from(),
                self.clone_to(),
            )
            lock.unlock()

        self._check(result, "clone")

    def fetch_repo(self) -> None:
        """Fetch origin without touching the working tree."""
        result = self._run_locked("fetch", "origin")
        self._check(result, "fetch")

    def clean(self) -> None:
        """Abort any am or merge in progress and hard reset to HEAD.

        Exit statuses are ignored; there is usually nothing to abort. Only a
        failure to start git (or to lock) is raised.
        """
        with self.lock() as lock:
            for args in (("am", "--abort"), ("merge", "--abort"), ("reset", "--hard")):
                result = self._git(*args, cwd=Path(self.clone_to()))
                if result.returncode != 0:
                    logger.debug(
                        "Ignoring git failure during clean",
                        command=args[0],
                        returncode=result.returncode,
                    )
            lock.unlock()

    def checkout(self, git_ref: str) -> None:
        """Check out a branch, tag or commit. The ref is passed through as-is."""
        result = self._run_locked("checkout", git_ref)
        self._check(result, "checkout")
