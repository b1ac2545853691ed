"""Cached checkouts - one bare reference clone per project, working copies per use.

Layout under the checkout root::

    <root>/repo/<md5 of name>/clone              bare reference clone
    <root>/repo/<md5 of name>/clone.lock
    <root>/repo/<md5 of name>/<category>/<id>    working copy
    <root>/repo/<md5 of name>/<category>/<id>.lock

Lock files sit next to the path they guard, so every working copy has its
own lock and unrelated projects never contend.
"""

import hashlib
from pathlib import Path

import structlog

from .clonable import GitClonable
from .config import Settings

logger = structlog.get_logger()


class CachedCloner:
    """Hands out cached projects below the configured checkout root."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.root = Path(settings.checkout_root)

    def project(self, name: str, clone_url: str) -> "CachedProject":
        """Get the cached project for a repository name."""
        digest = hashlib.md5(name.encode()).hexdigest()
        return CachedProject(self.root / "repo" / digest, clone_url, self.settings)


class CachedProject(GitClonable):
    """Bare reference clone shared by all working copies of a project."""

    def __init__(self, root: Path, clone_url: str, settings: Settings):
        self.root = Path(root)
        self.clone_url = clone_url
        self.settings = settings
        self.git_binary = settings.git_binary
        self.lock_poll_interval = settings.lock_poll_interval

    def clone_from(self) -> str:
        return self.clone_url

    def clone_to(self) -> Path:
        return self.root / "clone"

    def extra_clone_args(self) -> list[str]:
        return ["--bare"]

    def lock_path(self) -> Path:
        return self.root / "clone.lock"

    def prefetch_cache(self) -> Path:
        """Make sure the reference clone exists and is up to date."""
        self.root.mkdir(parents=True, exist_ok=True)
        self.clone_repo()
        self.fetch_repo()
        return self.clone_to()

    def clone_for(self, use_category: str, co_id: str) -> "CachedProjectCo":
        """Get a cloned working copy for one use, e.g. ("eval", "pr-42")."""
        self.prefetch_cache()

        co_root = self.root / use_category
        co_root.mkdir(parents=True, exist_ok=True)

        co = CachedProjectCo(
            root=co_root,
            co_id=co_id,
            clone_url=self.clone_from(),
            local_reference=self.clone_to(),
            settings=self.settings,
        )
        co.clone_repo()

        logger.info("Prepared working copy", repo=self.clone_url, path=str(co.clone_to()))
        return co


class CachedProjectCo(GitClonable):
    """Working copy borrowing objects from the project's reference clone."""

    def __init__(
        self,
        root: Path,
        co_id: str,
        clone_url: str,
        local_reference: Path,
        settings: Settings,
    ):
        self.root = Path(root)
        self.co_id = co_id
        self.clone_url = clone_url
        self.local_reference = Path(local_reference)
        self.settings = settings
        self.git_binary = settings.git_binary
        self.lock_poll_interval = settings.lock_poll_interval

    def clone_from(self) -> str:
        return self.clone_url

    def clone_to(self) -> Path:
        return self.root / self.co_id

    def extra_clone_args(self) -> list[str]:
        return ["--shared", "--reference-if-able", str(self.local_reference)]

    def lock_path(self) -> Path:
        return self.root / f"{self.co_id}.lock"

    def checkout_origin_ref(self, git_ref: str) -> str:
        """Check out a branch of origin, returning the commit id."""
        return self.checkout_ref(f"origin/{git_ref}")

    def checkout_ref(self, git_ref: str) -> str:
        """Fetch, clean and check out ``git_ref``, returning the commit id."""
        self.fetch_repo()
        self.clean()
        self.checkout(git_ref)

        result = self._run_locked("rev-parse", "HEAD", capture=True)
        self._check(result, "rev-parse")
        return result.stdout.strip()

    def fetch_pr(self, pr_number: int) -> None:
        """Fetch a pull request's head into the local ``pr`` branch."""
        result = self._run_locked("fetch", "origin", f"+refs/pull/{pr_number}/head:pr")
        self._check(result, "fetch-pr")

    def commit_exists(self, commit: str) -> bool:
        result = self._run_locked("--no-pager", "show", commit, quiet=True)
        return result.returncode == 0

    def merge_commit(self, commit: str, message: str | None = None) -> None:
        """Merge a commit into HEAD without signing."""
        if message is None:
            message = self.settings.merge_message
        result = self._run_locked("merge", "--no-gpg-sign", "-m", message, commit)
        self._check(result, "merge")

    def commit_messages_from_head(self, commit: str) -> list[str]:
        """Subjects of commits reachable from ``commit`` but not HEAD."""
        result = self._run_locked("log", "--format=format:%s", f"HEAD..{commit}", capture=True)
        self._check(result, "log")
        return result.stdout.splitlines()

    def files_changed_from_head(self, commit: str) -> list[str]:
        """Files changed on ``commit`` since it diverged from HEAD."""
        result = self._run_locked("diff", "--name-only", f"HEAD...{commit}", capture=True)
        self._check(result, "diff")
        return result.stdout.splitlines()
