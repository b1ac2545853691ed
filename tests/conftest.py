"""Shared fixtures - a fake git and a minimal repository descriptor."""

import subprocess
from pathlib import Path

import pytest

from src.checkout.clonable import GitClonable


class FakeGit:
    """Stands in for subprocess.run and records git invocations."""

    def __init__(self):
        self.calls: list[tuple[list[str], Path | None]] = []
        self.kwargs: list[dict] = []
        self.returncodes: dict[str, int] = {}
        self.stdout: dict[str, str] = {}
        self.on_call = None

    @staticmethod
    def subcommand(cmd: list[str]) -> str:
        args = [arg for arg in cmd[1:] if arg != "--no-pager"]
        return args[0]

    def __call__(self, cmd, cwd=None, capture_output=False, text=False, **kwargs):
        cmd = list(cmd)
        self.calls.append((cmd, cwd))
        self.kwargs.append(kwargs)
        sub = self.subcommand(cmd)
        if self.on_call is not None:
            self.on_call(cmd, cwd)
        return subprocess.CompletedProcess(
            cmd,
            self.returncodes.get(sub, 0),
            stdout=self.stdout.get(sub, "") if capture_output else None,
        )

    @property
    def subcommands(self) -> list[str]:
        return [self.subcommand(cmd) for cmd, _ in self.calls]


class LocalRepo(GitClonable):
    """Descriptor for a single working copy under a temporary directory."""

    def __init__(
        self,
        root: Path,
        clone_url: str = "https://example.com/owner/repo.git",
        extra_args: list[str] | None = None,
    ):
        self.root = root
        self.clone_url = clone_url
        self.extra_args = ["--depth", "1"] if extra_args is None else extra_args

    def clone_from(self) -> str:
        return self.clone_url

    def clone_to(self) -> Path:
        return self.root / "repo"

    def extra_clone_args(self) -> list[str]:
        return self.extra_args

    def lock_path(self) -> Path:
        return self.root / "repo.lock"


@pytest.fixture
def fake_git(monkeypatch):
    """Replace subprocess.run with a recording fake."""
    fake = FakeGit()
    monkeypatch.setattr("src.checkout.clonable.subprocess.run", fake)
    return fake


@pytest.fixture
def repo(tmp_path):
    """Descriptor whose working copy does not exist yet."""
    return LocalRepo(tmp_path)
