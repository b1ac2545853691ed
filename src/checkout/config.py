"""Configuration management."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Checkout settings from environment."""

    # Root holding reference clones and working copies
    checkout_root: Path = Path("/var/lib/repo-sync/checkout")

    # Git
    git_binary: str = "git"
    merge_message: str = "Automatic merge"

    # Coordination
    lock_poll_interval: float = Field(default=0.1, gt=0)  # lock-directory fallback only

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
