"""Coordination layer - cross-process locks on working copies."""

from .file_locks import Lock, LockError, acquire_lock

__all__ = [
    "Lock",
    "LockError",
    "acquire_lock",
]
