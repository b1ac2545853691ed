"""Checkout - lock-guarded git working copies for concurrent workers."""

from src.coordination.file_locks import LockError

from .cached import CachedCloner, CachedProject, CachedProjectCo
from .clonable import GitClonable
from .config import Settings
from .errors import OperationFailed, SpawnError

__all__ = [
    "CachedCloner",
    "CachedProject",
    "CachedProjectCo",
    "GitClonable",
    "LockError",
    "OperationFailed",
    "Settings",
    "SpawnError",
]
