"""Errors raised by git operations."""


class SpawnError(OSError):
    """The git executable could not be launched."""


class OperationFailed(Exception):
    """Git ran but exited with a non-zero status."""

    def __init__(self, operation: str, returncode: int | None = None):
        self.operation = operation
        self.returncode = returncode
        message = f"Failed to {operation}"
        if returncode is not None:
            message += f" (exit status {returncode})"
        super().__init__(message)
