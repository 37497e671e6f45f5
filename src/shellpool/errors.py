"""Exception types raised by shellpool.

Every failure is an ``OSError`` subclass so callers that only care about
"the shell call failed" can catch ``OSError``.
"""

from __future__ import annotations


class ShellPoolError(OSError):
    """Base class for all shellpool failures."""


class NotInitializedError(ShellPoolError):
    """The utility executable path has not been resolved."""

    def __init__(self, message: str = "shellpool is not initialized") -> None:
        super().__init__(message)


class SpawnError(ShellPoolError):
    """A shell subprocess could not be created."""


class CommandError(ShellPoolError):
    """The shell wrote to stderr while running a batch.

    ``str(error)`` is exactly the trimmed stderr text.
    """

    def __init__(self, stderr: str) -> None:
        super().__init__(stderr)
        self.stderr = stderr

    def __str__(self) -> str:
        return self.stderr


class ProcessTerminatedError(ShellPoolError):
    """The shell exited or was killed before the batch completed."""


class ExecutionTimeoutError(ShellPoolError):
    """The batch did not complete within the configured timeout."""

    def __init__(self, timeout: float) -> None:
        super().__init__(f"Shell did not respond within {timeout}s")
        self.timeout = timeout


class InstallError(ShellPoolError):
    """The utility executable could not be extracted or made executable."""
