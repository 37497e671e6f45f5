"""shellpool — run shell commands on pooled long-lived shell processes."""

from shellpool.config import ShellPoolConfig
from shellpool.errors import (
    CommandError,
    ExecutionTimeoutError,
    InstallError,
    NotInitializedError,
    ProcessTerminatedError,
    ShellPoolError,
    SpawnError,
)
from shellpool.facade import Shell
from shellpool.installer import install_executable
from shellpool.lifecycle import ObserverTracker
from shellpool.process import ShellContext, ShellKind, ShellPool, ShellProcess

__all__ = [
    "CommandError",
    "ExecutionTimeoutError",
    "InstallError",
    "NotInitializedError",
    "ObserverTracker",
    "ProcessTerminatedError",
    "Shell",
    "ShellContext",
    "ShellKind",
    "ShellPool",
    "ShellPoolConfig",
    "ShellPoolError",
    "ShellProcess",
    "SpawnError",
    "install_executable",
]
