"""Shell process management — pooled long-lived shell subprocesses.

Each pool owns shells of one kind (privileged or unprivileged), reuses
idle ones, and kills them all on reset.
"""

from shellpool.process.buffer import StreamBuffer
from shellpool.process.pool import ShellContext, ShellPool
from shellpool.process.session import ProcessStatus, ShellKind, ShellProcess

__all__ = [
    "ProcessStatus",
    "ShellContext",
    "ShellKind",
    "ShellPool",
    "ShellProcess",
    "StreamBuffer",
]
