"""Shell pool — reuses idle shell processes of one kind."""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from shellpool import engine
from shellpool.process.session import ShellKind, ShellProcess
from shellpool.protocol import escape_path

logger = logging.getLogger(__name__)


@dataclass
class ShellContext:
    """Process-wide state shared by every pool.

    ``executable_path`` is the resolved utility binary; ``None`` means not
    initialized, in which case every execution fails fast.
    """

    executable_path: str | None = None


class ShellPool:
    """Manages the shell processes of one ``ShellKind``.

    The pool ensures:
    - An idle shell is reused before a new one is spawned
    - A shell is never handed to two callers at once (busy flag under lock)
    - Dead shells are dropped instead of being handed out again
    - All shells are killed on reset (no orphan processes)

    Writing to and draining a shell happen outside the lock, so other
    callers can acquire different shells while one batch is in flight.
    """

    def __init__(
        self,
        kind: ShellKind,
        shell: str | Sequence[str],
        context: ShellContext,
        timeout: float | None = 30.0,
        settle_stderr: bool = True,
        env: dict[str, str] | None = None,
        stderr_grace: float = 0.2,
    ) -> None:
        self.kind = kind
        self._command = [shell] if isinstance(shell, str) else list(shell)
        self.context = context
        self.timeout = timeout
        self.settle_stderr = settle_stderr
        self.stderr_grace = stderr_grace
        self._env = env or {}
        self._processes: dict[ShellProcess, bool] = {}  # process -> busy
        self._lock = threading.Lock()

    @property
    def prefix(self) -> str | None:
        """Token prepended to every command line, or None to run commands as-is."""
        if self.kind is ShellKind.PRIVILEGED and self.context.executable_path:
            return escape_path(self.context.executable_path)
        return None

    def acquire(self) -> ShellProcess:
        """Return an idle shell flagged busy, spawning one if none is idle.

        Raises:
            SpawnError: a new shell was needed and could not be started.
        """
        with self._lock:
            for process, busy in list(self._processes.items()):
                if busy:
                    continue
                if not process.alive:
                    logger.debug("Dropping dead shell %s from %s pool", process.id, self.kind)
                    del self._processes[process]
                    continue
                self._processes[process] = True
                return process

        # Spawning can be slow; keep other callers unblocked meanwhile
        process = self._spawn()
        with self._lock:
            self._processes[process] = True
        return process

    def _spawn(self) -> ShellProcess:
        process = ShellProcess(command=list(self._command), env=dict(self._env))
        process.start()
        return process

    def release(self, process: ShellProcess, discard: bool = False) -> None:
        """Flag ``process`` idle again, or kill and forget it with ``discard``.

        A process that was removed by ``reset()`` while in use is ignored.
        """
        with self._lock:
            if process not in self._processes:
                return
            if discard or not process.alive:
                del self._processes[process]
            else:
                self._processes[process] = False
                return
        process.kill()

    def reset(self) -> None:
        """Kill all shells and empty the pool. Safe to call repeatedly."""
        with self._lock:
            processes = list(self._processes)
            self._processes.clear()
        for process in processes:
            process.kill()
        if processes:
            logger.info("Reset %s pool: killed %d shell(s)", self.kind, len(processes))

    # ------------------------------------------------------------------
    # Command interface
    # ------------------------------------------------------------------

    def execute(self, *commands: str) -> list[str]:
        """Run a command batch and return its stdout lines.

        Raises ``ShellPoolError`` subclasses on failure; see
        ``shellpool.engine.execute``.
        """
        return engine.execute(self, commands)

    def execute_safe(self, *commands: str) -> list[str] | None:
        """Same as ``execute`` but returns None instead of raising."""
        try:
            return self.execute(*commands)
        except OSError:
            return None

    def is_available(self) -> bool:
        """True if this pool's shell can run commands (``echo test`` round trip)."""
        result = self.execute_safe("echo test")
        return bool(result) and result[0] == "test"

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def idle_count(self) -> int:
        with self._lock:
            return sum(1 for busy in self._processes.values() if not busy)

    @property
    def busy_count(self) -> int:
        with self._lock:
            return sum(1 for busy in self._processes.values() if busy)

    def list_processes(self) -> list[dict[str, Any]]:
        """List all tracked shells."""
        with self._lock:
            items = list(self._processes.items())
        return [
            {
                "id": p.id,
                "pid": p.pid,
                "command": " ".join(p.command),
                "alive": p.alive,
                "busy": busy,
            }
            for p, busy in items
        ]

    def __len__(self) -> int:
        with self._lock:
            return len(self._processes)
