"""Shell process — one long-lived interactive shell with piped streams."""

from __future__ import annotations

import enum
import logging
import os
import signal
import subprocess
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import IO, Callable

from shellpool.errors import ProcessTerminatedError, SpawnError
from shellpool.process.buffer import StreamBuffer

logger = logging.getLogger(__name__)

_READ_SIZE = 4096


class ShellKind(enum.StrEnum):
    """Which class of shell a pool spawns."""

    PRIVILEGED = "privileged"
    UNPRIVILEGED = "unprivileged"


class ProcessStatus(enum.Enum):
    """Lifecycle states for a shell process."""

    RUNNING = "running"
    KILLED = "killed"  # Killed by us (SIGKILL)
    EXITED = "exited"  # Process exited on its own


@dataclass(eq=False)
class ShellProcess:
    """A managed shell subprocess.

    Wraps an interactive shell program (``sh``, ``su``) with:
    - Process group isolation (start_new_session) for safe tree-killing
    - One reader thread per output stream feeding a ``StreamBuffer``
    - A shared condition that wakes waiters on output or EOF on either stream

    Instances hash by identity so they can key a pool's busy-flag mapping.
    """

    id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    command: list[str] = field(default_factory=list)
    env: dict[str, str] = field(default_factory=dict)

    # Internal state
    _cond: threading.Condition = field(default_factory=threading.Condition, init=False)
    stdout: StreamBuffer = field(init=False)
    stderr: StreamBuffer = field(init=False)
    _proc: subprocess.Popen | None = field(default=None, init=False)
    _pgid: int = field(default=0, init=False)
    _readers: list[threading.Thread] = field(default_factory=list, init=False)
    _status: ProcessStatus = field(default=ProcessStatus.RUNNING, init=False)
    # Marker of a batch that completed before its stdout sentinel arrived
    pending_marker: str | None = field(default=None, init=False)

    def __post_init__(self) -> None:
        self.stdout = StreamBuffer(self._cond)
        self.stderr = StreamBuffer(self._cond)

    def start(self) -> None:
        """Spawn the shell in its own process group and start the readers."""
        env = {**os.environ, **self.env}
        try:
            self._proc = subprocess.Popen(
                self.command,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                start_new_session=True,  # Creates new process group
                env=env,
            )
        except OSError as e:
            raise SpawnError(f"Can't start shell {' '.join(self.command)}: {e}") from e

        self._pgid = os.getpgid(self._proc.pid)
        self._status = ProcessStatus.RUNNING

        for name, stream, buffer in (
            ("stdout", self._proc.stdout, self.stdout),
            ("stderr", self._proc.stderr, self.stderr),
        ):
            reader = threading.Thread(
                target=self._read_loop,
                args=(stream, buffer),
                name=f"shellpool-{self.id}-{name}",
                daemon=True,
            )
            reader.start()
            self._readers.append(reader)

        logger.info(
            "Shell %s started: pid=%d cmd=%s",
            self.id,
            self._proc.pid,
            " ".join(self.command),
        )

    def _read_loop(self, stream: IO[bytes], buffer: StreamBuffer) -> None:
        """Copy everything the stream produces into its buffer until EOF."""
        try:
            while True:
                data = stream.read1(_READ_SIZE)  # type: ignore[attr-defined]
                if not data:
                    break
                buffer.feed(data)
        except (OSError, ValueError) as e:
            logger.debug("Reader for shell %s ended: %s", self.id, e)
        finally:
            buffer.close()
            with self._cond:
                if self._status == ProcessStatus.RUNNING and self._proc is not None:
                    if self._proc.poll() is not None:
                        self._status = ProcessStatus.EXITED
                        logger.info(
                            "Shell %s exited (code=%s)", self.id, self._proc.returncode
                        )

    def write(self, payload: str) -> None:
        """Write a framed payload to the shell's stdin and flush it."""
        if self._proc is None or self._proc.stdin is None or not self.alive:
            raise ProcessTerminatedError(f"Shell {self.id} is not running")
        try:
            self._proc.stdin.write(payload.encode())
            self._proc.stdin.flush()
        except (BrokenPipeError, ValueError, OSError) as e:
            raise ProcessTerminatedError(f"Shell {self.id} closed its input: {e}") from e

    def wait(
        self, predicate: Callable[[], bool], timeout: float | None = None
    ) -> bool:
        """Block until ``predicate()`` holds, output stops forever, or timeout.

        The predicate is evaluated under the shared stream condition, so it
        is re-checked every time either reader delivers data or hits EOF.
        Returns the final value of the predicate.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._cond:
            while not predicate():
                if self.stdout.closed and self.stderr.closed:
                    return predicate()
                if deadline is None:
                    self._cond.wait()
                    continue
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                self._cond.wait(remaining)
            return True

    def kill(self) -> None:
        """Kill the entire process tree and close its input. One-shot, best-effort.

        A shell that already exited on its own is not signalled, but its
        stdin pipe is still closed.
        """
        if self._status == ProcessStatus.RUNNING:
            self._status = ProcessStatus.KILLED
            try:
                os.killpg(self._pgid, signal.SIGKILL)
                logger.info("Killed shell %s (pgid=%d)", self.id, self._pgid)
            except ProcessLookupError:
                logger.debug("Process group already gone: %d", self._pgid)
            except OSError as e:
                logger.warning("Error killing shell %s: %s", self.id, e)

            if self._proc is not None:
                # Wait for process to be reaped (avoids zombies)
                try:
                    self._proc.wait(timeout=2)
                except subprocess.TimeoutExpired:
                    logger.warning("Shell %s did not exit after SIGKILL", self.id)

        if self._proc is not None and self._proc.stdin is not None:
            try:
                self._proc.stdin.close()
            except OSError:
                # Unflushed input to a dead shell
                pass

    @property
    def pid(self) -> int | None:
        return self._proc.pid if self._proc is not None else None

    @property
    def alive(self) -> bool:
        if self._status != ProcessStatus.RUNNING:
            return False
        if self._proc is not None and self._proc.poll() is not None:
            return False
        return True

    @property
    def terminated(self) -> bool:
        """True once both output streams have reached EOF."""
        return self.stdout.closed and self.stderr.closed

    @property
    def status(self) -> ProcessStatus:
        return self._status

    def __del__(self) -> None:
        """Ensure cleanup on garbage collection."""
        if getattr(self, "_status", None) == ProcessStatus.RUNNING and self._proc:
            self.kill()
