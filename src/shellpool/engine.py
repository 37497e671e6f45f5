"""Execution engine — runs one command batch on a pooled shell.

A call moves through ``Idle → Writing → Draining → Completed``:

* **Writing**: a process is acquired from the pool (and flagged busy), the
  framed batch is written to its stdin and flushed.
* **Draining**: the per-stream reader threads fill the process buffers;
  this thread drains both buffers each time it is woken until the batch
  is complete, the shell dies, or the timeout expires.
* **Completed**: the process is released to the pool *before* the output
  is classified, so a ``CommandError`` never leaks a busy process.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from typing import TYPE_CHECKING

from shellpool.errors import (
    CommandError,
    ExecutionTimeoutError,
    NotInitializedError,
    ProcessTerminatedError,
)
from shellpool.protocol import (
    drop_lines,
    frame_commands,
    make_marker,
    split_result,
    stderr_fence,
    strip_marker,
)

if TYPE_CHECKING:
    from shellpool.process.pool import ShellPool
    from shellpool.process.session import ShellProcess

logger = logging.getLogger(__name__)


def execute(pool: ShellPool, commands: Sequence[str]) -> list[str]:
    """Run ``commands`` on an idle shell from ``pool`` and return stdout lines.

    Raises:
        NotInitializedError: the pool's context has no executable path.
        SpawnError: no idle shell was available and a new one could not start.
        CommandError: the batch wrote to stderr.
        ProcessTerminatedError: the shell died before the batch completed.
        ExecutionTimeoutError: the batch did not complete in time.
    """
    if pool.context.executable_path is None:
        raise NotInitializedError()
    if not commands:
        return []

    marker = make_marker()
    fence = stderr_fence(marker) if pool.settle_stderr else None
    payload = frame_commands(commands, marker, prefix=pool.prefix, fence=fence)

    process = pool.acquire()
    discard = False
    try:
        stdout, stderr = _exchange(
            process, payload, marker, fence, pool.timeout, pool.stderr_grace
        )
    except (ProcessTerminatedError, ExecutionTimeoutError):
        # The stream position of this shell is unknown from here on
        discard = True
        raise
    finally:
        pool.release(process, discard=discard)

    return classify(stdout, stderr, marker, fence)


def classify(
    stdout: str, stderr: str, marker: str, fence: str | None = None
) -> list[str]:
    """Turn the drained streams of one batch into result lines or a failure.

    With a ``fence``, the fence line is cut from stderr and also removed
    from stdout, where it lands when the batch sent stderr to stdout.
    """
    if fence is not None:
        error = strip_marker(stderr, fence)
        stdout = drop_lines(stdout, fence)
    else:
        error = stderr.strip()
    if error:
        raise CommandError(error)
    return split_result(stdout, marker)


def _exchange(
    process: ShellProcess,
    payload: str,
    marker: str,
    fence: str | None,
    timeout: float | None,
    stderr_grace: float,
) -> tuple[str, str]:
    """Write ``payload`` and drain both streams until the batch completes."""
    deadline = None if timeout is None else time.monotonic() + timeout

    # An earlier batch on this shell ended before its stdout marker arrived;
    # its late output must not be mistaken for this batch's
    pending = process.pending_marker
    process.pending_marker = None
    skip: str | None = None

    stale_stdout = process.stdout.drain()
    stale = stale_stdout + process.stderr.drain()
    if stale:
        logger.debug(
            "Discarding %d stale chars from shell %s", len(stale), process.id
        )
    if pending is not None:
        # Runs after every command of the earlier batch, so all of its
        # stderr precedes this line
        skip = f"{pending}_skip"
        payload = f"echo {skip} >&2\n{payload}"
        if pending in stale_stdout:
            pending = None

    process.write(payload)

    stdout = ""
    stderr = ""

    def completed() -> bool:
        nonlocal stdout, stderr, pending, skip
        stdout += process.stdout.drain()
        stderr += process.stderr.drain()
        if pending is not None:
            cut = stdout.find(pending)
            if cut < 0:
                return False
            stdout = stdout[cut + len(pending) :].removeprefix("\n")
            pending = None
        if skip is not None:
            cut = stderr.find(skip)
            if cut < 0:
                return False
            stderr = stderr[cut + len(skip) :].removeprefix("\n")
            skip = None
        stdout_done = stdout.rstrip().endswith(marker)
        if fence is not None:
            return stdout_done
        return stdout_done or stderr.endswith("\n")

    if not process.wait(completed, timeout=timeout):
        if process.terminated:
            raise ProcessTerminatedError(
                f"Shell {process.id} terminated before the batch completed"
            )
        raise ExecutionTimeoutError(timeout or 0.0)

    if fence is not None and not stderr.rstrip().endswith(fence):
        # The fence was written before the stdout marker; if it is still
        # missing after the grace period the batch redirected stderr
        def fenced() -> bool:
            nonlocal stderr
            stderr += process.stderr.drain()
            return stderr.rstrip().endswith(fence)

        grace = stderr_grace
        if deadline is not None:
            grace = max(0.0, min(grace, deadline - time.monotonic()))
        if not process.wait(fenced, timeout=grace):
            logger.debug("Shell %s: no stderr fence, stderr is redirected", process.id)

    if fence is None and not stdout.rstrip().endswith(marker):
        process.pending_marker = marker
    return stdout, stderr
