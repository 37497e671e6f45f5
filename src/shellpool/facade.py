"""Shell facade — the privileged and unprivileged pools behind one API."""

from __future__ import annotations

import logging
from pathlib import Path

from shellpool.config import ShellPoolConfig
from shellpool.errors import NotInitializedError
from shellpool.installer import install_executable
from shellpool.process.pool import ShellContext, ShellPool
from shellpool.process.session import ShellKind

logger = logging.getLogger(__name__)


class Shell:
    """Runs command batches on pooled shells.

    ``execute()`` prefers the privileged pool and falls back to the
    unprivileged one when the privileged shell cannot run commands (e.g.
    ``su`` is missing or access is denied).

    Usage:
        shell = Shell.from_config(ShellPoolConfig.load())
        lines = shell.execute("ls /", "uname -a")
        shell.reset()
    """

    def __init__(
        self,
        context: ShellContext,
        config: ShellPoolConfig | None = None,
    ) -> None:
        config = config or ShellPoolConfig()
        self.context = context
        self.config = config
        self.privileged = ShellPool(
            ShellKind.PRIVILEGED,
            config.privileged_shell,
            context,
            timeout=config.timeout,
            settle_stderr=config.settle_stderr,
            env=config.env,
            stderr_grace=config.stderr_grace,
        )
        self.unprivileged = ShellPool(
            ShellKind.UNPRIVILEGED,
            config.unprivileged_shell,
            context,
            timeout=config.timeout,
            settle_stderr=config.settle_stderr,
            env=config.env,
            stderr_grace=config.stderr_grace,
        )

    @classmethod
    def from_config(cls, config: ShellPoolConfig) -> Shell:
        """Resolve the utility executable and build a ready-to-use facade.

        An explicit ``executable_path`` is used as-is after checking its
        executable bit; otherwise the bundled asset is installed into
        ``install_dir``.

        Raises:
            InstallError: installation or the permission fix failed.
            NotInitializedError: neither an executable nor an asset is configured.
        """
        if config.executable_path:
            existing = Path(config.executable_path).expanduser().absolute()
            path = install_executable(None, existing.parent, existing.name)
        elif config.asset_path:
            path = install_executable(
                config.asset_path, config.install_dir, config.executable_name
            )
        else:
            raise NotInitializedError(
                "No utility executable configured (set executable_path or asset_path)"
            )
        logger.info("Using utility executable %s", path)
        return cls(ShellContext(executable_path=path), config)

    def pool(self, kind: ShellKind | str) -> ShellPool:
        """Return the pool for ``kind``."""
        if ShellKind(kind) is ShellKind.PRIVILEGED:
            return self.privileged
        return self.unprivileged

    def execute(self, *commands: str) -> list[str]:
        """Run a batch on the privileged pool if available, else unprivileged.

        Raises:
            ShellPoolError: the batch failed on the selected pool.
        """
        if self.privileged.is_available():
            return self.privileged.execute(*commands)
        return self.unprivileged.execute(*commands)

    def execute_safe(self, *commands: str) -> list[str] | None:
        """Same as ``execute`` but returns None instead of raising."""
        try:
            return self.execute(*commands)
        except OSError:
            return None

    def reset(self) -> None:
        """Kill all shells in both pools."""
        self.privileged.reset()
        self.unprivileged.reset()
