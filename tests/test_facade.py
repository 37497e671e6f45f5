"""Tests for shellpool.facade.Shell."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from shellpool.config import ShellPoolConfig
from shellpool.errors import CommandError, NotInitializedError
from shellpool.facade import Shell
from shellpool.lifecycle import ObserverTracker
from shellpool.process.pool import ShellContext
from shellpool.process.session import ShellKind

from conftest import ENV, requires_sh


def _config(**overrides) -> ShellPoolConfig:
    values = {"privileged_shell": "sh", "unprivileged_shell": "sh", "timeout": 10.0}
    values.update(overrides)
    return ShellPoolConfig(**values)


@pytest.fixture
def shell() -> Iterator[Shell]:
    shell = Shell(ShellContext(executable_path=ENV), _config())
    yield shell
    shell.reset()


class TestShellPools:
    def test_named_pools(self) -> None:
        shell = Shell(ShellContext(executable_path="/bin/busybox"))
        assert shell.privileged.kind is ShellKind.PRIVILEGED
        assert shell.unprivileged.kind is ShellKind.UNPRIVILEGED
        assert shell.pool("privileged") is shell.privileged
        assert shell.pool(ShellKind.UNPRIVILEGED) is shell.unprivileged

    def test_pools_share_context(self) -> None:
        context = ShellContext()
        shell = Shell(context)
        assert shell.privileged.context is context
        assert shell.unprivileged.context is context

    def test_config_applied(self) -> None:
        shell = Shell(ShellContext(), _config(timeout=3.0, settle_stderr=False))
        assert shell.privileged.timeout == 3.0
        assert shell.unprivileged.settle_stderr is False

    def test_stderr_grace_applied(self) -> None:
        shell = Shell(ShellContext(), _config(stderr_grace=0.05))
        assert shell.privileged.stderr_grace == 0.05
        assert shell.unprivileged.stderr_grace == 0.05

    def test_unknown_pool(self) -> None:
        shell = Shell(ShellContext())
        with pytest.raises(ValueError):
            shell.pool("root")


@requires_sh
class TestShellExecute:
    def test_prefers_privileged(self, shell: Shell) -> None:
        assert shell.execute("echo a", "echo b") == ["a", "b"]
        assert len(shell.privileged) == 1
        assert len(shell.unprivileged) == 0

    def test_falls_back_to_unprivileged(self) -> None:
        shell = Shell(
            ShellContext(executable_path="/nonexistent/busybox"),
            _config(),
        )
        try:
            assert shell.execute("echo a") == ["a"]
            assert len(shell.unprivileged) == 1
        finally:
            shell.reset()

    def test_failure_propagates(self, shell: Shell) -> None:
        with pytest.raises(CommandError, match="oops"):
            shell.execute("echo oops >&2")

    def test_execute_safe(self, shell: Shell) -> None:
        assert shell.execute_safe("echo ok") == ["ok"]
        assert shell.execute_safe("echo oops >&2") is None

    def test_not_initialized(self) -> None:
        shell = Shell(ShellContext(), _config())
        with pytest.raises(NotInitializedError):
            shell.execute("echo a")
        assert shell.execute_safe("echo a") is None

    def test_reset(self, shell: Shell) -> None:
        shell.privileged.execute("echo a")
        shell.unprivileged.execute("echo a")
        shell.reset()
        assert len(shell.privileged) == 0
        assert len(shell.unprivileged) == 0
        shell.reset()

    def test_observer_teardown(self, shell: Shell) -> None:
        tracker = ObserverTracker(shell.reset)
        tracker.observer_started()
        shell.execute("echo a")
        assert len(shell.privileged) == 1
        tracker.observer_stopped()
        assert len(shell.privileged) == 0


class TestFromConfig:
    def test_installs_asset(self, tmp_path: Path) -> None:
        asset = tmp_path / "busybox.bin"
        asset.write_bytes(b"#!/bin/sh\n")
        config = _config(asset_path=str(asset), install_dir=str(tmp_path / "bin"))
        shell = Shell.from_config(config)
        assert shell.context.executable_path == str(tmp_path / "bin" / "busybox")

    def test_explicit_executable(self, tmp_path: Path) -> None:
        tool = tmp_path / "tool"
        tool.write_bytes(b"#!/bin/sh\n")
        tool.chmod(0o644)
        shell = Shell.from_config(_config(executable_path=str(tool)))
        assert shell.context.executable_path == str(tool)

    def test_unresolved_fails(self) -> None:
        with pytest.raises(NotInitializedError):
            Shell.from_config(_config())
