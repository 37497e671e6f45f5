"""Shared fixtures: real ``sh`` pools using ``env`` as the utility prefix."""

from __future__ import annotations

import shutil
from collections.abc import Iterator

import pytest

from shellpool.process.pool import ShellContext, ShellPool
from shellpool.process.session import ShellKind

SH = shutil.which("sh")
ENV = shutil.which("env")

requires_sh = pytest.mark.skipif(
    SH is None or ENV is None, reason="needs sh and env on PATH"
)


@pytest.fixture
def context() -> ShellContext:
    return ShellContext(executable_path=ENV)


@pytest.fixture
def sh_pool(context: ShellContext) -> Iterator[ShellPool]:
    pool = ShellPool(ShellKind.UNPRIVILEGED, "sh", context, timeout=10.0)
    yield pool
    pool.reset()


@pytest.fixture
def env_pool(context: ShellContext) -> Iterator[ShellPool]:
    """Privileged-kind pool on plain ``sh``: every command runs via ``env``."""
    pool = ShellPool(ShellKind.PRIVILEGED, "sh", context, timeout=10.0)
    yield pool
    pool.reset()
