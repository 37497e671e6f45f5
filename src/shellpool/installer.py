"""Installer — places the bundled utility binary where shells can run it."""

from __future__ import annotations

import logging
import os
import shutil
import stat
from pathlib import Path

from shellpool.errors import InstallError

logger = logging.getLogger(__name__)

_EXEC_BITS = stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH


def install_executable(
    asset: str | os.PathLike[str] | None,
    install_dir: str | os.PathLike[str],
    name: str = "busybox",
) -> str:
    """Install ``asset`` as ``install_dir/name`` and return its absolute path.

    Idempotent: an existing file at the target is left in place (the asset
    is not copied again), but its executable bit is always verified and set
    if missing.

    Raises:
        InstallError: the asset is missing, the copy failed, or the target
            cannot be made executable.
    """
    target_dir = Path(install_dir).expanduser()
    target = (target_dir / name).absolute()

    if not target.exists():
        if asset is None:
            raise InstallError(f"No bundled asset to install at {target}")
        source = Path(asset).expanduser()
        if not source.is_file():
            raise InstallError(f"Bundled asset not found: {source}")
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, target)
        except OSError as e:
            raise InstallError(f"Can't extract {source} to {target}: {e}") from e
        logger.info("Installed %s from %s", target, source)

    ensure_executable(target)
    return str(target)


def ensure_executable(path: str | os.PathLike[str]) -> None:
    """Set the executable bits on ``path`` unless it is already executable."""
    if os.access(path, os.X_OK):
        return
    try:
        mode = os.stat(path).st_mode
        os.chmod(path, mode | _EXEC_BITS)
    except OSError as e:
        raise InstallError(f"Can't set executable {path}: {e}") from e
    if not os.access(path, os.X_OK):
        raise InstallError(f"Can't set executable {path}")
    logger.debug("Marked %s executable", path)
