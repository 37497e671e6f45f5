"""Configuration — Pydantic models for shellpool settings."""

from __future__ import annotations

import os
from typing import Any

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field


class ShellPoolConfig(BaseModel):
    """Top-level shellpool configuration."""

    privileged_shell: str = Field(
        default="su", description="Shell program spawned for the privileged pool"
    )
    unprivileged_shell: str = Field(
        default="sh", description="Shell program spawned for the unprivileged pool"
    )
    executable_name: str = Field(
        default="busybox", description="File name of the installed utility binary"
    )
    asset_path: str | None = Field(
        default=None,
        description="Bundled utility binary to install on first use",
    )
    install_dir: str = Field(
        default="~/.shellpool/bin",
        description="Writable directory the utility binary is installed into",
    )
    executable_path: str | None = Field(
        default=None,
        description="Already-installed utility binary; skips installation when set",
    )
    timeout: float | None = Field(
        default=30.0,
        description="Seconds to wait for a batch to complete (None waits forever)",
    )
    settle_stderr: bool = Field(
        default=True,
        description=(
            "Fence stderr with the marker too and wait for both streams. "
            "When False, the first newline-terminated stderr output ends the call."
        ),
    )
    stderr_grace: float = Field(
        default=0.2,
        ge=0.0,
        description=(
            "Seconds to wait for the stderr fence once stdout is complete; "
            "after that the batch is assumed to have redirected stderr"
        ),
    )
    env: dict[str, str] = Field(
        default_factory=dict, description="Extra environment for spawned shells"
    )

    @classmethod
    def load(cls, config_path: str | None = None) -> ShellPoolConfig:
        """Load config from file, env vars, or defaults.

        Priority: env vars > config file > defaults.

        Env vars:
            SHELLPOOL_PRIVILEGED_SHELL    - Privileged shell program (default: su)
            SHELLPOOL_UNPRIVILEGED_SHELL  - Unprivileged shell program (default: sh)
            SHELLPOOL_EXECUTABLE          - Path of an already-installed utility binary
            SHELLPOOL_ASSET               - Bundled utility binary to install
            SHELLPOOL_INSTALL_DIR         - Install directory for the utility binary
            SHELLPOOL_TIMEOUT             - Batch timeout in seconds ("none" disables)
            SHELLPOOL_SETTLE_STDERR       - "0"/"false" to stop at the first stderr line
            SHELLPOOL_STDERR_GRACE        - Seconds to wait for the stderr fence

        Raises:
            ValueError: a numeric env var is not a number, or the merged
                settings fail validation (pydantic ``ValidationError``).
        """
        # Load .env from the working directory (or a parent); real env vars win
        load_dotenv(find_dotenv(usecwd=True), override=False)

        config_data: dict[str, Any] = {}

        if config_path and os.path.exists(config_path):
            import json

            with open(config_path) as f:
                config_data = json.load(f)

        env_map = {
            "SHELLPOOL_PRIVILEGED_SHELL": "privileged_shell",
            "SHELLPOOL_UNPRIVILEGED_SHELL": "unprivileged_shell",
            "SHELLPOOL_EXECUTABLE": "executable_path",
            "SHELLPOOL_ASSET": "asset_path",
            "SHELLPOOL_INSTALL_DIR": "install_dir",
        }
        for env_var, key in env_map.items():
            value = os.environ.get(env_var)
            if value:
                config_data[key] = value

        env_timeout = os.environ.get("SHELLPOOL_TIMEOUT")
        if env_timeout:
            config_data["timeout"] = (
                None
                if env_timeout.lower() == "none"
                else _env_seconds("SHELLPOOL_TIMEOUT", env_timeout)
            )

        env_grace = os.environ.get("SHELLPOOL_STDERR_GRACE")
        if env_grace:
            config_data["stderr_grace"] = _env_seconds(
                "SHELLPOOL_STDERR_GRACE", env_grace
            )

        env_settle = os.environ.get("SHELLPOOL_SETTLE_STDERR")
        if env_settle:
            config_data["settle_stderr"] = env_settle.lower() not in ("0", "false", "no")

        return cls.model_validate(config_data)


def _env_seconds(name: str, value: str) -> float:
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number of seconds, got {value!r}") from None
