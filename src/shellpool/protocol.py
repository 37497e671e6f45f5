"""Wire protocol between the engine and a shell: markers and framing."""

from __future__ import annotations

import re
import uuid
from collections.abc import Sequence

_WHITESPACE_RE = re.compile(r"(\s)")


def make_marker() -> str:
    """Return a fresh sentinel token for one execution call.

    Random rather than clock-based so that two calls started in the same
    instant, in different threads or processes, never share a token.
    """
    return f"marker_{uuid.uuid4().hex}"


def stderr_fence(marker: str) -> str:
    """Token echoed to stderr for the batch delimited by ``marker``."""
    return f"{marker}_stderr"


def escape_path(path: str) -> str:
    """Backslash-escape whitespace so the shell reads ``path`` as one token."""
    return _WHITESPACE_RE.sub(r"\\\1", path)


def frame_commands(
    commands: Sequence[str],
    marker: str,
    prefix: str | None = None,
    fence: str | None = None,
) -> str:
    """Build the literal text written to a shell's stdin for one batch.

    Each command becomes one line, preceded by ``prefix`` and a space when
    a prefix is given.  The batch ends with ``echo <marker>``.  A ``fence``
    is echoed to stderr just before the marker, so once the marker shows
    up on stdout the shell has already written every byte of error output
    for the batch.
    """
    lines = [f"{prefix} {command}" if prefix else command for command in commands]
    if fence:
        lines.append(f"echo {fence} >&2")
    lines.append(f"echo {marker}")
    return "".join(f"{line}\n" for line in lines)


def strip_marker(text: str, marker: str) -> str:
    """Trim ``text`` and drop everything from the last ``marker`` onward."""
    text = text.strip()
    cut = text.rfind(marker)
    if cut >= 0:
        text = text[:cut]
    return text.strip()


def drop_lines(text: str, token: str) -> str:
    """Remove every line of ``text`` that consists of ``token`` alone."""
    return "\n".join(line for line in text.split("\n") if line.strip() != token)


def split_result(stdout: str, marker: str) -> list[str]:
    """Turn accumulated stdout into the caller's result lines."""
    text = strip_marker(stdout, marker)
    if not text:
        return []
    if "\n" not in text:
        return [text]
    return text.split("\n")
