"""Path normalization shared by every session operation."""

from __future__ import annotations

import posixpath
from collections.abc import Iterator

ROOT = ""


def clean(path: str) -> str:
    """Normalize a caller path into treefs form.

    Forward slash is the only separator (a backslash is an ordinary name
    character), no leading or trailing separator, ``.`` and ``..``
    resolved. The root directory is the empty string.

    Raises:
        ValueError: If the path escapes the root via ``..``.
    """
    if _escapes_root(path):
        raise ValueError(f"path escapes root: {path}")
    normalized = posixpath.normpath(path).strip("/") if path else ROOT
    if normalized == ".":
        return ROOT
    return normalized


def _escapes_root(path: str) -> bool:
    depth = 0
    for segment in path.split("/"):
        if segment in ("", "."):
            continue
        if segment == "..":
            depth -= 1
            if depth < 0:
                return True
        else:
            depth += 1
    return False


def split(path: str) -> list[str]:
    """Split a clean path into its segments (root yields no segments)."""
    return path.split("/") if path else []


def join(parent: str, name: str) -> str:
    return f"{parent}/{name}" if parent else name


def basename(path: str) -> str:
    return path.rsplit("/", 1)[-1]


def ancestors(path: str) -> Iterator[str]:
    """Yield every proper ancestor directory of ``path``, nearest first.

    The root is not yielded.
    """
    while "/" in path:
        path = path.rsplit("/", 1)[0]
        yield path


def child_of(prefix: str, path: str) -> str | None:
    """Return the path relative to ``prefix`` if it lies beneath it."""
    if not prefix:
        return path or None
    if path.startswith(prefix + "/"):
        return path[len(prefix) + 1 :]
    return None
