"""Exception taxonomy for tree-backed filesystem sessions.

Every error raised by treefs derives from TreeFSError so callers can catch the
whole family at one seam. A three-way merge that cannot be reconciled is NOT
an error: ``TreeFS.merge_commit`` reports it by returning False.
"""

from __future__ import annotations


def _short(sha: bytes | None) -> str:
    if not sha:
        return "<none>"
    return sha.decode("ascii", errors="replace")[:8]


class TreeFSError(Exception):
    """Base class for all treefs errors."""


class NotFoundError(TreeFSError, FileNotFoundError):
    """Read or stat of a path that is absent from the composed view."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"not found: {path or '/'}")


class TypeMismatchError(TreeFSError):
    """Expected a file and found a directory, or the other way around."""

    def __init__(self, path: str, expected: str):
        self.path = path
        self.expected = expected
        found = "directory" if expected == "file" else "file"
        super().__init__(f"expected {expected}, found {found}: {path or '/'}")


class ConflictError(TreeFSError):
    """The reference moved since the session loaded its base.

    The session's pending overlay is left untouched so the caller can
    refresh-and-retry or reconcile with a merge.
    """

    def __init__(self, ref: bytes, expected: bytes | None, actual: bytes | None):
        self.ref = ref
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"conflict: ref {ref.decode('utf-8', errors='replace')} has moved "
            f"(expected {_short(expected)}, got {_short(actual)})"
        )


class CorruptObjectError(TreeFSError):
    """A git object is missing, malformed, or of an unexpected type."""

    def __init__(self, sha: bytes, reason: str):
        self.sha = sha
        self.reason = reason
        super().__init__(f"corrupt object {_short(sha)}: {reason}")


class StorageIOError(TreeFSError):
    """The underlying repository could not be opened, read, or written."""
