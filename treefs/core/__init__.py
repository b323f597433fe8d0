"""Core building blocks: overlay, snapshots, tree building, history, merge."""

from .compositor import DirEntry, FileInfo
from .errors import (
    ConflictError,
    CorruptObjectError,
    NotFoundError,
    StorageIOError,
    TreeFSError,
    TypeMismatchError,
)
from .history import CommitInfo

__all__ = [
    "CommitInfo",
    "ConflictError",
    "CorruptObjectError",
    "DirEntry",
    "FileInfo",
    "NotFoundError",
    "StorageIOError",
    "TreeFSError",
    "TypeMismatchError",
]
