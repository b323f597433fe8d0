"""In-memory mutation log for one open session.

Every overlay slot holds an explicit tagged value: ``Write`` carries the new
content, ``Delete`` masks whatever the base tree holds at that path, and a
path with no slot is ``UNSET`` (no opinion, defer to the base). Zero-length
writes are therefore never confused with deletions.

Explicit directories live next to the overlay because git trees cannot
represent an empty directory.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Final

from treefs.core import paths


@dataclass(frozen=True)
class Write:
    data: bytes


@dataclass(frozen=True)
class Delete:
    pass


class _Unset:
    _instance: _Unset | None = None

    def __new__(cls) -> _Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Final = _Unset()

OverlayValue = Write | Delete


class Overlay:
    """Pending writes, deletions and explicit directory markers."""

    def __init__(self) -> None:
        self._entries: dict[str, OverlayValue] = {}
        self._dirs: set[str] = set()

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def is_empty(self) -> bool:
        """True when no write or delete is pending (commit would be a no-op)."""
        return not self._entries

    @property
    def has_pending(self) -> bool:
        """True when any mutation, including a bare mkdir, is pending."""
        return bool(self._entries) or bool(self._dirs)

    def get(self, path: str) -> OverlayValue | _Unset:
        return self._entries.get(path, UNSET)

    def items(self) -> Iterator[tuple[str, OverlayValue]]:
        return iter(self._entries.items())

    def write(self, path: str, data: bytes) -> None:
        self._entries[path] = Write(bytes(data))
        for parent in paths.ancestors(path):
            self._dirs.add(parent)

    def delete(self, path: str) -> None:
        self._entries[path] = Delete()

    def mark_dir(self, path: str) -> None:
        """Mark ``path`` and all of its ancestors as explicit directories."""
        if not path:
            return
        self._dirs.add(path)
        self._dirs.update(paths.ancestors(path))

    def is_explicit_dir(self, path: str) -> bool:
        return path in self._dirs

    def explicit_dirs(self) -> Iterator[str]:
        return iter(self._dirs)

    def beneath(self, prefix: str) -> Iterator[tuple[str, OverlayValue]]:
        """Yield ``(relative_path, value)`` for every entry under ``prefix``."""
        for path, value in self._entries.items():
            rel = paths.child_of(prefix, path)
            if rel is not None:
                yield rel, value

    def clear(self) -> None:
        self._entries.clear()
        self._dirs.clear()
