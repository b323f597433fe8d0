"""Compose the base snapshot with the pending overlay to answer reads.

Resolution order for a single path is overlay, then explicit directory,
then base tree, then a directory implied by a pending write beneath it.

Known quirk: a directory created with ``mkdir_all`` and nothing written
beneath it is reported as existing until the next commit, and then vanishes,
because git trees cannot hold an empty directory.
"""

from __future__ import annotations

import stat as stat_mod
from dataclasses import dataclass

from treefs.core import paths
from treefs.core.errors import NotFoundError, TypeMismatchError
from treefs.core.overlay import Delete, Overlay, Write
from treefs.core.snapshot import Snapshot


@dataclass(frozen=True)
class DirEntry:
    name: str
    is_dir: bool


@dataclass(frozen=True)
class FileInfo:
    name: str
    size: int
    is_dir: bool


class Compositor:
    def __init__(self, base: Snapshot, overlay: Overlay):
        self.base = base
        self.overlay = overlay

    def read_file(self, path: str) -> bytes:
        value = self.overlay.get(path)
        if isinstance(value, Write):
            return value.data
        if isinstance(value, Delete):
            raise NotFoundError(path)
        found = self.base.lookup(path)
        if found is None:
            raise NotFoundError(path)
        mode, sha = found
        if stat_mod.S_ISDIR(mode):
            raise TypeMismatchError(path, "file")
        return self.base.read_blob(sha)

    def read_dir(self, path: str) -> list[DirEntry]:
        """List the immediate children of ``path``, sorted by name.

        A directory that does not exist lists as empty.
        """
        if path and self.is_live_file(path):
            raise TypeMismatchError(path, "directory")

        entries = self.base.list_dir(path)
        nested: list[str] = []
        for rel, value in self.overlay.beneath(path):
            if "/" in rel:
                if isinstance(value, Write):
                    nested.append(rel)
            elif isinstance(value, Delete):
                entries.pop(rel, None)
            else:
                entries[rel] = False
        # nested writes win over a deleted direct child of the same name
        for rel in nested:
            entries[rel.split("/", 1)[0]] = True

        for dirpath in self.overlay.explicit_dirs():
            rel = paths.child_of(path, dirpath)
            if rel is not None:
                entries.setdefault(rel.split("/", 1)[0], True)

        return [DirEntry(name, is_dir) for name, is_dir in sorted(entries.items())]

    def stat(self, path: str) -> FileInfo:
        if not path:
            return FileInfo(name="", size=0, is_dir=True)
        name = paths.basename(path)

        value = self.overlay.get(path)
        if isinstance(value, Write):
            return FileInfo(name=name, size=len(value.data), is_dir=False)
        if isinstance(value, Delete):
            raise NotFoundError(path)

        if self.overlay.is_explicit_dir(path) and self.dir_has_content(path):
            return FileInfo(name=name, size=0, is_dir=True)

        found = self.base.lookup(path)
        if found is not None:
            mode, sha = found
            if stat_mod.S_ISDIR(mode):
                return FileInfo(name=name, size=0, is_dir=True)
            return FileInfo(name=name, size=self.base.blob_size(sha), is_dir=False)

        if any(isinstance(v, Write) for _, v in self.overlay.beneath(path)):
            return FileInfo(name=name, size=0, is_dir=True)

        raise NotFoundError(path)

    def dir_has_content(self, path: str) -> bool:
        """Whether an explicit directory should be reported as existing.

        It exists unless every overlay entry beneath it is a deletion and the
        base subtree is empty once those deletions are applied.
        """
        if not any(True for _ in self.overlay.beneath(path)):
            return True
        return self.has_live_files_beneath(path)

    def has_live_files_beneath(self, path: str) -> bool:
        deleted: set[str] = set()
        for rel, value in self.overlay.beneath(path):
            if isinstance(value, Write):
                return True
            deleted.add(rel)
        return any(rel not in deleted for rel in self.base.files_under(path))

    def is_live_file(self, path: str) -> bool:
        value = self.overlay.get(path)
        if isinstance(value, Write):
            return True
        if isinstance(value, Delete):
            return False
        found = self.base.lookup(path)
        return found is not None and not stat_mod.S_ISDIR(found[0])
