"""Materialize a flattened ``path -> file`` map into git tree objects.

The flat map is inserted once into a trie over path segments, then written
bottom-up so that every directory's hash is known before its parent tree is
serialized. dulwich serializes tree entries in git order (a directory name
compares as if it ended with ``/``), which is part of the tree hash.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from dulwich.object_store import BaseObjectStore
from dulwich.objects import Blob, Tree

from treefs.config.constants import DIR_MODE, FILE_MODE, PRESERVED_FILE_MODES
from treefs.core import paths
from treefs.core.errors import TypeMismatchError
from treefs.core.overlay import Delete, OverlayValue
from treefs.core.snapshot import FlatTree, TreeFile


@dataclass
class TrieNode:
    files: dict[str, TreeFile] = field(default_factory=dict)
    dirs: dict[str, TrieNode] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not self.files and not self.dirs


def build_trie(files: Mapping[str, TreeFile]) -> TrieNode:
    """Insert every file path into a segment trie.

    Raises:
        TypeMismatchError: A path is used both as a file and as a directory.
    """
    root = TrieNode()
    for path, leaf in files.items():
        node = root
        prefix = ""
        *dirnames, filename = paths.split(path)
        for dirname in dirnames:
            prefix = paths.join(prefix, dirname)
            if dirname in node.files:
                raise TypeMismatchError(prefix, "directory")
            node = node.dirs.setdefault(dirname, TrieNode())
        if filename in node.dirs:
            raise TypeMismatchError(path, "file")
        node.files[filename] = leaf
    return root


def write_trie(object_store: BaseObjectStore, node: TrieNode) -> bytes | None:
    """Write ``node`` and its descendants; return the tree SHA.

    A directory without any surviving file beneath it is not written and
    yields None.
    """
    tree = Tree()
    for name, child in node.dirs.items():
        child_sha = write_trie(object_store, child)
        if child_sha is not None:
            tree.add(name.encode("utf-8"), DIR_MODE, child_sha)
    for name, leaf in node.files.items():
        tree.add(name.encode("utf-8"), leaf.mode, leaf.sha)
    if not len(tree):
        return None
    object_store.add_object(tree)
    return tree.id


def write_root(object_store: BaseObjectStore, files: Mapping[str, TreeFile]) -> bytes:
    """Write the full hierarchy for ``files``; the root tree always exists."""
    sha = write_trie(object_store, build_trie(files))
    if sha is None:
        empty = Tree()
        object_store.add_object(empty)
        sha = empty.id
    return sha


def apply_overlay(
    object_store: BaseObjectStore,
    base: FlatTree,
    overlay: Iterable[tuple[str, OverlayValue]],
) -> FlatTree:
    """Apply pending mutations on top of a flattened base tree.

    Deletions drop the path; writes store a new blob and upsert the path,
    keeping an executable bit already present in the base.
    """
    files = dict(base)
    for path, value in overlay:
        if isinstance(value, Delete):
            files.pop(path, None)
            continue
        blob = Blob.from_string(value.data)
        object_store.add_object(blob)
        previous = files.get(path)
        mode = previous.mode if previous and previous.mode in PRESERVED_FILE_MODES else FILE_MODE
        files[path] = TreeFile(mode, blob.id)
    return files
