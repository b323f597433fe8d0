"""Read-only view of one commit's tree.

Uses dulwich (pure Python git implementation) for all object access; a git
binary is not required.
"""

from __future__ import annotations

import stat
from typing import NamedTuple, TypeVar

from dulwich.errors import ObjectFormatException
from dulwich.objects import Blob, Commit, ShaFile, Tree
from dulwich.protocol import ZERO_SHA
from dulwich.repo import BaseRepo

from treefs.core import paths
from treefs.core.errors import CorruptObjectError, StorageIOError

_T = TypeVar("_T", bound=ShaFile)


class TreeFile(NamedTuple):
    """A file leaf of a flattened tree."""

    mode: int
    sha: bytes


# path -> TreeFile, paths relative to the tree root
FlatTree = dict[str, TreeFile]


def is_zero(sha: bytes | None) -> bool:
    return not sha or sha == ZERO_SHA


def read_object(repo: BaseRepo, sha: bytes, expected: type[_T]) -> _T:
    """Load an object and check its type.

    Raises:
        CorruptObjectError: Missing, malformed, or wrongly typed object.
        StorageIOError: The object database could not be read.
    """
    try:
        obj = repo.object_store[sha]
    except KeyError as e:
        raise CorruptObjectError(sha, "object is missing") from e
    except ObjectFormatException as e:
        raise CorruptObjectError(sha, f"malformed object: {e}") from e
    except OSError as e:
        raise StorageIOError(f"read object {sha!r}: {e}") from e
    if not isinstance(obj, expected):
        raise CorruptObjectError(
            sha, f"expected {expected.type_name.decode()}, got {obj.type_name.decode()}"
        )
    return obj


def flatten_tree(repo: BaseRepo, tree_sha: bytes, prefix: str = "") -> FlatTree:
    """Recursively flatten a git tree into ``{path: TreeFile}``.

    Blobs are referenced by SHA and never read.
    """
    result: FlatTree = {}
    tree = read_object(repo, tree_sha, Tree)
    for entry in tree.iteritems():
        name = entry.path.decode("utf-8")
        full_path = paths.join(prefix, name)
        if stat.S_ISDIR(entry.mode):
            result.update(flatten_tree(repo, entry.sha, full_path))
        else:
            result[full_path] = TreeFile(entry.mode, entry.sha)
    return result


def flatten_commit(repo: BaseRepo, commit_sha: bytes | None) -> FlatTree:
    """Flatten the tree of a commit; the zero sentinel flattens to nothing."""
    if is_zero(commit_sha):
        return {}
    commit = read_object(repo, commit_sha, Commit)
    return flatten_tree(repo, commit.tree)


class Snapshot:
    """Immutable base tree loaded from a commit (or empty)."""

    def __init__(self, repo: BaseRepo, commit_id: bytes = ZERO_SHA, tree: Tree | None = None):
        self.repo = repo
        self.commit_id = commit_id
        self.tree = tree

    @classmethod
    def load(cls, repo: BaseRepo, commit_id: bytes | None) -> Snapshot:
        if is_zero(commit_id):
            return cls(repo)
        commit = read_object(repo, commit_id, Commit)
        tree = read_object(repo, commit.tree, Tree)
        return cls(repo, commit_id, tree)

    @property
    def is_empty(self) -> bool:
        return self.tree is None

    def lookup(self, path: str) -> tuple[int, bytes] | None:
        """Resolve ``path`` to its ``(mode, sha)`` entry, or None if absent.

        The root resolves to the tree itself. Traversal through a file
        segment is reported as absent.
        """
        if self.tree is None:
            return None
        if not path:
            return stat.S_IFDIR, self.tree.id
        current = self.tree
        segments = paths.split(path)
        for i, segment in enumerate(segments):
            try:
                mode, sha = current[segment.encode("utf-8")]
            except KeyError:
                return None
            if i == len(segments) - 1:
                return mode, sha
            if not stat.S_ISDIR(mode):
                return None
            current = read_object(self.repo, sha, Tree)
        return None

    def subtree(self, path: str) -> Tree | None:
        found = self.lookup(path)
        if found is None or not stat.S_ISDIR(found[0]):
            return None
        if not path:
            return self.tree
        return read_object(self.repo, found[1], Tree)

    def list_dir(self, path: str) -> dict[str, bool]:
        """Return ``{name: is_dir}`` for the immediate children of ``path``."""
        tree = self.subtree(path)
        if tree is None:
            return {}
        return {
            entry.path.decode("utf-8"): stat.S_ISDIR(entry.mode)
            for entry in tree.iteritems()
        }

    def files_under(self, path: str) -> FlatTree:
        """Flatten the subtree at ``path``; keys are relative to ``path``."""
        tree = self.subtree(path)
        if tree is None:
            return {}
        return flatten_tree(self.repo, tree.id)

    def flatten(self) -> FlatTree:
        if self.tree is None:
            return {}
        return flatten_tree(self.repo, self.tree.id)

    def read_blob(self, sha: bytes) -> bytes:
        return read_object(self.repo, sha, Blob).data

    def blob_size(self, sha: bytes) -> int:
        return read_object(self.repo, sha, Blob).raw_length()
