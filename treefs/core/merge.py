"""Per-path three-way merge of flattened trees.

Conflict granularity is the whole file. When both sides changed a path they
must have converged on exactly the same state (same mode and blob, or both
absent); anything else is a conflict and the merge as a whole is refused.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from treefs.core import paths
from treefs.core.snapshot import FlatTree, TreeFile


@dataclass
class MergeResult:
    merged: FlatTree = field(default_factory=dict)
    conflicts: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.conflicts


def merge_path(
    base: TreeFile | None, local: TreeFile | None, remote: TreeFile | None
) -> tuple[bool, TreeFile | None]:
    """Resolve one path; returns ``(resolved, state)`` where None means absent."""
    local_changed = local != base
    remote_changed = remote != base
    if not local_changed:
        return True, remote
    if not remote_changed:
        return True, local
    if local == remote:
        return True, local
    return False, None


def three_way_merge(base: FlatTree, local: FlatTree, remote: FlatTree) -> MergeResult:
    """Merge ``local`` and ``remote`` relative to their common ``base``.

    A merged file whose ancestor is also a merged file (one side turned ``x``
    into a file, the other put ``x/y`` beneath it) cannot be written as a tree,
    so both paths are reported as conflicts.
    """
    result = MergeResult()
    for path in sorted(base.keys() | local.keys() | remote.keys()):
        resolved, state = merge_path(base.get(path), local.get(path), remote.get(path))
        if not resolved:
            result.conflicts.append(path)
        elif state is not None:
            result.merged[path] = state

    clashes: set[str] = set()
    for path in result.merged:
        for parent in paths.ancestors(path):
            if parent in result.merged:
                clashes.update((parent, path))
    if clashes:
        result.conflicts = sorted(clashes.union(result.conflicts))
    return result
