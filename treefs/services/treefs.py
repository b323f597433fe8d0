from __future__ import annotations

import time
from collections.abc import Sequence
from os import PathLike

from dulwich.errors import NotGitRepository
from dulwich.repo import BaseRepo, Repo

from treefs.config.schema import IdentityConfig
from treefs.config.settings import settings
from treefs.core import history, paths, refs
from treefs.core.commits import write_commit
from treefs.core.compositor import Compositor, DirEntry, FileInfo
from treefs.core.errors import ConflictError, StorageIOError, TypeMismatchError
from treefs.core.merge import three_way_merge
from treefs.core.overlay import Overlay
from treefs.core.snapshot import Snapshot, flatten_commit
from treefs.core.tree_builder import apply_overlay, write_root
from treefs.utils.logger import merge_logger, session_logger, short_sha

"""
Transactional filesystem over a git reference
=============================================

A TreeFS session treats one git ref as a mutable filesystem:

1. Reads see the base snapshot (the commit the ref pointed at when loaded)
   composed with the session's pending overlay.
2. Writes, removals and mkdirs only touch the in-memory overlay.
3. ``commit()`` materializes base + overlay into new blob/tree objects,
   writes one commit on top of the base and moves the ref with a
   compare-and-swap. If another writer moved the ref first, ConflictError is
   raised and the overlay is kept so the caller can refresh-and-retry or merge.
4. While nothing is pending, every read first checks whether the ref moved
   and silently reloads, so read-only sessions stay current. Once something
   is pending the session is pinned to its base until commit, refresh or reset.

Uses dulwich (pure Python git implementation); git binary is not required.
"""

# Number of conflicting paths to include in merge log events
MAX_CONFLICT_SAMPLES = 5


class TreeFS:
    """Mutable, transactional filesystem view of a single git reference.

    One session, one thread: the session keeps no locks of its own. Safety
    across sessions and processes comes from the ref compare-and-swap.
    """

    def __init__(
        self,
        repo: BaseRepo,
        ref: str | bytes | None = None,
        identity: IdentityConfig | None = None,
    ) -> None:
        self._repo = repo
        self._ref = refs.as_ref(ref or settings.default_ref)
        self._identity = identity
        self._overlay = Overlay()
        self._load_base(refs.read_ref(repo, self._ref))

    # ---- opening ----
    @classmethod
    def open(
        cls,
        location: str | PathLike[str],
        ref: str | bytes | None = None,
        identity: IdentityConfig | None = None,
    ) -> TreeFS:
        """Open the repository at ``location`` and load ``ref``.

        A missing ref is not an error: the session starts from an empty tree
        and the first commit creates the ref.

        Raises:
            StorageIOError: ``location`` is not a readable git repository.
        """
        try:
            repo = Repo(str(location))
        except NotGitRepository as e:
            raise StorageIOError(f"not a git repository: {location}") from e
        except OSError as e:
            raise StorageIOError(f"open repo {location}: {e}") from e
        return cls(repo, ref, identity)

    @classmethod
    def from_repo(
        cls,
        repo: BaseRepo,
        ref: str | bytes | None = None,
        identity: IdentityConfig | None = None,
    ) -> TreeFS:
        """Create a session over an already-opened dulwich repository."""
        return cls(repo, ref, identity)

    @property
    def repo(self) -> BaseRepo:
        return self._repo

    @property
    def ref_name(self) -> str:
        return self._ref.decode("utf-8")

    @property
    def identity(self) -> IdentityConfig:
        return self._identity or settings.identity

    @property
    def has_pending(self) -> bool:
        return self._overlay.has_pending

    def _load_base(self, commit_id: bytes | None) -> None:
        self._base = Snapshot.load(self._repo, commit_id)
        self._view = Compositor(self._base, self._overlay)

    def _maybe_refresh(self) -> None:
        """Reload the base if the ref moved and nothing is pending."""
        if self._overlay.has_pending:
            return
        try:
            live = refs.read_ref(self._repo, self._ref)
        except StorageIOError:
            # Treat transient ref read failures as "nothing new"
            return
        if live is None or live == self._base.commit_id:
            return
        session_logger.debug(
            "Ref moved, reloading base",
            ref=self.ref_name,
            old=short_sha(self._base.commit_id),
            new=short_sha(live),
        )
        self._load_base(live)

    def refresh(self) -> None:
        """Discard pending changes and reload the base from the ref."""
        self._overlay.clear()
        self._load_base(refs.read_ref(self._repo, self._ref))

    def reset(self, commit_id: str | bytes) -> None:
        """Point the ref at ``commit_id`` unconditionally and reload.

        Pending changes are discarded.
        """
        sha = refs.as_sha(commit_id)
        snapshot = Snapshot.load(self._repo, sha)
        if snapshot.is_empty:
            raise ValueError("cannot reset to the zero commit; use delete_ref")
        refs.set_ref(self._repo, self._ref, sha)
        self._overlay.clear()
        self._base = snapshot
        self._view = Compositor(self._base, self._overlay)
        session_logger.debug("Reset ref", ref=self.ref_name, commit=short_sha(sha))

    # ---- reads ----
    def read_file(self, path: str) -> bytes:
        """Return the contents of the file at ``path``.

        Raises:
            NotFoundError: No such file, or it was removed in this session.
            TypeMismatchError: ``path`` is a directory.
        """
        self._maybe_refresh()
        return self._view.read_file(paths.clean(path))

    def read_dir(self, path: str = "") -> list[DirEntry]:
        """List the immediate children of ``path``, sorted by name."""
        self._maybe_refresh()
        return self._view.read_dir(paths.clean(path))

    def stat(self, path: str) -> FileInfo:
        self._maybe_refresh()
        return self._view.stat(paths.clean(path))

    def exists(self, path: str) -> bool:
        try:
            self.stat(path)
        except FileNotFoundError:
            return False
        return True

    # ---- writes ----
    def write_file(self, path: str, data: bytes | str) -> None:
        """Stage ``data`` at ``path``; parent directories are implied.

        Raises:
            ValueError: ``path`` is empty.
            TypeMismatchError: A parent is a file, or ``path`` is a directory
                that still holds files.
        """
        self._maybe_refresh()
        p = paths.clean(path)
        if not p:
            raise ValueError("empty path")
        if isinstance(data, str):
            data = data.encode("utf-8")
        for parent in paths.ancestors(p):
            if self._view.is_live_file(parent):
                raise TypeMismatchError(parent, "directory")
        if self._view.has_live_files_beneath(p):
            raise TypeMismatchError(p, "file")
        self._overlay.write(p, data)

    def remove(self, path: str) -> None:
        """Stage a deletion at ``path``, masking any base entry."""
        self._maybe_refresh()
        p = paths.clean(path)
        if not p:
            raise ValueError("empty path")
        self._overlay.delete(p)

    def mkdir_all(self, path: str) -> None:
        """Mark ``path`` and its parents as existing directories.

        Empty directories are only visible until the next commit: git trees
        cannot store a directory without a file beneath it.

        Raises:
            TypeMismatchError: ``path`` or one of its parents is a file.
        """
        self._maybe_refresh()
        p = paths.clean(path)
        if p:
            for candidate in (p, *paths.ancestors(p)):
                if self._view.is_live_file(candidate):
                    raise TypeMismatchError(candidate, "directory")
        self._overlay.mark_dir(p)

    # ---- commit ----
    def commit(self, message: str) -> bytes | None:
        """Publish all pending changes as one commit on the ref.

        Returns:
            The new commit id, or None when nothing was pending (the ref is
            left untouched).

        Raises:
            ConflictError: The ref moved since the base was loaded. Pending
                changes are kept.
        """
        if self._overlay.is_empty:
            return None

        store = self._repo.object_store
        files = apply_overlay(store, self._base.flatten(), self._overlay.items())
        tree = write_root(store, files)
        commit = write_commit(store, tree, [self._base.commit_id], message, self.identity)
        self._publish(commit.id, pending=len(self._overlay))
        return commit.id

    def _publish(self, commit_id: bytes, **log_fields) -> None:
        try:
            refs.compare_and_swap(self._repo, self._ref, self._base.commit_id, commit_id)
        except ConflictError as e:
            session_logger.warning(
                "Ref moved, commit rejected",
                ref=self.ref_name,
                expected=short_sha(e.expected),
                actual=short_sha(e.actual),
            )
            raise
        session_logger.debug(
            "Published commit",
            ref=self.ref_name,
            commit=short_sha(commit_id),
            parent=short_sha(self._base.commit_id),
            **log_fields,
        )
        self._overlay.clear()
        self._load_base(commit_id)

    # ---- merge ----
    def merge_commit(
        self,
        local: str | bytes,
        remote: str | bytes,
        intent_messages: Sequence[str],
    ) -> bool:
        """Three-way merge ``local`` onto ``remote`` and replay intents.

        On success one merged tree is written and one commit per intent
        message is chained on top of ``remote``, all sharing that tree; the
        ref moves to the last of them and pending changes are cleared. With
        no intent messages nothing new is written and the ref moves to
        ``remote`` itself.

        Returns:
            False if both sides changed the same path differently, or one
            side made a file where the other made a directory. Nothing is
            written to the ref in that case.

        Raises:
            ConflictError: The ref moved while merging.
        """
        self._maybe_refresh()
        local_sha, remote_sha = refs.as_sha(local), refs.as_sha(remote)
        base_sha = history.merge_base(self._repo, local_sha, remote_sha)
        result = three_way_merge(
            flatten_commit(self._repo, base_sha),
            flatten_commit(self._repo, local_sha),
            flatten_commit(self._repo, remote_sha),
        )
        if not result.ok:
            merge_logger.info(
                "Merge refused, conflicting paths",
                ref=self.ref_name,
                conflicts=len(result.conflicts),
                sample=result.conflicts[:MAX_CONFLICT_SAMPLES],
            )
            return False

        head = remote_sha
        if intent_messages:
            store = self._repo.object_store
            tree = write_root(store, result.merged)
            now = int(time.time())
            for message in intent_messages:
                head = write_commit(store, tree, [head], message, self.identity, when=now).id

        self._publish(head, replayed=len(intent_messages))
        merge_logger.info(
            "Merged",
            ref=self.ref_name,
            base=short_sha(base_sha),
            local=short_sha(local_sha),
            remote=short_sha(remote_sha),
            replayed=len(intent_messages),
        )
        return True

    # ---- history ----
    def all_commits(self) -> list[history.CommitInfo]:
        """Every commit reachable from the ref, newest first."""
        self._maybe_refresh()
        head = refs.read_ref(self._repo, self._ref)
        if head is None:
            return []
        return history.all_commits(self._repo, head)

    def commits_between(
        self, local: str | bytes, remote: str | bytes
    ) -> list[history.CommitInfo]:
        """Commits on ``local`` that ``remote`` lacks, oldest first."""
        return history.commits_between(self._repo, refs.as_sha(local), refs.as_sha(remote))

    # ---- refs ----
    def ref_hash(self) -> bytes:
        """Commit id of the session's base, or the zero sentinel."""
        self._maybe_refresh()
        return self._base.commit_id

    def has_ref(self) -> bool:
        self._maybe_refresh()
        return not self._base.is_empty

    def lookup_ref(self, name: str | bytes) -> bytes:
        return refs.lookup_ref(self._repo, refs.as_ref(name))

    def set_ref(self, name: str | bytes, commit_id: str | bytes) -> None:
        refs.set_ref(self._repo, refs.as_ref(name), refs.as_sha(commit_id))

    def delete_ref(self, name: str | bytes) -> None:
        """Delete a ref; deleting the session's own ref empties the session."""
        ref = refs.as_ref(name)
        refs.delete_ref(self._repo, ref)
        if ref == self._ref:
            self.refresh()

    def has_remotes(self) -> bool:
        return refs.has_remotes(self._repo)
