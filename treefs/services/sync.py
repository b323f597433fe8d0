"""Reconcile a session's ref with a remote-tracking ref.

Network transfer is the caller's job: fetch into ``remote_ref`` before
calling ``reconcile`` and push afterwards when the status asks for it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from treefs.core import refs
from treefs.core.errors import TreeFSError
from treefs.services.treefs import TreeFS
from treefs.utils.logger import short_sha, sync_logger


class SyncStatus(str, Enum):
    """Outcome of a reconciliation."""

    UP_TO_DATE = "up to date"  # Nothing local; ref fast-forwarded if needed
    AHEAD = "ahead"  # Local strictly ahead (or no remote yet); caller pushes
    MERGED = "merged"  # Diverged and merged cleanly; caller pushes
    NEEDS_REPLAY = "needs replay"  # Conflict; ref reset to remote, intents returned


@dataclass
class SyncResult:
    status: SyncStatus
    replay: list[str] = field(default_factory=list)


def reconcile(session: TreeFS, remote_ref: str | bytes) -> SyncResult:
    """Bring the session's ref in line with ``remote_ref``.

    Args:
        session: Session whose ref is reconciled; must have nothing pending.
        remote_ref: Remote-tracking ref, e.g. ``refs/remotes/origin/treefs``.

    Returns:
        SyncResult. With NEEDS_REPLAY, ``replay`` holds the local intent
        messages (oldest first) that the caller must re-apply on top of the
        remote state.
    """
    if session.has_pending:
        raise TreeFSError("session has uncommitted changes; commit or refresh first")

    remote = refs.read_ref(session.repo, refs.as_ref(remote_ref))
    if remote is None:
        return _done(session, SyncResult(SyncStatus.AHEAD))

    local = session.ref_hash()
    local_commits = session.commits_between(local, remote)
    if not local_commits:
        if local != remote:
            session.reset(remote)
        return _done(session, SyncResult(SyncStatus.UP_TO_DATE))

    if not session.commits_between(remote, local):
        return _done(session, SyncResult(SyncStatus.AHEAD))

    intents = [c.message for c in local_commits]
    if session.merge_commit(local, remote, intents):
        return _done(session, SyncResult(SyncStatus.MERGED))

    session.reset(remote)
    return _done(session, SyncResult(SyncStatus.NEEDS_REPLAY, intents))


def _done(session: TreeFS, result: SyncResult) -> SyncResult:
    sync_logger.info(
        "Reconciled",
        ref=session.ref_name,
        status=result.status.value,
        head=short_sha(session.ref_hash()),
        replay=len(result.replay),
    )
    return result
