"""Commit ancestry walks: full history, divergence lists, merge bases."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import UTC, datetime

from dulwich.objects import Commit
from dulwich.protocol import ZERO_SHA
from dulwich.repo import BaseRepo

from treefs.core.snapshot import is_zero, read_object


@dataclass
class CommitInfo:
    commit_id: str
    message: str
    author: str
    timestamp: datetime

    @classmethod
    def from_commit(cls, commit: Commit) -> CommitInfo:
        return cls(
            commit_id=commit.id.decode("ascii"),
            message=commit.message.decode("utf-8", errors="replace"),
            author=commit.author.decode("utf-8", errors="replace"),
            timestamp=datetime.fromtimestamp(commit.commit_time, tz=UTC),
        )


def iter_commits(
    repo: BaseRepo, head: bytes | None, stop: set[bytes] | None = None
) -> Iterator[Commit]:
    """Walk the ancestry of ``head``, each commit once.

    First parents are followed before merged-in parents. Commits in ``stop``
    are neither yielded nor descended into.
    """
    stop = stop or set()
    to_visit = deque([head])
    visited: set[bytes] = set()

    while to_visit:
        sha = to_visit.popleft()
        if is_zero(sha) or sha in visited or sha in stop:
            continue
        visited.add(sha)
        commit = read_object(repo, sha, Commit)
        yield commit
        to_visit.extendleft(commit.parents[:1])
        to_visit.extend(commit.parents[1:])


def ancestor_ids(repo: BaseRepo, head: bytes | None) -> set[bytes]:
    """All commits reachable from ``head``, inclusive."""
    return {commit.id for commit in iter_commits(repo, head)}


def merge_base(repo: BaseRepo, local: bytes | None, remote: bytes | None) -> bytes:
    """Nearest ancestor of ``local`` that is also an ancestor of ``remote``.

    Unrelated histories yield the zero sentinel.
    """
    remote_ancestors = ancestor_ids(repo, remote)
    for commit in iter_commits(repo, local):
        if commit.id in remote_ancestors:
            return commit.id
    return ZERO_SHA


def all_commits(repo: BaseRepo, head: bytes | None) -> list[CommitInfo]:
    """Every commit reachable from ``head``, newest first."""
    commits = [CommitInfo.from_commit(commit) for commit in iter_commits(repo, head)]
    # sort is stable, so commits sharing a second keep walk order
    commits.sort(key=lambda info: info.timestamp, reverse=True)
    return commits


def commits_between(
    repo: BaseRepo, local: bytes | None, remote: bytes | None
) -> list[CommitInfo]:
    """Commits reachable from ``local`` but not from ``remote``, oldest first."""
    seen = ancestor_ids(repo, remote)
    found = [CommitInfo.from_commit(c) for c in iter_commits(repo, local, stop=seen)]
    found.reverse()
    return found
