"""Commit object creation."""

from __future__ import annotations

import time
from collections.abc import Sequence

from dulwich.object_store import BaseObjectStore
from dulwich.objects import Commit, parse_timezone

from treefs.config.schema import IdentityConfig
from treefs.core.snapshot import is_zero


def write_commit(
    object_store: BaseObjectStore,
    tree: bytes,
    parents: Sequence[bytes],
    message: str,
    identity: IdentityConfig,
    when: int | None = None,
) -> Commit:
    """Create and store a commit; zero-sentinel parents are dropped."""
    commit: Commit = Commit()
    commit.tree = tree
    commit.parents = [p for p in parents if not is_zero(p)]
    commit.author = commit.committer = identity.signature
    commit.commit_time = commit.author_time = int(time.time()) if when is None else when
    commit.commit_timezone = commit.author_timezone = parse_timezone(b"+0000")[0]
    commit.message = message.encode("utf-8")
    object_store.add_object(commit)
    return commit
