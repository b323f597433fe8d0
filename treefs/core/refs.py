"""Reference store access on top of dulwich's refs containers.

dulwich's ``DiskRefsContainer`` takes a ``.lock`` file around
``set_if_equals``/``add_if_new``, which gives the atomic compare-and-swap the
commit path relies on.
"""

from __future__ import annotations

from dulwich.repo import BaseRepo

from treefs.core.errors import ConflictError, NotFoundError, StorageIOError
from treefs.core.snapshot import is_zero


def as_ref(name: str | bytes) -> bytes:
    return name.encode("utf-8") if isinstance(name, str) else name


def as_sha(sha: str | bytes) -> bytes:
    return sha.encode("ascii") if isinstance(sha, str) else sha


def read_ref(repo: BaseRepo, name: bytes) -> bytes | None:
    """Return the commit a ref points at (symrefs followed), or None.

    Raises:
        StorageIOError: The ref could not be read.
    """
    try:
        return repo.refs[name]
    except KeyError:
        return None
    except OSError as e:
        raise StorageIOError(f"read ref {name.decode('utf-8', errors='replace')}: {e}") from e


def lookup_ref(repo: BaseRepo, name: bytes) -> bytes:
    sha = read_ref(repo, name)
    if sha is None:
        raise NotFoundError(name.decode("utf-8", errors="replace"))
    return sha


def set_ref(repo: BaseRepo, name: bytes, sha: bytes) -> None:
    try:
        repo.refs[name] = sha
    except OSError as e:
        raise StorageIOError(f"set ref {name.decode('utf-8', errors='replace')}: {e}") from e


def delete_ref(repo: BaseRepo, name: bytes) -> None:
    lookup_ref(repo, name)
    try:
        del repo.refs[name]
    except OSError as e:
        raise StorageIOError(f"delete ref {name.decode('utf-8', errors='replace')}: {e}") from e


def compare_and_swap(repo: BaseRepo, name: bytes, expected: bytes, new: bytes) -> None:
    """Point ``name`` at ``new`` only if it still points at ``expected``.

    A zero ``expected`` means the ref must not exist yet (first writer wins
    the creation race).

    Raises:
        ConflictError: The ref no longer matches ``expected``.
        StorageIOError: The ref could not be written.
    """
    try:
        if is_zero(expected):
            swapped = repo.refs.add_if_new(name, new)
        else:
            swapped = repo.refs.set_if_equals(name, expected, new)
    except OSError as e:
        raise StorageIOError(f"update ref {name.decode('utf-8', errors='replace')}: {e}") from e
    if not swapped:
        raise ConflictError(name, None if is_zero(expected) else expected, read_ref(repo, name))


def has_remotes(repo: BaseRepo) -> bool:
    """True if the repository config declares at least one remote."""
    try:
        config = repo.get_config()
    except OSError as e:
        raise StorageIOError(f"read config: {e}") from e
    return any(section[0] == b"remote" for section in config.sections())
