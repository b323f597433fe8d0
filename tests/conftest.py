"""Shared pytest fixtures for all tests."""

from pathlib import Path

import pytest
from dulwich.repo import Repo

from treefs.services.treefs import TreeFS

REF = "refs/heads/treefs"


@pytest.fixture(autouse=True)
def clean_treefs_env(monkeypatch):
    """Keep developer environment overrides out of the tests."""
    for key in ("TREEFS_AUTHOR_NAME", "TREEFS_AUTHOR_EMAIL", "TREEFS_DEFAULT_REF"):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def repo_dir(tmp_path: Path) -> Path:
    """Create an empty on-disk git repository (no commits, no refs)."""
    repo = Repo.init(str(tmp_path))
    repo.close()
    return tmp_path


@pytest.fixture
def open_fs(repo_dir: Path):
    """Factory opening a fresh session (own dulwich Repo) on ``repo_dir``."""

    def _open(ref: str = REF) -> TreeFS:
        return TreeFS.open(repo_dir, ref)

    return _open


@pytest.fixture
def tfs(open_fs) -> TreeFS:
    """Open a session on a ref that does not exist yet."""
    return open_fs()


@pytest.fixture
def seeded(repo_dir: Path) -> bytes:
    """Create the ref with a small tree and return its commit id.

    Layout::

        README.md
        issues/a.json
        issues/b.json
        status/open/a
    """
    fs = TreeFS.open(repo_dir, REF)
    fs.write_file("README.md", b"# tracker\n")
    fs.write_file("issues/a.json", b'{"id": "a"}')
    fs.write_file("issues/b.json", b'{"id": "b"}')
    fs.write_file("status/open/a", b"")
    commit_id = fs.commit("init")
    assert commit_id is not None
    return commit_id
