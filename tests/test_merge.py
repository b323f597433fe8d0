"""Tests for three-way merging and intent replay."""

import pytest

from treefs.core.errors import ConflictError
from treefs.core.merge import merge_path, three_way_merge
from treefs.core.snapshot import TreeFile

REF = "refs/heads/treefs"
REMOTE_REF = "refs/remotes/origin/treefs"

A = TreeFile(0o100644, b"a" * 40)
B = TreeFile(0o100644, b"b" * 40)
C = TreeFile(0o100644, b"c" * 40)
A_EXEC = TreeFile(0o100755, b"a" * 40)


@pytest.mark.parametrize(
    "base, local, remote, expected",
    [
        (A, A, A, (True, A)),
        (A, B, A, (True, B)),
        (A, A, B, (True, B)),
        (A, B, B, (True, B)),
        (A, None, A, (True, None)),
        (A, A, None, (True, None)),
        (A, None, None, (True, None)),
        (None, B, None, (True, B)),
        (None, None, B, (True, B)),
        (None, B, B, (True, B)),
        (A, B, C, (False, None)),
        (A, B, None, (False, None)),
        (None, B, C, (False, None)),
        (A, A_EXEC, B, (False, None)),
    ],
)
def test_merge_path(base, local, remote, expected):
    assert merge_path(base, local, remote) == expected


def test_three_way_merge_collects_sorted_conflicts():
    result = three_way_merge(
        base={"x": A, "y": A, "z": A},
        local={"x": B, "y": B, "z": A, "new": C},
        remote={"x": C, "y": C, "z": B},
    )
    assert not result.ok
    assert result.conflicts == ["x", "y"]


def test_three_way_merge_file_versus_directory_conflicts():
    result = three_way_merge(
        base={"keep": A},
        local={"keep": A, "x": B},
        remote={"keep": A, "x/y": C, "x/z/w": C},
    )
    assert not result.ok
    assert result.conflicts == ["x", "x/y", "x/z/w"]


def test_three_way_merge_clean():
    result = three_way_merge(
        base={"keep": A, "edit": A, "drop": A},
        local={"keep": A, "edit": B, "drop": A},
        remote={"keep": A, "edit": A, "added": C},
    )
    assert result.ok
    assert result.merged == {"keep": A, "edit": B, "added": C}


@pytest.fixture
def diverged(open_fs, seeded):
    """Local and remote refs that both moved on from ``seeded``."""

    def _diverge(local_edits, remote_edits):
        local = open_fs()
        remote = open_fs(REMOTE_REF)
        remote.reset(seeded)
        sides = ((local, local_edits, "local"), (remote, remote_edits, "remote"))
        for session, edits, label in sides:
            for i, (path, data) in enumerate(edits):
                if data is None:
                    session.remove(path)
                else:
                    session.write_file(path, data)
                session.commit(f"{label} {i}")
        return local, local.ref_hash(), remote.ref_hash()

    return _diverge


def test_merge_commit_replays_intents_on_remote(diverged):
    fs, local, remote = diverged(
        [("issues/a.json", b"local a"), ("issues/c.json", b"c")],
        [("issues/b.json", b"remote b")],
    )

    assert fs.merge_commit(local, remote, ["local 0", "local 1"])

    assert fs.read_file("issues/a.json") == b"local a"
    assert fs.read_file("issues/b.json") == b"remote b"
    assert fs.read_file("issues/c.json") == b"c"
    assert fs.read_file("README.md") == b"# tracker\n"

    repo = fs.repo
    last = repo[fs.lookup_ref(REF)]
    first = repo[last.parents[0]]
    assert last.message == b"local 1"
    assert first.message == b"local 0"
    assert first.parents == [remote]
    assert first.tree == last.tree


def test_merge_commit_both_deleting_same_path(diverged):
    fs, local, remote = diverged(
        [("issues/a.json", None)],
        [("issues/a.json", None), ("issues/b.json", b"remote b")],
    )
    assert fs.merge_commit(local, remote, ["drop a"])
    assert not fs.exists("issues/a.json")
    assert fs.read_file("issues/b.json") == b"remote b"


def test_merge_commit_same_change_both_sides(diverged):
    fs, local, remote = diverged(
        [("issues/a.json", b"same")],
        [("issues/a.json", b"same")],
    )
    assert fs.merge_commit(local, remote, ["edit a"])
    assert fs.read_file("issues/a.json") == b"same"


def test_merge_commit_conflict_leaves_ref(diverged):
    fs, local, remote = diverged(
        [("issues/a.json", b"local")],
        [("issues/a.json", b"remote")],
    )
    assert not fs.merge_commit(local, remote, ["edit a"])
    assert fs.lookup_ref(REF) == local
    assert fs.read_file("issues/a.json") == b"local"


def test_merge_commit_file_versus_directory_conflicts(diverged):
    fs, local, remote = diverged(
        [("notes", b"a file")],
        [("notes/today", b"a directory entry")],
    )
    assert not fs.merge_commit(local, remote, ["add notes"])
    assert fs.lookup_ref(REF) == local
    assert fs.read_file("notes") == b"a file"


def test_merge_commit_edit_versus_delete_conflicts(diverged):
    fs, local, remote = diverged(
        [("issues/a.json", b"local")],
        [("issues/a.json", None)],
    )
    assert not fs.merge_commit(local, remote, ["edit a"])
    assert fs.lookup_ref(REF) == local


def test_merge_commit_without_intents_moves_ref_to_remote(diverged):
    fs, local, remote = diverged([("x", b"1")], [("y", b"2")])
    assert fs.merge_commit(local, remote, [])

    assert fs.lookup_ref(REF) == remote
    assert fs.ref_hash() == remote
    assert fs.read_file("y") == b"2"
    assert not fs.exists("x")


def test_merge_commit_without_intents_still_refuses_conflicts(diverged):
    fs, local, remote = diverged([("x", b"1")], [("x", b"2")])
    assert not fs.merge_commit(local, remote, [])
    assert fs.lookup_ref(REF) == local


def test_merge_commit_unrelated_histories_union(open_fs):
    local = open_fs()
    local.write_file("mine", b"m")
    local_head = local.commit("mine")

    remote = open_fs(REMOTE_REF)
    remote.write_file("theirs", b"t")
    remote_head = remote.commit("theirs")

    assert local.merge_commit(local_head, remote_head, ["mine"])
    assert [e.name for e in local.read_dir("")] == ["mine", "theirs"]


def test_merge_commit_rejected_when_ref_moved(diverged, open_fs):
    fs, local, remote = diverged([("x", b"1")], [("y", b"2")])
    # pending changes pin the session to ``local``
    fs.write_file("pending", b"p")

    other = open_fs()
    other.write_file("z", b"3")
    moved = other.commit("moved")

    with pytest.raises(ConflictError):
        fs.merge_commit(local, remote, ["x"])
    assert fs.lookup_ref(REF) == moved
