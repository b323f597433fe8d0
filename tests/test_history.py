"""Tests for history walks and merge-base discovery."""

from dulwich.protocol import ZERO_SHA

from treefs.core import history

REF = "refs/heads/treefs"


def commit_all(fs, *names):
    ids = []
    for name in names:
        fs.write_file(name, name.encode())
        ids.append(fs.commit(f"add {name}"))
    return ids


def test_all_commits_newest_first(open_fs, seeded):
    fs = open_fs()
    first, second = commit_all(fs, "one", "two")

    infos = fs.all_commits()
    assert [i.commit_id for i in infos] == [
        second.decode(),
        first.decode(),
        seeded.decode(),
    ]
    assert [i.message for i in infos] == ["add two", "add one", "init"]
    assert infos[0].author == "treefs <treefs@localhost>"
    assert infos[0].timestamp.tzinfo is not None


def test_all_commits_without_ref(tfs):
    assert tfs.all_commits() == []


def test_commits_between_oldest_first(open_fs, seeded):
    fs = open_fs()
    first, second = commit_all(fs, "one", "two")

    between = fs.commits_between(second, seeded)
    assert [c.commit_id for c in between] == [first.decode(), second.decode()]
    assert fs.commits_between(seeded, second) == []
    assert fs.commits_between(second, second) == []


def test_commits_between_accepts_hex_strings(open_fs, seeded):
    fs = open_fs()
    (head,) = commit_all(fs, "one")
    between = fs.commits_between(head.decode(), seeded.decode())
    assert [c.message for c in between] == ["add one"]


def test_merge_base_of_diverged_branches(open_fs, seeded):
    main = open_fs()
    side = open_fs("refs/heads/side")
    side.reset(seeded)

    (main_head,) = commit_all(main, "m")
    (side_head,) = commit_all(side, "s")

    assert history.merge_base(main.repo, main_head, side_head) == seeded
    assert history.merge_base(main.repo, main_head, seeded) == seeded


def test_merge_base_of_unrelated_histories(open_fs):
    one = open_fs("refs/heads/one")
    two = open_fs("refs/heads/two")
    (a,) = commit_all(one, "a")
    (b,) = commit_all(two, "b")
    assert history.merge_base(one.repo, a, b) == ZERO_SHA


def test_iter_commits_stops_at_boundary(open_fs, seeded):
    fs = open_fs()
    first, second = commit_all(fs, "one", "two")
    walked = [c.id for c in history.iter_commits(fs.repo, second, stop={first})]
    assert walked == [second]
