"""Tests for path normalization."""

import pytest

from treefs.core import paths


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("", ""),
        (".", ""),
        ("/", ""),
        ("a", "a"),
        ("/a/b/", "a/b"),
        ("a//b", "a/b"),
        ("a/./b", "a/b"),
        ("a/b/../c", "a/c"),
        ("a\\b", "a\\b"),
    ],
)
def test_clean(raw, expected):
    assert paths.clean(raw) == expected


@pytest.mark.parametrize("raw", ["..", "../x", "a/../../b", "/../etc"])
def test_clean_rejects_escaping_root(raw):
    with pytest.raises(ValueError):
        paths.clean(raw)


def test_ancestors_nearest_first():
    assert list(paths.ancestors("a/b/c")) == ["a/b", "a"]
    assert list(paths.ancestors("a")) == []


def test_child_of():
    assert paths.child_of("", "a/b") == "a/b"
    assert paths.child_of("a", "a/b/c") == "b/c"
    assert paths.child_of("a", "ab/c") is None
    assert paths.child_of("a", "a") is None
