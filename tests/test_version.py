"""Tests for version parsing and comparison."""

import itertools

import pytest

from raur.version import Version, compare


def test_numeric_segments_compare_numerically():
    assert compare("1.2-1", "1.10-1") == -1
    assert compare("1.10-1", "1.2-1") == 1


def test_epoch_takes_precedence():
    assert compare("1:0.1-1", "9.9-1") == 1
    assert compare("0:1.0", "1.0") == 0


def test_release_compared_when_upstream_equal():
    assert compare("1.0-2", "1.0-10") == -1
    assert compare("1.0", "1.0-1") == -1


def test_prefix_is_older_than_numeric_suffix():
    assert compare("1.0", "1.0.1") == -1
    assert compare("1.0-1", "1.0.1-1") == -1


def test_letter_suffix_is_older_than_bare_version():
    assert compare("1.0rc1", "1.0") == -1
    assert compare("1.0", "1.0a") == 1
    assert compare("2.0beta-1", "2.0-1") == -1
    assert compare("1.0rc1-1", "1.0-1") == -1


def test_separators_count():
    assert compare("1.0a", "1.0.a") == -1
    assert compare("1.0", "1.0.") == 0


def test_alpha_sorts_before_numeric():
    assert compare("1.0a", "1.0.1") == -1
    assert compare("1.0alpha", "1.0beta") == -1


def test_tilde_marks_prerelease():
    assert compare("1.0~rc1", "1.0") == -1
    assert compare("1.0~rc1", "1.0~rc2") == -1


def test_equal_versions():
    assert compare("1.0-1", "1.0-1") == 0
    assert compare("1.01", "1.1") == 0
    assert compare("1_0", "1.0") == 0


def test_parse_components():
    version = Version.parse("2:1.2.3-4")
    assert version.epoch == 2
    assert version.upstream == "1.2.3"
    assert version.release == "4"
    assert str(version) == "2:1.2.3-4"

    plain = Version.parse("1.0")
    assert plain.epoch == 0
    assert plain.release is None


def test_version_objects_are_ordered():
    versions = ["1.10-1", "1.2-1", "1:0.1-1", "1.2~beta-1", "1.2-2"]
    ordered = [str(v) for v in sorted(Version.parse(v) for v in versions)]
    assert ordered == ["1.2~beta-1", "1.2-1", "1.2-2", "1.10-1", "1:0.1-1"]

    ordered = [str(v) for v in sorted(Version.parse(v) for v in ["1.0", "1.0rc1", "1.0~rc1", "1.0.1"])]
    assert ordered == ["1.0~rc1", "1.0rc1", "1.0", "1.0.1"]


SAMPLE = [
    "1.0", "1.0-1", "1.0-2", "1.0.1", "1.0a", "1.0.a", "1.0rc1", "1.0~rc1", "1.01",
    "2:0.1", "1:2.0", "1.10", "1.9", "20240101", "r123.abcdef", "0.9b",
]


def test_compare_is_a_strict_total_order():
    for a, b in itertools.product(SAMPLE, repeat=2):
        assert compare(a, b) == -compare(b, a)
        assert compare(a, b) in (-1, 0, 1)

    for a, b, c in itertools.product(SAMPLE, repeat=3):
        if compare(a, b) < 0 and compare(b, c) < 0:
            assert compare(a, c) < 0
        if compare(a, b) == 0 and compare(b, c) == 0:
            assert compare(a, c) == 0


@pytest.mark.parametrize("installed, op, required, expected", [
    ("2.0-1", ">=", "1.5", True),
    ("1.4-1", ">=", "1.5", False),
    ("1.5", "=", "1.5", True),
    ("1.5-1", "<", "1.6", True),
    ("1.6", ">", "1.6", False),
])
def test_dependency_constraints(installed, op, required, expected):
    from raur.models import Dependency

    dep = Dependency.parse(f"foo{op}{required}")
    assert dep.name == "foo"
    assert dep.operator == op
    assert dep.satisfied_by(installed) is expected


def test_constraint_without_release_ignores_installed_release():
    from raur.models import Dependency

    assert Dependency.parse("foo=1.5").satisfied_by("1.5-3") is True
    assert Dependency.parse("foo=1.5-2").satisfied_by("1.5-3") is False
    assert Dependency.parse("foo").satisfied_by(None) is False
