"""
Tests for aptresolver.package_version: parsing and dpkg ordering.

python-debian's Version is used as an independent ordering reference.
"""

import itertools
import random

import pytest
from debian.debian_support import Version as DebianVersion

from aptresolver.errors import VersionError
from aptresolver.package_version import PackageVersion

SAMPLE = [
    "1.0~rc1",
    "1.0",
    "1.0-1",
    "1.0-2",
    "2:1.0-1",
    "1.0~~",
    "1.0~~a",
    "1.0~",
    "1.0a",
    "1.0+dfsg-1",
    "1.0.1",
    "1.9",
    "1.10",
    "0.9~beta2-3",
    "1:0.1",
    "1.0-1ubuntu0.1",
    "1.0-1+b1",
    "2.0~rc1+git20200101",
    "1.001",
    "0:1.0",
]


def _sign(n):
    return (n > 0) - (n < 0)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


class TestParse:
    def test_all_components(self):
        v = PackageVersion.parse("2:1.0.3-1ubuntu1")
        assert v.epoch == 2
        assert v.upstream_version == "1.0.3"
        assert v.debian_revision == "1ubuntu1"

    def test_defaults(self):
        v = PackageVersion.parse("1.0")
        assert v.epoch == 0
        assert v.upstream_version == "1.0"
        assert v.debian_revision is None

    def test_last_hyphen_separates_revision(self):
        v = PackageVersion.parse("1.0-beta-2")
        assert v.upstream_version == "1.0-beta"
        assert v.debian_revision == "2"

    @pytest.mark.parametrize("text", ["1.0", "0:1.0", "2:1.0-1", "1.0~rc1+dfsg-3ubuntu1"])
    def test_str_is_original_text(self, text):
        assert str(PackageVersion.parse(text)) == text

    def test_str_of_constructed_version(self):
        assert str(PackageVersion(1, "2.0", "3")) == "1:2.0-3"
        assert str(PackageVersion(0, "2.0")) == "2.0"

    @pytest.mark.parametrize(
        "text",
        ["", " 1.0", "1.0 ", "1 0", "a:1.0", "1:", "1.0-", "-1", "1:2:3", "1.0_1", "1.0-1_2", "-1:1.0"],
    )
    def test_invalid(self, text):
        with pytest.raises(VersionError):
            PackageVersion.parse(text)

    def test_version_error_is_value_error(self):
        with pytest.raises(ValueError):
            PackageVersion.parse("")


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------


class TestOrdering:
    def test_documented_chain(self):
        chain = ["1.0~rc1", "1.0", "1.0-1", "1.0-2", "2:1.0-1"]
        versions = [PackageVersion.parse(v) for v in chain]
        shuffled = versions[:]
        random.Random(4).shuffle(shuffled)
        assert [str(v) for v in sorted(shuffled)] == chain
        for a, b in itertools.pairwise(versions):
            assert a < b

    def test_tilde_sorts_before_end_of_string(self):
        chain = ["1.0~~", "1.0~~a", "1.0~", "1.0", "1.0a"]
        versions = [PackageVersion.parse(v) for v in chain]
        assert sorted(reversed(versions)) == versions

    def test_letters_sort_before_other_characters(self):
        assert PackageVersion.parse("1.0a") < PackageVersion.parse("1.0+")
        assert PackageVersion.parse("1.0a") < PackageVersion.parse("1.0.1")

    def test_digit_runs_compare_numerically(self):
        assert PackageVersion.parse("1.10") > PackageVersion.parse("1.9")

    def test_epoch_dominates(self):
        assert PackageVersion.parse("1:0.1") > PackageVersion.parse("0:99.9-9")

    def test_equal_by_value_with_different_text(self):
        pairs = [("1.001", "1.1"), ("0:1.0", "1.0"), ("1.0-0", "1.0")]
        for a, b in pairs:
            va, vb = PackageVersion.parse(a), PackageVersion.parse(b)
            assert va == vb
            assert hash(va) == hash(vb)
            assert not va < vb and not vb < va
        assert len({PackageVersion.parse("1.0"), PackageVersion.parse("0:1.0")}) == 1

    def test_compare_with_other_types(self):
        assert PackageVersion.parse("1.0") != "1.0"
        with pytest.raises(TypeError):
            PackageVersion.parse("1.0") < "1.0"

    def test_total_order(self):
        versions = [PackageVersion.parse(v) for v in SAMPLE]
        for a, b in itertools.product(versions, repeat=2):
            assert [a < b, a == b, a > b].count(True) == 1
        for a, b, c in itertools.product(versions, repeat=3):
            if a <= b and b <= c:
                assert a <= c

    def test_hash_consistent_with_equality(self):
        versions = [PackageVersion.parse(v) for v in SAMPLE]
        for a, b in itertools.product(versions, repeat=2):
            if a == b:
                assert hash(a) == hash(b)

    def test_matches_debian_ordering(self):
        for a, b in itertools.product(SAMPLE, repeat=2):
            ours = _sign(PackageVersion.parse(a).compare(PackageVersion.parse(b)))
            theirs = (DebianVersion(a) > DebianVersion(b)) - (DebianVersion(a) < DebianVersion(b))
            assert ours == theirs, f"{a} vs {b}"
