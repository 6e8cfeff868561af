"""Debian package versions and their ordering.

Versions have the form `[epoch:]upstream_version[-debian_revision]` and are
ordered with the same rules as dpkg.
See <https://www.debian.org/doc/debian-policy/ch-controlfields.html#version>.
"""

import re
from functools import cached_property, total_ordering
from itertools import zip_longest

from aptresolver.errors import VersionError

_UPSTREAM_RE = re.compile(r"^[A-Za-z0-9.+~-]+$")
_REVISION_RE = re.compile(r"^[A-Za-z0-9.+~]+$")
_DIGITS = "0123456789"


def _char_order(c: str) -> int:
    # `~` sorts before everything, even the end of the string (which is 0)
    if c == "~":
        return -1
    if c.isascii() and c.isalpha():
        return ord(c)
    return ord(c) + 256


def _split_run(s: str, digits: bool) -> tuple[str, str]:
    """Split `s` into its leading run of digits (or non-digits) and the rest."""
    i = 0
    while i < len(s) and (s[i] in _DIGITS) == digits:
        i += 1
    return s[:i], s[i:]


def _compare_lexical(a: str, b: str) -> int:
    for x, y in zip_longest(map(_char_order, a), map(_char_order, b), fillvalue=0):
        if x != y:
            return -1 if x < y else 1
    return 0


def _compare_fragment(a: str, b: str) -> int:
    """Compare upstream versions or revisions with the dpkg algorithm."""
    while a or b:
        a_lex, a = _split_run(a, digits=False)
        b_lex, b = _split_run(b, digits=False)
        if result := _compare_lexical(a_lex, b_lex):
            return result

        a_num, a = _split_run(a, digits=True)
        b_num, b = _split_run(b, digits=True)
        x, y = int(a_num or 0), int(b_num or 0)
        if x != y:
            return -1 if x < y else 1
    return 0


def _fragment_key(s: str) -> tuple:
    """A key that is equal for two fragments exactly when they compare equal."""
    parts = []
    while s:
        lex, s = _split_run(s, digits=False)
        num, s = _split_run(s, digits=True)
        parts.append((tuple(map(_char_order, lex)), int(num or 0)))
    while parts and parts[-1] == ((), 0):
        parts.pop()
    return tuple(parts)


@total_ordering
class PackageVersion:
    """A parsed Debian package version.

    Instances are immutable and totally ordered. Two versions that differ only
    in spelling (`1.0` and `0:1.00`) compare and hash equal.
    """

    def __init__(self, epoch: int, upstream_version: str, debian_revision: str | None = None):
        if epoch < 0:
            raise VersionError(f"epoch must be non-negative: {epoch}")
        if not upstream_version or not _UPSTREAM_RE.match(upstream_version):
            raise VersionError(f"invalid upstream version: {upstream_version!r}")
        if "-" in upstream_version and debian_revision is None:
            raise VersionError(f"hyphen in upstream version without a revision: {upstream_version!r}")
        if debian_revision is not None and not _REVISION_RE.match(debian_revision):
            raise VersionError(f"invalid debian revision: {debian_revision!r}")

        self.epoch = epoch
        self.upstream_version = upstream_version
        self.debian_revision = debian_revision
        self._text: str | None = None

    @classmethod
    def parse(cls, s: str) -> "PackageVersion":
        """Parse a version string.

        Raises:
            VersionError: if the string is not a valid version.
        """
        if not s or s != s.strip() or any(c.isspace() for c in s):
            raise VersionError(f"invalid version string: {s!r}")

        epoch = 0
        rest = s
        if ":" in s:
            epoch_str, rest = s.split(":", 1)
            if not epoch_str.isascii() or not epoch_str.isdigit():
                raise VersionError(f"epoch is not an integer: {s!r}")
            if ":" in rest:
                raise VersionError(f"colon in upstream version: {s!r}")
            epoch = int(epoch_str)

        upstream, sep, revision = rest.rpartition("-")
        if not sep:
            upstream, revision = rest, None
        elif not revision:
            raise VersionError(f"empty debian revision: {s!r}")

        version = cls(epoch, upstream, revision)
        version._text = s
        return version

    @cached_property
    def _key(self) -> tuple:
        return (self.epoch, _fragment_key(self.upstream_version), _fragment_key(self.debian_revision or ""))

    def compare(self, other: "PackageVersion") -> int:
        """Return a negative, zero or positive number like a classic `cmp()`."""
        if self.epoch != other.epoch:
            return -1 if self.epoch < other.epoch else 1
        if result := _compare_fragment(self.upstream_version, other.upstream_version):
            return result
        return _compare_fragment(self.debian_revision or "", other.debian_revision or "")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PackageVersion):
            return NotImplemented
        return self.compare(other) == 0

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, PackageVersion):
            return NotImplemented
        return self.compare(other) < 0

    def __hash__(self) -> int:
        return hash(self._key)

    def __str__(self) -> str:
        if self._text is not None:
            return self._text
        text = self.upstream_version
        if self.epoch:
            text = f"{self.epoch}:{text}"
        if self.debian_revision is not None:
            text = f"{text}-{self.debian_revision}"
        return text

    def __repr__(self) -> str:
        return f"PackageVersion({str(self)!r})"
