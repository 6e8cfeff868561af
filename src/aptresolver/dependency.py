"""Debian package relationship syntax.

A relationship field such as `Depends` holds a comma-separated list of
expressions. Each expression is a `|`-separated list of alternatives, and an
alternative names a package with an optional architecture qualifier and an
optional version constraint:

    libc6 (>= 2.34), default-mta | mail-transport-agent, perl:any

See <https://www.debian.org/doc/debian-policy/ch-relationships.html>.
"""

import re
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum

from aptresolver.errors import DependencyError, VersionError
from aptresolver.package_version import PackageVersion

_CONSTRAINT_RE = re.compile(r"^(?P<op>[<>=]*)\s*(?P<version>.*)$")


class VersionRelation(str, Enum):
    """Operators usable in a version constraint."""

    STRICTLY_EARLIER = "<<"
    EARLIER_OR_EQUAL = "<="
    EXACTLY_EQUAL = "="
    LATER_OR_EQUAL = ">="
    STRICTLY_LATER = ">>"

    def evaluate(self, candidate: PackageVersion, wanted: PackageVersion) -> bool:
        """Whether `candidate` stands in this relation to `wanted`."""
        result = candidate.compare(wanted)
        match self:
            case VersionRelation.STRICTLY_EARLIER:
                return result < 0
            case VersionRelation.EARLIER_OR_EQUAL:
                return result <= 0
            case VersionRelation.EXACTLY_EQUAL:
                return result == 0
            case VersionRelation.LATER_OR_EQUAL:
                return result >= 0
            case VersionRelation.STRICTLY_LATER:
                return result > 0


class BinaryDependency(str, Enum):
    """Relationship fields of a binary package, valued by their field name."""

    DEPENDS = "Depends"
    PRE_DEPENDS = "Pre-Depends"
    RECOMMENDS = "Recommends"
    SUGGESTS = "Suggests"
    ENHANCES = "Enhances"
    BREAKS = "Breaks"
    CONFLICTS = "Conflicts"
    REPLACES = "Replaces"
    PROVIDES = "Provides"

    @property
    def field_name(self) -> str:
        return self.value


@dataclass(frozen=True)
class VersionConstraint:
    relation: VersionRelation
    version: PackageVersion

    def satisfied_by(self, version: PackageVersion) -> bool:
        return self.relation.evaluate(version, self.version)

    def __str__(self) -> str:
        return f"{self.relation.value} {self.version}"


@dataclass(frozen=True)
class Alternative:
    """One package candidate within an `a | b` group."""

    name: str
    architecture: str | None = None
    constraint: VersionConstraint | None = None

    @classmethod
    def parse(cls, s: str) -> "Alternative":
        text = s.strip()
        constraint = None

        if "(" in text or ")" in text:
            start = text.find("(")
            end = text.find(")")
            if start == -1 or end < start or text.count("(") != 1 or text.count(")") != 1:
                raise DependencyError(f"unbalanced parenthesis in dependency: {s!r}")
            if text[end + 1 :].strip():
                raise DependencyError(f"trailing text after version constraint: {s!r}")
            constraint = _parse_constraint(text[start + 1 : end], s)
            text = text[:start].strip()

        name, sep, architecture = text.partition(":")
        name = name.strip()
        architecture = architecture.strip()
        if not name:
            raise DependencyError(f"dependency is missing a package name: {s!r}")
        if any(c.isspace() for c in name):
            raise DependencyError(f"invalid package name in dependency: {s!r}")
        if sep and (not architecture or any(c.isspace() for c in architecture)):
            raise DependencyError(f"invalid architecture qualifier in dependency: {s!r}")

        return cls(name=name, architecture=architecture or None, constraint=constraint)

    def satisfied_by(self, version: PackageVersion) -> bool:
        """Whether a package at `version` satisfies this alternative's constraint."""
        return self.constraint is None or self.constraint.satisfied_by(version)

    def __str__(self) -> str:
        text = self.name
        if self.architecture:
            text += f":{self.architecture}"
        if self.constraint:
            text += f" ({self.constraint})"
        return text


def _parse_constraint(inner: str, source: str) -> VersionConstraint:
    m = _CONSTRAINT_RE.match(inner.strip())
    op, version = m.group("op"), m.group("version").strip()
    try:
        relation = VersionRelation(op)
    except ValueError:
        raise DependencyError(f"unrecognized relation operator {op!r} in dependency: {source!r}") from None
    if not version:
        raise DependencyError(f"version constraint without a version: {source!r}")
    try:
        return VersionConstraint(relation, PackageVersion.parse(version))
    except VersionError as e:
        raise DependencyError(f"invalid version in dependency {source!r}: {e}") from e


@dataclass(frozen=True)
class DependencyExpression:
    """A non-empty, ordered group of alternatives (`a | b | c`)."""

    alternatives: tuple[Alternative, ...]

    def __post_init__(self):
        if not self.alternatives:
            raise DependencyError("dependency expression has no alternatives")

    @classmethod
    def parse(cls, s: str) -> "DependencyExpression":
        return cls(tuple(Alternative.parse(alt) for alt in s.split("|")))

    def __iter__(self) -> Iterator[Alternative]:
        return iter(self.alternatives)

    def __len__(self) -> int:
        return len(self.alternatives)

    def __str__(self) -> str:
        return " | ".join(str(alt) for alt in self.alternatives)


@dataclass(frozen=True)
class DependencyList:
    """The parsed content of a relationship field."""

    expressions: tuple[DependencyExpression, ...] = ()

    @classmethod
    def parse(cls, s: str) -> "DependencyList":
        """Parse a comma-separated list of dependency expressions.

        Empty entries (e.g. from a trailing comma) are skipped.

        Raises:
            DependencyError: if any expression is malformed.
        """
        return cls(tuple(DependencyExpression.parse(expr) for expr in s.split(",") if expr.strip()))

    def __iter__(self) -> Iterator[DependencyExpression]:
        return iter(self.expressions)

    def __len__(self) -> int:
        return len(self.expressions)

    def __str__(self) -> str:
        return ", ".join(str(expr) for expr in self.expressions)
