"""Resolving binary package relationships against a pool of packages.

This is not an installability solver: Conflicts and Breaks are not
considered and nothing is backtracked. The resolver answers reachability
questions: which packages satisfy the relationships of a package, and which
packages are reached by following relationships transitively.
"""

import logging
from collections import defaultdict, deque
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from types import MappingProxyType

from aptresolver.binary_package_control import BinaryPackageControlFile
from aptresolver.dependency import Alternative, BinaryDependency, DependencyExpression, VersionRelation
from aptresolver.errors import UnresolvedDependencyError
from aptresolver.models import DependencyRecord
from aptresolver.package_version import PackageVersion

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Provider:
    package: BinaryPackageControlFile
    version: PackageVersion | None


class PackagePool:
    """An immutable index of binary packages by name and provided name.

    Several versions and architectures of a package may coexist; entries keep
    the order they were loaded in.
    """

    def __init__(self, packages: Iterable[BinaryPackageControlFile] = ()):
        """Index `packages`.

        Raises:
            RequiredFieldMissingError: if a package lacks Package, Version or Architecture.
            VersionError: if a package version is malformed.
            DependencyError: if a package's Provides field is malformed.
        """
        by_name: defaultdict[str, list[BinaryPackageControlFile]] = defaultdict(list)
        providers: defaultdict[str, list[_Provider]] = defaultdict(list)
        count = 0

        for package in packages:
            name, _version, _architecture = package.identity
            by_name[name].append(package)
            for expression in package.provides or ():
                for alt in expression:
                    provided_version = None
                    if alt.constraint and alt.constraint.relation is VersionRelation.EXACTLY_EQUAL:
                        provided_version = alt.constraint.version
                    providers[alt.name].append(_Provider(package, provided_version))
            count += 1

        self._by_name = MappingProxyType({k: tuple(v) for k, v in by_name.items()})
        self._providers = MappingProxyType({k: tuple(v) for k, v in providers.items()})
        self._count = count
        logger.debug(f"Indexed {count} packages ({len(self._by_name)} names, {len(self._providers)} provided)")

    def candidates(self, name: str) -> tuple[BinaryPackageControlFile, ...]:
        """All packages with the given name."""
        return self._by_name.get(name, ())

    def providers(self, name: str) -> tuple[_Provider, ...]:
        """All packages providing the given (virtual) name."""
        return self._providers.get(name, ())

    def find(
        self, name: str, version: str | PackageVersion | None = None, architecture: str | None = None
    ) -> BinaryPackageControlFile | None:
        """The first package loaded with the given name (and version/architecture, if given)."""
        if isinstance(version, str):
            version = PackageVersion.parse(version)
        for package in self.candidates(name):
            if version is not None and package.version != version:
                continue
            if architecture is not None and package.architecture != architecture:
                continue
            return package
        return None

    def names(self) -> list[str]:
        return list(self._by_name)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __iter__(self) -> Iterator[BinaryPackageControlFile]:
        for packages in self._by_name.values():
            yield from packages

    def __len__(self) -> int:
        return self._count


def architecture_qualifies(alternative: Alternative, dependent_arch: str, candidate_arch: str) -> bool:
    """Whether a candidate's architecture can satisfy an alternative of a dependent package.

    * no qualifier or `:native`: same architecture as the dependent, or `all`
      (a dependent of architecture `all` accepts any architecture);
    * `:any`: any architecture;
    * `:<arch>`: exactly that architecture.
    """
    qualifier = alternative.architecture
    if qualifier is None or qualifier == "native":
        return dependent_arch == "all" or candidate_arch in (dependent_arch, "all")
    if qualifier == "any":
        return True
    return candidate_arch == qualifier


@dataclass(frozen=True)
class ResolvedDependency:
    """A dependency expression and the package chosen to satisfy it."""

    expression: DependencyExpression
    alternative: Alternative
    package: BinaryPackageControlFile
    via_provides: bool = False


@dataclass(frozen=True)
class UnresolvedDependency:
    """A dependency expression none of whose alternatives is in the pool."""

    package: BinaryPackageControlFile
    relation: BinaryDependency
    expression: DependencyExpression

    def __str__(self) -> str:
        return f"{self.package.package} {self.relation.field_name}: {self.expression}"


@dataclass
class DirectDependencies:
    """The result of resolving one relationship field of one package."""

    package: BinaryPackageControlFile
    relation: BinaryDependency
    resolved: list[ResolvedDependency] = field(default_factory=list)
    unresolved: list[UnresolvedDependency] = field(default_factory=list)

    def packages(self) -> Iterator[BinaryPackageControlFile]:
        return (r.package for r in self.resolved)

    @property
    def is_complete(self) -> bool:
        return not self.unresolved

    def raise_for_unresolved(self) -> None:
        if self.unresolved:
            raise UnresolvedDependencyError(self.unresolved)


@dataclass(frozen=True)
class DependencySource:
    """A package reached by a transitive resolution and what first pulled it in."""

    package: BinaryPackageControlFile
    source: BinaryPackageControlFile
    relation: BinaryDependency
    expression: DependencyExpression


@dataclass
class TransitiveDependencies:
    """The result of a transitive resolution, in breadth-first discovery order."""

    root: BinaryPackageControlFile
    relations: tuple[BinaryDependency, ...]
    sources: list[DependencySource] = field(default_factory=list)
    unresolved: list[UnresolvedDependency] = field(default_factory=list)

    def packages(self) -> Iterator[BinaryPackageControlFile]:
        return (s.package for s in self.sources)

    def packages_with_sources(self) -> Iterator[tuple[BinaryPackageControlFile, BinaryPackageControlFile]]:
        """Yield `(dependency, source)` pairs, `source` being the package that first required it."""
        return ((s.package, s.source) for s in self.sources)

    def raise_for_unresolved(self) -> None:
        if self.unresolved:
            raise UnresolvedDependencyError(self.unresolved)

    def to_records(self) -> list[DependencyRecord]:
        return [
            DependencyRecord(
                package=s.package.summary(),
                source=s.source.summary(),
                relation=s.relation.field_name,
                expression=str(s.expression),
            )
            for s in self.sources
        ]

    def __iter__(self) -> Iterator[DependencySource]:
        return iter(self.sources)

    def __len__(self) -> int:
        return len(self.sources)


class DependencyResolver:
    """Resolves package relationships against a `PackagePool`.

    Queries only read the pool and may run concurrently.
    """

    def __init__(self, pool: PackagePool | None = None):
        self.pool = pool if pool is not None else PackagePool()

    @classmethod
    def from_packages(cls, packages: Iterable[BinaryPackageControlFile]) -> "DependencyResolver":
        return cls(PackagePool(packages))

    def _best_candidate(
        self, alternative: Alternative, dependent: BinaryPackageControlFile
    ) -> tuple[BinaryPackageControlFile | None, bool]:
        """The highest qualifying version for an alternative, and whether it came from Provides."""
        best = None
        for candidate in self.pool.candidates(alternative.name):
            if not architecture_qualifies(alternative, dependent.architecture, candidate.architecture):
                continue
            if not alternative.satisfied_by(candidate.version):
                continue
            if best is None or candidate.version > best.version:
                best = candidate
        if best is not None:
            return best, False

        for provider in self.pool.providers(alternative.name):
            candidate = provider.package
            if not architecture_qualifies(alternative, dependent.architecture, candidate.architecture):
                continue
            # only versioned provides can satisfy a versioned dependency
            if alternative.constraint is not None and (
                provider.version is None or not alternative.satisfied_by(provider.version)
            ):
                continue
            if best is None or candidate.version > best.version:
                best = candidate
        return best, best is not None

    def find_direct_dependencies(
        self, package: BinaryPackageControlFile, relation: BinaryDependency
    ) -> DirectDependencies:
        """Resolve one relationship field of `package` against the pool.

        For each expression, alternatives are tried in order and the first one
        with a qualifying package wins. Expressions without any are reported
        in `unresolved`.

        Raises:
            DependencyError: if the relationship field is malformed.
        """
        result = DirectDependencies(package=package, relation=relation)

        for expression in package.relation(relation) or ():
            for alternative in expression:
                candidate, via_provides = self._best_candidate(alternative, package)
                if candidate is not None:
                    result.resolved.append(ResolvedDependency(expression, alternative, candidate, via_provides))
                    break
            else:
                logger.debug(f"Unresolved {relation.field_name} of {package.package}: {expression}")
                result.unresolved.append(UnresolvedDependency(package, relation, expression))

        return result

    def find_transitive_dependencies(
        self, package: BinaryPackageControlFile, relations: Iterable[BinaryDependency]
    ) -> TransitiveDependencies:
        """Follow the given relationship kinds from `package` until no new package is reached.

        The traversal is breadth-first; each dequeued package is resolved for
        every relationship kind in the order given. A package is visited once
        per (name, version, architecture), so cycles terminate. The root
        package itself is never reported.
        """
        relations = tuple(relations)
        result = TransitiveDependencies(root=package, relations=relations)
        visited = {package.identity}
        queue = deque([package])

        while queue:
            current = queue.popleft()
            for relation in relations:
                direct = self.find_direct_dependencies(current, relation)
                result.unresolved.extend(direct.unresolved)
                for resolved in direct.resolved:
                    identity = resolved.package.identity
                    if identity in visited:
                        continue
                    visited.add(identity)
                    result.sources.append(
                        DependencySource(resolved.package, current, relation, resolved.expression)
                    )
                    queue.append(resolved.package)

        logger.debug(
            f"Resolved {len(result.sources)} transitive dependencies of {package.package} "
            f"({len(result.unresolved)} unresolved)"
        )
        return result

    # names used by the packaging tools consuming this module
    find_direct_binary_package_dependencies = find_direct_dependencies
    find_transitive_binary_package_dependencies = find_transitive_dependencies

