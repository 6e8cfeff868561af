"""Debian binary package control files.

See <https://www.debian.org/doc/debian-policy/ch-controlfields.html#binary-package-control-files-debian-control>.
"""

from functools import cached_property

from aptresolver.control import ControlField, ControlParagraph
from aptresolver.dependency import BinaryDependency, DependencyList
from aptresolver.errors import BinaryPackageControlError, RequiredFieldMissingError
from aptresolver.models import PackageSummary
from aptresolver.package_version import PackageVersion


class BinaryPackageControlFile:
    """A read-only typed view over the paragraph describing one binary package.

    Required fields raise `RequiredFieldMissingError` when absent, optional
    fields return None, and relationship fields are parsed on demand.
    """

    def __init__(self, paragraph: ControlParagraph):
        self.paragraph = paragraph

    def first_field(self, name: str) -> ControlField | None:
        return self.paragraph.first_field(name)

    def first_field_str(self, name: str) -> str | None:
        return self.paragraph.first_field_str(name)

    def first_field_bool(self, name: str) -> bool | None:
        """The first value of a field as a boolean: true iff it is `yes`."""
        value = self.paragraph.first_field_str(name)
        return None if value is None else value == "yes"

    def _required_field(self, name: str) -> str:
        value = self.paragraph.first_field_str(name)
        if value is None:
            raise RequiredFieldMissingError(name)
        return value

    def _optional_int(self, name: str) -> int | None:
        value = self.paragraph.first_field_str(name)
        if value is None:
            return None
        try:
            return int(value)
        except ValueError as e:
            raise BinaryPackageControlError(f"{name} is not an integer: {value!r}") from e

    @property
    def package(self) -> str:
        return self._required_field("Package")

    @property
    def version_str(self) -> str:
        """The `Version` field as its original string."""
        return self._required_field("Version")

    @cached_property
    def version(self) -> PackageVersion:
        """The `Version` field parsed into a `PackageVersion`."""
        return PackageVersion.parse(self.version_str)

    @property
    def architecture(self) -> str:
        return self._required_field("Architecture")

    @property
    def maintainer(self) -> str:
        return self._required_field("Maintainer")

    @property
    def description(self) -> str:
        return self._required_field("Description")

    @property
    def source(self) -> str | None:
        return self.paragraph.first_field_str("Source")

    @property
    def section(self) -> str | None:
        return self.paragraph.first_field_str("Section")

    @property
    def priority(self) -> str | None:
        return self.paragraph.first_field_str("Priority")

    @property
    def essential(self) -> bool | None:
        return self.first_field_bool("Essential")

    @property
    def homepage(self) -> str | None:
        return self.paragraph.first_field_str("Homepage")

    @property
    def installed_size(self) -> int | None:
        return self._optional_int("Installed-Size")

    @property
    def size(self) -> int | None:
        return self._optional_int("Size")

    @property
    def filename(self) -> str | None:
        return self.paragraph.first_field_str("Filename")

    @property
    def built_using(self) -> str | None:
        return self.paragraph.first_field_str("Built-Using")

    @property
    def multi_arch(self) -> str | None:
        return self.paragraph.first_field_str("Multi-Arch")

    def relation(self, kind: BinaryDependency) -> DependencyList | None:
        """Parse the relationship field `kind`, or return None if it is absent.

        Raises:
            DependencyError: if the field is present but malformed.
        """
        value = self.paragraph.first_field_str(kind.field_name)
        return None if value is None else DependencyList.parse(value)

    @property
    def depends(self) -> DependencyList | None:
        return self.relation(BinaryDependency.DEPENDS)

    @property
    def pre_depends(self) -> DependencyList | None:
        return self.relation(BinaryDependency.PRE_DEPENDS)

    @property
    def recommends(self) -> DependencyList | None:
        return self.relation(BinaryDependency.RECOMMENDS)

    @property
    def suggests(self) -> DependencyList | None:
        return self.relation(BinaryDependency.SUGGESTS)

    @property
    def enhances(self) -> DependencyList | None:
        return self.relation(BinaryDependency.ENHANCES)

    @property
    def provides(self) -> DependencyList | None:
        return self.relation(BinaryDependency.PROVIDES)

    @property
    def identity(self) -> tuple[str, PackageVersion, str]:
        """The (name, version, architecture) triple identifying this package."""
        return self.package, self.version, self.architecture

    def summary(self) -> PackageSummary:
        """A serializable record of the package's main fields."""
        return PackageSummary(
            name=self.package,
            version=self.version_str,
            architecture=self.architecture,
            source=self.source,
            section=self.section,
            priority=self.priority,
            filename=self.filename,
            size=self.size,
            installed_size=self.installed_size,
            homepage=self.homepage,
        )

    def __repr__(self) -> str:
        name = self.paragraph.first_field_str("Package")
        version = self.paragraph.first_field_str("Version")
        arch = self.paragraph.first_field_str("Architecture")
        return f"BinaryPackageControlFile({name} {version} {arch})"
