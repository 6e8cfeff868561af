"""Serializable records handed to external packaging tools."""

from pydantic import BaseModel, ConfigDict


class PackageSummary(BaseModel):
    """Represents a binary package from a Packages index."""

    model_config = ConfigDict(frozen=True)

    name: str
    version: str
    architecture: str
    source: str | None = None
    section: str | None = None
    priority: str | None = None
    filename: str | None = None
    size: int | None = None
    installed_size: int | None = None
    homepage: str | None = None


class DependencyRecord(BaseModel):
    """A package reached by a transitive resolution, with the package that pulled it in."""

    model_config = ConfigDict(frozen=True)

    package: PackageSummary
    source: PackageSummary
    relation: str
    expression: str
