"""aptresolver: Debian repository client and dependency resolver."""

import logging

from rich.logging import RichHandler

from aptresolver.binary_package_control import BinaryPackageControlFile
from aptresolver.constants import LOG_LEVEL
from aptresolver.control import ControlField, ControlParagraph, iter_paragraphs, parse_paragraphs
from aptresolver.dependency import Alternative, BinaryDependency, DependencyExpression, DependencyList
from aptresolver.dependency_resolution import DependencyResolver, PackagePool
from aptresolver.package_version import PackageVersion
from aptresolver.release import ChecksumType, ReleaseFile, ReleaseFileEntry
from aptresolver.repository import IndexFileCompression, RepositoryReader
from aptresolver.repository.http import HttpRepositoryClient
from aptresolver.version import __version__

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True)],
)
logging.getLogger("httpx").setLevel(logging.WARNING)

__all__ = [
    "Alternative",
    "BinaryDependency",
    "BinaryPackageControlFile",
    "ChecksumType",
    "ControlField",
    "ControlParagraph",
    "DependencyExpression",
    "DependencyList",
    "DependencyResolver",
    "HttpRepositoryClient",
    "IndexFileCompression",
    "PackagePool",
    "PackageVersion",
    "ReleaseFile",
    "ReleaseFileEntry",
    "RepositoryReader",
    "__version__",
    "iter_paragraphs",
    "parse_paragraphs",
]
