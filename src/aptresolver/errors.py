"""Exception hierarchy for parsing, resolution and repository access."""


class AptResolverError(Exception):
    """Base class for all errors raised by aptresolver."""


class ControlSyntaxError(AptResolverError, ValueError):
    """A line of control-file text could not be parsed."""

    def __init__(self, message: str, line_number: int | None = None, line: str | None = None):
        self.line_number = line_number
        self.line = line
        if line_number is not None:
            message = f"line {line_number}: {message}: {line!r}"
        super().__init__(message)


class VersionError(AptResolverError, ValueError):
    """A package version string is malformed."""


class DependencyError(AptResolverError, ValueError):
    """A dependency expression is malformed."""


class ReleaseError(AptResolverError, ValueError):
    """A Release/InRelease manifest is malformed."""


class BinaryPackageControlError(AptResolverError):
    """A binary package control paragraph has an invalid field."""


class RequiredFieldMissingError(BinaryPackageControlError, LookupError):
    """A required field is absent from a binary package control paragraph."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"required field missing: {field}")


class UnresolvedDependencyError(AptResolverError):
    """Raised on request when a resolution left dependency expressions unresolved."""

    def __init__(self, unresolved):
        self.unresolved = list(unresolved)
        details = "; ".join(str(u) for u in self.unresolved)
        super().__init__(f"{len(self.unresolved)} unresolved dependencies: {details}")


class RepositoryReadError(AptResolverError):
    """Reading a path from a repository failed."""

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(f"{path}: {message}")


class PathNotFoundError(RepositoryReadError):
    """The requested path does not exist in the repository."""

    def __init__(self, path: str):
        super().__init__(path, "not found")


class TransportError(RepositoryReadError):
    """Network, DNS, TLS or protocol failure while fetching a path."""


class HttpStatusError(RepositoryReadError):
    """The server answered with a non-success status code."""

    def __init__(self, path: str, status_code: int):
        self.status_code = status_code
        super().__init__(path, f"bad HTTP status code {status_code}")


class UrlError(RepositoryReadError, ValueError):
    """A repository URL is malformed."""


class IntegrityError(RepositoryReadError):
    """Fetched content does not match the manifest's checksum index."""


class SizeMismatchError(IntegrityError):
    def __init__(self, path: str, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(path, f"size mismatch: expected {expected} bytes, got {actual}")


class DigestMismatchError(IntegrityError):
    def __init__(self, path: str, checksum: str, expected: str, actual: str):
        self.checksum = checksum
        self.expected = expected
        self.actual = actual
        super().__init__(path, f"{checksum} mismatch: expected {expected}, got {actual}")


class NoPackagesIndicesError(AptResolverError):
    """The manifest lists no Packages index for the requested checksum kind."""

    def __init__(self, checksum: str, component: str | None = None, architecture: str | None = None):
        self.checksum = checksum
        self.component = component
        self.architecture = architecture
        where = f" ({component}/binary-{architecture})" if component and architecture else ""
        super().__init__(f"No packages indices for checksum {checksum}{where}")
