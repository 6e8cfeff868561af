"""Reading Debian repositories.

See <https://wiki.debian.org/DebianRepository/Format> for the repository
layout. There is a root directory with `dists/<distribution>/` directories
below it. Each distribution directory has an `InRelease` and/or `Release`
file describing its components and architectures and listing every index
file with its digests.

Every client implements `RepositoryReader`, the capability to fetch the
bytes stored at a relative path:

* a root reader (e.g. `HttpRepositoryClient`) is bound to the repository root;
* a `DistributionClient` is bound to a distribution directory below a root;
* a `ReleaseClient` is a distribution client bound to its parsed Release file
  and knows how to locate, fetch, verify and parse `Packages` indices.
"""

import bz2
import logging
import lzma
import zlib
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Sequence
from enum import Enum

import zstandard

from aptresolver.binary_package_control import BinaryPackageControlFile
from aptresolver.control import iter_paragraphs
from aptresolver.errors import (
    DigestMismatchError,
    IntegrityError,
    NoPackagesIndicesError,
    PathNotFoundError,
    ReleaseError,
    SizeMismatchError,
)
from aptresolver.release import ReleaseFile, ReleaseFileEntry

logger = logging.getLogger(__name__)


class IndexFileCompression(str, Enum):
    """Compression formats index files may be published in."""

    XZ = "xz"
    ZSTD = "zstd"
    GZIP = "gzip"
    BZIP2 = "bzip2"
    LZMA = "lzma"
    NONE = "none"

    @property
    def extension(self) -> str:
        return _EXTENSIONS[self]

    @classmethod
    def default_preferred_order(cls) -> tuple["IndexFileCompression", ...]:
        """Most compact first, uncompressed last."""
        return cls.XZ, cls.ZSTD, cls.GZIP, cls.BZIP2, cls.LZMA, cls.NONE

    def decompressor(self):
        """A fresh incremental decompressor exposing `decompress(chunk)` and `eof`.

        Concatenated members (gzip) or frames (zstd) are decompressed in turn.
        """
        if self is IndexFileCompression.NONE:
            return _PassthroughDecompressor()
        return _ConcatenatedDecompressor(self._stream_decompressor)

    def _stream_decompressor(self):
        match self:
            case IndexFileCompression.XZ:
                return lzma.LZMADecompressor(format=lzma.FORMAT_XZ)
            case IndexFileCompression.ZSTD:
                return zstandard.ZstdDecompressor().decompressobj()
            case IndexFileCompression.GZIP:
                return zlib.decompressobj(wbits=zlib.MAX_WBITS | 16)
            case IndexFileCompression.BZIP2:
                return bz2.BZ2Decompressor()
            case IndexFileCompression.LZMA:
                return lzma.LZMADecompressor(format=lzma.FORMAT_ALONE)


_EXTENSIONS = {
    IndexFileCompression.XZ: ".xz",
    IndexFileCompression.ZSTD: ".zst",
    IndexFileCompression.GZIP: ".gz",
    IndexFileCompression.BZIP2: ".bz2",
    IndexFileCompression.LZMA: ".lzma",
    IndexFileCompression.NONE: "",
}


_DECOMPRESSION_ERRORS = (lzma.LZMAError, zlib.error, zstandard.ZstdError, OSError, EOFError)


class _PassthroughDecompressor:
    eof = True

    def decompress(self, data: bytes) -> bytes:
        return data


class _ConcatenatedDecompressor:
    """Starts a fresh decompressor on the data left over when a stream ends.

    Null padding between streams is skipped. `eof` is only true when the
    last stream seen so far was complete.
    """

    def __init__(self, factory):
        self._factory = factory
        self._decompressor = factory()

    @property
    def eof(self) -> bool:
        return self._decompressor.eof

    def decompress(self, data: bytes) -> bytes:
        out = []
        while data:
            if self._decompressor.eof:
                data = data.lstrip(b"\0")
                if not data:
                    break
                self._decompressor = self._factory()
            out.append(self._decompressor.decompress(data))
            data = self._decompressor.unused_data if self._decompressor.eof else b""
        return b"".join(out)


def join_path(a: str, b: str) -> str:
    return f"{a.strip('/')}/{b.lstrip('/')}"


class RepositoryReader(ABC):
    """Something that can fetch the bytes stored at a path relative to its root."""

    @abstractmethod
    def get_path(self, path: str) -> AsyncIterator[bytes]:
        """Stream the content of `path` as chunks of bytes.

        Implementations are async generators; errors are raised while iterating.

        Raises:
            PathNotFoundError: if the path does not exist.
            RepositoryReadError: on any other failure to read the path.
        """

    async def read_path(self, path: str) -> bytes:
        """Fetch the whole content of `path`."""
        return b"".join([chunk async for chunk in self.get_path(path)])

    def distribution_client(self, distribution: str) -> "DistributionClient":
        """A client bound to `dists/<distribution>` below this reader."""
        return DistributionClient(self, f"dists/{distribution.strip('/')}")

    def distribution_client_raw_path(self, path: str) -> "DistributionClient":
        """A client bound to an arbitrary sub-directory, without `dists/` prepended."""
        return DistributionClient(self, path.strip("/"))


class DistributionClient(RepositoryReader):
    """A reader bound to a distribution directory below a root reader."""

    def __init__(self, root: RepositoryReader, distribution_path: str):
        self.root = root
        self.distribution_path = distribution_path

    async def get_path(self, path: str) -> AsyncIterator[bytes]:
        async for chunk in self.root.get_path(join_path(self.distribution_path, path)):
            yield chunk

    async def fetch_inrelease(self) -> "ReleaseClient":
        """Fetch and parse the clear-signed `InRelease` file."""
        data = await self.read_path("InRelease")
        release = ReleaseFile.from_armored(data.decode("utf-8", errors="ignore"))
        return ReleaseClient(self, release)

    async def fetch_release(self) -> "ReleaseClient":
        """Fetch and parse the unsigned `Release` file."""
        data = await self.read_path("Release")
        release = ReleaseFile.from_text(data.decode("utf-8", errors="ignore"))
        return ReleaseClient(self, release)

    async def fetch_release_client(self) -> "ReleaseClient":
        """Fetch `InRelease`, falling back to `Release` when it is absent or not signed."""
        try:
            return await self.fetch_inrelease()
        except (PathNotFoundError, ReleaseError) as e:
            logger.debug(f"Falling back to Release file for {self.distribution_path}: {e}")
            return await self.fetch_release()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.root!r}, {self.distribution_path!r})"


class ReleaseClient(DistributionClient):
    """A distribution client bound to its parsed Release file.

    `preferred_compression` is the only mutable state. It must not be changed
    while a `resolve_packages()` call on the same instance is in flight; pass
    `compression=` per call instead when sharing an instance.
    """

    def __init__(
        self,
        distribution: DistributionClient,
        release: ReleaseFile,
        preferred_compression: Sequence[IndexFileCompression] | None = None,
    ):
        super().__init__(distribution.root, distribution.distribution_path)
        self.release = release
        self.preferred_compression = preferred_compression or IndexFileCompression.default_preferred_order()

    @property
    def preferred_compression(self) -> tuple[IndexFileCompression, ...]:
        return self._preferred_compression

    @preferred_compression.setter
    def preferred_compression(self, value: Sequence[IndexFileCompression]) -> None:
        value = tuple(IndexFileCompression(v) for v in value)
        if not value:
            raise ValueError("preferred_compression must not be empty")
        self._preferred_compression = value

    def packages_index_entry(
        self,
        component: str,
        architecture: str,
        compression: Sequence[IndexFileCompression] | None = None,
    ) -> tuple[ReleaseFileEntry, IndexFileCompression]:
        """Find the Packages index to fetch for a component and architecture.

        Compressions are tried in preference order against the strongest
        checksum section of the Release file.

        Raises:
            NoPackagesIndicesError: if no matching index is listed.
        """
        checksum = self.release.strongest_checksum()
        if checksum is None:
            raise NoPackagesIndicesError("<none>", component, architecture)

        for comp in compression or self.preferred_compression:
            path = f"{component}/binary-{architecture}/Packages{comp.extension}"
            if entry := self.release.entry(path, checksum):
                logger.debug(f"Selected {path} ({comp.value}) for {component}/{architecture}")
                return entry, comp
            logger.debug(f"{path} not listed in Release file, trying next compression")

        raise NoPackagesIndicesError(checksum.field_name, component, architecture)

    async def fetch_index(
        self,
        entry: ReleaseFileEntry,
        compression: IndexFileCompression,
        verify_by_hash: bool = False,
        verify: bool = True,
    ) -> bytes:
        """Fetch an index file, check it against its entry and decompress it.

        Raises:
            SizeMismatchError: if `verify` and the size differs from the entry.
            DigestMismatchError: if `verify` and the digest differs from the entry.
            IntegrityError: if the data cannot be decompressed or ends mid-stream.
        """
        path = entry.by_hash_path if verify_by_hash else entry.path
        hasher = entry.checksum.new_hasher()
        decompressor = compression.decompressor()
        size = 0
        chunks = []

        async for chunk in self.get_path(path):
            size += len(chunk)
            hasher.update(chunk)
            try:
                chunks.append(decompressor.decompress(chunk))
            except _DECOMPRESSION_ERRORS as e:
                raise IntegrityError(path, f"cannot decompress {compression.value} data: {e}") from e

        if not decompressor.eof:
            raise IntegrityError(path, f"truncated {compression.value} data")

        if verify:
            if size != entry.size:
                raise SizeMismatchError(path, entry.size, size)
            if (digest := hasher.hexdigest()) != entry.digest:
                raise DigestMismatchError(path, entry.checksum.field_name, entry.digest, digest)

        return b"".join(chunks)

    async def resolve_packages(
        self,
        component: str,
        architecture: str,
        verify_by_hash: bool = False,
        verify: bool = True,
        compression: Sequence[IndexFileCompression] | None = None,
    ) -> list[BinaryPackageControlFile]:
        """Fetch and parse the Packages index of a component and architecture.

        Args:
            component: Component name (e.g. "main")
            architecture: Architecture name (e.g. "amd64")
            verify_by_hash: Fetch the digest-addressed `by-hash` copy of the index
            verify: Check size and digest against the Release file
            compression: Compression preference for this call only

        Returns:
            The binary packages of the index, in file order
        """
        entry, comp = self.packages_index_entry(component, architecture, compression)
        if verify_by_hash and not self.release.acquire_by_hash:
            logger.debug(f"Release file does not advertise Acquire-By-Hash, fetching {entry.by_hash_path} anyway")

        data = await self.fetch_index(entry, comp, verify_by_hash=verify_by_hash, verify=verify)
        text = data.decode("utf-8", errors="ignore")
        packages = [BinaryPackageControlFile(p) for p in iter_paragraphs(text)]
        logger.info(f"Loaded {len(packages)} packages from {self.distribution_path}/{entry.path}")
        return packages
