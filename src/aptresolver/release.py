"""Release and InRelease manifests.

A distribution's `Release` file is a single control paragraph describing the
distribution and listing every index file below it with its size and
digests. `InRelease` is the same paragraph wrapped in an OpenPGP clear-signed
envelope. Signatures are not verified here; only the payload is extracted.

See <https://wiki.debian.org/DebianRepository/Format#A.22Release.22_files>.
"""

import hashlib
import logging
import posixpath
from collections.abc import Iterator, Mapping
from datetime import datetime
from enum import Enum
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from aptresolver.control import ControlParagraph, parse_single_paragraph
from aptresolver.errors import ReleaseError
from aptresolver.utils import try_parse_date

logger = logging.getLogger(__name__)

SIGNED_MESSAGE_MARKER = "-----BEGIN PGP SIGNED MESSAGE-----"
SIGNATURE_MARKER = "-----BEGIN PGP SIGNATURE-----"


class ChecksumType(str, Enum):
    """Checksum sections of a Release file, valued by their field name."""

    MD5 = "MD5Sum"
    SHA1 = "SHA1"
    SHA256 = "SHA256"
    SHA512 = "SHA512"

    @property
    def field_name(self) -> str:
        return self.value

    def new_hasher(self):
        return hashlib.new(self.name.lower())

    @classmethod
    def preferred_order(cls) -> tuple["ChecksumType", ...]:
        """Checksum types from strongest to weakest."""
        return cls.SHA512, cls.SHA256, cls.SHA1, cls.MD5


class ReleaseFileEntry(BaseModel):
    """An index file listed in a Release file checksum section."""

    model_config = ConfigDict(frozen=True)

    path: str
    checksum: ChecksumType
    digest: str
    size: int

    @property
    def by_hash_path(self) -> str:
        """The digest-addressed path of this file (`<dir>/by-hash/<Field>/<digest>`)."""
        return posixpath.join(posixpath.dirname(self.path), "by-hash", self.checksum.field_name, self.digest)


def extract_signed_payload(text: str) -> str:
    """Extract the signed text from an OpenPGP clear-signed document.

    Everything before the signed message marker (and its armor headers) and
    everything from the signature marker on is discarded. Dash-escaped lines
    (`- -foo`) are unescaped.

    Raises:
        ReleaseError: if the document is not clear-signed.
    """
    lines = iter(text.splitlines())

    for line in lines:
        if line.rstrip() == SIGNED_MESSAGE_MARKER:
            break
    else:
        raise ReleaseError("no PGP signed message marker found")

    # armor headers (e.g. "Hash: SHA512") end at the first blank line
    for line in lines:
        if not line.strip():
            break
    else:
        raise ReleaseError("PGP signed message has no payload")

    payload = []
    for line in lines:
        if line.rstrip() == SIGNATURE_MARKER:
            break
        payload.append(line[2:] if line.startswith("- ") else line)
    else:
        raise ReleaseError("no PGP signature marker found")

    return "\n".join(payload) + "\n"


def _parse_checksum_section(paragraph: ControlParagraph, checksum: ChecksumType) -> dict[str, ReleaseFileEntry]:
    field = paragraph.first_field(checksum.field_name)
    if field is None:
        return {}

    entries: dict[str, ReleaseFileEntry] = {}
    for line in field.lines():
        if not line.strip():
            continue
        parts = line.split()
        if len(parts) != 3:
            raise ReleaseError(f"malformed {checksum.field_name} line: {line!r}")
        digest, size, path = parts
        try:
            size_int = int(size)
        except ValueError as e:
            raise ReleaseError(f"invalid size in {checksum.field_name} line: {line!r}") from e
        entries.setdefault(
            path,
            ReleaseFileEntry(path=path, checksum=checksum, digest=digest.lower(), size=size_int),
        )
    return entries


class ReleaseFile(BaseModel):
    """A parsed Release/InRelease file."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    paragraph: ControlParagraph = Field(repr=False, exclude=True)
    origin: str | None = None
    label: str | None = None
    suite: str | None = None
    codename: str | None = None
    version: str | None = None
    description: str | None = None
    date: datetime | None = None
    valid_until: datetime | None = None
    architectures: frozenset[str] = frozenset()
    components: frozenset[str] = frozenset()
    acquire_by_hash: bool = False
    checksum_index: Mapping[ChecksumType, Mapping[str, ReleaseFileEntry]] = Field(
        default_factory=dict, validate_default=True
    )

    @field_validator("checksum_index", mode="after")
    @classmethod
    def freeze_checksum_index(cls, value):
        return MappingProxyType({checksum: MappingProxyType(dict(value[checksum])) for checksum in value})

    @field_serializer("checksum_index")
    def dump_checksum_index(self, value):
        return {checksum: dict(entries) for checksum, entries in value.items()}

    @classmethod
    def from_paragraph(cls, paragraph: ControlParagraph) -> "ReleaseFile":
        checksum_index = {}
        for checksum in ChecksumType:
            if entries := _parse_checksum_section(paragraph, checksum):
                checksum_index[checksum] = entries

        release = cls(
            paragraph=paragraph,
            origin=paragraph.get("Origin"),
            label=paragraph.get("Label"),
            suite=paragraph.get("Suite"),
            codename=paragraph.get("Codename"),
            version=paragraph.get("Version"),
            description=paragraph.get("Description"),
            date=try_parse_date(paragraph.get("Date")),
            valid_until=try_parse_date(paragraph.get("Valid-Until")),
            architectures=frozenset(paragraph.get("Architectures", "").split()),
            components=frozenset(paragraph.get("Components", "").split()),
            acquire_by_hash=paragraph.get("Acquire-By-Hash") == "yes",
            checksum_index=checksum_index,
        )
        logger.debug(
            f"Parsed Release file for {release.codename or release.suite}: "
            f"{sum(len(e) for e in checksum_index.values())} checksum entries"
        )
        return release

    @classmethod
    def from_text(cls, text: str) -> "ReleaseFile":
        """Parse a plain (unsigned) `Release` file."""
        return cls.from_paragraph(parse_single_paragraph(text))

    @classmethod
    def from_armored(cls, text: str) -> "ReleaseFile":
        """Parse a clear-signed `InRelease` file without verifying the signature."""
        return cls.from_text(extract_signed_payload(text))

    def checksums(self) -> list[ChecksumType]:
        """Checksum types present in this file, strongest first."""
        return [c for c in ChecksumType.preferred_order() if c in self.checksum_index]

    def strongest_checksum(self) -> ChecksumType | None:
        checksums = self.checksums()
        return checksums[0] if checksums else None

    def entries(self, checksum: ChecksumType) -> Iterator[ReleaseFileEntry]:
        return iter(self.checksum_index.get(checksum, {}).values())

    def entry(self, path: str, checksum: ChecksumType | None = None) -> ReleaseFileEntry | None:
        """Look up the entry for `path`, using the strongest checksum when none is given."""
        if checksum is None:
            checksum = self.strongest_checksum()
            if checksum is None:
                return None
        return self.checksum_index.get(checksum, {}).get(path)
