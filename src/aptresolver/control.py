"""Parser for the RFC822-like control-file format shared by Debian metadata files.

A control file is a sequence of *paragraphs* separated by blank lines. Each
paragraph is an ordered list of `Name: value` fields; lines starting with a
space or a tab continue the value of the previous field.

See <https://www.debian.org/doc/debian-policy/ch-controlfields.html>.
"""

import io
import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from aptresolver.errors import ControlSyntaxError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ControlField:
    """A single field of a control paragraph.

    `value` holds the raw text: the first line stripped, followed by every
    continuation line (leading whitespace kept) joined with newlines.
    """

    name: str
    value: str

    def matches(self, name: str) -> bool:
        """Whether this field has the given name, ignoring case."""
        return self.name.lower() == name.lower()

    def lines(self) -> Iterator[str]:
        """Yield the logical lines of the value with line folding applied.

        The first character of every continuation line is the folding
        whitespace and is dropped; a continuation line holding only `.`
        stands for an empty line.
        """
        first, *rest = self.value.split("\n")
        yield first
        for line in rest:
            yield "" if line.strip() == "." else line[1:]

    def words(self) -> list[str]:
        """The value split on any whitespace, including newlines."""
        return self.value.split()

    def __str__(self) -> str:
        sep = ":" if not self.value or self.value.startswith("\n") else ": "
        return f"{self.name}{sep}{self.value}"


class ControlParagraph:
    """An ordered collection of control fields.

    Field lookups are case-insensitive. A field name may occur more than once;
    scalar lookups return the first occurrence.
    """

    __slots__ = ("_fields",)

    def __init__(self, fields: Iterable[ControlField] = ()):
        self._fields: tuple[ControlField, ...] = tuple(fields)

    @property
    def fields(self) -> tuple[ControlField, ...]:
        return self._fields

    def iter_fields(self, name: str) -> Iterator[ControlField]:
        """Yield every field with the given name, in order."""
        return (field for field in self._fields if field.matches(name))

    def first_field(self, name: str) -> ControlField | None:
        return next(self.iter_fields(name), None)

    def first_field_str(self, name: str) -> str | None:
        field = self.first_field(name)
        return field.value if field is not None else None

    def get(self, name: str, default: str | None = None) -> str | None:
        value = self.first_field_str(name)
        return default if value is None else value

    def field_names(self) -> list[str]:
        return [field.name for field in self._fields]

    def __getitem__(self, name: str) -> str:
        value = self.first_field_str(name)
        if value is None:
            raise KeyError(name)
        return value

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.first_field(name) is not None

    def __iter__(self) -> Iterator[ControlField]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ControlParagraph):
            return NotImplemented
        return self._fields == other._fields

    def __hash__(self) -> int:
        return hash(self._fields)

    def __repr__(self) -> str:
        return f"ControlParagraph({', '.join(self.field_names())})"

    def __str__(self) -> str:
        """Render the paragraph back to control-file text."""
        return "".join(f"{field}\n" for field in self._fields)


def _iter_lines(source: str | Iterable[str]) -> Iterator[str]:
    if isinstance(source, str):
        source = io.StringIO(source)
    for line in source:
        yield line.rstrip("\r\n")


def _build_field(name: str, value_lines: list[str]) -> ControlField:
    return ControlField(name, "\n".join(value_lines))


def iter_paragraphs(source: str | Iterable[str]) -> Iterator[ControlParagraph]:
    """Lazily parse control paragraphs from text or an iterable of lines.

    Paragraphs are yielded as soon as their terminating blank line (or the end
    of input) is reached. A syntax error is raised when the offending line is
    reached; paragraphs yielded before it remain valid.

    Raises:
        ControlSyntaxError: on a line that is neither a field, a continuation
            line nor blank.
    """
    fields: list[ControlField] = []
    name: str | None = None
    value_lines: list[str] = []

    for line_number, line in enumerate(_iter_lines(source), start=1):
        if not line.strip():
            if name is not None:
                fields.append(_build_field(name, value_lines))
                name = None
            if fields:
                yield ControlParagraph(fields)
                fields = []
            continue

        if line[0] in " \t":
            if name is None:
                raise ControlSyntaxError("continuation line without a field", line_number, line)
            value_lines.append(line.rstrip())
            continue

        field_name, sep, value = line.partition(":")
        if not sep:
            raise ControlSyntaxError("missing ':' separator", line_number, line)
        if not field_name or any(c.isspace() for c in field_name):
            raise ControlSyntaxError("invalid field name", line_number, line)

        if name is not None:
            fields.append(_build_field(name, value_lines))
        name = field_name
        value_lines = [value.strip()]

    if name is not None:
        fields.append(_build_field(name, value_lines))
    if fields:
        yield ControlParagraph(fields)


def parse_paragraphs(source: str | Iterable[str]) -> list[ControlParagraph]:
    """Parse every paragraph of a control file eagerly."""
    return list(iter_paragraphs(source))


def parse_single_paragraph(source: str | Iterable[str]) -> ControlParagraph:
    """Parse text that must contain exactly one paragraph."""
    paragraphs = iter_paragraphs(source)
    first = next(paragraphs, None)
    if first is None:
        raise ControlSyntaxError("no control paragraph found")
    if next(paragraphs, None) is not None:
        raise ControlSyntaxError("expected a single control paragraph, found several")
    return first
