"""
Entry schemas, header construction, and the error types of the CSV engine.

**Conceptual**: An entry schema is the "data contract" for one kind of line:
an ordered, fixed list of field names plus the single byte that separates
them. Readers and writers are built around exactly one schema and never
infer or change it. Every line they touch must carry exactly
``len(schema)`` fields.

**Schema philosophy**:
  - Field order is significant; field names need not be unique.
  - The separator is a single byte and can never be the newline byte.
  - The header line is the field names joined by the separator, nothing more
    (no trailing separator, no newline, no whitespace trimming).
  - All validation happens once, when the schema is constructed, so the
    per-record hot path never re-checks it.

**Teaching note**: Keeping the schema separate from the reader and writer
means the header is computed once and shared, and that both directions of
the format are guaranteed to agree on field order.
"""

import codecs
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Tuple, Union


SeparatorLike = Union[str, bytes, bytearray, int]

NEWLINE = b"\n"


class FixedCsvError(Exception):
    """Base class for every error raised by the fixedcsv engine."""
    pass


class SchemaErrorKind(Enum):
    """Reasons a schema can be rejected at construction time."""
    EMPTY_SCHEMA = "empty_schema"
    INVALID_SEPARATOR = "invalid_separator"
    INVALID_ENCODING = "invalid_encoding"


class SchemaError(FixedCsvError):
    """
    Raised when a schema cannot be used to read or write lines.

    **Usage**: This is a construction-time error. A reader or writer is never
    produced from a rejected schema, so there is nothing to clean up.

    Attributes:
        kind: Which rule the schema broke (see SchemaErrorKind).
    """

    def __init__(self, kind: SchemaErrorKind, message: str):
        self.kind = kind
        super().__init__(message)


class HeaderMismatchError(FixedCsvError):
    """
    Raised when the first line of the input is not the expected header.

    The comparison is exact: byte-for-byte, case-sensitive, with no
    whitespace trimming.

    Attributes:
        expected: Header bytes built from the schema.
        actual: First line read from the stream (without its newline).
    """

    def __init__(self, expected: bytes, actual: bytes):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Header mismatch: expected {expected!r}, found {actual!r}. "
            f"Hint: the first line must be the schema field names joined by "
            f"the separator, in schema order."
        )


class FieldCountMismatchError(FixedCsvError):
    """
    Raised when a line does not split into exactly ``len(schema)`` fields.

    Covers both too few and too many separators. When the scan stopped early
    because of surplus separators, ``found`` is a lower bound and ``exact``
    is False.

    Attributes:
        line_number: 1-based line number of the offending line in the stream,
                     or None when the record did not come from a stream.
        expected: Number of fields the schema declares.
        found: Number of fields seen (a lower bound when ``exact`` is False).
        exact: Whether ``found`` is the true count.
    """

    def __init__(
        self,
        expected: int,
        found: int,
        line_number: int | None = None,
        exact: bool = True,
    ):
        self.line_number = line_number
        self.expected = expected
        self.found = found
        self.exact = exact

        where = f"Line {line_number}: " if line_number is not None else ""
        count = f"{found}" if exact else f"at least {found}"
        super().__init__(
            f"{where}Expected {expected} field(s), found {count}. "
            f"Hint: field values must not contain the separator or a newline."
        )


class StaleEntryError(FixedCsvError):
    """
    Raised when an entry view is used after its reader read another line.

    Entry views borrow the reader's line buffer. Copy the values
    (``to_dict()``/``to_tuple()``) to keep them past the next read.
    """
    pass


class FieldDecodeError(FixedCsvError):
    """
    Raised when a field's bytes are not valid text in the schema encoding.

    The raw bytes are still available through ``EntryView.raw()`` and
    ``EntryView.raw_values()``.

    Attributes:
        line_number: 1-based line number of the record.
        field: Name of the field that failed to decode.
        value: Raw bytes of the field.
        encoding: Encoding that was used.
    """

    def __init__(self, line_number: int, field: str, value: bytes, encoding: str):
        self.line_number = line_number
        self.field = field
        self.value = value
        self.encoding = encoding
        super().__init__(
            f"Line {line_number}: field '{field}' is not valid {encoding}: {value!r}. "
            f"Hint: use raw()/raw_values() to read binary field values."
        )


# Every ASCII byte must encode to itself, or separator and newline
# scanning no longer lines up with character boundaries.
_ASCII_BYTES = bytes(range(128))


def check_encoding(encoding: str) -> None:
    """
    Reject encodings that are unknown or not ASCII-compatible.

    Raises:
        SchemaError: (INVALID_ENCODING) e.g. for "utf-16" or "klingon-8".
    """
    try:
        codecs.lookup(encoding)
        compatible = _ASCII_BYTES.decode("ascii").encode(encoding) == _ASCII_BYTES
    except (LookupError, UnicodeError):
        compatible = False
    if not compatible:
        raise SchemaError(
            SchemaErrorKind.INVALID_ENCODING,
            f"Encoding must be a known ASCII-compatible codec "
            f"(e.g. utf-8, latin-1), got {encoding!r}.",
        )


def normalize_separator(separator: SeparatorLike) -> bytes:
    """
    Convert a separator given as str, bytes or int into a single byte.

    Raises:
        SchemaError: (INVALID_SEPARATOR) if the separator is not exactly one
                     byte, or is the newline byte.
    """
    if isinstance(separator, int) and not isinstance(separator, bool):
        if not 0 <= separator <= 255:
            raise SchemaError(
                SchemaErrorKind.INVALID_SEPARATOR,
                f"Separator must be a single byte (0-255), got {separator}.",
            )
        sep = bytes([separator])
    elif isinstance(separator, str):
        try:
            sep = separator.encode("ascii")
        except UnicodeEncodeError:
            raise SchemaError(
                SchemaErrorKind.INVALID_SEPARATOR,
                f"Separator must be a single ASCII character, got {separator!r}.",
            )
    elif isinstance(separator, (bytes, bytearray)):
        sep = bytes(separator)
    else:
        raise SchemaError(
            SchemaErrorKind.INVALID_SEPARATOR,
            f"Separator must be str, bytes or int, got {type(separator).__name__}.",
        )

    if len(sep) != 1:
        raise SchemaError(
            SchemaErrorKind.INVALID_SEPARATOR,
            f"Separator must be exactly one byte, got {sep!r}.",
        )
    if sep == NEWLINE:
        raise SchemaError(
            SchemaErrorKind.INVALID_SEPARATOR,
            "Separator cannot be the newline byte; newline terminates lines.",
        )
    return sep


def build_header(
    fields: Iterable[str],
    separator: SeparatorLike,
    encoding: str = "utf-8",
) -> bytes:
    """
    Build the canonical header line for a list of field names.

    **Functionally**:
      - Encodes every field name with ``encoding``.
      - Joins them with the separator byte.
      - Adds nothing else: no trailing separator and no newline.

    Args:
        fields: Ordered field names. Must not be empty.
        separator: Single-byte separator (e.g. "," or b"\\t" or 0x7C).
        encoding: Text encoding used for field names (default: utf-8).

    Returns:
        Header line as bytes.

    Raises:
        SchemaError: EMPTY_SCHEMA when ``fields`` is empty, INVALID_SEPARATOR
                     when the separator is not a single non-newline byte,
                     INVALID_ENCODING when the encoding is not ASCII-compatible.

    Example:
        >>> build_header(["a", "b", "c"], ",")
        b'a,b,c'
    """
    names = list(fields)
    if not names:
        raise SchemaError(
            SchemaErrorKind.EMPTY_SCHEMA,
            "Schema must have at least one field.",
        )
    sep = normalize_separator(separator)
    check_encoding(encoding)
    return sep.join(name.encode(encoding) for name in names)


@dataclass(frozen=True)
class EntrySchema:
    """
    Ordered field schema shared by a reader or writer for its whole lifetime.

    **Conceptual**: This is the runtime stand-in for a record type. The
    schema knows its field names, its separator and its header; a record is
    simply "one string per field, in this order". Mapping a field name to a
    position is an index lookup.

    Attributes:
        fields: Ordered field names (list input is converted to a tuple).
        separator: Single separator byte (str/int input is normalised).
        encoding: Encoding for field names and str field values.
        header: Header line built once at construction.

    Raises:
        SchemaError: On an empty field list or a bad separator.

    Example:
        >>> schema = EntrySchema(["timestamp", "symbol", "price"])
        >>> schema.header
        b'timestamp,symbol,price'
        >>> len(schema)
        3
    """
    fields: Tuple[str, ...]
    separator: bytes = b","
    encoding: str = "utf-8"
    header: bytes = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        """Normalise inputs and build the header once."""
        names = tuple(self.fields)
        sep = normalize_separator(self.separator)
        check_encoding(self.encoding)
        object.__setattr__(self, "fields", names)
        object.__setattr__(self, "separator", sep)
        object.__setattr__(self, "header", build_header(names, sep, self.encoding))

    def __len__(self) -> int:
        return len(self.fields)

    @property
    def header_text(self) -> str:
        """Header line decoded with the schema encoding."""
        return self.header.decode(self.encoding)

    def index_of(self, name: str) -> int:
        """
        Position of a field name (first occurrence for duplicate names).

        Raises:
            KeyError: If the schema has no such field.
        """
        try:
            return self.fields.index(name)
        except ValueError:
            raise KeyError(
                f"Unknown field '{name}'. Schema fields: {list(self.fields)}"
            )
