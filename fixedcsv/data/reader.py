"""
Streaming reader for fixed-schema, delimiter-separated lines.

**Conceptual**: A CsvReader turns a binary stream into records, one line per
call. It owns a single line buffer that is cleared and refilled on every
read; the records it returns are *views* into that buffer (offset ranges,
decoded on access), not independent copies. That keeps the hot path to one
buffer fill and one separator scan per line.

**Borrowing contract**:
  - An EntryView is valid until the next read on the same reader.
  - Using a view after that raises StaleEntryError.
  - Call ``to_dict()``/``to_tuple()`` (or use ``read_record()``) to keep
    values around.

**End of stream**: ``read_entry()`` returns None once the stream yields no
more bytes. FieldCountMismatchError is reserved for malformed, non-empty
lines; an exhausted reader never raises it.

**Teaching note**: The parser never looks at quotes or escapes. A field that
contains the separator shifts every boundary after it, which surfaces as a
FieldCountMismatchError rather than silently producing a wrong record.
"""

import logging
from collections.abc import Mapping
from typing import BinaryIO, Dict, Iterator, List, Optional, Tuple, Union

from fixedcsv.data.schemas import (
    EntrySchema,
    FieldCountMismatchError,
    FieldDecodeError,
    HeaderMismatchError,
    StaleEntryError,
)
from fixedcsv.utils.buffers import LineBuffer


logger = logging.getLogger(__name__)

DEFAULT_BUFFER_CAPACITY = 64


class EntryView(Mapping):
    """
    One record borrowed from a reader's line buffer.

    Behaves as a read-only mapping from field name to str value, in schema
    order. Integer keys give positional access. Compares equal to a dict with
    the same items.

    For schemas with duplicate field names, name lookup returns the first
    occurrence; use positional access or ``to_tuple()`` for the others.
    """

    __slots__ = ("_reader", "_generation", "_bounds", "line_number")

    def __init__(
        self,
        reader: "CsvReader",
        generation: int,
        bounds: Tuple[Tuple[int, int], ...],
        line_number: int,
    ):
        self._reader = reader
        self._generation = generation
        self._bounds = bounds
        self.line_number = line_number

    @property
    def schema(self) -> EntrySchema:
        return self._reader.schema

    @property
    def is_valid(self) -> bool:
        """False once the reader has read past this record."""
        return self._generation == self._reader._generation

    def _check(self) -> None:
        if not self.is_valid:
            raise StaleEntryError(
                "Entry view used after its reader read another line. "
                "Copy values with to_dict()/to_tuple() to keep them."
            )

    def _position(self, key: Union[str, int]) -> int:
        if isinstance(key, int):
            if not -len(self._bounds) <= key < len(self._bounds):
                raise IndexError(f"Field index {key} out of range")
            return key % len(self._bounds)
        return self.schema.index_of(key)

    def raw(self, key: Union[str, int]) -> bytes:
        """Field value as bytes (an owning copy)."""
        self._check()
        start, end = self._bounds[self._position(key)]
        return self._reader._buffer.slice(start, end)

    def _decode(self, position: int, value: bytes) -> str:
        encoding = self.schema.encoding
        try:
            return value.decode(encoding)
        except UnicodeDecodeError:
            raise FieldDecodeError(
                self.line_number, self.schema.fields[position], value, encoding
            )

    def __getitem__(self, key: Union[str, int]) -> str:
        position = self._position(key)
        return self._decode(position, self.raw(position))

    def __iter__(self) -> Iterator[str]:
        return iter(dict.fromkeys(self.schema.fields))

    def __len__(self) -> int:
        return len(dict.fromkeys(self.schema.fields))

    def raw_values(self) -> Tuple[bytes, ...]:
        """All field values as bytes, in schema order."""
        self._check()
        buffer = self._reader._buffer
        return tuple(buffer.slice(start, end) for start, end in self._bounds)

    def to_tuple(self) -> Tuple[str, ...]:
        """
        Owning copy of all field values, in schema order.

        Raises:
            FieldDecodeError: A field is not valid text in the schema encoding.
        """
        return tuple(
            self._decode(position, value)
            for position, value in enumerate(self.raw_values())
        )

    def to_dict(self) -> Dict[str, str]:
        """Owning copy as a dict (first occurrence wins for duplicate names)."""
        result: Dict[str, str] = {}
        for name, value in zip(self.schema.fields, self.to_tuple()):
            result.setdefault(name, value)
        return result

    def __repr__(self) -> str:
        if not self.is_valid:
            return "EntryView(<stale>)"
        return f"EntryView({self.to_dict()!r})"


class CsvReader:
    """
    Reads one fixed-schema record per call from a binary stream.

    **Functionally**:
      - Allocates a line buffer of ``initial_buffer_capacity`` bytes (grows
        as needed, never shrinks).
      - Optionally validates the first line against ``schema.header``.
      - ``read_entry()`` reads one line, scans it for separators and returns
        an EntryView, or None at end of stream.

    Args:
        schema: Schema every line must follow.
        stream: Binary stream with ``readline()`` (file opened 'rb', BytesIO).
        initial_buffer_capacity: Starting buffer size in bytes (default 64).
        include_header: If True, the first line must equal the schema header.
        owns_stream: If True, ``close()`` also closes the stream.

    Attributes:
        line: Line counter. Starts at 1 (2 after a validated header) and
              advances once per line read.

    Raises:
        HeaderMismatchError: If ``include_header`` and the first line differs
                             from the header. No reader is produced.
        ValueError: If ``initial_buffer_capacity`` is negative.
        OSError: Propagated from the stream.

    If construction fails and ``owns_stream`` is True, the stream is closed
    before the error propagates.

    Example:
        >>> import io
        >>> schema = EntrySchema(["a", "b"])
        >>> reader = CsvReader(schema, io.BytesIO(b"a,b\\n1,2\\n"), include_header=True)
        >>> reader.read_entry().to_dict()
        {'a': '1', 'b': '2'}
        >>> reader.read_entry() is None
        True
    """

    def __init__(
        self,
        schema: EntrySchema,
        stream: BinaryIO,
        initial_buffer_capacity: int = DEFAULT_BUFFER_CAPACITY,
        include_header: bool = False,
        owns_stream: bool = False,
    ):
        self.schema = schema
        self._stream = stream
        self._owns_stream = owns_stream
        self._separator = schema.separator[0]
        # Separator positions followed by the line-length sentinel
        self._offsets: List[int] = [0] * len(schema)
        self._generation = 0
        self.line = 1

        try:
            self._buffer = LineBuffer(initial_buffer_capacity)
            if include_header:
                self._read_header()
        except Exception:
            # Construction failed: no reader exists to close an owned stream later
            if owns_stream:
                stream.close()
            raise

    def _read_header(self) -> None:
        header = self.schema.header
        self._buffer.fill_line(self._stream)
        if not self._buffer.equals(header):
            raise HeaderMismatchError(header, self._buffer.getvalue())
        self.line += 1
        logger.debug("Validated header %r", header)

    @property
    def capacity(self) -> int:
        """Current line buffer capacity in bytes."""
        return self._buffer.capacity

    def read_entry(self) -> Optional[EntryView]:
        """
        Read the next record as a view into the line buffer.

        **Functionally**:
          1. Clears the buffer in place; earlier views become stale.
          2. Reads up to the next newline (a final line without one is fine).
          3. Returns None if the stream had no bytes left.
          4. Advances the line counter and scans for separators, stopping as
             soon as there is one more than the schema allows.
          5. Raises FieldCountMismatchError on too many or too few.
          6. Returns an EntryView slicing the line between separators.

        The reader has already moved past a malformed line when the error is
        raised; the next call reads the following line.

        Returns:
            EntryView valid until the next read, or None at end of stream.

        Raises:
            FieldCountMismatchError: Line has the wrong number of fields.
            OSError: Propagated from the stream.
            MemoryError: If the buffer cannot grow.
        """
        buffer = self._buffer
        buffer.clear()
        self._generation += 1

        if buffer.fill_line(self._stream) == 0:
            return None

        self.line += 1
        line_number = self.line - 1

        offsets = self._offsets
        slots = len(offsets) - 1
        size = buffer.size
        offsets[slots] = size

        found = 0
        position = buffer.find(self._separator)
        while position != -1:
            if found == slots:
                logger.debug("Line %d has more than %d separators", line_number, slots)
                raise FieldCountMismatchError(
                    expected=len(offsets),
                    found=found + 2,
                    line_number=line_number,
                    exact=False,
                )
            offsets[found] = position
            found += 1
            position = buffer.find(self._separator, position + 1)

        if found != slots:
            logger.debug("Line %d has %d of %d separators", line_number, found, slots)
            raise FieldCountMismatchError(
                expected=len(offsets),
                found=found + 1,
                line_number=line_number,
            )

        bounds = []
        start = 0
        for end in offsets:
            bounds.append((start, end))
            start = end + 1  # skip the separator
        return EntryView(self, self._generation, tuple(bounds), line_number)

    def read_record(self) -> Optional[Dict[str, str]]:
        """
        Owning variant of ``read_entry()``: a dict, or None at end of stream.

        Raises:
            FieldCountMismatchError: Line has the wrong number of fields.
            FieldDecodeError: A field is not valid text in the schema encoding.
        """
        entry = self.read_entry()
        if entry is None:
            return None
        return entry.to_dict()

    def __iter__(self) -> Iterator[EntryView]:
        while True:
            entry = self.read_entry()
            if entry is None:
                return
            yield entry

    def iter_records(self) -> Iterator[Dict[str, str]]:
        """Yield owning dict copies until end of stream."""
        for entry in self:
            yield entry.to_dict()

    def close(self) -> None:
        """Release the line buffer and, if owned, close the stream."""
        self._generation += 1
        self._buffer.release()
        if self._owns_stream:
            self._stream.close()

    def __enter__(self) -> "CsvReader":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
