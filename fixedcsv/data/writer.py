"""
Streaming writer for fixed-schema, delimiter-separated lines.

**Conceptual**: The mirror image of CsvReader. Every record becomes one line:
each field followed by the separator, the last field followed by a newline.
Writes go straight to the underlying stream; the writer adds no buffering of
its own.

**No escaping**: Field contents are written as-is. A value containing the
separator or a newline produces a line that a reader will reject (or split
differently); callers are responsible for keeping values clean.
"""

import logging
from collections.abc import Mapping
from typing import Any, BinaryIO, Iterable, List, Sequence, Union

from fixedcsv.data.reader import EntryView
from fixedcsv.data.schemas import EntrySchema, FieldCountMismatchError, NEWLINE


logger = logging.getLogger(__name__)

FieldValue = Union[str, bytes, bytearray, memoryview]
Record = Union[Mapping, Sequence[FieldValue]]


class CsvWriter:
    """
    Writes one fixed-schema record per call to a binary stream.

    Args:
        schema: Schema every record follows.
        stream: Binary stream with ``write()`` (file opened 'wb', BytesIO).
        include_header: If True, write the schema header line first.
        owns_stream: If True, ``close()`` also closes the stream.

    Attributes:
        line: Line counter. Starts at 1 (2 after the header) and advances once
              per record written.

    Raises:
        OSError: Propagated from the stream.

    Example:
        >>> import io
        >>> out = io.BytesIO()
        >>> writer = CsvWriter(EntrySchema(["a", "b"]), out, include_header=True)
        >>> writer.write_entry({"a": "1", "b": "2"})
        >>> out.getvalue()
        b'a,b\\n1,2\\n'
    """

    def __init__(
        self,
        schema: EntrySchema,
        stream: BinaryIO,
        include_header: bool = False,
        owns_stream: bool = False,
    ):
        self.schema = schema
        self._stream = stream
        self._owns_stream = owns_stream
        self.line = 1

        if include_header:
            stream.write(schema.header)
            stream.write(NEWLINE)
            self.line += 1
            logger.debug("Wrote header %r", schema.header)

    def _encode(self, value: Any) -> bytes:
        if isinstance(value, str):
            return value.encode(self.schema.encoding)
        if isinstance(value, (bytes, bytearray, memoryview)):
            return bytes(value)
        raise TypeError(
            f"Field values must be str or bytes-like, got {type(value).__name__}: {value!r}"
        )

    def _check_missing(self, present: Iterable[bool]) -> None:
        fields = self.schema.fields
        missing = [name for name, found in zip(fields, present) if not found]
        if missing:
            raise KeyError(
                f"Record is missing field(s) {missing}. "
                f"Schema fields: {list(fields)}"
            )

    def _field_values(self, record: Record) -> List[bytes]:
        """Resolve a record into encoded field values in schema order."""
        fields = self.schema.fields

        if isinstance(record, EntryView):
            source = record.schema
            if source == self.schema:
                return list(record.raw_values())
            # Different schema: resolve by field name like any other mapping
            self._check_missing(name in source.fields for name in fields)
            if source.encoding == self.schema.encoding:
                return [record.raw(name) for name in fields]
            return [self._encode(record[name]) for name in fields]

        if isinstance(record, Mapping):
            self._check_missing(name in record for name in fields)
            return [self._encode(record[name]) for name in fields]

        if isinstance(record, (str, bytes, bytearray, memoryview)):
            raise TypeError(
                f"Record must be a mapping or a sequence of field values, "
                f"got {type(record).__name__}: {record!r}"
            )

        values = list(record)
        if len(values) != len(fields):
            raise FieldCountMismatchError(expected=len(fields), found=len(values))
        return [self._encode(value) for value in values]

    def write_entry(self, record: Record) -> None:
        """
        Write one record as a line.

        **Functionally**:
          - Resolves the record into one value per schema field (before
            anything is written, so a bad record leaves the stream untouched).
          - Writes every field but the last followed by the separator.
          - Writes the last field followed by a newline.
          - Advances the line counter.

        Args:
            record: Mapping keyed by field name, positional sequence of
                    ``len(schema)`` values, or an EntryView. Values are str
                    (encoded with the schema encoding) or bytes-like. An
                    EntryView from a reader with a different schema is
                    resolved by field name.

        Raises:
            KeyError: Mapping record (or EntryView) without one of the
                      schema fields.
            FieldCountMismatchError: Positional record of the wrong length.
            TypeError: A str/bytes record, or a value that is neither str
                       nor bytes-like.
            StaleEntryError: EntryView whose reader has moved on.
            OSError: Propagated from the stream.
        """
        values = self._field_values(record)
        stream = self._stream
        separator = self.schema.separator

        for value in values[:-1]:
            stream.write(value)
            stream.write(separator)
        stream.write(values[-1])
        stream.write(NEWLINE)

        self.line += 1

    def write_entries(self, records: Iterable[Record]) -> int:
        """Write every record from an iterable. Returns how many were written."""
        count = 0
        for record in records:
            self.write_entry(record)
            count += 1
        return count

    def flush(self) -> None:
        """Flush the underlying stream, if it supports flushing."""
        flush = getattr(self._stream, "flush", None)
        if flush is not None:
            flush()

    def close(self) -> None:
        """Flush and, if owned, close the stream."""
        self.flush()
        if self._owns_stream:
            self._stream.close()

    def __enter__(self) -> "CsvWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
