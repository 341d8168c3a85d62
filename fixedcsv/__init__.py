"""
fixedcsv - streaming reader/writer for fixed-schema, delimiter-separated lines.

Each line is one record with exactly one value per schema field. There is no
quoting and no escaping: values must not contain the separator or a newline.
"""

__version__ = "0.1.0"

from fixedcsv.data.schemas import (
    EntrySchema,
    FieldCountMismatchError,
    FieldDecodeError,
    FixedCsvError,
    HeaderMismatchError,
    SchemaError,
    SchemaErrorKind,
    StaleEntryError,
    build_header,
)
from fixedcsv.data.reader import CsvReader, EntryView
from fixedcsv.data.writer import CsvWriter
from fixedcsv.data.io import (
    open_reader,
    open_writer,
    read_entries_frame,
    write_entries_frame,
)

__all__ = [
    "__version__",
    "EntrySchema",
    "build_header",
    "FixedCsvError",
    "SchemaError",
    "SchemaErrorKind",
    "HeaderMismatchError",
    "FieldCountMismatchError",
    "FieldDecodeError",
    "StaleEntryError",
    "CsvReader",
    "EntryView",
    "CsvWriter",
    "open_reader",
    "open_writer",
    "read_entries_frame",
    "write_entries_frame",
]
