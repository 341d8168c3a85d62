"""
File-path helpers and pandas DataFrame bridge.

**Conceptual**: CsvReader and CsvWriter work on streams. This module is the
layer for the common case of a file on disk: it opens the file in binary
mode, hands ownership of the handle to the reader/writer, and fills in
options from the settings (``fixedcsv.config.settings``) when the caller
leaves them as None.

**DataFrame bridge**: ``read_entries_frame`` and ``write_entries_frame`` move
whole files between disk and pandas while still going through the
fixed-schema reader and writer, so the same header and field-count rules
apply. Every column is treated as text; no type inference happens here.

**Rule**: Values are never quoted or escaped. Writing a frame whose values
contain the separator or a newline produces a file that reads back with a
FieldCountMismatchError.
"""

import logging
from pathlib import Path
from typing import Optional

import pandas as pd

from fixedcsv.config.settings import get_settings
from fixedcsv.data.reader import CsvReader
from fixedcsv.data.schemas import EntrySchema
from fixedcsv.data.writer import CsvWriter


logger = logging.getLogger(__name__)


def open_reader(
    path: Path | str,
    schema: EntrySchema,
    include_header: Optional[bool] = None,
    initial_buffer_capacity: Optional[int] = None,
) -> CsvReader:
    """
    Open a file and return a CsvReader that owns the file handle.

    Args:
        path: File to read.
        schema: Schema every line must follow.
        include_header: Whether the file starts with a header line
                        (default: settings.include_header).
        initial_buffer_capacity: Line buffer size hint
                                 (default: settings.initial_buffer_capacity).

    Returns:
        CsvReader; use it as a context manager or call ``close()``.

    Raises:
        FileNotFoundError: If the file does not exist.
        HeaderMismatchError: If the header is expected and does not match.
        ValueError: If ``initial_buffer_capacity`` is negative.

    The file is closed again if the reader cannot be constructed.
    """
    path = Path(path)
    settings = get_settings()
    if include_header is None:
        include_header = settings.include_header
    if initial_buffer_capacity is None:
        initial_buffer_capacity = settings.initial_buffer_capacity

    if not path.exists():
        raise FileNotFoundError(f"CSV file not found: {path}")

    logger.debug("Opening %s for reading (header=%s)", path, include_header)
    stream = path.open("rb")
    try:
        return CsvReader(
            schema,
            stream,
            initial_buffer_capacity=initial_buffer_capacity,
            include_header=include_header,
            owns_stream=True,
        )
    except Exception:
        stream.close()
        raise


def open_writer(
    path: Path | str,
    schema: EntrySchema,
    include_header: Optional[bool] = None,
) -> CsvWriter:
    """
    Create (or truncate) a file and return a CsvWriter that owns the handle.

    The parent directory is created if it does not exist.

    Args:
        path: File to write.
        schema: Schema every record follows.
        include_header: Whether to write a header line
                        (default: settings.include_header).

    Returns:
        CsvWriter; use it as a context manager or call ``close()``.
    """
    path = Path(path)
    if include_header is None:
        include_header = get_settings().include_header

    path.parent.mkdir(parents=True, exist_ok=True)

    logger.debug("Opening %s for writing (header=%s)", path, include_header)
    stream = path.open("wb")
    try:
        return CsvWriter(schema, stream, include_header=include_header, owns_stream=True)
    except OSError:
        stream.close()
        raise


def read_entries_frame(
    path: Path | str,
    schema: EntrySchema,
    include_header: Optional[bool] = None,
) -> pd.DataFrame:
    """
    Read every record of a file into a DataFrame.

    **Functionally**:
      - Streams the file through CsvReader (header and field counts enforced).
      - Builds one text column per schema field, in schema order.
      - Returns an empty frame with the schema columns for a file with no
        records.

    Args:
        path: File to read.
        schema: Schema every line must follow.
        include_header: Whether the file starts with a header line
                        (default: settings.include_header).

    Returns:
        DataFrame with columns ``schema.fields`` (object dtype, str values).

    Raises:
        FileNotFoundError: If the file does not exist.
        HeaderMismatchError: If the header is expected and does not match.
        FieldCountMismatchError: On the first malformed line.

    Example:
        >>> schema = EntrySchema(["symbol", "price"])
        >>> df = read_entries_frame("prices.csv", schema)
        >>> df.columns.tolist()
        ['symbol', 'price']
    """
    with open_reader(path, schema, include_header=include_header) as reader:
        rows = [entry.to_tuple() for entry in reader]

    logger.debug("Read %d record(s) from %s", len(rows), path)
    return pd.DataFrame(rows, columns=list(schema.fields), dtype=object)


def write_entries_frame(
    df: pd.DataFrame,
    path: Path | str,
    schema: Optional[EntrySchema] = None,
    separator: Optional[str] = None,
    include_header: Optional[bool] = None,
) -> int:
    """
    Write a DataFrame to a file, one record per row.

    **Functionally**:
      - Uses ``schema`` if given; otherwise builds one from the frame's
        columns, ``separator`` (default: settings.separator) and the
        settings encoding.
      - Selects the schema columns in schema order (extra columns are
        ignored).
      - Writes missing values (NaN/None) as empty fields and converts every
        other value with ``str``.

    Args:
        df: Frame to write.
        path: Destination file; parent directories are created.
        schema: Schema to write with (optional).
        separator: Separator when the schema is derived from the frame.
        include_header: Whether to write a header line
                        (default: settings.include_header).

    Returns:
        Number of records written.

    Raises:
        KeyError: If the frame lacks a column named by the schema.
        SchemaError: If the derived schema is invalid (e.g. no columns).
        OSError: If the file cannot be written.
    """
    settings = get_settings()
    if schema is None:
        schema = EntrySchema(
            tuple(str(column) for column in df.columns),
            separator=separator if separator is not None else settings.separator,
            encoding=settings.encoding,
        )

    missing = [name for name in dict.fromkeys(schema.fields) if name not in df.columns]
    if missing:
        raise KeyError(
            f"DataFrame is missing schema columns: {missing}. "
            f"Found columns: {list(df.columns)}."
        )

    selected = df.loc[:, list(schema.fields)]
    text = selected.astype(object).where(selected.notna(), "")

    with open_writer(path, schema, include_header=include_header) as writer:
        count = writer.write_entries(
            tuple(str(value) for value in row)
            for row in text.itertuples(index=False, name=None)
        )

    logger.debug("Wrote %d record(s) to %s", count, path)
    return count
