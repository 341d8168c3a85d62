"""
Tests for the streaming writer (fixedcsv/data/writer.py), plus writer/reader
round trips.

All tests use in-memory streams (io.BytesIO).
"""

import io

import pytest

from fixedcsv.data.reader import CsvReader
from fixedcsv.data.schemas import (
    EntrySchema,
    FieldCountMismatchError,
    FieldDecodeError,
    StaleEntryError,
)
from fixedcsv.data.writer import CsvWriter


class RecordingStream:
    """Binary stream that records each write call separately."""

    def __init__(self):
        self.writes = []

    def write(self, data):
        self.writes.append(bytes(data))
        return len(data)


class FailingStream:
    def write(self, data):
        raise OSError("no space left on device")


# ============================================================================
# Writing records
# ============================================================================

def test_writer_header_scenario(ab_schema):
    """Header, a full record, and a record of empty fields."""
    out = io.BytesIO()
    writer = CsvWriter(ab_schema, out, include_header=True)

    writer.write_entry({"a": "1", "b": "2"})
    writer.write_entry({"a": "", "b": ""})

    assert out.getvalue() == b"a,b\n1,2\n,\n"


def test_writer_without_header(ab_schema):
    out = io.BytesIO()
    writer = CsvWriter(ab_schema, out)
    writer.write_entry(("x", "y"))

    assert out.getvalue() == b"x,y\n"
    assert writer.line == 2


def test_line_counter(ab_schema):
    writer = CsvWriter(ab_schema, io.BytesIO(), include_header=True)
    assert writer.line == 2

    writer.write_entry(["1", "2"])
    writer.write_entry(["3", "4"])
    assert writer.line == 4


def test_writes_are_issued_field_by_field(abc_schema):
    """Each field and each separator goes straight to the stream."""
    stream = RecordingStream()
    CsvWriter(abc_schema, stream).write_entry(["1", "22", "333"])

    assert stream.writes == [b"1", b",", b"22", b",", b"333", b"\n"]


def test_single_field_schema_has_no_separator():
    out = io.BytesIO()
    writer = CsvWriter(EntrySchema(["only"]), out, include_header=True)
    writer.write_entry({"only": "v"})

    assert out.getvalue() == b"only\nv\n"


def test_bytes_and_str_values_mix(ab_schema):
    out = io.BytesIO()
    CsvWriter(ab_schema, out).write_entry([b"raw", "téxt"])

    assert out.getvalue() == b"raw," + "téxt".encode("utf-8") + b"\n"


def test_mapping_extra_keys_are_ignored(ab_schema):
    out = io.BytesIO()
    CsvWriter(ab_schema, out).write_entry({"b": "2", "a": "1", "c": "ignored"})

    assert out.getvalue() == b"1,2\n"


def test_field_contents_are_not_validated(ab_schema):
    """Embedded separators are written as-is and produce a malformed line."""
    out = io.BytesIO()
    CsvWriter(ab_schema, out).write_entry(["1,5", "2"])

    assert out.getvalue() == b"1,5,2\n"

    with pytest.raises(FieldCountMismatchError):
        CsvReader(ab_schema, io.BytesIO(out.getvalue())).read_entry()


# ============================================================================
# Rejected records
# ============================================================================

def test_mapping_missing_field_writes_nothing(ab_schema):
    out = io.BytesIO()
    writer = CsvWriter(ab_schema, out)

    with pytest.raises(KeyError) as exc_info:
        writer.write_entry({"a": "1"})

    assert "'b'" in str(exc_info.value)
    assert out.getvalue() == b""
    assert writer.line == 1


@pytest.mark.parametrize("record", [["1"], ["1", "2", "3"]])
def test_wrong_length_sequence_writes_nothing(ab_schema, record):
    out = io.BytesIO()
    writer = CsvWriter(ab_schema, out)

    with pytest.raises(FieldCountMismatchError):
        writer.write_entry(record)

    assert out.getvalue() == b""


def test_non_text_value_raises_type_error(ab_schema):
    out = io.BytesIO()

    with pytest.raises(TypeError):
        CsvWriter(ab_schema, out).write_entry(["1", 2])

    assert out.getvalue() == b""


def test_stream_errors_propagate(ab_schema):
    with pytest.raises(OSError, match="no space left"):
        CsvWriter(ab_schema, FailingStream(), include_header=True)


# ============================================================================
# Batch writing and lifecycle
# ============================================================================

def test_write_entries_returns_count(ab_schema):
    out = io.BytesIO()
    writer = CsvWriter(ab_schema, out)

    count = writer.write_entries([("1", "2"), {"a": "3", "b": "4"}])

    assert count == 2
    assert out.getvalue() == b"1,2\n3,4\n"


def test_close_owned_stream(ab_schema):
    out = io.BytesIO()
    with CsvWriter(ab_schema, out, owns_stream=True) as writer:
        writer.write_entry(("1", "2"))

    assert out.closed


def test_close_leaves_borrowed_stream_open(ab_schema):
    out = io.BytesIO()
    CsvWriter(ab_schema, out).close()

    assert not out.closed


def test_flush_without_flush_method(ab_schema):
    CsvWriter(ab_schema, RecordingStream()).flush()


# ============================================================================
# Round trips
# ============================================================================

@pytest.mark.parametrize("separator", [",", "\t", "|", ";"])
def test_round_trip_preserves_records(separator):
    schema = EntrySchema(["id", "name", "note", "empty"], separator=separator)
    records = [
        {"id": "1", "name": "alpha", "note": "first row", "empty": ""},
        {"id": "2", "name": "β", "note": "", "empty": ""},
        {"id": "", "name": "", "note": "", "empty": ""},
    ]

    out = io.BytesIO()
    writer = CsvWriter(schema, out, include_header=True)
    writer.write_entries(records)

    reader = CsvReader(schema, io.BytesIO(out.getvalue()), include_header=True)
    assert list(reader.iter_records()) == records


def test_copy_entry_views_between_files(abc_schema):
    """An EntryView can be written directly while it is still valid."""
    source = CsvReader(abc_schema, io.BytesIO(b"1,2,3\n4,5,6\n"))
    out = io.BytesIO()
    writer = CsvWriter(abc_schema, out, include_header=True)

    for entry in source:
        writer.write_entry(entry)

    assert out.getvalue() == b"a,b,c\n1,2,3\n4,5,6\n"


def test_entry_view_into_reordered_schema_maps_by_name(ab_schema):
    """Columns follow the writer's schema, not the reader's field order."""
    reader = CsvReader(ab_schema, io.BytesIO(b"1,2\n"))
    entry = reader.read_entry()
    out = io.BytesIO()

    CsvWriter(EntrySchema(["b", "a"]), out).write_entry(entry)

    assert out.getvalue() == b"2,1\n"


def test_entry_view_into_wider_schema_raises(ab_schema, abc_schema):
    reader = CsvReader(ab_schema, io.BytesIO(b"1,2\n"))
    entry = reader.read_entry()
    out = io.BytesIO()
    writer = CsvWriter(abc_schema, out)

    with pytest.raises(KeyError) as exc_info:
        writer.write_entry(entry)

    assert "'c'" in str(exc_info.value)
    assert out.getvalue() == b""
    assert writer.line == 1


def test_entry_view_into_narrower_schema_selects_fields(abc_schema):
    reader = CsvReader(abc_schema, io.BytesIO(b"1,2,3\n"))
    out = io.BytesIO()

    CsvWriter(EntrySchema(["c", "a"], separator="|"), out).write_entry(reader.read_entry())

    assert out.getvalue() == b"3|1\n"


def test_entry_view_reencoded_for_other_encoding():
    source = EntrySchema(["name"], encoding="latin-1")
    reader = CsvReader(source, io.BytesIO("café\n".encode("latin-1")))
    out = io.BytesIO()

    CsvWriter(EntrySchema(["name"]), out).write_entry(reader.read_entry())

    assert out.getvalue() == "café\n".encode("utf-8")


@pytest.mark.parametrize("record", ["ab", b"ab", bytearray(b"ab")])
def test_text_or_bytes_record_raises_type_error(ab_schema, record):
    """A bare string is not a sequence of field values."""
    out = io.BytesIO()

    with pytest.raises(TypeError):
        CsvWriter(ab_schema, out).write_entry(record)

    assert out.getvalue() == b""


def test_writing_stale_view_raises(ab_schema):
    reader = CsvReader(ab_schema, io.BytesIO(b"1,2\n3,4\n"))
    first = reader.read_entry()
    reader.read_entry()

    with pytest.raises(StaleEntryError):
        CsvWriter(ab_schema, io.BytesIO()).write_entry(first)


def test_binary_values_round_trip_through_raw_values(ab_schema):
    """Bytes that are not valid text come back intact as raw bytes."""
    out = io.BytesIO()
    CsvWriter(ab_schema, out).write_entry([b"\xff\xfe", b"x"])

    entry = CsvReader(ab_schema, io.BytesIO(out.getvalue())).read_entry()

    assert entry.raw_values() == (b"\xff\xfe", b"x")
    with pytest.raises(FieldDecodeError) as exc_info:
        entry.to_dict()
    assert exc_info.value.line_number == 1
