"""
Growable, capacity-retaining line buffer.

**Conceptual**: A reader refills the same buffer for every line it reads.
Clearing it only resets the logical size; the underlying bytearray keeps its
allocation, so steady-state reading does not allocate a new buffer per line.
Capacity grows when a longer line arrives and never shrinks.
"""

from typing import BinaryIO


class LineBuffer:
    """
    Byte buffer holding the current line of a reader.

    The first ``size`` bytes of the backing bytearray are the line contents;
    the rest is spare capacity.

    Args:
        capacity: Initial capacity in bytes. A hint, not a limit.

    Raises:
        ValueError: If capacity is negative.
    """

    def __init__(self, capacity: int = 64):
        if capacity < 0:
            raise ValueError(f"Buffer capacity must be >= 0, got {capacity}")
        self._data = bytearray(capacity)
        self._size = 0

    @property
    def capacity(self) -> int:
        """Allocated bytes."""
        return len(self._data)

    @property
    def size(self) -> int:
        """Bytes of the current line."""
        return self._size

    def __len__(self) -> int:
        return self._size

    def clear(self) -> None:
        """Drop the current line, keeping the allocation."""
        self._size = 0

    def reserve(self, capacity: int) -> None:
        """Grow the allocation to at least ``capacity`` bytes."""
        current = len(self._data)
        if capacity <= current:
            return
        # Double to amortise repeated growth on steadily longer lines
        new_capacity = max(capacity, current * 2)
        self._data.extend(bytes(new_capacity - current))

    def fill_line(self, stream: BinaryIO, delimiter: bytes = b"\n") -> int:
        """
        Read one line from ``stream`` into the buffer, replacing its contents.

        **Functionally**:
          - Reads up to and including the next delimiter, or to end of stream.
          - Stores the bytes without the delimiter.
          - Grows the allocation if the line does not fit.

        Args:
            stream: Binary stream supporting ``readline()``.
            delimiter: Line terminator to strip (one byte).

        Returns:
            Number of bytes consumed from the stream, delimiter included.
            Zero means the stream was already exhausted.

        Raises:
            OSError: Propagated from the stream.
            MemoryError: If the buffer cannot grow.
        """
        chunk = stream.readline()
        consumed = len(chunk)
        if chunk.endswith(delimiter):
            chunk = chunk[:-len(delimiter)]

        length = len(chunk)
        self.reserve(length)
        # Equal-length slice assignment rewrites in place without reallocating
        self._data[:length] = chunk
        self._size = length
        return consumed

    def find(self, byte: int, start: int = 0) -> int:
        """Position of ``byte`` in the current line at or after ``start``, or -1."""
        return self._data.find(byte, start, self._size)

    def slice(self, start: int, end: int) -> bytes:
        """Copy of bytes ``[start, end)`` of the current line."""
        return bytes(self._data[start:min(end, self._size)])

    def getvalue(self) -> bytes:
        """Copy of the current line."""
        return bytes(self._data[:self._size])

    def equals(self, other: bytes) -> bool:
        """Byte-for-byte comparison of the current line with ``other``."""
        if len(other) != self._size:
            return False
        return self._data[:self._size] == other

    def release(self) -> None:
        """Free the allocation. The buffer is empty with zero capacity afterwards."""
        self._data = bytearray()
        self._size = 0
