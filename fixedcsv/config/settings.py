"""
Default settings for the path-based CSV helpers.

**Conceptual**: The reader and writer classes take every option explicitly
and never look at the environment. The convenience helpers in
``fixedcsv.data.io`` are different: when an option is left as None they fall
back to the values here, loaded from environment variables (and a ``.env``
file, via python-dotenv) and validated once.

**Environment variables** (all optional):
  - FIXEDCSV_SEPARATOR: single-byte field separator (default ",").
    The special value "\\t" selects a tab.
  - FIXEDCSV_INITIAL_BUFFER_CAPACITY: starting line buffer size in bytes
    (default 64).
  - FIXEDCSV_INCLUDE_HEADER: whether files carry a header line
    (default "true").
  - FIXEDCSV_ENCODING: ASCII-compatible text encoding for field names and values
    (default "utf-8").

**Teaching note**: Settings are a frozen dataclass validated in
``__post_init__``, so a bad value fails at startup with the variable name in
the message instead of surfacing later as a confusing parse error.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from fixedcsv.data.schemas import SchemaError, check_encoding


# Load .env from the project root, if present
env_path = Path(__file__).parent.parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

_TRUE_VALUES = ("true", "1", "yes")
_FALSE_VALUES = ("false", "0", "no")


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(
        f"{name} must be one of {_TRUE_VALUES + _FALSE_VALUES}, got: {raw}"
    )


@dataclass(frozen=True)
class CsvSettings:
    """
    Defaults used by the path-based helpers.

    Attributes:
        separator: Single ASCII separator character (default ",").
        initial_buffer_capacity: Starting line buffer size in bytes (default 64).
        include_header: Whether files have a header line (default True).
        encoding: Text encoding (default "utf-8").

    Raises:
        ValueError: If any value is invalid.
    """
    separator: str = ","
    initial_buffer_capacity: int = 64
    include_header: bool = True
    encoding: str = "utf-8"

    def __post_init__(self):
        """Validate settings after initialization."""
        if len(self.separator) != 1 or not self.separator.isascii():
            raise ValueError(
                f"FIXEDCSV_SEPARATOR must be a single ASCII character, "
                f"got: {self.separator!r}"
            )
        if self.separator == "\n":
            raise ValueError("FIXEDCSV_SEPARATOR cannot be a newline.")
        if self.initial_buffer_capacity < 0:
            raise ValueError(
                f"FIXEDCSV_INITIAL_BUFFER_CAPACITY must be >= 0, "
                f"got: {self.initial_buffer_capacity}"
            )
        try:
            check_encoding(self.encoding)
        except SchemaError as e:
            raise ValueError(f"FIXEDCSV_ENCODING is invalid: {e}")

    @classmethod
    def from_env(cls) -> "CsvSettings":
        """
        Load settings from environment variables.

        Returns:
            CsvSettings with values from the environment (defaults otherwise).

        Raises:
            ValueError: If a variable is set to an invalid value.

        Usage example:
            >>> # In .env file:
            >>> # FIXEDCSV_SEPARATOR=|
            >>> # FIXEDCSV_INCLUDE_HEADER=false
            >>>
            >>> settings = CsvSettings.from_env()
            >>> settings.separator
            '|'
        """
        separator = os.getenv("FIXEDCSV_SEPARATOR", ",")
        if separator == "\\t":
            separator = "\t"
        capacity_str = os.getenv("FIXEDCSV_INITIAL_BUFFER_CAPACITY", "64")
        include_header = _parse_bool(
            "FIXEDCSV_INCLUDE_HEADER", os.getenv("FIXEDCSV_INCLUDE_HEADER", "true")
        )
        encoding = os.getenv("FIXEDCSV_ENCODING", "utf-8")

        try:
            capacity = int(capacity_str)
        except ValueError:
            raise ValueError(
                f"FIXEDCSV_INITIAL_BUFFER_CAPACITY must be an integer, got: {capacity_str}"
            )

        return cls(
            separator=separator,
            initial_buffer_capacity=capacity,
            include_header=include_header,
            encoding=encoding,
        )


# Lazily loaded singleton; tests call reset_settings() or build CsvSettings directly
_default_settings: Optional[CsvSettings] = None


def get_settings() -> CsvSettings:
    """
    Get the global settings singleton, loading it from the environment on
    first use.
    """
    global _default_settings

    if _default_settings is None:
        _default_settings = CsvSettings.from_env()
    return _default_settings


def reset_settings():
    """
    Reset the global settings singleton (for testing).

    The next ``get_settings()`` call reloads from the environment.
    """
    global _default_settings
    _default_settings = None
