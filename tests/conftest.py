"""
Pytest configuration file.

Ensures the repo root is on sys.path so that 'import fixedcsv...' works, and
provides small shared fixtures.
"""
import sys
from pathlib import Path

import pytest

# Add the repo root to sys.path
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from fixedcsv.config.settings import reset_settings
from fixedcsv.data.schemas import EntrySchema


@pytest.fixture
def abc_schema() -> EntrySchema:
    """Three-field schema {a, b, c} separated by commas."""
    return EntrySchema(["a", "b", "c"], separator=",")


@pytest.fixture
def ab_schema() -> EntrySchema:
    """Two-field schema {a, b} separated by commas."""
    return EntrySchema(["a", "b"], separator=",")


@pytest.fixture
def clean_settings(monkeypatch):
    """Clear FIXEDCSV_* variables and the settings singleton around a test."""
    for name in (
        "FIXEDCSV_SEPARATOR",
        "FIXEDCSV_INITIAL_BUFFER_CAPACITY",
        "FIXEDCSV_INCLUDE_HEADER",
        "FIXEDCSV_ENCODING",
    ):
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()
