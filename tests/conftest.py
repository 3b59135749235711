"""Shared pytest configuration: path setup and store fixtures."""

import sys
from pathlib import Path

import pytest

_ROOT = Path(__file__).resolve().parent.parent

# Allow ``from grc_dashboard import ...`` without installing the package
sys.path.insert(0, str(_ROOT / "src"))

from grc_dashboard.db import MemoryStore  # noqa: E402
from grc_dashboard.store import EntityStore  # noqa: E402


@pytest.fixture
def storage():
    return MemoryStore()


@pytest.fixture
def store(storage):
    """Store loaded from empty storage, i.e. holding the seed data."""
    return EntityStore.open(storage)
