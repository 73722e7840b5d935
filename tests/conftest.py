"""Shared pytest fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def people_graph_path() -> Path:
    """Six-vertex people/software graph in JSON Lines form (one blank line)."""
    return FIXTURES_DIR / "people.jsonl"
