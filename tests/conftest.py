"""Test configuration helpers for ensuring local imports resolve."""
from __future__ import annotations

import sys
from pathlib import Path

import pytest


def _ensure_project_root_on_path() -> None:
    project_root = Path(__file__).resolve().parents[1]
    if str(project_root) not in sys.path:
        sys.path.insert(0, str(project_root))


_ensure_project_root_on_path()


@pytest.fixture
def chunk_rows() -> list[list[str]]:
    """One labeled sentence (word, POS, chunk) followed by a break."""
    return [
        ["Cardiac", "NNP", "B-NP"],
        ["Pacemakers", "NNPS", "I-NP"],
        ["Inc.", "NNP", "I-NP"],
        ["units", "NNS", "I-NP"],
        ["led", "VBD", "B-VP"],
        [],
    ]


@pytest.fixture
def chunk_rows_no_labels(chunk_rows) -> list[list[str]]:
    return [row[:-1] for row in chunk_rows]


@pytest.fixture
def number_rows() -> list[list[str]]:
    """Single-token rows each remembered by its own label."""
    return [["one", "1"], ["two", "2"], ["three", "3"], ["four", "1"], ["five", "2"]]
