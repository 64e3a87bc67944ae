"""Reads and writes CoNLL-style column data.

The CoNLL-2000 chunking format holds one token per line with its attributes
in whitespace-separated columns (word, part-of-speech tag and, in training
data, the chunk label). A blank line separates sentences and is returned as
a zero-length row, the break marker understood by the encoder.
"""
from __future__ import annotations
import codecs
from pathlib import Path
from typing import Iterable, List, Sequence

from .errors import DataFileError
from .types import Row, is_break

__all__ = ["parse_lines", "read_data_file", "write_labels", "strip_labels"]


def parse_lines(lines: Iterable[str]) -> List[List[str]]:
    """Splits each line on runs of whitespace; blank lines become ``[]``."""
    return [line.split() for line in lines]


def read_data_file(path: str | Path, encoding: str = "UTF-8") -> List[List[str]]:
    """
    Reads a data file into a list of rows.

    Args:
        path: The data file.
        encoding: Its character encoding.

    Returns:
        One row per line, in file order. Blank lines are zero-length rows.

    Raises:
        DataFileError: If the file does not exist, the encoding is unknown,
            the bytes cannot be decoded, or reading fails.
    """
    try:
        codecs.lookup(encoding)
    except LookupError as e:
        raise DataFileError(f"Unknown data file encoding: {encoding}") from e

    try:
        with open(path, "r", encoding=encoding) as f:
            return parse_lines(f)
    except FileNotFoundError as e:
        raise DataFileError(f"The data file was not found at: {path}") from e
    except UnicodeDecodeError as e:
        raise DataFileError(f"The data file {path} is not in the {encoding} encoding: {e}") from e
    except OSError as e:
        raise DataFileError(f"An error occurred while reading the data file {path}: {e}") from e


def strip_labels(rows: Sequence[Row]) -> List[List[str]]:
    """Drops the last (label) column of every non-break row."""
    return [list(row[:-1]) if not is_break(row) else [] for row in rows]


def write_labels(path: str | Path, rows: Sequence[Row], labels: Sequence[str], encoding: str = "UTF-8") -> None:
    """
    Writes chunked output: each row's columns followed by its label.

    Break rows are written as blank lines.

    Raises:
        ValueError: If ``rows`` and ``labels`` differ in length.
        DataFileError: If the file cannot be written.
    """
    if len(rows) != len(labels):
        raise ValueError(f"Got {len(rows)} rows but {len(labels)} labels.")
    try:
        with open(path, "w", encoding=encoding) as f:
            for row, label in zip(rows, labels):
                if is_break(row):
                    f.write("\n")
                else:
                    f.write(" ".join([*row, label]) + "\n")
    except OSError as e:
        raise DataFileError(f"An error occurred while writing the output file {path}: {e}") from e
