from pathlib import Path

import pytest

from chunker.data_source import parse_lines, read_data_file, strip_labels, write_labels
from chunker.errors import DataFileError


def test_parse_lines_splits_columns_and_marks_breaks() -> None:
    rows = parse_lines(["Confidence NN B-NP\n", "in\tIN  B-PP\n", "\n", "   \n", "x\n"])

    assert rows == [["Confidence", "NN", "B-NP"], ["in", "IN", "B-PP"], [], [], ["x"]]


def test_read_data_file(tmp_path: Path) -> None:
    path = tmp_path / "train.txt"
    path.write_text("He PRP B-NP\nreckons VBZ B-VP\n\nThe DT B-NP\n", encoding="utf-8")

    rows = read_data_file(path)

    assert rows == [["He", "PRP", "B-NP"], ["reckons", "VBZ", "B-VP"], [], ["The", "DT", "B-NP"]]


def test_read_data_file_honours_encoding(tmp_path: Path) -> None:
    path = tmp_path / "latin.txt"
    path.write_bytes("café NN B-NP\n".encode("latin-1"))

    assert read_data_file(path, "ISO-8859-1") == [["café", "NN", "B-NP"]]
    with pytest.raises(DataFileError):
        read_data_file(path, "UTF-8")


def test_read_data_file_missing(tmp_path: Path) -> None:
    with pytest.raises(DataFileError):
        read_data_file(tmp_path / "absent.txt")


def test_read_data_file_unknown_encoding(tmp_path: Path) -> None:
    path = tmp_path / "train.txt"
    path.write_text("a b\n", encoding="utf-8")

    with pytest.raises(DataFileError):
        read_data_file(path, "no-such-codec")


def test_strip_labels(chunk_rows) -> None:
    assert strip_labels(chunk_rows) == [row[:-1] for row in chunk_rows]
    assert strip_labels([[], ["a", "B-NP"]]) == [[], ["a"]]


def test_write_labels(tmp_path: Path) -> None:
    path = tmp_path / "out.txt"

    write_labels(path, [["He", "PRP"], [], ["The", "DT"]], ["B-NP", "", "B-NP"])

    assert path.read_text(encoding="utf-8") == "He PRP B-NP\n\nThe DT B-NP\n"


def test_write_labels_length_mismatch(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        write_labels(tmp_path / "out.txt", [["a"]], [])
