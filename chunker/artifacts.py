"""Reading and writing model artifact files.

A saved model is a set of small files sharing a directory and a filename
prefix, each distinguished by a fixed suffix (see `artifact_path`). Every
multi-field file written here has the same shape: a UTF-8 JSON document with
an explicit element count followed by exactly that many fixed-shape records,

    {"count": 3, "records": [["B-NP", 1], ["I-NP", 2], ["O", 3]]}

so a file can be round-tripped exactly and a truncated or hand-edited file is
detected on load rather than silently producing a smaller table.

This module also hosts `Registry`, the closed tag -> factory mapping used to
reconstruct the right implementation class from a saved tag.
"""
from __future__ import annotations
import json
from pathlib import Path
from typing import Any, Callable, Dict, Generic, Iterable, List, Sequence, Tuple, Type, TypeVar

from .errors import (
    ArtifactIOError,
    ArtifactNotFoundError,
    MalformedArtifactError,
    UnknownImplementationError,
)

__all__ = [
    "artifact_path",
    "write_records",
    "read_records",
    "write_tag",
    "read_tag",
    "Registry",
]

T = TypeVar("T")

RecordShape = Tuple[type, ...]


def artifact_path(directory: str | Path, prefix: str, suffix: str) -> Path:
    """Builds the path of one artifact file, e.g. ``<dir>/<prefix>.feat-dict``."""
    return Path(directory) / f"{prefix}{suffix}"


def _field_matches(value: Any, expected: type) -> bool:
    # bool is a subclass of int; a JSON true/false is never a valid count or code.
    if isinstance(value, bool):
        return expected is bool
    if expected is float:
        return isinstance(value, (int, float))
    return isinstance(value, expected)


def write_records(path: str | Path, records: Iterable[Sequence[Any]], what: str) -> None:
    """
    Writes a counted list of records to ``path``.

    Args:
        path: Destination file.
        records: The records to write; each one is a short sequence of
                 strings and numbers.
        what: A human-readable name of the artifact, used in error messages.

    Raises:
        ArtifactNotFoundError: If the destination directory does not exist.
        ArtifactIOError: If writing or closing the file fails.
    """
    rows = [list(r) for r in records]
    payload = {"count": len(rows), "records": rows}
    try:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False)
    except FileNotFoundError as e:
        raise ArtifactNotFoundError(f"The {what} file could not be created at: {path}") from e
    except OSError as e:
        raise ArtifactIOError(f"An error occurred when writing the {what} file {path}: {e}") from e


def read_records(path: str | Path, shape: RecordShape, what: str) -> List[Tuple[Any, ...]]:
    """
    Reads a counted list of records from ``path`` and validates its structure.

    Args:
        path: The file to read.
        shape: The expected type of each field of a record, e.g. ``(str, int)``.
        what: A human-readable name of the artifact, used in error messages.

    Returns:
        The records as tuples, in file order. Values declared as ``float``
        are converted to ``float``.

    Raises:
        ArtifactNotFoundError: If the file does not exist.
        ArtifactIOError: If reading or closing the file fails.
        MalformedArtifactError: If the content is not valid JSON, the count
            does not match the number of records, or a record has the wrong
            shape.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise ArtifactNotFoundError(f"The {what} file was not found at: {path}") from e
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MalformedArtifactError(f"The {what} file {path} is not valid: {e}") from e
    except OSError as e:
        raise ArtifactIOError(f"An error occurred when reading the {what} file {path}: {e}") from e

    if not isinstance(data, dict):
        raise MalformedArtifactError(f"The {what} file {path} must contain a JSON object.")
    count = data.get("count")
    records = data.get("records")
    if not _field_matches(count, int) or count < 0:
        raise MalformedArtifactError(f"The {what} file {path} has an invalid record count: {count!r}")
    if not isinstance(records, list):
        raise MalformedArtifactError(f"The {what} file {path} has no record list.")
    if len(records) != count:
        raise MalformedArtifactError(
            f"The {what} file {path} declares {count} records but contains {len(records)}."
        )

    out: List[Tuple[Any, ...]] = []
    for i, record in enumerate(records):
        if not isinstance(record, list) or len(record) != len(shape):
            raise MalformedArtifactError(f"Record {i} of the {what} file {path} has the wrong shape: {record!r}")
        for value, expected in zip(record, shape):
            if not _field_matches(value, expected):
                raise MalformedArtifactError(
                    f"Record {i} of the {what} file {path} has a field of the wrong type: {value!r}"
                )
        out.append(tuple(float(v) if t is float else v for v, t in zip(record, shape)))
    return out


def write_tag(path: str | Path, tag: str, what: str, *settings: Any) -> None:
    """Writes a single-record file holding an implementation tag and optional settings."""
    write_records(path, [(tag, *settings)], what)


def read_tag(path: str | Path, shape: RecordShape, what: str) -> Tuple[Any, ...]:
    """Reads back a file written by `write_tag`. ``shape`` includes the tag itself."""
    records = read_records(path, shape, what)
    if len(records) != 1:
        raise MalformedArtifactError(f"The {what} file {path} must hold exactly one record.")
    return records[0]


class Registry(Generic[T]):
    """
    A closed mapping from short string tags to zero-argument factories.

    Saved models record the tag of each implementation that produced them;
    loading resolves the tag here to construct a fresh instance. Classes are
    registered at import time, typically with the `register` decorator::

        ENCODERS = Registry("encoder")

        @ENCODERS.register("window")
        class WindowFeatureEncoder(FeatureVectorEncoder): ...
    """

    def __init__(self, kind: str):
        self.kind = kind
        self._factories: Dict[str, Callable[[], T]] = {}
        self._tags: Dict[type, str] = {}

    def register(self, tag: str) -> Callable[[Type[T]], Type[T]]:
        def decorator(cls: Type[T]) -> Type[T]:
            if tag in self._factories:
                raise ValueError(f"Duplicate {self.kind} tag: {tag}")
            self._factories[tag] = cls
            self._tags[cls] = tag
            return cls
        return decorator

    def tags(self) -> List[str]:
        return sorted(self._factories)

    def create(self, tag: str) -> T:
        try:
            factory = self._factories[tag]
        except KeyError:
            raise UnknownImplementationError(
                f"Unknown {self.kind} implementation '{tag}'. Registered: {', '.join(self.tags()) or 'none'}"
            ) from None
        return factory()

    def tag_of(self, obj: T) -> str:
        try:
            return self._tags[type(obj)]
        except KeyError:
            raise UnknownImplementationError(
                f"{type(obj).__name__} is not a registered {self.kind} implementation."
            ) from None
