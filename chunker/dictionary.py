"""The feature dictionary: feature-key strings to dense integer indices.

Indices are assigned in first-seen order starting at 0 and are never reused
or renumbered, so an index handed out once stays valid for the lifetime of
the dictionary and across a save/load round trip.
"""
from __future__ import annotations
from pathlib import Path
from typing import Dict, Iterator, Optional, Tuple

from .artifacts import Registry, artifact_path, read_records, write_records
from .errors import MalformedArtifactError

__all__ = ["FeatureDictionary", "HashMapFeatureDictionary", "DICTIONARIES", "NOT_FOUND"]

NOT_FOUND = -1

FEAT_DICT_FILE_EXTENSION = ".feat-dict"

DICTIONARIES: Registry["FeatureDictionary"] = Registry("feature dictionary")


class FeatureDictionary:
    """Interface shared by feature dictionary implementations."""

    def lookup(self, key: str, insert_if_missing: bool) -> Optional[int]:  # pragma: no cover - interface
        raise NotImplementedError

    def items(self) -> Iterator[Tuple[str, int]]:  # pragma: no cover - interface
        raise NotImplementedError

    def __len__(self) -> int:  # pragma: no cover - interface
        raise NotImplementedError

    def save(self, directory: str | Path, prefix: str) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def load(self, directory: str | Path, prefix: str) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def index_of(self, key: str) -> int:
        """Strict lookup returning `NOT_FOUND` (-1) instead of None."""
        index = self.lookup(key, insert_if_missing=False)
        return NOT_FOUND if index is None else index


@DICTIONARIES.register("hash-map")
class HashMapFeatureDictionary(FeatureDictionary):
    """An append-only feature dictionary backed by a plain dict."""

    def __init__(self) -> None:
        self._index: Dict[str, int] = {}

    def lookup(self, key: str, insert_if_missing: bool) -> Optional[int]:
        """
        Resolves a feature key to its index.

        Args:
            key: The feature key.
            insert_if_missing: When True, an unseen key is assigned the next
                               sequential index (the current size).

        Returns:
            The key's index, or None when the key is unknown and
            ``insert_if_missing`` is False. A miss never changes the
            dictionary.
        """
        index = self._index.get(key)
        if index is not None:
            return index
        if not insert_if_missing:
            return None
        index = len(self._index)
        self._index[key] = index
        return index

    def items(self) -> Iterator[Tuple[str, int]]:
        return iter(self._index.items())

    def __len__(self) -> int:
        return len(self._index)

    def __contains__(self, key: object) -> bool:
        return key in self._index

    def save(self, directory: str | Path, prefix: str) -> None:
        write_records(
            artifact_path(directory, prefix, FEAT_DICT_FILE_EXTENSION),
            self._index.items(),
            "feature dictionary",
        )

    def load(self, directory: str | Path, prefix: str) -> None:
        """
        Replaces the whole table with the one saved under ``prefix``.

        The current mapping is only swapped out once the file has been read
        and validated, so a failed load leaves the dictionary untouched.
        """
        path = artifact_path(directory, prefix, FEAT_DICT_FILE_EXTENSION)
        records = read_records(path, (str, int), "feature dictionary")
        table: Dict[str, int] = {}
        for key, index in records:
            if index < 0:
                raise MalformedArtifactError(f"Negative index {index} for feature '{key}' in {path}")
            if key in table:
                raise MalformedArtifactError(f"Duplicate feature '{key}' in {path}")
            table[key] = index
        # New keys get index len(table); anything but 0..N-1 would collide.
        if sorted(table.values()) != list(range(len(table))):
            raise MalformedArtifactError(f"Feature indices in {path} are not a dense 0..N-1 range.")
        self._index = table
