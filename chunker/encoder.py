"""Turns token rows into sparse feature vectors.

The encoder looks at a window of rows around the target row and emits one
binary indicator feature per (attribute value, column, relative offset)
triple, plus one feature per recent label. It has two modes:

1.  **Training** (`encode_with_label`): rows carry their label in the last
    column. Label features are read straight from the preceding rows and
    every feature key is inserted into the dictionary, which is still
    growing.
2.  **Inference** (`encode_no_label`): rows carry no label. Label features
    come from the `LabelHistory` of the chunker's own predictions, and the
    dictionary is frozen: keys never seen during training contribute nothing.

Context never crosses a break row in either direction, and the label
history is cleared whenever a break row is encoded in inference mode.
"""
from __future__ import annotations
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from .artifacts import Registry, artifact_path, read_tag, write_tag
from .dictionary import DICTIONARIES, FeatureDictionary, HashMapFeatureDictionary
from .errors import MalformedArtifactError
from .history import LabelHistory
from .types import FeatureEntry, FeatureVector, Row, is_break

__all__ = [
    "FeatureVectorEncoder",
    "WindowFeatureEncoder",
    "ENCODERS",
    "default_encoder",
    "feature_key",
    "label_key",
]

DEFAULT_WINDOW_SIZE = 2
DEFAULT_LABEL_HISTORY_SIZE = 2

FEAT_DICTIONARY_CLASS_FILE_EXTENSION = ".feat-dic-cls"

ENCODERS: Registry["FeatureVectorEncoder"] = Registry("feature vector encoder")


def feature_key(value: str, column: int, offset: int) -> str:
    """Key of a positional feature, e.g. ``"NNP_1:-2"``."""
    return f"{value}_{column}:{offset}"


def label_key(label: str, offset: int) -> str:
    """Key of a label-history feature, e.g. ``"B-NP_label:-1"``."""
    return f"{label}_label:{offset}"


class FeatureVectorEncoder:
    """Interface shared by encoder implementations."""

    def encode_with_label(self, rows: Sequence[Row], position: int) -> Optional[FeatureVector]:  # pragma: no cover - interface
        raise NotImplementedError

    def encode_no_label(self, rows: Sequence[Row], position: int) -> Optional[FeatureVector]:  # pragma: no cover - interface
        raise NotImplementedError

    def add_result(self, label: str) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def reset(self) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    @property
    def feature_count(self) -> int:  # pragma: no cover - interface
        raise NotImplementedError

    def save(self, directory: str | Path, prefix: str) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def load(self, directory: str | Path, prefix: str) -> None:  # pragma: no cover - interface
        raise NotImplementedError


@ENCODERS.register("window")
class WindowFeatureEncoder(FeatureVectorEncoder):
    """
    Encodes a fixed-size, break-aware window of rows around the target row.

    Attributes:
        window_size: Rows of context on each side of the target row.
        label_history_size: Number of preceding labels encoded as features.
    """

    def __init__(
        self,
        window_size: int = DEFAULT_WINDOW_SIZE,
        label_history_size: int = DEFAULT_LABEL_HISTORY_SIZE,
        dictionary: Optional[FeatureDictionary] = None,
    ):
        if window_size < 0 or label_history_size < 0:
            raise ValueError("window_size and label_history_size must be non-negative")
        self.window_size = window_size
        self.label_history_size = label_history_size
        self._dictionary = dictionary if dictionary is not None else HashMapFeatureDictionary()
        self._history = LabelHistory(label_history_size)

    @property
    def dictionary(self) -> FeatureDictionary:
        return self._dictionary

    @property
    def feature_count(self) -> int:
        return len(self._dictionary)

    def label_history(self) -> Tuple[str, ...]:
        """A snapshot of the label history, most recent first."""
        return tuple(self._history)

    def encode_with_label(self, rows: Sequence[Row], position: int) -> Optional[FeatureVector]:
        """
        Encodes a labeled row for training.

        Args:
            rows: The dataset. The last attribute of every non-break row is
                  its label.
            position: Index of the target row.

        Returns:
            The feature vector with the row's own label, or None when the
            target row is a break.

        Raises:
            IndexError: If ``position`` is outside ``rows``.
        """
        row = self._row_at(rows, position)
        if is_break(row):
            return None

        entries = self._window_features(rows, position, with_labels=True)

        for offset in range(-1, -self.label_history_size - 1, -1):
            idx = position + offset
            if idx < 0:
                break
            prev = rows[idx]
            if is_break(prev):
                break
            index = self._dictionary.lookup(label_key(prev[-1], offset), insert_if_missing=True)
            if index is not None:
                entries.append(FeatureEntry(index, 1.0))

        return FeatureVector(label=row[-1], entries=entries)

    def encode_no_label(self, rows: Sequence[Row], position: int) -> Optional[FeatureVector]:
        """
        Encodes an unlabeled row for inference.

        Lookups never grow the dictionary; unknown keys are dropped. Label
        features are taken from the label history at offsets -1, -2, ...

        Returns:
            A feature vector with an empty label, or None when the target row
            is a break (in which case the label history is cleared).

        Raises:
            IndexError: If ``position`` is outside ``rows``.
        """
        row = self._row_at(rows, position)
        if is_break(row):
            self._history.clear()
            return None

        entries = self._window_features(rows, position, with_labels=False)

        for offset, label in enumerate(self._history, start=1):
            index = self._dictionary.lookup(label_key(label, -offset), insert_if_missing=False)
            if index is not None:
                entries.append(FeatureEntry(index, 1.0))

        return FeatureVector(label="", entries=entries)

    def add_result(self, label: str) -> None:
        """Records a predicted label as the most recent history entry."""
        self._history.push(label)

    def reset(self) -> None:
        self._history.clear()

    def save(self, directory: str | Path, prefix: str) -> None:
        """Saves the dictionary tag, the window settings and the dictionary table."""
        write_tag(
            artifact_path(directory, prefix, FEAT_DICTIONARY_CLASS_FILE_EXTENSION),
            DICTIONARIES.tag_of(self._dictionary),
            "feature dictionary settings",
            self.window_size,
            self.label_history_size,
        )
        self._dictionary.save(directory, prefix)

    def load(self, directory: str | Path, prefix: str) -> None:
        path = artifact_path(directory, prefix, FEAT_DICTIONARY_CLASS_FILE_EXTENSION)
        tag, window_size, label_history_size = read_tag(path, (str, int, int), "feature dictionary settings")
        if window_size < 0 or label_history_size < 0:
            raise MalformedArtifactError(f"Negative window settings in {path}")

        dictionary = DICTIONARIES.create(tag)
        dictionary.load(directory, prefix)

        self.window_size = window_size
        self.label_history_size = label_history_size
        self._dictionary = dictionary
        self._history = LabelHistory(label_history_size)

    # --- Internals ---

    @staticmethod
    def _row_at(rows: Sequence[Row], position: int) -> Row:
        if not 0 <= position < len(rows):
            raise IndexError(f"Row position {position} is outside the data (0..{len(rows) - 1}).")
        return rows[position]

    def _window_features(self, rows: Sequence[Row], position: int, with_labels: bool) -> List[FeatureEntry]:
        entries: List[FeatureEntry] = []

        # The target row and the preceding rows, then the following rows.
        # Each direction stops at the first break.
        for offset in range(0, -self.window_size - 1, -1):
            idx = position + offset
            if idx < 0 or is_break(rows[idx]):
                break
            self._row_features(rows[idx], offset, with_labels, entries)

        for offset in range(1, self.window_size + 1):
            idx = position + offset
            if idx >= len(rows) or is_break(rows[idx]):
                break
            self._row_features(rows[idx], offset, with_labels, entries)

        return entries

    def _row_features(self, row: Row, offset: int, with_labels: bool, entries: List[FeatureEntry]) -> None:
        columns = row[:-1] if with_labels else row
        for col, value in enumerate(columns):
            index = self._dictionary.lookup(feature_key(value, col, offset), insert_if_missing=with_labels)
            if index is not None:
                entries.append(FeatureEntry(index, 1.0))


def default_encoder() -> WindowFeatureEncoder:
    """Builds a fresh encoder with the default window settings and an empty dictionary."""
    return WindowFeatureEncoder(DEFAULT_WINDOW_SIZE, DEFAULT_LABEL_HISTORY_SIZE, HashMapFeatureDictionary())
