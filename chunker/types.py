from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Sequence

__all__ = ["Row", "FeatureEntry", "FeatureVector", "is_break", "BREAK_ROW"]

Row = Sequence[str]

# A zero-length row marks a sequence boundary (e.g. the end of a sentence).
BREAK_ROW: tuple[str, ...] = ()


def is_break(row: Row) -> bool:
    """Returns True when the row is a break marker."""
    return len(row) == 0


@dataclass(frozen=True)
class FeatureEntry:
    """A single (index, value) pair of a sparse feature vector."""

    index: int
    value: float = 1.0


@dataclass
class FeatureVector:
    """
    A sparse feature vector together with the label of the row it encodes.

    Entries are binary indicator features. The same index may appear more
    than once; consumers are expected to tolerate (or sum) duplicates.

    Attributes:
        label: The row's label during training, or "" when it is unknown
               (inference).
        entries: The ordered list of `FeatureEntry` items.
    """

    label: str
    entries: List[FeatureEntry] = field(default_factory=list)

    def indices(self) -> List[int]:
        return [e.index for e in self.entries]

    def __len__(self) -> int:
        return len(self.entries)
