from __future__ import annotations
from collections import deque
from typing import Deque, Iterator

__all__ = ["LabelHistory"]


class LabelHistory:
    """
    A bounded, most-recent-first record of previously predicted labels.

    The chunker pushes each predicted label as it walks a sequence; the
    encoder reads the history to build label features and clears it when it
    reaches a break.

    Attributes:
        max_size: The maximum number of labels retained. Older labels drop
                  off the back once the bound is exceeded.
    """

    def __init__(self, max_size: int):
        if max_size < 0:
            raise ValueError(f"max_size must be non-negative, got {max_size}")
        self.max_size = max_size
        self._labels: Deque[str] = deque(maxlen=max_size)

    def push(self, label: str) -> None:
        self._labels.appendleft(label)

    def clear(self) -> None:
        self._labels.clear()

    def __iter__(self) -> Iterator[str]:
        return iter(self._labels)

    def __len__(self) -> int:
        return len(self._labels)

    def __repr__(self) -> str:
        return f"LabelHistory(max_size={self.max_size}, labels={list(self._labels)!r})"
