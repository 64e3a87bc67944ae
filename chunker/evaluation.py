from __future__ import annotations
from typing import Any, Dict, Iterator, Optional, Sequence, Set, Tuple

__all__ = ["iter_chunks", "evaluate"]

Chunk = Tuple[int, int, str]


def _split_label(label: str) -> Tuple[str, Optional[str]]:
    """Splits ``"B-NP"`` into ``("B", "NP")``; ``"O"`` and ``""`` have no type."""
    if not label or label == "O":
        return "O", None
    prefix, sep, kind = label.partition("-")
    if not sep:
        return "I", label
    return prefix, kind


def iter_chunks(labels: Sequence[str]) -> Iterator[Chunk]:
    """
    Yields the chunks of an IOB-labeled sequence as ``(start, end, type)``.

    ``end`` is inclusive. A chunk starts at ``B-X``, or at ``I-X`` when the
    previous token is outside a chunk of type X. It ends before ``O``, a
    ``B-``, a token of another type, or a break (empty label).
    """
    start: Optional[int] = None
    current: Optional[str] = None
    for i, label in enumerate(labels):
        prefix, kind = _split_label(label)
        continues = kind is not None and kind == current and prefix != "B"
        if current is not None and not continues:
            yield (start, i - 1, current)
            start, current = None, None
        if kind is not None and current is None:
            start, current = i, kind
    if current is not None:
        yield (start, len(labels) - 1, current)


def evaluate(gold: Sequence[str], predicted: Sequence[str]) -> Dict[str, Any]:
    """
    Scores predicted labels against gold labels.

    Break positions (empty gold label) are excluded from token accuracy.
    Chunk scores follow the CoNLL-2000 convention: a predicted chunk counts
    only if its span and type both match a gold chunk.

    Returns:
        A dict with ``token_accuracy``, ``precision``, ``recall``, ``f1``
        and the raw counts.

    Raises:
        ValueError: If the sequences differ in length.
    """
    if len(gold) != len(predicted):
        raise ValueError(f"Got {len(gold)} gold labels but {len(predicted)} predicted labels.")

    tokens = [(g, p) for g, p in zip(gold, predicted) if g != ""]
    correct_tokens = sum(1 for g, p in tokens if g == p)

    gold_chunks: Set[Chunk] = set(iter_chunks(gold))
    pred_chunks: Set[Chunk] = set(iter_chunks(predicted))
    correct_chunks = len(gold_chunks & pred_chunks)

    precision = correct_chunks / len(pred_chunks) if pred_chunks else 0.0
    recall = correct_chunks / len(gold_chunks) if gold_chunks else 0.0
    f1 = 2 * precision * recall / (precision + recall) if precision + recall else 0.0

    return {
        "token_accuracy": correct_tokens / len(tokens) if tokens else 0.0,
        "precision": precision,
        "recall": recall,
        "f1": f1,
        "tokens": len(tokens),
        "gold_chunks": len(gold_chunks),
        "predicted_chunks": len(pred_chunks),
        "correct_chunks": correct_chunks,
    }
