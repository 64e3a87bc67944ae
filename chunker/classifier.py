"""Classifiers that turn encoded feature vectors into labels.

The chunker treats the classifier as a capability with a narrow contract:
batch training on a list of sparse vectors with their string labels,
prediction of a single label from a sparse vector, and save/load of its own
state under a directory and filename prefix.

Labels are mapped to positive integer codes by a `LabelCodec` before they
reach the underlying model, and the codec is saved next to the model in a
``.label-map`` file. Two interchangeable implementations are registered:

-   ``svm``: a linear support vector classifier (scikit-learn's ``SVC``,
    which wraps LIBSVM) configured with the LIBSVM command-line defaults.
-   ``log-odds``: a count-based model that scores each label by summing
    smoothed log-odds weights of the active features.
"""
from __future__ import annotations
import json
import math
import pickle
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import joblib
import numpy as np
import pandas as pd
from scipy.sparse import csr_matrix
from sklearn.svm import SVC

from .artifacts import Registry, artifact_path, read_records, write_records
from .errors import ArtifactIOError, ArtifactNotFoundError, MalformedArtifactError
from .types import FeatureEntry

__all__ = ["LabelCodec", "Classifier", "SvmClassifier", "LogOddsClassifier", "CLASSIFIERS", "log_odds"]

LABEL_MAP_FILE_EXTENSION = ".label-map"

CLASSIFIERS: Registry["Classifier"] = Registry("classifier")

Vector = Sequence[FeatureEntry]


def log_odds(p: float, eps: float = 1e-6) -> float:
    """Converts a probability to log-odds, clamping away from 0 and 1."""
    p = min(1 - eps, max(eps, p))
    return math.log(p / (1 - p))


class LabelCodec:
    """
    Maps string labels to integer codes 1, 2, 3, ... in first-seen order.

    Like the feature dictionary, the mapping is append-only: a code is never
    reassigned, so retraining on top of a loaded model keeps old codes valid.
    """

    def __init__(self) -> None:
        self._codes: Dict[str, int] = {}
        self._labels: Dict[int, str] = {}

    def encode(self, label: str) -> int:
        code = self._codes.get(label)
        if code is None:
            code = len(self._codes) + 1
            self._codes[label] = code
            self._labels[code] = label
        return code

    def decode(self, code: int) -> str:
        try:
            return self._labels[int(code)]
        except KeyError:
            raise MalformedArtifactError(f"The classifier produced label code {code}, which has no label.") from None

    def __len__(self) -> int:
        return len(self._codes)

    def items(self):
        return self._codes.items()

    def save(self, directory: str | Path, prefix: str) -> None:
        write_records(artifact_path(directory, prefix, LABEL_MAP_FILE_EXTENSION), self._codes.items(), "label map")

    def load(self, directory: str | Path, prefix: str) -> None:
        path = artifact_path(directory, prefix, LABEL_MAP_FILE_EXTENSION)
        codes: Dict[str, int] = {}
        labels: Dict[int, str] = {}
        for label, code in read_records(path, (str, int), "label map"):
            if code < 1 or code in labels or label in codes:
                raise MalformedArtifactError(f"Invalid or duplicate label code {code} for '{label}' in {path}")
            codes[label] = code
            labels[code] = label
        self._codes = codes
        self._labels = labels


class Classifier:
    """
    Base class for classifiers.

    Subclasses implement `_fit`, `_predict_code`, `_save_model` and
    `_load_model`; label coding and the label-map file are handled here.

    Attributes:
        codec: The label <-> code table.
        model_suffix: File suffix of the implementation's native model file.
    """

    model_suffix = ".model"

    def __init__(self) -> None:
        self.codec = LabelCodec()

    @property
    def is_trained(self) -> bool:  # pragma: no cover - interface
        raise NotImplementedError

    def train(self, vectors: Sequence[Vector], labels: Sequence[str], n_features: int) -> None:
        """
        Trains the model on a complete batch.

        Args:
            vectors: One sparse vector per training row.
            labels: The string label of each vector.
            n_features: The size of the feature space (the dictionary size).

        Raises:
            ValueError: If the batch is empty or the lists differ in length.
        """
        if not vectors:
            raise ValueError("Cannot train a classifier on an empty batch.")
        if len(vectors) != len(labels):
            raise ValueError(f"Got {len(vectors)} vectors but {len(labels)} labels.")
        codes = [self.codec.encode(label) for label in labels]
        self._fit(vectors, codes, n_features)

    def predict(self, entries: Vector) -> str:
        if not self.is_trained:
            raise ValueError("The classifier has not been trained or loaded.")
        return self.codec.decode(self._predict_code(entries))

    def save(self, directory: str | Path, prefix: str) -> None:
        if not self.is_trained:
            raise ValueError("Cannot save a classifier that has not been trained.")
        self._save_model(artifact_path(directory, prefix, self.model_suffix))
        self.codec.save(directory, prefix)

    def load(self, directory: str | Path, prefix: str) -> None:
        """Loads the label map, then the model. Nothing changes if either fails."""
        codec = LabelCodec()
        codec.load(directory, prefix)
        self._load_model(artifact_path(directory, prefix, self.model_suffix))
        self.codec = codec

    def _fit(self, vectors: Sequence[Vector], codes: List[int], n_features: int) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def _predict_code(self, entries: Vector) -> int:  # pragma: no cover - interface
        raise NotImplementedError

    def _save_model(self, path: Path) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def _load_model(self, path: Path) -> None:  # pragma: no cover - interface
        raise NotImplementedError


def to_sparse_matrix(vectors: Sequence[Vector], n_features: int) -> csr_matrix:
    """
    Stacks sparse vectors into a CSR matrix of shape (len(vectors), n_features).

    Duplicate indices within a vector are summed. Indices outside the
    feature space are dropped.
    """
    rows: List[int] = []
    cols: List[int] = []
    data: List[float] = []
    for i, vec in enumerate(vectors):
        for entry in vec:
            if 0 <= entry.index < n_features:
                rows.append(i)
                cols.append(entry.index)
                data.append(entry.value)
    return csr_matrix(
        (np.asarray(data, dtype=float), (np.asarray(rows, dtype=int), np.asarray(cols, dtype=int))),
        shape=(len(vectors), max(1, n_features)),
    )


@CLASSIFIERS.register("svm")
class SvmClassifier(Classifier):
    """
    A linear C-SVC using the LIBSVM command-line defaults.

    When the training batch contains a single label there is nothing to
    separate; the classifier then always predicts that label.
    """

    model_suffix = ".svm-model"

    def __init__(self, C: float = 1.0, tol: float = 0.001, cache_size: float = 100.0, shrinking: bool = True):
        super().__init__()
        self.params: Dict[str, Any] = {"C": C, "tol": tol, "cache_size": cache_size, "shrinking": shrinking}
        self.model: Optional[SVC] = None
        self.n_features = 0
        self.constant_code: Optional[int] = None

    @property
    def is_trained(self) -> bool:
        return self.model is not None or self.constant_code is not None

    def _fit(self, vectors: Sequence[Vector], codes: List[int], n_features: int) -> None:
        self.n_features = n_features
        if len(set(codes)) == 1:
            self.model = None
            self.constant_code = codes[0]
            return
        X = to_sparse_matrix(vectors, n_features)
        model = SVC(kernel="linear", **self.params)
        model.fit(X, np.asarray(codes, dtype=int))
        self.model = model
        self.constant_code = None

    def _predict_code(self, entries: Vector) -> int:
        if self.model is None:
            return int(self.constant_code)
        X = to_sparse_matrix([entries], self.n_features)
        return int(self.model.predict(X)[0])

    def _save_model(self, path: Path) -> None:
        state = {
            "model": self.model,
            "n_features": self.n_features,
            "constant_code": self.constant_code,
            "params": self.params,
        }
        try:
            joblib.dump(state, path)
        except FileNotFoundError as e:
            raise ArtifactNotFoundError(f"The SVM model file could not be created at: {path}") from e
        except OSError as e:
            raise ArtifactIOError(f"Could not save the SVM model to {path}: {e}") from e

    def _load_model(self, path: Path) -> None:
        try:
            state = joblib.load(path)
        except FileNotFoundError as e:
            raise ArtifactNotFoundError(f"The SVM model file was not found at: {path}") from e
        except (EOFError, pickle.UnpicklingError, ValueError, KeyError, IndexError, AttributeError, ImportError) as e:
            raise MalformedArtifactError(f"The SVM model file {path} is corrupt: {e}") from e
        except OSError as e:
            raise ArtifactIOError(f"Could not load the SVM model from {path}: {e}") from e

        if not isinstance(state, dict) or not {"model", "n_features", "constant_code"} <= state.keys():
            raise MalformedArtifactError(f"The SVM model file {path} does not hold an SVM model.")
        if state["model"] is None and state["constant_code"] is None:
            raise MalformedArtifactError(f"The SVM model file {path} holds an untrained model.")
        try:
            n_features = int(state["n_features"])
        except (TypeError, ValueError) as e:
            raise MalformedArtifactError(f"The SVM model file {path} has an invalid feature width: {e}") from e
        self.model = state["model"]
        self.n_features = n_features
        self.constant_code = state["constant_code"]
        self.params = dict(state.get("params", self.params))


@CLASSIFIERS.register("log-odds")
class LogOddsClassifier(Classifier):
    """
    A count-based classifier over binary features.

    For every feature index and label code the model stores the log-odds of
    the label given the feature, with additive smoothing ``alpha``. A vector
    is scored per label by summing the label's prior log-odds and the weights
    of its distinct active features; the highest score wins, ties going to
    the lowest code.
    """

    model_suffix = ".log-odds-model"

    def __init__(self, alpha: float = 0.1):
        super().__init__()
        self.alpha = alpha
        self.prior: Dict[int, float] = {}
        self.weights: Dict[int, Dict[int, float]] = {}

    @property
    def is_trained(self) -> bool:
        return bool(self.prior)

    def _fit(self, vectors: Sequence[Vector], codes: List[int], n_features: int) -> None:
        outcomes = sorted(set(codes))

        class_counts = pd.Series(codes).value_counts()
        total = float(len(codes))
        self.prior = {code: log_odds(float(class_counts.get(code, 0)) / total) for code in outcomes}

        pairs = [
            (index, code)
            for vec, code in zip(vectors, codes)
            for index in {entry.index for entry in vec}
        ]
        self.weights = {}
        if not pairs:
            return

        df = pd.DataFrame(pairs, columns=["feature", "outcome"])
        counts = df.groupby(["feature", "outcome"]).size().unstack(fill_value=0).astype(float) + self.alpha
        for out in outcomes:
            if out not in counts.columns:
                counts[out] = self.alpha
        probs = counts.div(counts.sum(axis=1), axis=0)
        for feature, row in probs.iterrows():
            self.weights[int(feature)] = {int(out): log_odds(float(row[out])) for out in outcomes}

    def _predict_code(self, entries: Vector) -> int:
        scores = dict(self.prior)
        for index in {entry.index for entry in entries}:
            for code, w in self.weights.get(index, {}).items():
                scores[code] += w
        return max(sorted(scores), key=lambda code: scores[code])

    def _save_model(self, path: Path) -> None:
        state = {
            "alpha": self.alpha,
            "prior": {str(code): w for code, w in self.prior.items()},
            "weights": {
                str(feature): {str(code): w for code, w in ws.items()}
                for feature, ws in self.weights.items()
            },
        }
        try:
            with open(path, "w", encoding="utf-8") as f:
                json.dump(state, f, indent=2)
        except FileNotFoundError as e:
            raise ArtifactNotFoundError(f"The log-odds model file could not be created at: {path}") from e
        except OSError as e:
            raise ArtifactIOError(f"Could not save the log-odds model to {path}: {e}") from e

    def _load_model(self, path: Path) -> None:
        try:
            with open(path, "r", encoding="utf-8") as f:
                state = json.load(f)
        except FileNotFoundError as e:
            raise ArtifactNotFoundError(f"The log-odds model file was not found at: {path}") from e
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise MalformedArtifactError(f"The log-odds model file {path} is not valid JSON: {e}") from e
        except OSError as e:
            raise ArtifactIOError(f"Could not load the log-odds model from {path}: {e}") from e

        try:
            prior = {int(code): float(w) for code, w in state["prior"].items()}
            weights = {
                int(feature): {int(code): float(w) for code, w in ws.items()}
                for feature, ws in state["weights"].items()
            }
            alpha = float(state["alpha"])
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise MalformedArtifactError(f"The log-odds model file {path} is malformed: {e}") from e
        if not prior:
            raise MalformedArtifactError(f"The log-odds model file {path} holds an untrained model.")
        if any(code not in prior for ws in weights.values() for code in ws):
            raise MalformedArtifactError(f"The log-odds model file {path} references unknown label codes.")
        self.alpha = alpha
        self.prior = prior
        self.weights = weights
