"""The chunker: an encoder and a classifier composed over whole sequences.

`Chunker.train` encodes every labeled row and hands the complete batch to
the classifier once. `Chunker.chunk` walks an unlabeled sequence row by row,
predicting a label for each row and feeding it back into the encoder's label
history so later rows see the chunker's own earlier decisions.

A trained chunker is saved as a set of files sharing a directory and a
filename prefix:

    <prefix>.classifier     tag of the classifier implementation
    <prefix>.fvgen          tag of the encoder implementation
    <prefix>.feat-dic-cls   tag of the dictionary + window settings
    <prefix>.feat-dict      the feature dictionary table
    <prefix>.label-map      the classifier's label codes
    <prefix>.svm-model      the classifier's own model file (suffix varies)

Loading reads the tags back and builds matching implementations through
the registries, so a saved model can be loaded without knowing in advance
which encoder or classifier produced it.
"""
from __future__ import annotations
from pathlib import Path
from typing import List, Optional, Sequence

from tqdm import tqdm

from .artifacts import artifact_path, read_tag, write_tag
from .classifier import CLASSIFIERS, Classifier, LogOddsClassifier, SvmClassifier
from .config import ChunkerConfig
from .data_source import read_data_file
from .dictionary import HashMapFeatureDictionary
from .encoder import ENCODERS, FeatureVectorEncoder, WindowFeatureEncoder, default_encoder
from .errors import ArtifactIOError
from .types import BREAK_ROW, FeatureEntry, Row

__all__ = ["Chunker", "build_chunker"]

CLASSIFIER_FILE_EXTENSION = ".classifier"
FEAT_VEC_GENERATOR_FILE_EXTENSION = ".fvgen"


class Chunker:
    """
    Trains a sequence labeler and applies it to new sequences.

    An instance owns mutable state (the feature dictionary and label
    history) and must not be used from several threads at once.

    Attributes:
        classifier: The classifier capability. Defaults to a linear SVM.
        encoder: The feature vector encoder. Defaults to a window encoder
                 with window size 2 and label history size 2.
        verbose: When true, print progress messages and progress bars.
    """

    def __init__(
        self,
        classifier: Optional[Classifier] = None,
        encoder: Optional[FeatureVectorEncoder] = None,
        verbose: bool = False,
    ):
        self.classifier = classifier if classifier is not None else SvmClassifier()
        self.encoder = encoder if encoder is not None else default_encoder()
        self.verbose = verbose

    def _log(self, message: str) -> None:
        if self.verbose:
            print(message)

    def train(self, rows: Sequence[Row]) -> None:
        """
        Trains the chunker on labeled rows.

        The last attribute of every non-break row is its label. Break rows
        are skipped. All vectors are collected first and the classifier is
        trained once on the whole batch.

        Raises:
            ValueError: If ``rows`` holds no labeled row.
        """
        vectors: List[List[FeatureEntry]] = []
        labels: List[str] = []
        for i in tqdm(range(len(rows)), desc="Encoding Rows", disable=not self.verbose):
            fv = self.encoder.encode_with_label(rows, i)
            if fv is None:
                continue
            vectors.append(fv.entries)
            labels.append(fv.label)

        if not vectors:
            raise ValueError("No labeled rows found in the training data.")

        self._log(
            f"[TRAIN] Training on {len(vectors)} rows with {self.encoder.feature_count} features "
            f"and {len(set(labels))} labels..."
        )
        self.classifier.train(vectors, labels, self.encoder.feature_count)
        self._log("[TRAIN] Training complete.")

    def train_file(self, path: str | Path, encoding: str = "UTF-8") -> None:
        """Reads a labeled CoNLL-style data file and trains on it."""
        self._log(f"[TRAIN] Reading training data from {path}...")
        self.train(read_data_file(path, encoding))

    def chunk(self, rows: Sequence[Row]) -> List[str]:
        """
        Labels every row of an unlabeled sequence.

        Returns:
            One label per input row, in order. Break rows get "".
        """
        labels: List[str] = []
        try:
            for i in tqdm(range(len(rows)), desc="Chunking", disable=not self.verbose):
                fv = self.encoder.encode_no_label(rows, i)
                if fv is None:
                    labels.append("")
                    continue
                label = self.classifier.predict(fv.entries)
                labels.append(label)
                self.encoder.add_result(label)
        finally:
            # Encoding a lone break clears the label history for the next sequence.
            self.encoder.encode_no_label([BREAK_ROW], 0)
        return labels

    def save_model(self, directory: str | Path, prefix: str) -> None:
        """
        Saves the classifier and the encoder under ``directory``/``prefix``.

        The directory is created when missing.

        Raises:
            ChunkerError: If any artifact cannot be written.
            ValueError: If the classifier has not been trained.
        """
        if not self.classifier.is_trained:
            raise ValueError("Cannot save a chunker whose classifier has not been trained.")

        directory = Path(directory)
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ArtifactIOError(f"Could not create the model directory {directory}: {e}") from e

        write_tag(
            artifact_path(directory, prefix, CLASSIFIER_FILE_EXTENSION),
            CLASSIFIERS.tag_of(self.classifier),
            "classifier settings",
        )
        self.classifier.save(directory, prefix)

        write_tag(
            artifact_path(directory, prefix, FEAT_VEC_GENERATOR_FILE_EXTENSION),
            ENCODERS.tag_of(self.encoder),
            "feature vector encoder settings",
        )
        self.encoder.save(directory, prefix)
        self._log(f"[MODEL] Saved model '{prefix}' to {directory}")

    def load_model(self, directory: str | Path, prefix: str) -> None:
        """
        Replaces the classifier and encoder with the ones saved under
        ``directory``/``prefix``.

        Nothing is replaced unless every artifact loads successfully.

        Raises:
            ArtifactNotFoundError: If an artifact file is missing.
            ArtifactIOError: If an artifact cannot be read.
            UnknownImplementationError: If a saved tag is not registered.
            MalformedArtifactError: If an artifact is corrupt.
        """
        (classifier_tag,) = read_tag(
            artifact_path(directory, prefix, CLASSIFIER_FILE_EXTENSION), (str,), "classifier settings"
        )
        classifier = CLASSIFIERS.create(classifier_tag)
        classifier.load(directory, prefix)

        (encoder_tag,) = read_tag(
            artifact_path(directory, prefix, FEAT_VEC_GENERATOR_FILE_EXTENSION),
            (str,),
            "feature vector encoder settings",
        )
        encoder = ENCODERS.create(encoder_tag)
        encoder.load(directory, prefix)

        self.classifier = classifier
        self.encoder = encoder
        self._log(f"[MODEL] Loaded model '{prefix}' from {directory} ({classifier_tag}, {encoder_tag})")


def build_chunker(cfg: ChunkerConfig) -> Chunker:
    """
    Builds a fresh, untrained chunker from a configuration.

    Raises:
        UnknownImplementationError: If ``cfg.classifier`` is not registered.
    """
    if cfg.classifier == "svm":
        classifier: Classifier = SvmClassifier(**cfg.svm)
    elif cfg.classifier == "log-odds":
        classifier = LogOddsClassifier(**cfg.log_odds)
    else:
        classifier = CLASSIFIERS.create(cfg.classifier)

    encoder = WindowFeatureEncoder(cfg.window_size, cfg.label_history_size, HashMapFeatureDictionary())
    return Chunker(classifier=classifier, encoder=encoder, verbose=cfg.verbose)
