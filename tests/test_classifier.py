from __future__ import annotations

import json
from pathlib import Path

import pytest

from chunker.classifier import (
    CLASSIFIERS,
    LabelCodec,
    LogOddsClassifier,
    SvmClassifier,
    log_odds,
    to_sparse_matrix,
)
from chunker.errors import ArtifactIOError, ArtifactNotFoundError, MalformedArtifactError
from chunker.types import FeatureEntry


def _one_hot(*indices: int) -> list[FeatureEntry]:
    return [FeatureEntry(i, 1.0) for i in indices]


NUMBER_VECTORS = [_one_hot(0), _one_hot(1), _one_hot(2), _one_hot(3), _one_hot(4)]
NUMBER_LABELS = ["1", "2", "3", "1", "2"]


def _write_label_map(directory: Path, prefix: str = "m") -> None:
    codec = LabelCodec()
    for label in NUMBER_LABELS:
        codec.encode(label)
    codec.save(directory, prefix)


def test_label_codec_assigns_codes_from_one() -> None:
    codec = LabelCodec()

    assert codec.encode("B-NP") == 1
    assert codec.encode("I-NP") == 2
    assert codec.encode("B-NP") == 1
    assert codec.decode(2) == "I-NP"
    assert len(codec) == 2


def test_label_codec_unknown_code() -> None:
    with pytest.raises(MalformedArtifactError):
        LabelCodec().decode(7)


def test_label_codec_round_trip(tmp_path: Path) -> None:
    codec = LabelCodec()
    for label in ["B-NP", "I-NP", "O"]:
        codec.encode(label)
    codec.save(tmp_path, "m")

    loaded = LabelCodec()
    loaded.load(tmp_path, "m")

    assert dict(loaded.items()) == {"B-NP": 1, "I-NP": 2, "O": 3}
    assert loaded.encode("B-VP") == 4


def test_label_codec_rejects_duplicate_codes(tmp_path: Path) -> None:
    (tmp_path / "m.label-map").write_text(
        json.dumps({"count": 2, "records": [["a", 1], ["b", 1]]}), encoding="utf-8"
    )

    with pytest.raises(MalformedArtifactError):
        LabelCodec().load(tmp_path, "m")


def test_sparse_matrix_sums_duplicates_and_drops_out_of_range() -> None:
    X = to_sparse_matrix([_one_hot(0, 0, 2), _one_hot(5)], n_features=3)

    assert X.shape == (2, 3)
    assert X[0, 0] == 2.0
    assert X[0, 2] == 1.0
    assert X[1].nnz == 0


def test_log_odds_is_symmetric() -> None:
    assert log_odds(0.5) == pytest.approx(0.0)
    assert log_odds(0.8) == pytest.approx(-log_odds(0.2))


@pytest.mark.parametrize("classifier_cls", [SvmClassifier, LogOddsClassifier])
def test_remembers_single_token_rows(classifier_cls) -> None:
    clf = classifier_cls()
    clf.train(NUMBER_VECTORS, NUMBER_LABELS, n_features=5)

    assert clf.predict(_one_hot(2)) == "3"
    assert clf.predict(_one_hot(4)) == "2"


@pytest.mark.parametrize("classifier_cls", [SvmClassifier, LogOddsClassifier])
def test_save_and_load_round_trip(tmp_path: Path, classifier_cls) -> None:
    clf = classifier_cls()
    clf.train(NUMBER_VECTORS, NUMBER_LABELS, n_features=5)
    clf.save(tmp_path, "m")

    loaded = classifier_cls()
    loaded.load(tmp_path, "m")

    for i in range(5):
        assert loaded.predict(_one_hot(i)) == clf.predict(_one_hot(i))
    assert (tmp_path / f"m{classifier_cls.model_suffix}").exists()
    assert (tmp_path / "m.label-map").exists()


@pytest.mark.parametrize("classifier_cls", [SvmClassifier, LogOddsClassifier])
def test_predict_before_training(classifier_cls) -> None:
    with pytest.raises(ValueError):
        classifier_cls().predict(_one_hot(0))


@pytest.mark.parametrize("classifier_cls", [SvmClassifier, LogOddsClassifier])
def test_train_rejects_empty_or_mismatched_batches(classifier_cls) -> None:
    with pytest.raises(ValueError):
        classifier_cls().train([], [], n_features=0)
    with pytest.raises(ValueError):
        classifier_cls().train([_one_hot(0)], ["a", "b"], n_features=1)


def test_svm_with_a_single_label_predicts_it() -> None:
    clf = SvmClassifier()
    clf.train([_one_hot(0), _one_hot(1)], ["O", "O"], n_features=2)

    assert clf.predict(_one_hot(1)) == "O"
    assert clf.predict([]) == "O"


def test_svm_load_missing_model(tmp_path: Path) -> None:
    with pytest.raises(ArtifactNotFoundError):
        SvmClassifier().load(tmp_path, "missing")


def test_svm_load_corrupt_model(tmp_path: Path) -> None:
    _write_label_map(tmp_path)
    (tmp_path / "m.svm-model").write_bytes(b"\x00not a pickle")

    with pytest.raises(MalformedArtifactError):
        SvmClassifier().load(tmp_path, "m")


def test_log_odds_prefers_feature_evidence_over_prior() -> None:
    clf = LogOddsClassifier(alpha=0.1)
    vectors = [_one_hot(0), _one_hot(0), _one_hot(0), _one_hot(1)]
    clf.train(vectors, ["O", "O", "O", "B-NP"], n_features=2)

    assert clf.predict(_one_hot(1)) == "B-NP"
    assert clf.predict(_one_hot(0)) == "O"
    # No evidence: the prior decides.
    assert clf.predict([]) == "O"


def test_log_odds_load_rejects_malformed_json(tmp_path: Path) -> None:
    _write_label_map(tmp_path)
    (tmp_path / "m.log-odds-model").write_text(json.dumps({"alpha": 0.1}), encoding="utf-8")

    with pytest.raises(MalformedArtifactError):
        LogOddsClassifier().load(tmp_path, "m")


def test_classifiers_are_registered() -> None:
    assert isinstance(CLASSIFIERS.create("svm"), SvmClassifier)
    assert isinstance(CLASSIFIERS.create("log-odds"), LogOddsClassifier)
    assert CLASSIFIERS.tag_of(LogOddsClassifier()) == "log-odds"


@pytest.mark.parametrize("classifier_cls", [SvmClassifier, LogOddsClassifier])
def test_model_path_that_is_a_directory_is_an_io_error(tmp_path: Path, classifier_cls) -> None:
    clf = classifier_cls()
    clf.train(NUMBER_VECTORS, NUMBER_LABELS, n_features=5)
    (tmp_path / f"m{classifier_cls.model_suffix}").mkdir()

    with pytest.raises(ArtifactIOError):
        clf.save(tmp_path, "m")

    _write_label_map(tmp_path)
    with pytest.raises(ArtifactIOError):
        classifier_cls().load(tmp_path, "m")


def test_failed_load_keeps_the_previous_model(tmp_path: Path) -> None:
    other = LogOddsClassifier()
    other.train([_one_hot(0), _one_hot(1)], ["x", "y"], n_features=2)
    other.save(tmp_path, "m")
    (tmp_path / "m.label-map").unlink()

    clf = LogOddsClassifier()
    clf.train(NUMBER_VECTORS, NUMBER_LABELS, n_features=5)
    prior, codec = dict(clf.prior), clf.codec

    with pytest.raises(ArtifactNotFoundError):
        clf.load(tmp_path, "m")

    assert clf.prior == prior
    assert clf.codec is codec
    assert clf.predict(_one_hot(2)) == "3"
