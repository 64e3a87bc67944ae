"""Manages the loading and validation of chunker configuration.

This module defines the `ChunkerConfig` dataclass, a typed container for
the settings that shape a freshly built chunker: the encoder's window and
label-history sizes, which classifier implementation to train and its
hyperparameters, the encoding of data files, and verbosity. Settings are read
from a YAML file by `load_config`; `default_config` returns the built-in
defaults without touching the filesystem.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict

import yaml

from .encoder import DEFAULT_LABEL_HISTORY_SIZE, DEFAULT_WINDOW_SIZE

__all__ = ["ChunkerConfig", "default_config", "load_config"]

DEFAULT_CLASSIFIER = "svm"
DEFAULT_DATA_FILE_ENCODING = "UTF-8"


@dataclass
class ChunkerConfig:
    """
    A typed configuration object for building a chunker.

    Attributes:
        window_size: Rows of context on each side of the target row.
        label_history_size: Number of preceding labels encoded as features.
        classifier: Registry tag of the classifier implementation
                    (``"svm"`` or ``"log-odds"``).
        data_file_encoding: Character encoding of input data files.
        verbose: When true, training and chunking print progress.
        svm: Overrides for the SVM hyperparameters (``C``, ``tol``,
             ``cache_size``, ``shrinking``).
        log_odds: Overrides for the log-odds model (``alpha``).
    """
    window_size: int = DEFAULT_WINDOW_SIZE
    label_history_size: int = DEFAULT_LABEL_HISTORY_SIZE
    classifier: str = DEFAULT_CLASSIFIER
    data_file_encoding: str = DEFAULT_DATA_FILE_ENCODING
    verbose: bool = False
    svm: Dict[str, Any] = field(default_factory=dict)
    log_odds: Dict[str, Any] = field(default_factory=dict)


def default_config() -> ChunkerConfig:
    return ChunkerConfig()


def load_config(path: str = "config.yaml") -> ChunkerConfig:
    """
    Loads a YAML configuration file into a `ChunkerConfig`.

    Keys missing from the file fall back to the defaults. An empty file
    yields the default configuration.

    Args:
        path: The path to the YAML file.

    Returns:
        A fully populated `ChunkerConfig`.

    Raises:
        FileNotFoundError: If the file cannot be found.
        ValueError: If the YAML cannot be parsed or a value is invalid.
        TypeError: If the root of the YAML file is not a mapping.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            y = yaml.safe_load(f)
    except FileNotFoundError:
        raise FileNotFoundError(f"Configuration file not found at: {path}")
    except yaml.YAMLError as e:
        raise ValueError(f"Error parsing YAML file at {path}: {e}")

    if y is None:
        y = {}
    if not isinstance(y, dict):
        raise TypeError(f"Configuration file {path} must be a dictionary.")

    svm = y.get("svm") or {}
    log_odds = y.get("log_odds") or {}
    if not isinstance(svm, dict) or not isinstance(log_odds, dict):
        raise TypeError(f"The 'svm' and 'log_odds' sections of {path} must be dictionaries.")

    cfg = ChunkerConfig(
        window_size=int(y.get("window_size", DEFAULT_WINDOW_SIZE)),
        label_history_size=int(y.get("label_history_size", DEFAULT_LABEL_HISTORY_SIZE)),
        classifier=str(y.get("classifier", DEFAULT_CLASSIFIER)),
        data_file_encoding=str(y.get("data_file_encoding", DEFAULT_DATA_FILE_ENCODING)),
        verbose=bool(y.get("verbose", False)),
        svm=dict(svm),
        log_odds=dict(log_odds),
    )
    if cfg.window_size < 0 or cfg.label_history_size < 0:
        raise ValueError(f"window_size and label_history_size in {path} must be non-negative.")
    return cfg
