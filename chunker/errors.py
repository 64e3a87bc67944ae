"""Exception types raised by the chunker.

Every failure surfaced by model persistence and data loading is a
`ChunkerError`. Subclasses name the kind of failure so callers can tell a
missing artifact apart from an I/O problem, an unregistered implementation
tag, or a corrupt file. The underlying exception, when there is one, is
chained and available as ``__cause__``.
"""
from __future__ import annotations

__all__ = [
    "ChunkerError",
    "ArtifactNotFoundError",
    "ArtifactIOError",
    "UnknownImplementationError",
    "MalformedArtifactError",
    "DataFileError",
]


class ChunkerError(RuntimeError):
    """Base class for all chunker errors."""


class ArtifactNotFoundError(ChunkerError):
    """An expected model artifact file does not exist."""


class ArtifactIOError(ChunkerError):
    """Reading, writing or closing a model artifact failed."""


class UnknownImplementationError(ChunkerError):
    """A persisted implementation tag is not registered with this process."""


class MalformedArtifactError(ChunkerError):
    """A persisted artifact is truncated or structurally corrupt."""


class DataFileError(ChunkerError):
    """A data file could not be found, decoded or read."""
