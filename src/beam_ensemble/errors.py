"""Define the exception hierarchy shared by scorers, the ensemble factory and model artifacts."""

__all__ = [
    "AdvisoryMetadataMissingError",
    "ArtifactLoadError",
    "ComputationError",
    "ConfigurationError",
    "EnsembleError",
]


class EnsembleError(Exception):
    """Base class of all errors raised by `beam_ensemble`."""


class ConfigurationError(EnsembleError, ValueError):
    """Model or weight configuration is missing or malformed, e.g. mismatched list lengths."""


class ArtifactLoadError(EnsembleError, OSError):
    """A model artifact is missing, unreadable, or lacks the parameters a model requires."""


class AdvisoryMetadataMissingError(EnsembleError, KeyError):
    """A model artifact carries no embedded settings.

    Recoverable: callers are expected to fall back to externally supplied settings.
    """


class ComputationError(EnsembleError, RuntimeError):
    """A scoring step produced a malformed or non-finite distribution.

    Never retried, since repeating a deterministic forward computation cannot change the result.
    """
