# pipeline/errors.py
from __future__ import annotations


class PipelineError(RuntimeError):
    """Base class for fatal pipeline errors."""


class ConfigurationError(PipelineError):
    """Bad or inconsistent inputs detected before (or at) first use."""


class AlphabetMismatchError(ConfigurationError):
    """Recognizer output width does not match the configured alphabet."""


class TimingInvariantError(PipelineError):
    """A timed stage ran but accumulated zero elapsed time."""
