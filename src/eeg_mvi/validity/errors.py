"""Error taxonomy for the MVI engine.

Fatal conditions are raised as exceptions and abort an analysis without
partial results. Non-fatal conditions are never raised: they are attached to
the affected record as `Diagnostic` entries (see `records.py`) using the
codes defined here.
"""

from __future__ import annotations


class MVIError(Exception):
    """Base class for every error raised by the engine."""


class InvalidSignalError(MVIError, ValueError):
    """Signal matrix or sampling rate is malformed (non-2-D, non-finite, sfreq <= 0...)."""


class InsufficientLengthError(MVIError, ValueError):
    """The recording is shorter than a single analysis window."""

    def __init__(self, n_samples: int, window_samples: int):
        self.n_samples = int(n_samples)
        self.window_samples = int(window_samples)
        super().__init__(
            f"Signal has {self.n_samples} samples, fewer than one window ({self.window_samples} samples)"
        )


class ConfigurationError(MVIError, ValueError):
    """Invalid analysis configuration (window geometry, bands, scales)."""


class AnalysisCancelled(MVIError):
    """Raised when the caller's cancellation event is set between windows."""


# Non-fatal diagnostic codes
UNRELIABLE_DIMENSION = "UnreliableDimensionEstimate"
FILTER_DESIGN_FAILURE = "FilterDesignFailure"
FILTER_SKIPPED = "FilterSkipped"
DEGENERATE_CORRELATION = "DegenerateCorrelation"
