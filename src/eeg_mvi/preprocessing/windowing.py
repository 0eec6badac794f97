"""
Sliding-window planning over a centered multichannel signal.

Provides:
  - center_signal(data, mode): per-channel or per-sample (spatial) mean removal
  - window_count(n_samples, window_samples, step_samples): closed-form count
  - WindowPlan: restartable, ordered iterable of AnalysisWindow slices

Windows overlap freely; the trailing partial window that does not fit the
stride is dropped (floor semantics).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

import numpy as np

from ..utils.logger import get_logger
from ..validity.errors import ConfigurationError, InsufficientLengthError

logger = get_logger(__name__)


def center_signal(data: np.ndarray, mode: str = "channel") -> np.ndarray:
    """
    Return a centered copy of a (n_channels, n_samples) matrix.

    Args:
        data: signal matrix.
        mode: "channel" removes each channel's temporal mean; "spatial" removes
            the mean across channels at every sample (average reference).
    """
    if mode == "channel":
        return data - data.mean(axis=1, keepdims=True)
    if mode == "spatial":
        return data - data.mean(axis=0, keepdims=True)
    raise ConfigurationError(f"unknown centering mode {mode!r}")


def window_count(n_samples: int, window_samples: int, step_samples: int) -> int:
    """
    Number of full windows: floor((T - W) / S) + 1.

    Raises:
        InsufficientLengthError: if T < W.
        ConfigurationError: if W or S is not positive.
    """
    if window_samples <= 0 or step_samples <= 0:
        raise ConfigurationError("window and step must be positive sample counts")
    if n_samples < window_samples:
        raise InsufficientLengthError(n_samples, window_samples)
    return (n_samples - window_samples) // step_samples + 1


@dataclass(frozen=True)
class AnalysisWindow:
    """Contiguous sample range [start, stop) over the signal."""

    index: int
    start: int
    stop: int

    def start_time(self, sfreq: float) -> float:
        return self.start / float(sfreq)

    def slice(self, data: np.ndarray) -> np.ndarray:
        return data[:, self.start : self.stop]


@dataclass(frozen=True)
class WindowPlan:
    """Uniform-stride window geometry; iterating it yields AnalysisWindow objects in order."""

    n_samples: int
    window_samples: int
    step_samples: int

    @classmethod
    def from_seconds(cls, n_samples: int, sfreq: float, window_sec: float, step_sec: float) -> "WindowPlan":
        win_samps = int(round(window_sec * sfreq))
        step_samps = int(round(step_sec * sfreq))
        plan = cls(int(n_samples), win_samps, step_samps)
        # validates geometry eagerly
        n = len(plan)
        logger.debug("Window plan: %d windows of %d samples, step %d", n, win_samps, step_samps)
        return plan

    def __len__(self) -> int:
        return window_count(self.n_samples, self.window_samples, self.step_samples)

    def __iter__(self) -> Iterator[AnalysisWindow]:
        for idx in range(len(self)):
            start = idx * self.step_samples
            yield AnalysisWindow(idx, start, start + self.window_samples)

    def start_times(self, sfreq: float) -> np.ndarray:
        return np.arange(len(self), dtype=float) * self.step_samples / float(sfreq)
