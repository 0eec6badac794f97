"""Entropy-scaling proxy for the Renyi information dimension.

The window is treated as a point cloud (channels are coordinates, samples are
points). For a ladder of quantization widths eps the cloud is binned by
flooring coordinates to multiples of eps, the Shannon entropy of the occupied
bins is measured, and the slope of entropy against ln(1/eps) is the estimate.

Conventions (fixed for the whole package so estimates stay comparable):
  - entropy in nats, regressed against the natural log of 1/eps;
  - "log" spacing: n_scales widths log-spaced over [0.01, 1] x median channel std;
  - "linear" spacing: n_scales widths linearly spaced over [0.1, 2] x global std.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

# tiny floor to avoid division by zero
EPS = 1e-12

# floor applied to every estimate: a one-hot model needs at least one dimension
MIN_DIMENSION = 1.0


@dataclass(frozen=True)
class DimensionEstimate:
    value: Optional[float]
    slope: float
    scales: np.ndarray
    entropies: np.ndarray

    @property
    def reliable(self) -> bool:
        return self.value is not None

    def resolved(self, default: float = MIN_DIMENSION) -> float:
        return float(self.value) if self.value is not None else float(default)


@dataclass(frozen=True)
class GlobalDimensionEstimate:
    value: Optional[float]
    slopes: np.ndarray
    n_windows: int

    @property
    def reliable(self) -> bool:
        return self.value is not None

    def resolved(self, default: float = MIN_DIMENSION) -> float:
        return float(self.value) if self.value is not None else float(default)


def standardize(points: np.ndarray) -> np.ndarray:
    """Zero-mean, unit-std per channel."""
    centered = points - points.mean(axis=1, keepdims=True)
    return centered / (centered.std(axis=1, ddof=1, keepdims=True) + EPS)


def quantization_scales(points: np.ndarray, n_scales: int = 8, spacing: str = "log") -> np.ndarray:
    """
    Absolute bin widths for a standardized window.

    Returns an empty array when the reference spread is zero (flat window).
    """
    if spacing == "log":
        ref = float(np.median(points.std(axis=1, ddof=1)))
        rel = np.logspace(-2, 0, n_scales)
    elif spacing == "linear":
        ref = float(points.std(ddof=1))
        rel = np.linspace(0.1, 2.0, n_scales)
    else:
        raise ValueError(f"unknown scale spacing {spacing!r}")
    if not np.isfinite(ref) or ref <= EPS:
        return np.zeros(0, dtype=float)
    return rel * ref


def quantized_entropy(points: np.ndarray, eps: float) -> float:
    """Shannon entropy (nats) of the distribution of floor(points / eps) sample vectors."""
    q = np.floor(points / eps).astype(np.int64)
    _, counts = np.unique(q, axis=1, return_counts=True)
    p = counts / counts.sum()
    return float(-np.sum(p * np.log(p)))


def estimate_dimension(
    window: np.ndarray,
    n_scales: int = 8,
    spacing: str = "log",
    entropy_tol: float = 1e-3,
    standardized: bool = False,
) -> DimensionEstimate:
    """
    Estimate the information dimension of one (n_channels, n_samples) window.

    Args:
        window: centered signal block.
        n_scales: number of quantization widths.
        spacing: "log" or "linear" width ladder (see module docstring).
        entropy_tol: minimum entropy spread (nats) across scales for a usable fit.
        standardized: the window is already a slice of a standardized recording;
            bin it as is instead of re-centering and re-scaling it.

    Returns:
        DimensionEstimate whose value is the fitted slope floored at 1, or None
        when entropy does not vary measurably across scales.
    """
    points = np.asarray(window, dtype=float)
    if not standardized:
        points = standardize(points)
    scales = quantization_scales(points, n_scales=n_scales, spacing=spacing)
    if scales.size < 2:
        return DimensionEstimate(None, float("nan"), scales, np.zeros(0, dtype=float))

    entropies = np.array([quantized_entropy(points, eps) for eps in scales], dtype=float)
    if np.ptp(entropies) < entropy_tol:
        return DimensionEstimate(None, float("nan"), scales, entropies)

    slope = float(np.polyfit(np.log(1.0 / scales), entropies, 1)[0])
    return DimensionEstimate(max(MIN_DIMENSION, slope), slope, scales, entropies)


def estimate_global_dimension(
    data: np.ndarray,
    window_samples: int,
    step_samples: int,
    n_scales: int = 8,
    spacing: str = "log",
    entropy_tol: float = 1e-3,
) -> GlobalDimensionEstimate:
    """
    Recording-level estimate: median of the reliable per-sub-window slopes.

    The recording is standardized once; sub-windows are binned on that common
    grid without further centering.

    The median resists outlier sub-windows. The result is floored at 1 and is
    None (unreliable) when no sub-window produced a usable fit.
    """
    points = standardize(np.asarray(data, dtype=float))
    n_samples = points.shape[1]
    slopes = []
    n_windows = 0
    for start in range(0, n_samples - window_samples + 1, step_samples):
        n_windows += 1
        est = estimate_dimension(
            points[:, start : start + window_samples],
            n_scales=n_scales,
            spacing=spacing,
            entropy_tol=entropy_tol,
            standardized=True,
        )
        if est.reliable:
            slopes.append(est.slope)
    slopes_arr = np.array(slopes, dtype=float)
    if slopes_arr.size == 0:
        return GlobalDimensionEstimate(None, slopes_arr, n_windows)
    return GlobalDimensionEstimate(max(MIN_DIMENSION, float(np.median(slopes_arr))), slopes_arr, n_windows)
