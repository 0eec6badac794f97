"""Global field power (GFP) helpers."""

from __future__ import annotations

from typing import Iterable

import numpy as np

from ..preprocessing.windowing import AnalysisWindow


def global_field_power(data: np.ndarray) -> np.ndarray:
    """Spatial standard deviation across channels at every sample -> (n_samples,)."""
    return data.std(axis=0)


def windowed_gfp_variance(gfp: np.ndarray, windows: Iterable[AnalysisWindow]) -> np.ndarray:
    """Sample variance of the GFP series inside each window."""
    return np.array([float(np.var(gfp[w.start : w.stop], ddof=1)) for w in windows], dtype=float)
