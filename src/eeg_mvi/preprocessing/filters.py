"""Zero-phase band-pass filtering used for band variance attribution.

The engine never relies on catching a failed filter design. Instead
`BandPassPolicy` checks up front which strategy can be used for a given band
and window length:

  1. "butterworth": order-N Butterworth in second-order sections, applied
     forward-backward with `sosfiltfilt`. Requires valid band edges for the
     sampling rate, stable sections and a window longer than the filter padding.
  2. "fir": windowed-sinc FIR (`firwin`) whose order is capped to
     min(max_fir_order, (n - 1) // 3 - 1) so that `filtfilt` padding fits the
     window. Used when (1) is not available; a FilterDesignFailure diagnostic
     is attached.
  3. "none": the window is too short for any FIR order >= 1; the raw window is
     returned unchanged with a FilterSkipped diagnostic.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import numpy as np
from scipy.signal import butter, filtfilt, firwin, sosfiltfilt

from ..utils.logger import get_logger
from ..validity.errors import FILTER_DESIGN_FAILURE, FILTER_SKIPPED
from ..validity.records import Diagnostic, FrequencyBand

logger = get_logger(__name__)

# keeps FIR cutoffs strictly inside (0, nyquist)
_NYQUIST_MARGIN = 1e-3


@dataclass(frozen=True)
class FilterOutcome:
    data: np.ndarray
    strategy: str
    diagnostic: Optional[Diagnostic] = None


def _sos_padlen(sos: np.ndarray) -> int:
    """Edge padding used by scipy's sosfiltfilt with default arguments."""
    ntaps = 2 * sos.shape[0] + 1
    ntaps -= min(int((sos[:, 2] == 0).sum()), int((sos[:, 5] == 0).sum()))
    return 3 * ntaps


def _sos_is_stable(sos: np.ndarray) -> bool:
    for section in sos:
        poles = np.roots(section[3:])
        if poles.size and np.any(np.abs(poles) >= 1.0):
            return False
    return True


class BandPassPolicy:
    """Selects and applies the band-pass strategy for one sampling rate."""

    def __init__(self, sfreq: float, order: int = 4, max_fir_order: int = 128):
        self.sfreq = float(sfreq)
        self.nyquist = self.sfreq / 2.0
        self.order = int(order)
        self.max_fir_order = int(max_fir_order)
        self._sos_cache: Dict[Tuple[float, float], Optional[np.ndarray]] = {}

    def butterworth_sos(self, band: FrequencyBand) -> Optional[np.ndarray]:
        """Design (and cache) the Butterworth sections, or None when edges/stability rule it out."""
        key = band.edges
        if key in self._sos_cache:
            return self._sos_cache[key]
        low, high = key
        sos = None
        if 0.0 < low < high < self.nyquist:
            candidate = butter(self.order, [low / self.nyquist, high / self.nyquist], btype="band", output="sos")
            if np.all(np.isfinite(candidate)) and _sos_is_stable(candidate):
                sos = candidate
        self._sos_cache[key] = sos
        return sos

    def can_use_butterworth(self, band: FrequencyBand, n_samples: int) -> bool:
        sos = self.butterworth_sos(band)
        return sos is not None and n_samples > _sos_padlen(sos)

    def fir_order(self, n_samples: int) -> int:
        return min(self.max_fir_order, (int(n_samples) - 1) // 3 - 1)

    def fir_coefficients(self, band: FrequencyBand, n_samples: int) -> Optional[np.ndarray]:
        order = self.fir_order(n_samples)
        if order < 1:
            return None
        low = float(band.low)
        high = min(float(band.high), self.nyquist * (1.0 - _NYQUIST_MARGIN))
        if not (0.0 < low < high):
            return None
        return firwin(order + 1, [low, high], pass_zero=False, fs=self.sfreq)

    def apply(self, data: np.ndarray, band: FrequencyBand) -> FilterOutcome:
        """
        Band-pass every channel of a (n_channels, n_samples) block with zero phase.

        Returns:
            FilterOutcome with the filtered block, the strategy used and an
            optional diagnostic describing the degradation.
        """
        n_samples = data.shape[1]
        if self.can_use_butterworth(band, n_samples):
            return FilterOutcome(sosfiltfilt(self._sos_cache[band.edges], data, axis=-1), "butterworth")

        taps = self.fir_coefficients(band, n_samples)
        if taps is not None:
            msg = (
                f"Butterworth order {self.order} unavailable for {band.name} "
                f"[{band.low}, {band.high}] Hz on {n_samples} samples; FIR order {taps.size - 1} used"
            )
            logger.debug(msg)
            filtered = filtfilt(taps, [1.0], data, axis=-1)
            return FilterOutcome(filtered, "fir", Diagnostic(FILTER_DESIGN_FAILURE, msg, band.name))

        msg = f"window of {n_samples} samples too short to filter {band.name}; raw window reused"
        logger.debug(msg)
        return FilterOutcome(np.array(data, copy=True), "none", Diagnostic(FILTER_SKIPPED, msg, band.name))
