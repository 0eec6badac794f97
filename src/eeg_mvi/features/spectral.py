"""
Channel-covariance eigenspectrum features.

This module supplies:
  - covariance_spectrum: sorted, non-negative eigenvalues + trace of a block's channel covariance
  - fe1 / effective_rank: scalar descriptors of a spectrum
  - decompose_window: broadband + per-band descriptors of one analysis window

Notes:
  - Broadband FE1 / effective rank are computed after scaling each channel to
    unit standard deviation (guarded by EPS).
  - Band variance fractions phi_b compare traces of the un-normalized centered
    window before and after band-pass filtering.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np

from ..preprocessing.filters import BandPassPolicy
from ..validity.records import Diagnostic, FrequencyBand

# tiny floor to avoid division by zero
EPS = 1e-12


@dataclass(frozen=True)
class CovarianceSpectrum:
    eigenvalues: np.ndarray
    trace: float

    @property
    def n_channels(self) -> int:
        return int(self.eigenvalues.size)


@dataclass(frozen=True)
class SpectralFeatures:
    fe1: float
    effective_rank: float
    band_fractions: Tuple[float, ...]
    band_effective_ranks: Tuple[float, ...]
    phi_max: float
    diagnostics: Tuple[Diagnostic, ...]


def channel_covariance(data: np.ndarray) -> np.ndarray:
    """Unbiased (n_channels, n_channels) covariance of a (n_channels, n_samples) block."""
    return np.atleast_2d(np.cov(data, rowvar=True))


def covariance_spectrum(data: np.ndarray) -> CovarianceSpectrum:
    """
    Eigen-decompose the channel covariance of `data`.

    Returns:
        CovarianceSpectrum with eigenvalues sorted descending and clipped at 0
        (round-off can make the smallest ones slightly negative).
    """
    cov = channel_covariance(data)
    lam = np.linalg.eigvalsh(cov)[::-1]
    lam = np.clip(lam, 0.0, None)
    return CovarianceSpectrum(eigenvalues=lam, trace=float(np.trace(cov)))


def fe1(spectrum: CovarianceSpectrum) -> float:
    """Fraction of variance in the first eigenmode; 1.0 for a degenerate (zero-variance) block."""
    total = float(spectrum.eigenvalues.sum())
    if total <= 0:
        return 1.0
    return float(spectrum.eigenvalues[0] / total)


def effective_rank(spectrum: CovarianceSpectrum) -> float:
    """(sum lambda)^2 / sum lambda^2, clipped to [1, n_channels]; 1.0 when degenerate."""
    lam = spectrum.eigenvalues
    sq = float(np.sum(lam**2))
    if sq <= 0 or float(lam.sum()) <= 0:
        return 1.0
    r = float(lam.sum()) ** 2 / sq
    return float(np.clip(r, 1.0, spectrum.n_channels))


def normalize_channels(data: np.ndarray) -> np.ndarray:
    """Scale each channel to unit standard deviation within the block."""
    return data / (data.std(axis=1, ddof=1, keepdims=True) + EPS)


def band_fraction(band_spectrum: CovarianceSpectrum, broadband_trace: float) -> float:
    if broadband_trace <= 0:
        return 0.0
    return float(max(band_spectrum.trace, 0.0) / broadband_trace)


def decompose_window(
    window: np.ndarray,
    bands: Sequence[FrequencyBand],
    policy: BandPassPolicy,
) -> SpectralFeatures:
    """
    Broadband and per-band covariance descriptors of one centered window.

    Args:
        window: (n_channels, n_samples) centered block (not normalized).
        bands: frequency bands, in reporting order.
        policy: band-pass strategy selector for the signal's sampling rate.

    Returns:
        SpectralFeatures with FE1, effective rank, phi_b per band, band
        effective ranks, phi_max and any filter diagnostics.
    """
    broadband = covariance_spectrum(normalize_channels(window))
    raw_trace = float(np.trace(channel_covariance(window)))

    fractions: List[float] = []
    ranks: List[float] = []
    diagnostics: List[Diagnostic] = []
    for band in bands:
        outcome = policy.apply(window, band)
        if outcome.diagnostic is not None:
            diagnostics.append(outcome.diagnostic)
        spec_b = covariance_spectrum(outcome.data)
        fractions.append(band_fraction(spec_b, raw_trace))
        ranks.append(effective_rank(spec_b))

    return SpectralFeatures(
        fe1=fe1(broadband),
        effective_rank=effective_rank(broadband),
        band_fractions=tuple(fractions),
        band_effective_ranks=tuple(ranks),
        phi_max=float(max(fractions)) if fractions else 0.0,
        diagnostics=tuple(diagnostics),
    )
