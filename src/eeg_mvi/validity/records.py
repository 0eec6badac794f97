"""Immutable value types produced and consumed by the MVI engine.

Types:
  - FrequencyBand: named [low, high] Hz range
  - Signal: read-only (n_channels, n_samples) matrix + sampling rate
  - Diagnostic: structured non-fatal condition attached to a record
  - ValidityRecord: per-window (or global) FE1 / rank / dimension / band fractions / MVI
  - BandRelevanceScore: per-band relevance summary
  - ValidityReport, RelevanceReport, MVIReport: what the entry points return

Every record is built once per analysis call and never mutated afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional, Sequence, Tuple

import numpy as np

from .errors import InvalidSignalError


@dataclass(frozen=True)
class FrequencyBand:
    name: str
    low: float
    high: float

    @property
    def edges(self) -> Tuple[float, float]:
        return (float(self.low), float(self.high))

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "low": float(self.low), "high": float(self.high)}


# theta, alpha, beta, gamma
DEFAULT_BANDS: Tuple[FrequencyBand, ...] = (
    FrequencyBand("theta", 4.0, 7.0),
    FrequencyBand("alpha", 8.0, 12.0),
    FrequencyBand("beta", 13.0, 30.0),
    FrequencyBand("gamma", 31.0, 45.0),
)


@dataclass(frozen=True)
class Diagnostic:
    """A non-fatal condition: the affected scalar was replaced by a documented safe value."""

    code: str
    message: str
    band: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "band": self.band}


@dataclass(frozen=True, eq=False)
class Signal:
    """Multichannel recording owned by the engine for the duration of an analysis."""

    data: np.ndarray
    sfreq: float
    channel_names: Tuple[str, ...] = ()

    @classmethod
    def from_array(
        cls,
        data: Any,
        sfreq: float,
        channel_names: Optional[Sequence[str]] = None,
    ) -> "Signal":
        """
        Validate and freeze a (n_channels, n_samples) array.

        Raises:
            InvalidSignalError: non-2-D input, fewer than two channels, non-finite
                values, a non-positive sampling rate or mismatched channel names.
        """
        try:
            arr = np.array(data, dtype=float, copy=True)
        except (TypeError, ValueError) as exc:
            raise InvalidSignalError(f"Signal is not numeric: {exc}") from exc
        if arr.ndim != 2:
            raise InvalidSignalError(f"Signal must be 2-D (n_channels, n_samples), got shape {arr.shape}")
        if arr.shape[0] < 2:
            raise InvalidSignalError("Signal needs at least two channels for a covariance spectrum")
        if not np.all(np.isfinite(arr)):
            raise InvalidSignalError("Signal contains NaN or infinite samples")
        try:
            fs = float(sfreq)
        except (TypeError, ValueError) as exc:
            raise InvalidSignalError(f"Sampling rate is not a number: {sfreq!r}") from exc
        if not np.isfinite(fs) or fs <= 0:
            raise InvalidSignalError(f"Sampling rate must be positive, got {sfreq!r}")
        if channel_names is None:
            names = tuple(f"ch{i}" for i in range(arr.shape[0]))
        else:
            names = tuple(str(c) for c in channel_names)
            if len(names) != arr.shape[0]:
                raise InvalidSignalError(
                    f"{len(names)} channel names given for {arr.shape[0]} channels"
                )
        arr.setflags(write=False)
        return cls(data=arr, sfreq=fs, channel_names=names)

    @property
    def n_channels(self) -> int:
        return int(self.data.shape[0])

    @property
    def n_samples(self) -> int:
        return int(self.data.shape[1])

    @property
    def duration(self) -> float:
        return self.n_samples / self.sfreq


@dataclass(frozen=True)
class ValidityRecord:
    """
    Validity features for one analysis window, or for the whole recording
    when `window_index` is None.

    `dimension` always holds the value used in the MVI (1.0 when the estimate
    was unreliable); `dimension_reliable` tells the two cases apart.
    """

    fe1: float
    effective_rank: float
    dimension: float
    dimension_reliable: bool
    band_fractions: Tuple[float, ...]
    band_effective_ranks: Tuple[float, ...]
    phi_max: float
    mvi: float
    window_index: Optional[int] = None
    start_time: Optional[float] = None
    gfp_variance: Optional[float] = None
    diagnostics: Tuple[Diagnostic, ...] = field(default_factory=tuple)

    @property
    def is_global(self) -> bool:
        return self.window_index is None

    def has_diagnostic(self, code: str) -> bool:
        return any(d.code == code for d in self.diagnostics)

    def to_dict(self, bands: Sequence[FrequencyBand]) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "window_index": self.window_index,
            "start_time": self.start_time,
            "fe1": self.fe1,
            "effective_rank": self.effective_rank,
            "dimension": self.dimension,
            "dimension_reliable": self.dimension_reliable,
        }
        for band, phi in zip(bands, self.band_fractions):
            out[f"phi_{band.name}"] = phi
        for band, rank in zip(bands, self.band_effective_ranks):
            out[f"rank_{band.name}"] = rank
        out["phi_max"] = self.phi_max
        out["mvi"] = self.mvi
        out["gfp_variance"] = self.gfp_variance
        out["diagnostics"] = [d.to_dict() for d in self.diagnostics]
        return out


@dataclass(frozen=True)
class BandRelevanceScore:
    band: FrequencyBand
    mean_phi: float
    correlation: float
    rank_score: float
    relevance: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "band": self.band.name,
            "mean_phi": self.mean_phi,
            "correlation": self.correlation,
            "rank_score": self.rank_score,
            "relevance": self.relevance,
        }


def _series(records: Iterable[ValidityRecord], attr: str) -> np.ndarray:
    return np.array([getattr(r, attr) for r in records], dtype=float)


@dataclass(frozen=True, eq=False)
class ValidityReport:
    """Global record + ordered time-varying records + decision string."""

    global_record: ValidityRecord
    windows: Tuple[ValidityRecord, ...]
    decision: str
    is_valid: bool
    bands: Tuple[FrequencyBand, ...]
    threshold: float

    @property
    def times(self) -> np.ndarray:
        return _series(self.windows, "start_time")

    @property
    def mvi(self) -> np.ndarray:
        return _series(self.windows, "mvi")

    @property
    def fe1(self) -> np.ndarray:
        return _series(self.windows, "fe1")

    @property
    def effective_rank(self) -> np.ndarray:
        return _series(self.windows, "effective_rank")

    @property
    def dimension(self) -> np.ndarray:
        return _series(self.windows, "dimension")

    @property
    def band_fractions(self) -> np.ndarray:
        """(n_windows, n_bands) matrix of phi_b."""
        return np.array([r.band_fractions for r in self.windows], dtype=float).reshape(
            len(self.windows), len(self.bands)
        )


@dataclass(frozen=True, eq=False)
class RelevanceReport:
    """Band relevance ranking over the time-varying records."""

    windows: Tuple[ValidityRecord, ...]
    bands: Tuple[FrequencyBand, ...]
    gfp: np.ndarray
    gfp_variance: np.ndarray
    scores: Tuple[BandRelevanceScore, ...]
    most_relevant: FrequencyBand
    diagnostics: Tuple[Diagnostic, ...] = ()

    @property
    def relevance(self) -> np.ndarray:
        return np.array([s.relevance for s in self.scores], dtype=float)

    def score_for(self, name: str) -> BandRelevanceScore:
        for s in self.scores:
            if s.band.name == name:
                return s
        raise KeyError(name)


@dataclass(frozen=True, eq=False)
class MVIReport:
    """Everything returned by the unified entry point."""

    validity: ValidityReport
    relevance: Optional[RelevanceReport]
    config: Dict[str, Any]
