"""
MVI engine entry points.

  - analyze_validity(signal, sfreq, bands=None, config=None)
        global record + time-varying records + decision string
  - analyze_band_relevance(signal, sfreq, config=None)
        time-varying records + GFP + normalized band relevance ranking
  - run_mvi(signal, sfreq, config=None, ranking=True)
        both of the above from a single pass over the windows

Flow: validate -> center once -> plan windows -> per-window spectral and
dimension features (optionally on a thread pool) -> reassemble in window
order -> score / decide / rank. Every call builds its records from scratch;
nothing is shared between calls.
"""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from ..features.dimension import estimate_dimension, estimate_global_dimension
from ..features.gfp import global_field_power, windowed_gfp_variance
from ..features.spectral import decompose_window
from ..preprocessing.filters import BandPassPolicy
from ..preprocessing.windowing import AnalysisWindow, WindowPlan, center_signal
from ..utils.logger import get_logger
from .config import MVIConfig
from .errors import UNRELIABLE_DIMENSION, AnalysisCancelled, InvalidSignalError
from .records import (
    Diagnostic,
    FrequencyBand,
    MVIReport,
    RelevanceReport,
    Signal,
    ValidityRecord,
    ValidityReport,
)
from .relevance import log_relevance_summary, rank_bands
from .scoring import decide, is_valid, microstate_validity_index

logger = get_logger(__name__)


@dataclass(frozen=True, eq=False)
class _Prepared:
    signal: Signal
    config: MVIConfig
    centered: np.ndarray
    plan: WindowPlan


def _as_signal(signal: Any, sfreq: Optional[float]) -> Signal:
    if isinstance(signal, Signal):
        if sfreq is not None and float(sfreq) != signal.sfreq:
            raise InvalidSignalError(f"sfreq {sfreq} disagrees with Signal.sfreq {signal.sfreq}")
        return signal
    if sfreq is None:
        raise InvalidSignalError("sfreq is required when passing a bare array")
    return Signal.from_array(signal, sfreq)


def _prepare(
    signal: Any,
    sfreq: Optional[float],
    config: Optional[MVIConfig | Mapping[str, Any]],
    bands: Optional[Sequence[FrequencyBand] | Mapping[str, Sequence[float]]] = None,
    centering: str = "channel",
) -> _Prepared:
    sig = _as_signal(signal, sfreq)
    if config is None:
        cfg = MVIConfig()
    elif isinstance(config, MVIConfig):
        cfg = config.validate()
    else:
        cfg = MVIConfig.from_dict(config)
    cfg = cfg.with_bands(bands).with_default_centering(centering)
    cfg.check_sfreq(sig.sfreq)
    # raises InsufficientLengthError before any feature work
    plan = WindowPlan.from_seconds(sig.n_samples, sig.sfreq, cfg.window_sec, cfg.step_sec)
    centered = center_signal(sig.data, cfg.centering)
    centered.setflags(write=False)
    return _Prepared(sig, cfg, centered, plan)


def _unreliable_dimension(where: str) -> Diagnostic:
    return Diagnostic(UNRELIABLE_DIMENSION, f"{where}: insufficient entropy variation across scales; dimension set to 1")


def _window_record(
    prep: _Prepared,
    window: AnalysisWindow,
    policy: BandPassPolicy,
    gfp_variance: float,
) -> ValidityRecord:
    cfg = prep.config
    block = window.slice(prep.centered)
    spectral = decompose_window(block, cfg.bands, policy)
    dim = estimate_dimension(
        block,
        n_scales=cfg.dimension.n_scales,
        spacing=cfg.dimension.spacing,
        entropy_tol=cfg.dimension.entropy_tol,
    )
    diagnostics = list(spectral.diagnostics)
    if not dim.reliable:
        diagnostics.append(_unreliable_dimension(f"window {window.index}"))
    d = dim.resolved()
    return ValidityRecord(
        fe1=spectral.fe1,
        effective_rank=spectral.effective_rank,
        dimension=d,
        dimension_reliable=dim.reliable,
        band_fractions=spectral.band_fractions,
        band_effective_ranks=spectral.band_effective_ranks,
        phi_max=spectral.phi_max,
        mvi=microstate_validity_index(spectral.fe1, spectral.effective_rank, d, spectral.phi_max),
        window_index=window.index,
        start_time=window.start_time(prep.signal.sfreq),
        gfp_variance=gfp_variance,
        diagnostics=tuple(diagnostics),
    )


def _global_record(prep: _Prepared, gfp: np.ndarray) -> ValidityRecord:
    cfg = prep.config
    policy = BandPassPolicy(prep.signal.sfreq, order=cfg.filter.order, max_fir_order=cfg.filter.global_max_fir_order)
    spectral = decompose_window(prep.centered, cfg.bands, policy)
    dim = estimate_global_dimension(
        prep.centered,
        prep.plan.window_samples,
        prep.plan.step_samples,
        n_scales=cfg.dimension.n_scales,
        spacing=cfg.dimension.spacing,
        entropy_tol=cfg.dimension.entropy_tol,
    )
    diagnostics = list(spectral.diagnostics)
    if not dim.reliable:
        diagnostics.append(_unreliable_dimension("recording"))
    d = dim.resolved()
    return ValidityRecord(
        fe1=spectral.fe1,
        effective_rank=spectral.effective_rank,
        dimension=d,
        dimension_reliable=dim.reliable,
        band_fractions=spectral.band_fractions,
        band_effective_ranks=spectral.band_effective_ranks,
        phi_max=spectral.phi_max,
        mvi=microstate_validity_index(spectral.fe1, spectral.effective_rank, d, spectral.phi_max),
        gfp_variance=float(np.var(gfp, ddof=1)),
        diagnostics=tuple(diagnostics),
    )


def _check_cancel(cancel_event: Optional[threading.Event]) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise AnalysisCancelled("analysis cancelled by caller")


def _window_records(
    prep: _Prepared,
    gfp: np.ndarray,
    cancel_event: Optional[threading.Event] = None,
) -> Tuple[ValidityRecord, ...]:
    cfg = prep.config
    windows = list(prep.plan)
    gfp_var = windowed_gfp_variance(gfp, windows)
    policy = BandPassPolicy(prep.signal.sfreq, order=cfg.filter.order, max_fir_order=cfg.filter.max_fir_order)
    # designs are cached up front so workers only read the policy
    for band in cfg.bands:
        policy.butterworth_sos(band)

    n_jobs = min(int(cfg.n_jobs), len(windows))
    logger.info("Computing %d windows (%d samples, step %d) with %d worker(s)",
                len(windows), prep.plan.window_samples, prep.plan.step_samples, n_jobs)

    if n_jobs <= 1:
        records: List[ValidityRecord] = []
        for w in windows:
            _check_cancel(cancel_event)
            records.append(_window_record(prep, w, policy, float(gfp_var[w.index])))
        return tuple(records)

    by_index: Dict[int, ValidityRecord] = {}
    with ThreadPoolExecutor(max_workers=n_jobs) as ex:
        future_to_window = {
            ex.submit(_window_record, prep, w, policy, float(gfp_var[w.index])): w for w in windows
        }
        try:
            for fut in as_completed(future_to_window):
                _check_cancel(cancel_event)
                w = future_to_window[fut]
                by_index[w.index] = fut.result()
        except BaseException:
            for fut in future_to_window:
                fut.cancel()
            raise
    return tuple(by_index[i] for i in range(len(windows)))


def _validity_report(prep: _Prepared, records: Tuple[ValidityRecord, ...], gfp: np.ndarray) -> ValidityReport:
    cfg = prep.config
    global_record = _global_record(prep, gfp)
    decision = decide(global_record.mvi, cfg.threshold)
    logger.info("Global MVI = %.4f -> %s", global_record.mvi, decision)
    return ValidityReport(
        global_record=global_record,
        windows=records,
        decision=decision,
        is_valid=is_valid(global_record.mvi, cfg.threshold),
        bands=cfg.bands,
        threshold=cfg.threshold,
    )


def _relevance_report(prep: _Prepared, records: Tuple[ValidityRecord, ...], gfp: np.ndarray) -> RelevanceReport:
    scores, best, diagnostics = rank_bands(records, prep.config.bands)
    log_relevance_summary(scores, best)
    gfp_variance = np.array([r.gfp_variance for r in records], dtype=float)
    gfp_series = np.array(gfp, copy=True)
    gfp_series.setflags(write=False)
    gfp_variance.setflags(write=False)
    return RelevanceReport(
        windows=records,
        bands=prep.config.bands,
        gfp=gfp_series,
        gfp_variance=gfp_variance,
        scores=scores,
        most_relevant=best,
        diagnostics=diagnostics,
    )


def analyze_validity(
    signal: Any,
    sfreq: Optional[float] = None,
    bands: Optional[Sequence[FrequencyBand] | Mapping[str, Sequence[float]]] = None,
    config: Optional[MVIConfig | Mapping[str, Any]] = None,
    cancel_event: Optional[threading.Event] = None,
) -> ValidityReport:
    """
    Global and time-varying MVI with the validity decision.

    Args:
        signal: Signal, or (n_channels, n_samples) array together with `sfreq`.
        sfreq: sampling rate in Hz (required for arrays).
        bands: optional band override (FrequencyBand objects or name -> [low, high]).
        config: MVIConfig or mapping; defaults to MVIConfig().
        cancel_event: optional event checked between windows.

    Raises:
        InvalidSignalError, ConfigurationError, InsufficientLengthError, AnalysisCancelled.
    """
    prep = _prepare(signal, sfreq, config, bands)
    gfp = global_field_power(prep.centered)
    records = _window_records(prep, gfp, cancel_event)
    return _validity_report(prep, records, gfp)


def analyze_band_relevance(
    signal: Any,
    sfreq: Optional[float] = None,
    config: Optional[MVIConfig | Mapping[str, Any]] = None,
    cancel_event: Optional[threading.Event] = None,
) -> RelevanceReport:
    """
    Time-varying records plus the normalized band relevance ranking.

    Unless the config names a centering mode, each sample is centered across
    channels (average reference) before windowing.
    """
    prep = _prepare(signal, sfreq, config, centering="spatial")
    gfp = global_field_power(prep.centered)
    records = _window_records(prep, gfp, cancel_event)
    return _relevance_report(prep, records, gfp)


def run_mvi(
    signal: Any,
    sfreq: Optional[float] = None,
    config: Optional[MVIConfig | Mapping[str, Any]] = None,
    ranking: bool = True,
    cancel_event: Optional[threading.Event] = None,
) -> MVIReport:
    """
    Unified entry point: one pass over the windows feeds both the decision and
    the ranking. Centering defaults to "channel" for both.
    """
    prep = _prepare(signal, sfreq, config)
    gfp = global_field_power(prep.centered)
    records = _window_records(prep, gfp, cancel_event)
    validity = _validity_report(prep, records, gfp)
    relevance = _relevance_report(prep, records, gfp) if ranking else None
    return MVIReport(validity=validity, relevance=relevance, config=prep.config.to_dict())
