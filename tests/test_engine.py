"""End-to-end properties of the MVI engine entry points.

These tests verify:
 - per-window invariants (FE1, effective rank, dimension, band fractions, MVI)
 - fatal errors for short / malformed signals, with no partial results
 - rank-1 and white-noise reference behaviour
 - band relevance normalization, idempotence, worker-pool ordering and cancellation
"""

from __future__ import annotations
import threading

import numpy as np
import pytest

from eeg_mvi import (
    AnalysisCancelled,
    ConfigurationError,
    FrequencyBand,
    InsufficientLengthError,
    InvalidSignalError,
    MVIConfig,
    Signal,
    analyze_band_relevance,
    analyze_validity,
    run_mvi,
)
from eeg_mvi.validity.errors import UNRELIABLE_DIMENSION
from eeg_mvi.validity.scoring import DECISION_INVALID, DECISION_VALID


def _check_invariants(records, n_channels: int) -> None:
    for r in records:
        assert 0.0 < r.fe1 <= 1.0
        assert 1.0 <= r.effective_rank <= n_channels
        assert r.dimension >= 1.0
        assert all(phi >= 0.0 for phi in r.band_fractions)
        assert r.mvi >= 0.0


def test_window_records_and_times(mixed_signal, sfreq) -> None:
    report = analyze_validity(mixed_signal, sfreq)
    n_windows = (mixed_signal.shape[1] - 50) // 12 + 1
    assert len(report.windows) == n_windows
    assert [r.window_index for r in report.windows] == list(range(n_windows))
    np.testing.assert_allclose(report.times, np.arange(n_windows) * 12 / sfreq)
    assert report.global_record.is_global
    assert report.band_fractions.shape == (n_windows, 4)
    _check_invariants(report.windows, mixed_signal.shape[0])
    _check_invariants([report.global_record], mixed_signal.shape[0])
    assert report.decision in (DECISION_VALID, DECISION_INVALID)


def test_rank_one_signal_is_valid(rank_one_signal, sfreq) -> None:
    report = analyze_validity(rank_one_signal, sfreq)
    for r in report.windows:
        assert r.fe1 > 0.999
        assert r.effective_rank < 1.001
        assert r.mvi == pytest.approx(r.phi_max / r.dimension, rel=1e-3)
    g = report.global_record
    assert g.fe1 > 0.999
    assert g.phi_max > 0.8
    assert report.is_valid
    assert report.decision == DECISION_VALID


def test_white_noise_is_invalid(white_noise_signal, sfreq) -> None:
    n_ch = white_noise_signal.shape[0]
    report = analyze_validity(white_noise_signal, sfreq, config=MVIConfig(window_sec=1.0, step_sec=0.5))
    rank = report.effective_rank
    assert rank.mean() > 0.8 * n_ch
    assert report.fe1.mean() < 2.5 / n_ch
    assert report.mvi.mean() < 0.1
    assert report.global_record.effective_rank > 0.95 * n_ch
    assert not report.is_valid
    _check_invariants(report.windows, n_ch)


def test_short_signal_raises_without_results(sfreq) -> None:
    data = np.random.default_rng(0).standard_normal((4, 40))
    with pytest.raises(InsufficientLengthError):
        analyze_validity(data, sfreq)
    with pytest.raises(InsufficientLengthError):
        run_mvi(data, sfreq)


@pytest.mark.parametrize(
    "data, fs",
    [
        (np.zeros(500), 250.0),
        (np.zeros((1, 500)), 250.0),
        (np.zeros((4, 500)), 0.0),
        (np.full((4, 500), np.nan), 250.0),
    ],
)
def test_malformed_inputs_raise(data, fs) -> None:
    with pytest.raises(InvalidSignalError):
        analyze_validity(data, fs)


def test_bare_array_needs_sfreq(mixed_signal) -> None:
    with pytest.raises(InvalidSignalError):
        run_mvi(mixed_signal)


def test_band_above_nyquist_rejected(mixed_signal) -> None:
    with pytest.raises(ConfigurationError):
        analyze_validity(mixed_signal, 60.0, bands={"high": [40.0, 50.0]})


def test_flat_recording_degrades_to_diagnostics(sfreq) -> None:
    report = run_mvi(np.zeros((4, 500)), sfreq)
    windows = report.validity.windows
    assert all(r.mvi == 0.0 for r in windows)
    assert all(r.dimension == 1.0 and not r.dimension_reliable for r in windows)
    assert all(r.has_diagnostic(UNRELIABLE_DIMENSION) for r in windows)
    assert report.validity.decision == DECISION_INVALID
    assert report.relevance.relevance.sum() == pytest.approx(1.0)


def test_relevance_is_normalized(mixed_signal, sfreq) -> None:
    rel = analyze_band_relevance(mixed_signal, sfreq)
    values = rel.relevance
    assert np.all(values >= 0)
    assert values.sum() == pytest.approx(1.0, abs=1e-6)
    assert rel.most_relevant.name == rel.bands[int(np.argmax(values))].name
    assert rel.gfp.shape == (mixed_signal.shape[1],)
    assert rel.gfp_variance.shape == (len(rel.windows),)
    assert np.all(rel.gfp_variance >= 0)


def test_spatial_centering_variant(mixed_signal, sfreq) -> None:
    rel = analyze_band_relevance(mixed_signal, sfreq, config={"centering": "spatial", "dimension": {"n_scales": 50, "spacing": "linear"}})
    assert rel.relevance.sum() == pytest.approx(1.0, abs=1e-6)
    _check_invariants(rel.windows, mixed_signal.shape[0])
    # average reference: GFP equals the root-mean-square across channels
    centered = mixed_signal - mixed_signal.mean(axis=0, keepdims=True)
    np.testing.assert_allclose(rel.gfp, np.sqrt((centered**2).mean(axis=0)))


def test_idempotent(mixed_signal, sfreq) -> None:
    a = run_mvi(mixed_signal, sfreq)
    b = run_mvi(mixed_signal, sfreq)
    np.testing.assert_allclose(a.validity.mvi, b.validity.mvi, rtol=0, atol=1e-12)
    np.testing.assert_allclose(a.relevance.relevance, b.relevance.relevance, rtol=0, atol=1e-12)
    assert a.validity.global_record.mvi == pytest.approx(b.validity.global_record.mvi, abs=1e-12)


def test_worker_pool_preserves_window_order(mixed_signal, sfreq) -> None:
    serial = analyze_validity(mixed_signal, sfreq)
    pooled = analyze_validity(mixed_signal, sfreq, config=MVIConfig(n_jobs=3))
    assert [r.window_index for r in pooled.windows] == [r.window_index for r in serial.windows]
    np.testing.assert_allclose(pooled.mvi, serial.mvi, rtol=0, atol=1e-12)


def test_cancellation_before_first_window(mixed_signal, sfreq) -> None:
    event = threading.Event()
    event.set()
    with pytest.raises(AnalysisCancelled):
        analyze_validity(mixed_signal, sfreq, cancel_event=event)
    with pytest.raises(AnalysisCancelled):
        analyze_validity(mixed_signal, sfreq, config=MVIConfig(n_jobs=2), cancel_event=event)


def test_custom_bands_and_signal_object(mixed_signal, sfreq) -> None:
    sig = Signal.from_array(mixed_signal, sfreq)
    bands = (FrequencyBand("low", 2.0, 6.0), FrequencyBand("alpha", 8.0, 12.0))
    report = analyze_validity(sig, bands=bands, config=MVIConfig(window_sec=1.0, step_sec=0.5))
    assert report.bands == bands
    assert all(len(r.band_fractions) == 2 for r in report.windows)
    # the 10 Hz topography dominates the band fractions
    assert report.band_fractions[:, 1].mean() > report.band_fractions[:, 0].mean()


def test_signal_is_not_mutated(mixed_signal, sfreq) -> None:
    before = mixed_signal.copy()
    run_mvi(mixed_signal, sfreq)
    np.testing.assert_array_equal(mixed_signal, before)


def test_band_relevance_defaults_to_average_reference(mixed_signal, sfreq) -> None:
    rel = analyze_band_relevance(mixed_signal, sfreq)
    spatial = mixed_signal - mixed_signal.mean(axis=0, keepdims=True)
    np.testing.assert_allclose(rel.gfp, np.sqrt((spatial**2).mean(axis=0)))

    per_channel = analyze_band_relevance(mixed_signal, sfreq, config={"centering": "channel"})
    temporal = mixed_signal - mixed_signal.mean(axis=1, keepdims=True)
    np.testing.assert_allclose(per_channel.gfp, temporal.std(axis=0))


def test_validity_defaults_to_channel_centering(mixed_signal, sfreq) -> None:
    default = analyze_validity(mixed_signal, sfreq)
    explicit = analyze_validity(mixed_signal, sfreq, config=MVIConfig(centering="channel"))
    np.testing.assert_allclose(default.mvi, explicit.mvi, rtol=0, atol=1e-12)
    assert run_mvi(mixed_signal, sfreq, ranking=False).config["centering"] == "channel"
