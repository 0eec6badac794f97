"""Tests for the band relevance ranking."""

from __future__ import annotations
from typing import Sequence

import numpy as np
import pytest

from eeg_mvi.validity.errors import DEGENERATE_CORRELATION
from eeg_mvi.validity.records import FrequencyBand, ValidityRecord
from eeg_mvi.validity.relevance import pairwise_pearson, rank_bands

BANDS = (FrequencyBand("alpha", 8.0, 12.0), FrequencyBand("beta", 13.0, 30.0))


def _record(i: int, mvi: float, phis: Sequence[float], ranks: Sequence[float] = (2.0, 2.0)) -> ValidityRecord:
    return ValidityRecord(
        fe1=0.5,
        effective_rank=2.0,
        dimension=1.0,
        dimension_reliable=True,
        band_fractions=tuple(phis),
        band_effective_ranks=tuple(ranks),
        phi_max=max(phis),
        mvi=mvi,
        window_index=i,
        start_time=i * 0.05,
    )


def test_positive_association_wins_and_negative_is_clamped() -> None:
    mvi = [0.1, 0.5, 0.9]
    records = [_record(i, m, (m, 1.0 - m)) for i, m in enumerate(mvi)]
    scores, best, diags = rank_bands(records, BANDS)
    assert best.name == "alpha"
    alpha, beta = scores
    assert alpha.correlation == pytest.approx(1.0)
    assert beta.correlation == 0.0
    assert alpha.rank_score == pytest.approx(1.0 / 3.0)
    assert alpha.relevance == pytest.approx(1.0, abs=1e-9)
    assert beta.relevance == 0.0
    assert diags == ()


def test_relevance_is_a_distribution() -> None:
    rng = np.random.default_rng(4)
    mvi = rng.random(20)
    records = [
        _record(i, m, (0.5 * m + 0.1 * rng.random(), 0.3 * m + 0.2 * rng.random()), (1.5, 3.0))
        for i, m in enumerate(mvi)
    ]
    scores, _, _ = rank_bands(records, BANDS)
    rel = np.array([s.relevance for s in scores])
    assert np.all(rel >= 0)
    assert rel.sum() == pytest.approx(1.0, abs=1e-6)


def test_constant_band_series_is_degenerate() -> None:
    records = [_record(i, m, (0.4, m)) for i, m in enumerate([0.2, 0.3, 0.6])]
    scores, best, diags = rank_bands(records, BANDS)
    assert scores[0].correlation == 0.0
    assert best.name == "beta"
    assert any(d.code == DEGENERATE_CORRELATION and d.band == "alpha" for d in diags)


def test_no_positive_association_falls_back_to_uniform() -> None:
    records = [_record(0, 0.3, (0.2, 0.1))]
    scores, best, diags = rank_bands(records, BANDS)
    np.testing.assert_allclose([s.relevance for s in scores], [0.5, 0.5])
    assert best.name == "alpha"
    assert any(d.band is None for d in diags)


def test_pairwise_pearson_ignores_missing_values() -> None:
    x = np.array([1.0, 2.0, np.nan, 4.0])
    y = np.array([2.0, 4.0, 100.0, 8.0])
    assert pairwise_pearson(x, y) == pytest.approx(1.0)
