"""Ranking of frequency bands by their association with the MVI time series.

For each band b over the ordered window records:

    relevance_b = mean(phi_b) * max(corr(phi_b, MVI), 0) * 1 / (1 + mean band effective rank)

and the relevances are normalized to sum to one. Correlation is Pearson over
pairwise-complete windows (pandas semantics); an undefined correlation (too
few windows, zero variance) is clamped to 0 and reported as a diagnostic.
"""

from __future__ import annotations

from typing import List, Sequence, Tuple

import numpy as np
import pandas as pd

from ..utils.logger import get_logger
from .errors import DEGENERATE_CORRELATION
from .records import BandRelevanceScore, Diagnostic, FrequencyBand, ValidityRecord

logger = get_logger(__name__)

# stabilizes the normalization denominator
EPS = 1e-12


def pairwise_pearson(x: np.ndarray, y: np.ndarray) -> float:
    """Pearson correlation using only positions where both series are finite; NaN if undefined."""
    # zero-variance inputs yield NaN, which the caller clamps
    with np.errstate(invalid="ignore", divide="ignore"):
        return float(pd.Series(x, dtype=float).corr(pd.Series(y, dtype=float), method="pearson"))


def rank_bands(
    records: Sequence[ValidityRecord],
    bands: Sequence[FrequencyBand],
) -> Tuple[Tuple[BandRelevanceScore, ...], FrequencyBand, Tuple[Diagnostic, ...]]:
    """
    Score every band against the MVI trace.

    Args:
        records: the complete, ordered per-window records.
        bands: bands in the same order as `record.band_fractions`.

    Returns:
        (scores, most_relevant_band, diagnostics)
    """
    n_bands = len(bands)
    mvi = np.array([r.mvi for r in records], dtype=float)
    phi = np.array([r.band_fractions for r in records], dtype=float).reshape(len(records), n_bands)
    band_ranks = np.array([r.band_effective_ranks for r in records], dtype=float).reshape(len(records), n_bands)

    diagnostics: List[Diagnostic] = []
    mean_phi = np.zeros(n_bands)
    corr = np.zeros(n_bands)
    rank_score = np.zeros(n_bands)
    for b, band in enumerate(bands):
        mean_phi[b] = float(np.mean(phi[:, b])) if len(records) else 0.0
        c = pairwise_pearson(phi[:, b], mvi) if len(records) >= 2 else float("nan")
        if np.isnan(c):
            diagnostics.append(
                Diagnostic(DEGENERATE_CORRELATION, f"correlation of phi_{band.name} with MVI is undefined; set to 0", band.name)
            )
            c = 0.0
        corr[b] = max(c, 0.0)
        mean_rank = float(np.mean(band_ranks[:, b])) if len(records) else 0.0
        rank_score[b] = 1.0 / (1.0 + mean_rank)

    raw = mean_phi * corr * rank_score
    total = float(raw.sum())
    if total > 0:
        relevance = raw / (total + EPS)
    else:
        diagnostics.append(
            Diagnostic(DEGENERATE_CORRELATION, "no band is positively associated with MVI; relevance set uniform")
        )
        relevance = np.full(n_bands, 1.0 / n_bands)

    scores = tuple(
        BandRelevanceScore(
            band=band,
            mean_phi=float(mean_phi[b]),
            correlation=float(corr[b]),
            rank_score=float(rank_score[b]),
            relevance=float(relevance[b]),
        )
        for b, band in enumerate(bands)
    )
    most_relevant = bands[int(np.argmax(relevance))]
    return scores, most_relevant, tuple(diagnostics)


def log_relevance_summary(scores: Sequence[BandRelevanceScore], most_relevant: FrequencyBand) -> None:
    logger.info("Band relevance for microstates:")
    for s in scores:
        logger.info("  %s band: relevance score = %.3f", s.band.name, s.relevance)
    best = max(s.relevance for s in scores)
    logger.info("Most relevant band: %s (score = %.3f)", most_relevant.name, best)
