"""Composite Microstate Validity Index and the global decision rule."""

from __future__ import annotations

DEFAULT_THRESHOLD = 0.5

DECISION_VALID = "One-hot microstate model valid"
DECISION_INVALID = "One-hot model likely invalid; subspace-aware methods recommended"


def microstate_validity_index(fe1: float, effective_rank: float, dimension: float, phi_max: float) -> float:
    """
    MVI = (FE1 / r_eff) * (1 / (1 + (d - 1))) * phi_max.

    Floored at 0.
    """
    spatial = fe1 / effective_rank
    complexity = 1.0 / (1.0 + (dimension - 1.0))
    return float(max(spatial * complexity * phi_max, 0.0))


def is_valid(mvi: float, threshold: float = DEFAULT_THRESHOLD) -> bool:
    """Strictly above the threshold; mvi == threshold counts as invalid."""
    return bool(mvi > threshold)


def decide(mvi: float, threshold: float = DEFAULT_THRESHOLD) -> str:
    return DECISION_VALID if is_valid(mvi, threshold) else DECISION_INVALID
