# tests/conftest.py
"""Pytest fixtures for deterministic tests and synthetic multichannel signals."""

from __future__ import annotations

import os
import random

import numpy as np
import pytest

SFREQ = 250.0


@pytest.fixture(autouse=True, scope="session")
def deterministic_test_env():
    """
    Make tests deterministic:
      - set PYTHONHASHSEED
      - seed python and numpy
    """
    seed = int(os.environ.get("PYTEST_SEED", "42"))
    os.environ["PYTHONHASHSEED"] = str(seed)
    random.seed(seed)
    np.random.seed(seed)
    yield


@pytest.fixture
def sfreq() -> float:
    return SFREQ


@pytest.fixture
def rank_one_signal() -> np.ndarray:
    """8 channels, 4 s: positive scaled copies of a single 10 Hz waveform."""
    t = np.arange(int(4 * SFREQ)) / SFREQ
    wave = np.sin(2 * np.pi * 10.0 * t)
    gains = np.linspace(0.5, 2.0, 8)[:, None]
    return gains * wave[None, :]


@pytest.fixture
def white_noise_signal() -> np.ndarray:
    """8 independent white-noise channels, 8 s."""
    rng = np.random.default_rng(0)
    return rng.standard_normal((8, int(8 * SFREQ)))


@pytest.fixture
def mixed_signal() -> np.ndarray:
    """Alpha topography that waxes and wanes over a noisy background (6 channels, 6 s)."""
    rng = np.random.default_rng(1)
    n = int(6 * SFREQ)
    t = np.arange(n) / SFREQ
    topo = np.array([1.0, 0.8, 0.6, -0.4, -0.7, -1.0])[:, None]
    envelope = 0.5 * (1 + np.sin(2 * np.pi * 0.5 * t))
    alpha = envelope * np.sin(2 * np.pi * 10.0 * t)
    return 3.0 * topo * alpha[None, :] + 0.5 * rng.standard_normal((6, n))
