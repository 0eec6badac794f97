"""Recording loaders that hand a clean (n_channels, n_samples) matrix to the engine.

Conditioning of the raw recording (re-referencing, detrending, band-pass) is
expected to have happened upstream; these helpers only read and pick channels.

Supported inputs:
  - .fif via MNE (EEG channels, sampling rate from raw.info)
  - .csv via pandas (one column per channel; 'timestamp'/'session_id' ignored)
  - .npy / .npz via numpy (.npz may carry 'data' and 'sfreq')
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence

import mne
import numpy as np
import pandas as pd

from ..utils.logger import get_logger
from ..validity.errors import InvalidSignalError
from ..validity.records import Signal

logger = get_logger(__name__)

NON_CHANNEL_COLUMNS = ("timestamp", "TIMESTAMP", "session_id")


def signal_from_raw(raw: mne.io.BaseRaw, picks: Optional[str | Sequence[str]] = "eeg") -> Signal:
    """
    Build a Signal from an MNE Raw object.

    Args:
        raw: mne.io.BaseRaw (preloaded or not).
        picks: "eeg" keeps EEG channels only; otherwise a channel name or a
            sequence of names.
    """
    if picks == "eeg":
        pick_idx = mne.pick_types(raw.info, eeg=True)
    else:
        names = [picks] if isinstance(picks, str) else list(picks or raw.ch_names)
        pick_idx = mne.pick_channels(raw.ch_names, include=names, ordered=True)
    if len(pick_idx) == 0:
        raise InvalidSignalError("no channels selected from Raw")
    data = raw.get_data(picks=pick_idx)
    names = [raw.ch_names[i] for i in pick_idx]
    return Signal.from_array(data, float(raw.info["sfreq"]), channel_names=names)


def load_csv_signal(path: Path, sfreq: float) -> Signal:
    df = pd.read_csv(path)
    eeg_cols = [c for c in df.columns if c not in NON_CHANNEL_COLUMNS]
    if not eeg_cols:
        raise InvalidSignalError(f"No EEG columns in {path}")
    data = df[eeg_cols].T.values.astype(float)
    return Signal.from_array(data, sfreq, channel_names=eeg_cols)


def load_recording(path: str | Path, sfreq: Optional[float] = None, picks: Optional[str | Sequence[str]] = "eeg") -> Signal:
    """
    Load a recording into a Signal.

    Args:
        path: .fif, .csv, .npy or .npz file.
        sfreq: sampling rate in Hz; required for .csv/.npy and for .npz files
            that do not store one. Ignored for .fif.
        picks: channel selection for .fif files.

    Raises:
        FileNotFoundError: if path does not exist.
        InvalidSignalError: unsupported format, missing sampling rate or bad data.
    """
    p = Path(path)
    if not p.exists():
        logger.error("Recording not found: %s", p)
        raise FileNotFoundError(p)
    suffix = p.suffix.lower()
    logger.info("Loading recording %s", p)

    if suffix == ".fif":
        raw = mne.io.read_raw_fif(str(p), preload=True, verbose=False)
        return signal_from_raw(raw, picks=picks)

    if suffix == ".npz":
        with np.load(p) as npz:
            if "data" not in npz:
                raise InvalidSignalError(f"{p} has no 'data' array")
            data = npz["data"]
            stored = float(npz["sfreq"]) if "sfreq" in npz else None
        fs = sfreq if sfreq is not None else stored
        if fs is None:
            raise InvalidSignalError(f"sampling rate missing for {p}")
        return Signal.from_array(data, fs)

    if sfreq is None:
        raise InvalidSignalError(f"sampling rate is required to load {p}")
    if suffix == ".npy":
        return Signal.from_array(np.load(p), sfreq)
    if suffix == ".csv":
        return load_csv_signal(p, sfreq)
    raise InvalidSignalError(f"unsupported recording format: {suffix}")
