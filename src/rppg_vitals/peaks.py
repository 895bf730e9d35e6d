"""Time-domain beat detection with an adaptive threshold."""

from __future__ import annotations

import numpy as np

from .spectrum import as_signal

REFRACTORY_SEC = 0.35
THRESHOLD_WIN_SEC = 2.0
THRESHOLD_K = 0.3


def find_peaks_adaptive(signal: np.ndarray, fs: float) -> list[int]:
    """Return beat indices of a pulse waveform.

    A beat is a sample strictly greater than its four nearest neighbours that
    also exceeds mean + 0.3 * std of the surrounding +/- 2 s, and lies at
    least 0.35 s after the previously accepted beat.
    """
    x = as_signal(signal)
    if fs <= 0:
        raise ValueError(f"sample rate must be positive, got {fs}")
    n = x.size
    if n < 5:
        return []
    min_dist = int(np.floor(fs * REFRACTORY_SEC))
    win = int(np.floor(fs * THRESHOLD_WIN_SEC))

    mid = x[2:-2]
    is_max = (
        (mid > x[1:-3]) & (mid > x[3:-1]) & (mid > x[:-4]) & (mid > x[4:])
    )
    beats: list[int] = []
    for i in (np.flatnonzero(is_max) + 2).tolist():
        seg = x[max(0, i - win) : min(n, i + win)]
        if x[i] <= seg.mean() + THRESHOLD_K * seg.std():
            continue
        if beats and i - beats[-1] < min_dist:
            continue
        beats.append(i)
    return beats


def rr_intervals_ms(beats: list[int], fs: float) -> np.ndarray:
    """Inter-beat intervals in milliseconds."""
    if fs <= 0:
        raise ValueError(f"sample rate must be positive, got {fs}")
    idx = np.asarray(beats, dtype=np.float64)
    if idx.size < 2:
        return np.zeros(0, dtype=np.float64)
    return np.diff(idx) / fs * 1000.0
