"""Time-domain heart-rate variability statistics."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

MIN_INTERVALS = 3
NN50_MS = 50.0


@dataclass(frozen=True)
class HrvMetrics:
    sdnn: float  # ms, population std of R-R intervals
    rmssd: float  # ms
    pnn50: float  # percent
    # Approximation: sdnn / rmssd. Not a spectral LF/HF ratio; it only moves
    # in the same direction (higher = more sympathetic).
    lf_hf_ratio: float
    mean_rr: float  # ms


def compute_hrv(rr_ms: np.ndarray) -> HrvMetrics | None:
    """Compute HRV metrics from R-R intervals (ms).

    Returns None when fewer than 3 intervals are given.
    """
    rr = np.asarray(rr_ms, dtype=np.float64).ravel()
    if rr.size < MIN_INTERVALS:
        return None
    mean = float(rr.mean())
    sdnn = float(np.sqrt(np.mean((rr - mean) ** 2)))
    d = np.diff(rr)
    rmssd = float(np.sqrt(np.mean(d**2)))
    pnn50 = float(np.count_nonzero(np.abs(d) > NN50_MS)) / d.size * 100.0
    lf_hf = sdnn / rmssd if rmssd > 0 else 1.0
    return HrvMetrics(
        sdnn=sdnn, rmssd=rmssd, pnn50=pnn50, lf_hf_ratio=lf_hf, mean_rr=mean
    )
