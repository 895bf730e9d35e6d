"""POS (plane-orthogonal-to-skin) color projection."""

from __future__ import annotations

import numpy as np

from .artifacts import as_channels
from .preprocess import round_half_up

MIN_SAMPLES = 30
WIN_SEC = 1.6


def pos_signal(
    R: np.ndarray, G: np.ndarray, B: np.ndarray, fs: float
) -> np.ndarray:
    """Compute the POS pulse signal from raw RGB traces.

    For every sample a ~1.6 s window is used for temporal normalization;
    S1 = Gn - Bn and S2 = Gn + Bn - 2Rn are combined as S1 + alpha * S2
    with alpha = std(S1) / std(S2) over the window.

    Args:
        R, G, B: 1D arrays of equal length (raw channel means).
        fs: sampling rate [Hz].

    Samples whose window mean is zero in any channel are output as 0.
    Returns a copy of G when fewer than 30 samples are given.
    """
    R, G, B = as_channels(R, G, B)
    if fs <= 0:
        raise ValueError(f"sample rate must be positive, got {fs}")
    n = R.size
    if n < MIN_SAMPLES:
        return G.copy()
    half = max(1, round_half_up(WIN_SEC * fs) // 2)
    out = np.zeros(n, dtype=np.float64)
    for i in range(n):
        s, e = max(0, i - half), min(n, i + half)
        r, g, b = R[s:e], G[s:e], B[s:e]
        mr, mg, mb = r.mean(), g.mean(), b.mean()
        if mr == 0 or mg == 0 or mb == 0:
            continue
        rn, gn, bn = r / mr, g / mg, b / mb
        S1 = gn - bn
        S2 = gn + bn - 2 * rn
        s2 = float(np.std(S2))
        alpha = float(np.std(S1)) / s2 if s2 > 0 else 1.0
        k = i - s
        out[i] = S1[k] + alpha * S2[k]
    return out
