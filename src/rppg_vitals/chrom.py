"""CHROM color projection."""

from __future__ import annotations

import numpy as np

from .artifacts import as_channels
from .preprocess import centered_mean, centered_std

MIN_SAMPLES = 30
MAX_HALF_WIN = 45


def chrom_signal(R: np.ndarray, G: np.ndarray, B: np.ndarray) -> np.ndarray:
    """Compute the CHROM pulse signal from raw RGB traces.

    Each sample is divided by its local window mean (0 where that mean is
    not positive), projected onto X = 3R - 2G and Y = 1.5R + G - 1.5B, and
    combined as X - alpha * Y with alpha = std(R) / std(G) over the same window
    (alpha = 1 when std(G) is zero). A constant input gives all zeros.

    Args:
        R, G, B: 1D arrays of equal length (raw channel means).

    Returns a copy of G when fewer than 30 samples are given.
    """
    R, G, B = as_channels(R, G, B)
    n = R.size
    if n < MIN_SAMPLES:
        return G.copy()
    half = min(MAX_HALF_WIN, n // 2)
    means = [centered_mean(c, half) for c in (R, G, B)]
    Rn, Gn, Bn = (
        np.where(m > 0, c / np.where(m > 0, m, 1.0), 0.0)
        for c, m in zip((R, G, B), means)
    )
    X = 3 * Rn - 2 * Gn
    Y = 1.5 * Rn + Gn - 1.5 * Bn
    sr = centered_std(R, half)
    sg = centered_std(G, half)
    alpha = np.where(sg > 0, sr / np.where(sg > 0, sg, 1.0), 1.0)
    return X - alpha * Y
