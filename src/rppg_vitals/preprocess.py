"""Signal conditioning: Butterworth band-pass and moving-average detrend."""

from __future__ import annotations

import numpy as np
from scipy.signal import lfilter

from .spectrum import as_signal

BAND_LOW_HZ = 0.75
BAND_HIGH_HZ = 3.5


def round_half_up(x: float) -> int:
    """Round to the nearest integer, halves away from -inf (not banker's)."""
    return int(np.floor(x + 0.5))


def window_sums(x: np.ndarray, half: int) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Per-index sums over the clamped window [i - half, i + half).

    Returns (sum, sum_of_squares, count) arrays of len(x).
    """
    x = as_signal(x)
    n = x.size
    half = max(int(half), 1)
    idx = np.arange(n)
    start = np.clip(idx - half, 0, n)
    end = np.clip(idx + half, 0, n)
    cs = np.concatenate(([0.0], np.cumsum(x)))
    cs2 = np.concatenate(([0.0], np.cumsum(x * x)))
    cnt = (end - start).astype(np.float64)
    return cs[end] - cs[start], cs2[end] - cs2[start], cnt


def centered_mean(x: np.ndarray, half: int) -> np.ndarray:
    """Moving average over [i - half, i + half), clamped at the edges."""
    s, _, cnt = window_sums(x, half)
    return s / cnt


def centered_std(x: np.ndarray, half: int) -> np.ndarray:
    """Population std over the same clamped window as centered_mean."""
    s, s2, cnt = window_sums(x, half)
    mean = s / cnt
    return np.sqrt(np.maximum(0.0, s2 / cnt - mean * mean))


def detrend(x: np.ndarray, window_size: int) -> np.ndarray:
    """Subtract a centered moving average of half-width window_size // 2.

    Removes slow drift without shifting phase.
    """
    x = as_signal(x)
    if x.size == 0:
        return x.copy()
    return x - centered_mean(x, int(window_size) // 2)


def butterworth_coefficients(
    fs: float,
    fmin: float = BAND_LOW_HZ,
    fmax: float = BAND_HIGH_HZ,
) -> tuple[np.ndarray, np.ndarray]:
    """Second-order band-pass biquad via the bilinear transform.

    Both edge frequencies are pre-warped with tan(pi * f / fs).

    Returns:
        (b, a) in scipy.signal.lfilter convention.
    """
    if fs <= 0:
        raise ValueError(f"sample rate must be positive, got {fs}")
    w_low = np.tan(np.pi * fmin / fs)
    w_high = np.tan(np.pi * fmax / fs)
    bw = w_high - w_low
    w0sq = w_low * w_high
    w0 = np.sqrt(w0sq)
    q = w0 / bw
    norm = 1.0 + bw / q + w0sq
    g = bw / q / norm
    b = np.array([g, 0.0, -g], dtype=np.float64)
    a = np.array([1.0, 2.0 * (w0sq - 1.0) / norm, (1.0 - bw / q + w0sq) / norm])
    return b, a


def bandpass(x: np.ndarray, fs: float) -> np.ndarray:
    """Causal 0.75-3.5 Hz Butterworth band-pass (lfilter, zero initial state).

    Args:
        x: 1D array.
        fs: sampling rate [Hz].

    Output has the same length as the input; no lookahead.
    """
    x = as_signal(x)
    b, a = butterworth_coefficients(fs)
    if x.size == 0:
        return x.copy()
    return lfilter(b, a, x)
