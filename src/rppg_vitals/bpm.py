"""BPM estimation by spectral peak-picking."""

from __future__ import annotations

from typing import Optional

import numpy as np

from .spectrum import (
    MIN_TRANSFORM_SAMPLES,
    as_signal,
    first_peak,
    is_flat,
    next_pow2,
    transform,
)

SINGLE_BAND_HZ = (0.67, 3.33)  # 40-200 BPM
WELCH_BAND_HZ = (0.7, 3.33)  # 42-200 BPM
WELCH_OVERLAP = 0.75
MAX_OFFSET = float(np.nextafter(1.0, 0.0))  # largest offset below one bin


def parabolic_offset(a: float, b: float, c: float) -> float:
    """Sub-bin offset of a peak b with neighbours a (left) and c (right).

    delta = (a - c) / (2 * (a - 2b + c)); non-finite results map to 0 and the
    offset is clipped to the open interval (-1, 1) so the refined peak stays
    between its neighbours.
    """
    with np.errstate(divide="ignore", invalid="ignore"):
        delta = np.float64(a - c) / np.float64(2.0 * (a - 2.0 * b + c))
    if not np.isfinite(delta):
        return 0.0
    return float(np.clip(delta, -MAX_OFFSET, MAX_OFFSET))


def estimate_bpm(signal: np.ndarray, fs: float) -> float | None:
    """Estimate BPM from a single windowed FFT of the whole signal.

    The strongest bin in 40-200 BPM is refined by parabolic interpolation.
    Returns None if fewer than 3 samples, a flat signal or no energy in the
    band.
    """
    x = as_signal(signal)
    if is_flat(x):
        return None
    spec = transform(x, fs)
    if spec is None:
        return None
    p = spec.power
    nyq = spec.nyquist_bin
    lo = spec.floor_bin(SINGLE_BAND_HZ[0])
    hi = min(spec.ceil_bin(SINGLE_BAND_HZ[1]), nyq)
    k, peak = first_peak(p, lo, hi)
    if peak <= 0:
        return None
    if 0 < k < nyq:
        k_ref = k + parabolic_offset(p[k - 1], p[k], p[k + 1])
    else:
        k_ref = float(k)
    return spec.bin_to_hz(k_ref) * 60.0


def estimate_bpm_welch(
    signal: np.ndarray,
    fs: float,
    segment_length: Optional[int] = None,
) -> float | None:
    """Estimate BPM from a Welch-averaged power spectrum.

    Segments overlap by 75% and are Hann-windowed before transforming.
    The peak is interpolated only when it lies strictly inside the search
    band and the correction is smaller than one bin.

    Args:
        signal: filtered waveform (1D array).
        fs: sampling rate [Hz].
        segment_length: samples per segment; defaults to
            min(next_pow2(len), len), i.e. the whole signal.

    Falls back to estimate_bpm when not even one segment fits.
    """
    x = as_signal(signal)
    if x.size < MIN_TRANSFORM_SAMPLES or is_flat(x):
        return None
    if segment_length is None:
        seg_len = min(next_pow2(x.size), x.size)
    else:
        seg_len = int(segment_length)
    if seg_len < MIN_TRANSFORM_SAMPLES or seg_len > x.size:
        return estimate_bpm(x, fs)
    step = seg_len - int(np.floor(seg_len * WELCH_OVERLAP))
    n_segs = (x.size - seg_len) // step + 1
    if n_segs < 1:
        return estimate_bpm(x, fs)

    n = next_pow2(seg_len)
    avg = np.zeros(n // 2 + 1, dtype=np.float64)
    for s in range(n_segs):
        spec = transform(x[s * step : s * step + seg_len], fs)
        avg += spec.power / n_segs

    lo = max(1, int(np.floor(WELCH_BAND_HZ[0] * n / fs)))
    hi = min(int(np.ceil(WELCH_BAND_HZ[1] * n / fs)), n // 2)
    k, peak = first_peak(avg, lo, hi)
    if peak <= 0:
        return None
    if lo < k < hi:
        a, b, c = avg[k - 1], avg[k], avg[k + 1]
        denom = 2.0 * (a - 2.0 * b + c)
        if denom != 0:
            delta = (a - c) / denom
            if np.isfinite(delta) and abs(delta) < 1:
                return float((k + delta) * fs / n * 60.0)
    return float(k * fs / n * 60.0)
