"""Respiration rate (RR) estimation from the rPPG waveform.

Breathing modulates the pulse waveform at 0.15-0.5 Hz; the strongest bin in
that band is taken as the breathing rate.
"""

from __future__ import annotations

import numpy as np

from .spectrum import as_signal, first_peak, is_flat, transform

MIN_SAMPLES = 90
RR_BAND_HZ = (0.15, 0.5)
BRPM_MIN = 8.0
BRPM_MAX = 35.0


def estimate_breathing_rate(signal: np.ndarray, fs: float) -> float | None:
    """Estimate breaths per minute from an unfiltered pulse waveform.

    Args:
        signal: rPPG waveform that still carries the respiratory band.
        fs: sampling rate (Hz)

    Returns:
        Breaths/min, or None if fewer than 90 samples or the peak falls
        outside 8-35 breaths/min.
    """
    x = as_signal(signal)
    if x.size < MIN_SAMPLES or is_flat(x):
        return None
    spec = transform(x, fs)
    if spec is None:
        return None
    lo = spec.floor_bin(RR_BAND_HZ[0])
    hi = min(spec.ceil_bin(RR_BAND_HZ[1]), spec.nyquist_bin)
    k, peak = first_peak(spec.power, max(1, lo), hi)
    if peak <= 0:
        return None
    brpm = spec.bin_to_hz(k) * 60.0
    if not (BRPM_MIN <= brpm <= BRPM_MAX):
        return None
    return brpm
