"""Quality metrics for rPPG signals.

Combines in-band SNR, spectral peak sharpness and amplitude stationarity into
a single 0..99 score.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .preprocess import round_half_up
from .spectrum import as_signal, is_flat, transform

MIN_SAMPLES = 60
HR_BAND_HZ = (0.7, 3.33)
USABLE_SCORE = 25


@dataclass(frozen=True)
class QualityScore:
    score: int  # 0..99
    usable: bool  # score > 25
    snr: float  # dB


UNUSABLE = QualityScore(score=0, usable=False, snr=0.0)


def _stationarity(x: np.ndarray) -> float:
    half = x.size // 2
    s1 = float(np.std(x[:half]))
    s2 = float(np.std(x[half:]))
    hi = max(s1, s2)
    if hi <= 0:
        return 0.0
    return min(s1, s2) / hi


def assess_quality(signal: np.ndarray, fs: float) -> QualityScore:
    """Score a band-passed pulse waveform.

    score = min(40, 8 * snr) + min(35, 7 * (par - 2)) + 25 * stationarity,
    with negative contributions dropped and the total clipped to 0..99.
    ``par`` is the ratio of the strongest HR-band bin to the HR-band mean.

    Args:
        signal: filtered waveform (1D array).
        fs: sampling rate [Hz].
    """
    x = as_signal(signal)
    if x.size < MIN_SAMPLES or is_flat(x):
        return UNUSABLE
    spec = transform(x, fs)
    if spec is None:
        return UNUSABLE
    p = spec.power
    nyq = spec.nyquist_bin
    lo = max(1, spec.floor_bin(HR_BAND_HZ[0]))
    hi = min(spec.ceil_bin(HR_BAND_HZ[1]), nyq)
    total = float(p[1 : nyq + 1].sum())
    band = p[lo : hi + 1]
    signal_power = float(band.sum())
    peak_power = float(band.max()) if band.size else 0.0

    noise_power = total - signal_power
    snr = 0.0
    if noise_power > 0 and signal_power > 0:
        snr = 10.0 * float(np.log10(signal_power / noise_power))

    mean_band = signal_power / (hi - lo + 1) if hi >= lo else 0.0
    par = peak_power / mean_band if mean_band > 0 else 0.0

    score = 0.0
    if snr > 0:
        score += min(40.0, snr * 8)
    if par > 2:
        score += min(35.0, (par - 2) * 7)
    score += _stationarity(x) * 25
    score_i = min(99, max(0, round_half_up(score)))
    return QualityScore(score=score_i, usable=score_i > USABLE_SCORE, snr=snr)
