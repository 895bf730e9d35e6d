from __future__ import annotations

import numpy as np

from rppg_vitals.preprocess import bandpass, butterworth_coefficients, detrend


def test_detrend_constant_signal() -> None:
    x = np.full(100, 7.0)
    y = detrend(x, window_size=10)
    assert np.allclose(y, 0.0, atol=1e-9)


def test_detrend_removes_linear_drift() -> None:
    x = np.arange(100, dtype=np.float64)
    y = detrend(x, window_size=10)
    # Window [i-5, i+5) has mean i - 0.5 away from the edges
    assert np.allclose(y[5:95], 0.5)


def test_butterworth_is_stable_bandpass() -> None:
    b, a = butterworth_coefficients(30.0)
    assert b[1] == 0.0 and np.isclose(b[2], -b[0])
    assert np.all(np.abs(np.roots(a)) < 1.0)


def test_bandpass_preserves_inband_and_attenuates_outband() -> None:
    fs = 30.0
    t = np.arange(0, 10.0, 1 / fs)
    # In-band 1.2 Hz and out-of-band 0.2 Hz components
    x = np.sin(2 * np.pi * 1.2 * t) + 0.3 * np.sin(2 * np.pi * 0.2 * t)
    y = bandpass(x, fs=fs)
    assert y.shape == x.shape
    # skip the start-up transient of the causal filter
    corr = np.corrcoef(y[60:], np.sin(2 * np.pi * 1.2 * t[60:]))[0, 1]
    assert corr > 0.7


def test_bandpass_is_causal() -> None:
    x = np.zeros(50)
    x[20] = 1.0
    y = bandpass(x, fs=30.0)
    assert np.all(y[:20] == 0.0)
    assert y[20] != 0.0
