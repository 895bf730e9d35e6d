from __future__ import annotations

import numpy as np

from rppg_vitals.spectrum import fft_inplace, first_peak, next_pow2, transform


def test_next_pow2() -> None:
    assert next_pow2(1) == 1
    assert next_pow2(3) == 4
    assert next_pow2(300) == 512
    assert next_pow2(512) == 512


def test_fft_matches_numpy() -> None:
    x = np.random.RandomState(0).randn(64)
    re = x.copy()
    im = np.zeros(64)
    fft_inplace(re, im)
    ref = np.fft.fft(x)
    assert np.allclose(re, ref.real, atol=1e-9)
    assert np.allclose(im, ref.imag, atol=1e-9)


def test_transform_too_short_returns_none() -> None:
    assert transform(np.array([1.0, 2.0]), fs=30.0) is None


def test_window_applies_to_original_samples_only() -> None:
    spec = transform(np.ones(5), fs=30.0)
    assert spec is not None
    assert spec.n == 8
    # DC bin = sum of the 5-point Hann window (0, .5, 1, .5, 0)
    assert np.isclose(spec.re[0], 2.0)
    raw = transform(np.ones(5), fs=30.0, window=None)
    assert np.isclose(raw.re[0], 5.0)


def test_sine_peak_within_one_bin() -> None:
    fs = 30.0
    f = 1.2
    t = np.arange(0, 10.0, 1 / fs)
    spec = transform(np.sin(2 * np.pi * f * t), fs=fs)
    k, _ = first_peak(spec.power, 1, spec.nyquist_bin)
    assert abs(k - round(f * spec.n / fs)) <= 1
    assert abs(spec.bin_to_hz(k) - f) < fs / spec.n


def test_first_peak_keeps_earliest_on_ties() -> None:
    v = np.array([0.0, 3.0, 5.0, 5.0, 1.0])
    assert first_peak(v, 0, 4) == (2, 5.0)
    assert first_peak(np.zeros(5), 1, 3) == (1, 0.0)
