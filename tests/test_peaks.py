from __future__ import annotations

import numpy as np

from rppg_vitals.peaks import find_peaks_adaptive, rr_intervals_ms


def test_peaks_on_sine() -> None:
    fs = 30.0
    t = np.arange(0, 10.0, 1 / fs)
    x = np.sin(2 * np.pi * 1.2 * t)
    beats = find_peaks_adaptive(x, fs)
    assert len(beats) == 12
    assert np.all(np.diff(beats) == 25)
    rr = rr_intervals_ms(beats, fs)
    assert np.allclose(rr, 25 / fs * 1000.0)


def test_refractory_period_enforced() -> None:
    x = np.zeros(100)
    x[20] = 1.0
    x[26] = 0.9  # 0.2 s after the previous beat at 30 fps
    x[50] = 1.0
    assert find_peaks_adaptive(x, fs=30.0) == [20, 50]


def test_plateau_is_not_a_beat() -> None:
    x = np.zeros(40)
    x[10:12] = 1.0
    assert find_peaks_adaptive(x, fs=30.0) == []


def test_rr_intervals_need_two_beats() -> None:
    assert rr_intervals_ms([5], 30.0).size == 0
    assert np.allclose(rr_intervals_ms([0, 30, 60], 30.0), [1000.0, 1000.0])
