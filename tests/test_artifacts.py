from __future__ import annotations

import numpy as np
import pytest

from rppg_vitals.artifacts import compensate_ambient_light, detect_motion


def test_ambient_short_input_passthrough_copy() -> None:
    r = np.arange(5, dtype=np.float64)
    r2, g2, b2 = compensate_ambient_light(r, r, r)
    assert np.array_equal(r2, r)
    assert r2 is not r


def test_ambient_removes_slow_drift() -> None:
    t = np.arange(300, dtype=np.float64)
    drift = 100.0 * (1.0 + 0.001 * t)
    r, g, b = compensate_ambient_light(drift, drift * 0.8, drift * 0.6)
    inner = slice(30, -30)
    assert np.std(r[inner]) < 0.1 * np.std(drift)
    # anchored to the first sample's level
    assert abs(np.mean(r[inner]) - 100.0) < 1.0


def test_detect_motion() -> None:
    flat = np.full(100, 120.0)
    assert detect_motion(flat, flat, flat, 30) is False
    jump = flat.copy()
    jump[-1] = 150.0
    assert detect_motion(jump, jump, jump, 30) is True
    # too short to judge -> no motion reported
    assert detect_motion(jump[:20], jump[:20], jump[:20], 30) is False


def test_channel_length_mismatch_raises() -> None:
    with pytest.raises(ValueError):
        detect_motion(np.ones(40), np.ones(40), np.ones(39), 30)
