from __future__ import annotations

import json

import numpy as np
import pytest

from rppg_vitals.fusion import fused_heart_rate
from rppg_vitals.pipeline import (
    PipelineConfig,
    SessionAccumulator,
    analyze_window,
    estimate_fps,
)
from rppg_vitals.respiration import estimate_breathing_rate


def _face_rgb(fs: float = 30.0, dur: float = 20.0, f: float = 1.2):
    t = np.arange(0, dur, 1 / fs)
    s = np.sin(2 * np.pi * f * t)
    rng = np.random.RandomState(0)
    R = 150.0 + 0.4 * s + 0.05 * rng.randn(t.size)
    G = 110.0 + 0.9 * s + 0.05 * rng.randn(t.size)
    B = 90.0 + 0.2 * s + 0.05 * rng.randn(t.size)
    return R, G, B


def test_estimate_fps() -> None:
    assert estimate_fps([]) == 30.0
    assert estimate_fps([1000.0]) == 30.0
    assert estimate_fps([0.0, 1000.0]) == pytest.approx(2.0)
    assert estimate_fps(np.arange(300) * 50.0) == pytest.approx(300 / 14.95)


def test_short_window_reports_nothing() -> None:
    R, G, B = _face_rgb(dur=1.5)
    report = analyze_window(R, G, B, fs=30.0)
    assert report.n_samples < 60
    assert report.hr is None
    assert report.quality.score == 0
    assert report.hrv is None
    assert report.emotion.level == "unknown"
    assert report.spo2 is None
    assert report.breathing_rate is None
    assert report.harmonics is None


def test_full_window_report() -> None:
    R, G, B = _face_rgb()
    report = analyze_window(R, G, B, fs=30.0)
    assert report.hr is not None and 69.0 <= report.hr <= 75.0
    assert report.quality.usable
    assert not report.motion
    assert len(report.beats) > 10
    assert report.hrv is not None
    assert report.emotion.level != "unknown"
    assert report.spo2 is not None and 85.0 <= report.spo2 <= 100.0
    assert report.harmonics is not None
    assert len(report.harmonics.harmonics) == 11
    d = report.as_dict()
    json.dumps(d)
    assert d["hrv"]["lf_hf_is_proxy"] is True
    assert isinstance(d["spo2"], int)


def test_breathing_rate_uses_unfiltered_waveform() -> None:
    fs = 30.0
    t = np.arange(0, 30.0, 1 / fs)
    resp = 1.5 * np.sin(2 * np.pi * 0.25 * t)
    R, G, B = _face_rgb(dur=30.0)
    R, G, B = R + 0.5 * resp, G + resp, B + 0.3 * resp
    report = analyze_window(R, G, B, fs=fs)
    fused = fused_heart_rate(R, G, B, fs)
    assert report.breathing_rate == estimate_breathing_rate(fused.raw, fs)


def test_strict_flag_reaches_harmonics() -> None:
    R, G, B = _face_rgb()
    report = analyze_window(R, G, B, fs=30.0, config=PipelineConfig(strict=True))
    assert report.harmonics is not None and report.harmonics.strict


def test_malformed_input_raises() -> None:
    R, G, B = _face_rgb()
    with pytest.raises(ValueError):
        analyze_window(R, G, B[:-1], fs=30.0)
    with pytest.raises(ValueError):
        analyze_window(-R, G, B, fs=30.0)
    with pytest.raises(ValueError):
        analyze_window(R, G, B, fs=0.0)


def test_session_summary() -> None:
    acc = SessionAccumulator()
    assert acc.summary() is None
    R, G, B = _face_rgb()
    for k, end in enumerate((400, 500, 600)):
        acc.add(analyze_window(R[:end], G[:end], B[:end], fs=30.0), t_ms=1000.0 * k)
    s = acc.summary()
    assert s is not None
    assert 69.0 <= s.min_hr <= s.avg_hr <= s.max_hr <= 75.0
    assert s.duration_s == pytest.approx(2.0)
    assert s.avg_spo2 is not None
    acc.reset()
    assert acc.summary() is None
    assert acc.quality == []
