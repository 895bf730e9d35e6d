from __future__ import annotations

import pytest

from rppg_vitals.emotion import UNKNOWN, classify_emotion, stress_score
from rppg_vitals.hrv import HrvMetrics


def _hrv(sdnn: float, rmssd: float, pnn50: float, lf_hf: float) -> HrvMetrics:
    return HrvMetrics(sdnn=sdnn, rmssd=rmssd, pnn50=pnn50, lf_hf_ratio=lf_hf, mean_rr=800.0)


def test_missing_hrv_is_unknown() -> None:
    assert classify_emotion(None, 70.0) == UNKNOWN
    assert classify_emotion(_hrv(50, 40, 20, 1.0), None) == UNKNOWN
    assert UNKNOWN.score is None


@pytest.mark.parametrize(
    "hrv, hr, score, level",
    [
        (_hrv(80, 60, 30, 1.33), 60.0, 0, "very-low"),
        (_hrv(55, 60, 30, 1.0), 60.0, 1, "low"),
        (_hrv(50, 25, 10, 2.0), 90.0, 4, "medium"),
        (_hrv(30, 20, 2, 1.6), 80.0, 5, "medium-high"),
        (_hrv(10, 10, 0, 2.6), 110.0, 10, "high"),
    ],
)
def test_severity_buckets(hrv: HrvMetrics, hr: float, score: int, level: str) -> None:
    assert stress_score(hrv, hr) == score
    state = classify_emotion(hrv, hr)
    assert state.level == level
    assert state.score == score
    assert state.color.startswith("#")
