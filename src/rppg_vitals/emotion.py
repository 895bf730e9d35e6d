"""Rule-based stress / emotional-state classification from HRV."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .hrv import HrvMetrics


@dataclass(frozen=True)
class EmotionState:
    label: str
    level: str  # very-low | low | medium | medium-high | high | unknown
    color: str
    score: Optional[int]  # accumulated stress points, None when unknown


UNKNOWN = EmotionState(label="unknown", level="unknown", color="#8e8e93", score=None)

# (minimum score, label, level, color), highest severity first
SEVERITY_BUCKETS: tuple[tuple[int, str, str, str], ...] = (
    (7, "highly tense", "high", "#ff2d55"),
    (5, "tense", "medium-high", "#ff9f0a"),
    (3, "neutral", "medium", "#ffd60a"),
    (1, "relaxed", "low", "#30d158"),
    (0, "very relaxed", "very-low", "#5ac8fa"),
)


def stress_score(hrv: HrvMetrics, hr: float) -> int:
    """Accumulate stress points from fixed HRV and HR cut points."""
    score = 0
    # Low HRV -> high stress
    if hrv.sdnn < 20:
        score += 3
    elif hrv.sdnn < 40:
        score += 2
    elif hrv.sdnn < 60:
        score += 1

    if hrv.rmssd < 15:
        score += 2
    elif hrv.rmssd < 30:
        score += 1

    if hrv.pnn50 < 3:
        score += 1

    if hr > 100:
        score += 2
    elif hr > 85:
        score += 1

    # sympathetic dominance (sdnn/rmssd proxy)
    if hrv.lf_hf_ratio > 2.5:
        score += 2
    elif hrv.lf_hf_ratio > 1.5:
        score += 1
    return score


def classify_emotion(hrv: HrvMetrics | None, hr: float | None) -> EmotionState:
    """Map HRV metrics and instantaneous HR to one of five severity buckets.

    Returns UNKNOWN when HRV or HR is absent.
    """
    if hrv is None or hr is None:
        return UNKNOWN
    score = stress_score(hrv, hr)
    for min_score, label, level, color in SEVERITY_BUCKETS:
        if score >= min_score:
            return EmotionState(label=label, level=level, color=color, score=score)
    return UNKNOWN
