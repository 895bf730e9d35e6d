"""Per-tick vitals pipeline.

Runs the full chain on one frozen RGB window: motion check, POS/CHROM fusion,
beat detection, HRV, stress state, SpO2, breathing rate and the harmonic
profile. Every function here is stateless; the caller owns the sample buffer
and, optionally, a SessionAccumulator.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

import numpy as np

from .artifacts import as_channels, detect_motion
from .emotion import EmotionState, UNKNOWN, classify_emotion
from .fusion import fused_heart_rate
from .harmonics import HarmonicProfile, analyze_harmonics
from .hrv import HrvMetrics, compute_hrv
from .outliers import reject_outliers_iqr
from .peaks import find_peaks_adaptive, rr_intervals_ms
from .quality import MIN_SAMPLES as MIN_HR_SAMPLES
from .quality import QualityScore, UNUSABLE
from .respiration import estimate_breathing_rate
from .spo2 import estimate_spo2

logger = logging.getLogger(__name__)

DEFAULT_FPS = 30.0


def estimate_fps(timestamps_ms: Sequence[float]) -> float:
    """Effective frame rate from capture timestamps [ms].

    count / ((last - first) / 1000); 30 fps with fewer than 2 timestamps.
    """
    t = np.asarray(timestamps_ms, dtype=np.float64)
    if t.size < 2:
        return DEFAULT_FPS
    span = (t[-1] - t[0]) / 1000.0
    if span <= 0:
        return DEFAULT_FPS
    return float(t.size / span)


@dataclass
class PipelineConfig:
    strict: bool = False  # harmonic analyzer range table
    motion_window: int = 30  # samples
    win_sec: float = 10.0  # analysis window kept by callers


@dataclass(frozen=True)
class VitalsReport:
    fps: float
    n_samples: int
    hr: Optional[float]
    quality: QualityScore
    algo: Optional[str]
    motion: bool
    beats: tuple[int, ...]
    hrv: Optional[HrvMetrics]
    emotion: EmotionState
    spo2: Optional[float]
    breathing_rate: Optional[float]
    harmonics: Optional[HarmonicProfile]

    def as_dict(self) -> dict:
        """JSON-friendly view, rounded for display."""
        hrv = None
        if self.hrv is not None:
            hrv = {
                "sdnn": round(self.hrv.sdnn),
                "rmssd": round(self.hrv.rmssd),
                "pnn50": round(self.hrv.pnn50, 1),
                "lf_hf_ratio": round(self.hrv.lf_hf_ratio, 2),
                "lf_hf_is_proxy": True,
                "mean_rr": round(self.hrv.mean_rr),
            }
        harmonics = None
        if self.harmonics is not None:
            hp = self.harmonics
            harmonics = {
                "fundamental_hz": round(hp.fundamental_hz, 2),
                "constitution": hp.constitution,
                "healthy_order": hp.healthy_order,
                "strict": hp.strict,
                "note": hp.note,
                "harmonics": [
                    {
                        "index": h.index,
                        "name": h.name,
                        "organ": h.organ,
                        "frequency": round(h.frequency, 2),
                        "amplitude": h.amplitude,
                        "percentage": round(h.percentage, 1),
                        "normalized": round(h.normalized, 3),
                        "status": h.status,
                        "expected_range": h.expected_range,
                    }
                    for h in hp.harmonics
                ],
            }
        return {
            "fps": round(self.fps, 2),
            "n_samples": self.n_samples,
            "hr": round(self.hr, 1) if self.hr is not None else None,
            "quality": {
                "score": self.quality.score,
                "usable": self.quality.usable,
                "snr": round(self.quality.snr, 1),
            },
            "algo": self.algo,
            "motion": self.motion,
            "beats": len(self.beats),
            "hrv": hrv,
            "emotion": {
                "label": self.emotion.label,
                "level": self.emotion.level,
                "color": self.emotion.color,
            },
            "spo2": round(self.spo2) if self.spo2 is not None else None,
            "breathing_rate": (
                round(self.breathing_rate) if self.breathing_rate is not None else None
            ),
            "harmonics": harmonics,
        }


def _empty_report(fps: float, n: int, motion: bool) -> VitalsReport:
    return VitalsReport(
        fps=fps,
        n_samples=n,
        hr=None,
        quality=UNUSABLE,
        algo=None,
        motion=motion,
        beats=(),
        hrv=None,
        emotion=UNKNOWN,
        spo2=None,
        breathing_rate=None,
        harmonics=None,
    )


def analyze_window(
    R: np.ndarray,
    G: np.ndarray,
    B: np.ndarray,
    fs: float,
    config: Optional[PipelineConfig] = None,
) -> VitalsReport:
    """Compute every vital-sign estimate for one window of RGB samples.

    Args:
        R, G, B: raw per-frame channel means (equal length, time-ordered).
        fs: sampling rate [Hz].
        config: pipeline options; defaults to PipelineConfig().

    Metrics whose minimum length is not met are None. Inputs are copied, so
    the caller may keep appending to its own buffers.
    """
    cfg = config or PipelineConfig()
    R, G, B = as_channels(R, G, B)
    if fs <= 0:
        raise ValueError(f"sample rate must be positive, got {fs}")
    if (R < 0).any() or (G < 0).any() or (B < 0).any():
        raise ValueError("channel samples must be non-negative")
    n = R.size
    motion = detect_motion(R, G, B, cfg.motion_window)
    if motion:
        logger.debug("motion detected in last %d samples", cfg.motion_window)
    if n < MIN_HR_SAMPLES:
        logger.debug("insufficient samples: %d < %d", n, MIN_HR_SAMPLES)
        return _empty_report(fs, n, motion)

    fused = fused_heart_rate(R, G, B, fs)
    beats = find_peaks_adaptive(fused.filtered, fs)
    hrv = compute_hrv(rr_intervals_ms(beats, fs))
    report = VitalsReport(
        fps=fs,
        n_samples=n,
        hr=fused.hr,
        quality=fused.quality,
        algo=fused.algo,
        motion=motion,
        beats=tuple(beats),
        hrv=hrv,
        emotion=classify_emotion(hrv, fused.hr),
        spo2=estimate_spo2(R, B),
        breathing_rate=estimate_breathing_rate(fused.raw, fs),
        harmonics=analyze_harmonics(fused.filtered, fs, strict=cfg.strict),
    )
    logger.debug(
        "tick n=%d hr=%s q=%d algo=%s beats=%d",
        n,
        report.hr,
        report.quality.score,
        report.algo,
        len(beats),
    )
    return report


@dataclass(frozen=True)
class SessionSummary:
    duration_s: float
    avg_hr: float
    max_hr: float
    min_hr: float
    avg_hrv: Optional[float]  # mean RMSSD [ms]
    avg_spo2: Optional[float]
    avg_breath: Optional[float]
    quality_score: float
    constitution: str
    emotion: str


def _mean(values: list[float]) -> Optional[float]:
    return float(np.mean(values)) if values else None


@dataclass
class SessionAccumulator:
    """Collects per-tick reports of one measurement session.

    Owned by a single caller; not safe to share between threads.
    """

    hr: list[float] = field(default_factory=list)
    rmssd: list[float] = field(default_factory=list)
    spo2: list[float] = field(default_factory=list)
    breath: list[float] = field(default_factory=list)
    quality: list[int] = field(default_factory=list)
    constitution: str = ""
    emotion: str = ""
    t_first: Optional[float] = None
    t_last: Optional[float] = None

    def add(self, report: VitalsReport, t_ms: Optional[float] = None) -> None:
        if t_ms is not None:
            if self.t_first is None:
                self.t_first = t_ms
            self.t_last = t_ms
        self.quality.append(report.quality.score)
        # Only HR from usable signal enters the session statistics
        if report.hr is not None and report.quality.usable:
            self.hr.append(report.hr)
        if report.hrv is not None:
            self.rmssd.append(report.hrv.rmssd)
        if report.spo2 is not None:
            self.spo2.append(report.spo2)
        if report.breathing_rate is not None:
            self.breath.append(report.breathing_rate)
        if report.harmonics is not None:
            self.constitution = report.harmonics.constitution
        if report.emotion.score is not None:
            self.emotion = report.emotion.label

    def reset(self) -> None:
        self.__init__()

    def summary(self) -> Optional[SessionSummary]:
        hr = reject_outliers_iqr(self.hr)
        if not hr:
            return None
        duration = 0.0
        if self.t_first is not None and self.t_last is not None:
            duration = (self.t_last - self.t_first) / 1000.0
        return SessionSummary(
            duration_s=duration,
            avg_hr=float(np.mean(hr)),
            max_hr=float(np.max(hr)),
            min_hr=float(np.min(hr)),
            avg_hrv=_mean(self.rmssd),
            avg_spo2=_mean(self.spo2),
            avg_breath=_mean(self.breath),
            quality_score=float(np.mean(self.quality)) if self.quality else 0.0,
            constitution=self.constitution,
            emotion=self.emotion,
        )
