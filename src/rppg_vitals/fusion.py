"""Quality-weighted fusion of the POS and CHROM heart-rate paths."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .artifacts import as_channels, compensate_ambient_light
from .bpm import estimate_bpm_welch
from .chrom import chrom_signal
from .pos import pos_signal
from .preprocess import bandpass
from .quality import QualityScore, assess_quality


@dataclass(frozen=True)
class PathResult:
    algo: str  # "POS" | "CHROM"
    raw: np.ndarray  # extractor output before band-pass
    filtered: np.ndarray
    quality: QualityScore
    hr: float | None


@dataclass(frozen=True)
class FusionResult:
    hr: float | None
    filtered: np.ndarray  # waveform of the better path
    raw: np.ndarray
    quality: QualityScore
    algo: str  # path whose waveform is surfaced
    pos: PathResult
    chrom: PathResult


def _run_path(algo: str, pulse: np.ndarray, fs: float) -> PathResult:
    filtered = bandpass(pulse, fs)
    return PathResult(
        algo=algo,
        raw=pulse,
        filtered=filtered,
        quality=assess_quality(filtered, fs),
        hr=estimate_bpm_welch(filtered, fs),
    )


def _weighted_hr(pos: PathResult, chrom: PathResult) -> float | None:
    pairs = [(p.hr, p.quality.score) for p in (pos, chrom) if p.hr is not None]
    total = sum(q for _, q in pairs)
    if total == 0:
        return pos.hr
    return sum(hr * q for hr, q in pairs) / total


def fused_heart_rate(
    R: np.ndarray, G: np.ndarray, B: np.ndarray, fs: float
) -> FusionResult:
    """Run POS and CHROM independently and fuse their HR estimates.

    Both paths go through ambient-light compensation, extraction, band-pass,
    quality scoring and Welch HR. The reported HR is the average weighted by
    quality score; when both scores are 0 the POS result is reported. The
    surfaced waveform and quality come from the higher-scoring path (ties
    favour POS).
    """
    R, G, B = compensate_ambient_light(*as_channels(R, G, B))
    pos = _run_path("POS", pos_signal(R, G, B, fs), fs)
    chrom = _run_path("CHROM", chrom_signal(R, G, B), fs)
    best = pos if pos.quality.score >= chrom.quality.score else chrom
    return FusionResult(
        hr=_weighted_hr(pos, chrom),
        filtered=best.filtered,
        raw=best.raw,
        quality=best.quality,
        algo=best.algo,
        pos=pos,
        chrom=chrom,
    )
