"""Pulse harmonic (meridian) analysis.

Decomposes the pulse spectrum into the fundamental (C0) and ten harmonics
(C1-C10), following Wang Wei-Gong's resonance model in which each harmonic
is associated with an organ meridian. Every harmonic's share of the total
energy is compared against an expected range, and the first five harmonics
drive a constitution label.

Output is a traditional-medicine wellness indicator from a camera signal,
not a clinical pulse diagnosis.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Sequence

import numpy as np

from .spectrum import as_signal, first_peak, is_flat, transform

MIN_SAMPLES = 90
FUNDAMENTAL_BAND_HZ = (0.8, 2.5)
N_HARMONICS = 11
SEARCH_BINS = 2

# (name, organ) for C0..C10
MERIDIANS: tuple[tuple[str, str], ...] = (
    ("heart", "heart"),
    ("liver", "liver meridian"),
    ("kidney", "kidney meridian"),
    ("spleen", "spleen meridian"),
    ("lung", "lung meridian"),
    ("stomach", "stomach meridian"),
    ("gallbladder", "gallbladder meridian"),
    ("bladder", "bladder meridian"),
    ("large intestine", "large intestine meridian"),
    ("triple burner", "triple burner meridian"),
    ("small intestine", "small intestine meridian"),
)

# Expected share of total energy [%] per harmonic, (min, max).
STRICT_RANGES: tuple[tuple[float, float], ...] = (
    (30, 45),
    (15, 25),
    (10, 18),
    (6, 12),
    (3, 8),
    (2, 6),
    (1, 5),
    (0.5, 4),
    (0.3, 3),
    (0.2, 2),
    (0.1, 2),
)
NORMAL_RANGES: tuple[tuple[float, float], ...] = (
    (25, 55),
    (12, 28),
    (7, 20),
    (4, 14),
    (2, 10),
    (1, 8),
    (0.5, 6),
    (0.3, 5),
    (0.2, 4),
    (0.1, 3),
    (0.1, 3),
)

STATUS_EXCESS = "excess"
STATUS_NORMAL = "normal"
STATUS_MILD_DEFICIENCY = "mild deficiency"
STATUS_MARKED_DEFICIENCY = "marked deficiency"
STATUS_MILDLY_ELEVATED = "mildly elevated"

HEART_SPLEEN_DEFICIENCY = "heart-spleen deficiency (watch cardiovascular health)"
LIVER_QI_EXCESS = "liver-qi excess"
KIDNEY_QI_DEFICIENCY = "kidney-qi deficiency"
SPLEEN_QI_WEAKNESS = "spleen-qi weakness"
LUNG_QI_DEFICIENCY = "lung-qi deficiency"
BALANCED = "balanced qi and blood"
SLIGHT_DEVIATION = "slight deviation"

NOTE_STRICT = (
    "Strict mode: narrowed ranges, for in-depth reference only, "
    "not a clinical diagnosis"
)
NOTE_NORMAL = (
    "rPPG-derived, for reference only; "
    "use a dedicated pulse analyzer for diagnosis"
)


@dataclass(frozen=True)
class Thresholds:
    ranges: tuple[tuple[float, float], ...]
    over: float  # status "excess" above max * over
    weak: float  # "mild" vs "marked" deficiency boundary at min * weak
    excess: float  # liver-qi excess above max * excess
    deficiency: float  # organ deficiency below min * deficiency


STRICT = Thresholds(STRICT_RANGES, over=1.1, weak=0.8, excess=1.05, deficiency=0.8)
NORMAL = Thresholds(NORMAL_RANGES, over=1.3, weak=0.5, excess=1.2, deficiency=0.6)


def thresholds_for(strict: bool) -> Thresholds:
    return STRICT if strict else NORMAL


@dataclass(frozen=True)
class Harmonic:
    index: int  # 0 = fundamental
    name: str
    organ: str
    frequency: float  # Hz
    amplitude: float
    percentage: float  # share of total energy [%]
    normalized: float  # amplitude / C0 amplitude
    status: str
    expected_range: str


@dataclass(frozen=True)
class HarmonicProfile:
    harmonics: tuple[Harmonic, ...]
    fundamental_hz: float
    constitution: str
    total_energy: float
    healthy_order: bool  # C1 > C2 > C3 > C4
    strict: bool
    note: str


def harmonic_status(
    percentage: float, rng: tuple[float, float], th: Thresholds
) -> str:
    """Classify one harmonic's energy share against its expected range."""
    lo, hi = rng
    if percentage > hi * th.over:
        return STATUS_EXCESS
    if lo <= percentage <= hi:
        return STATUS_NORMAL
    if lo * th.weak <= percentage < lo:
        return STATUS_MILD_DEFICIENCY
    if percentage < lo * th.weak:
        return STATUS_MARKED_DEFICIENCY
    return STATUS_MILDLY_ELEVATED


def _format_range(rng: tuple[float, float]) -> str:
    return f"{rng[0]:g}-{rng[1]:g}%"


@dataclass(frozen=True)
class _Pattern:
    pct: Sequence[float]
    statuses: Sequence[str]
    th: Thresholds
    strict: bool

    def below_min(self, i: int, factor: float = 1.0) -> bool:
        return self.pct[i] < self.th.ranges[i][0] * factor

    @property
    def healthy_order(self) -> bool:
        p = self.pct
        return p[1] > p[2] > p[3] > p[4]


# Evaluated top to bottom, first match wins. Clinical precedence: a combined
# heart/spleen deficiency outranks single-organ findings, excess is checked
# before deficiencies, and "balanced" is only considered once no finding
# applies. Do not reorder.
CONSTITUTION_RULES: tuple[tuple[Callable[[_Pattern], bool], str], ...] = (
    (lambda p: p.below_min(0) and p.below_min(3), HEART_SPLEEN_DEFICIENCY),
    (lambda p: p.pct[1] > p.th.ranges[1][1] * p.th.excess, LIVER_QI_EXCESS),
    (lambda p: p.below_min(2, p.th.deficiency), KIDNEY_QI_DEFICIENCY),
    (lambda p: p.below_min(3, p.th.deficiency), SPLEEN_QI_WEAKNESS),
    (lambda p: p.below_min(4, p.th.deficiency), LUNG_QI_DEFICIENCY),
    (
        lambda p: p.healthy_order
        and not p.below_min(0)
        and (not p.strict or all(s == STATUS_NORMAL for s in p.statuses)),
        BALANCED,
    ),
)


def classify_constitution(
    percentages: Sequence[float],
    statuses: Sequence[str],
    strict: bool = False,
) -> str:
    """Map harmonic percentages (C0..C10) to a constitution label."""
    if len(percentages) != N_HARMONICS or len(statuses) != N_HARMONICS:
        raise ValueError(f"expected {N_HARMONICS} harmonics")
    pattern = _Pattern(percentages, statuses, thresholds_for(strict), strict)
    for predicate, label in CONSTITUTION_RULES:
        if predicate(pattern):
            return label
    return SLIGHT_DEVIATION


def harmonic_amplitudes(mag: np.ndarray, fund_bin: int) -> np.ndarray:
    """Peak magnitude within +/- 2 bins of each harmonic's target bin."""
    nyq = mag.size - 1
    amps = np.zeros(N_HARMONICS, dtype=np.float64)
    for h in range(N_HARMONICS):
        target = fund_bin * (h + 1)
        lo = max(1, target - SEARCH_BINS)
        hi = min(nyq, target + SEARCH_BINS)
        if hi >= lo:
            amps[h] = float(mag[lo : hi + 1].max())
    return amps


def analyze_harmonics(
    signal: np.ndarray, fs: float, strict: bool = False
) -> HarmonicProfile | None:
    """Build the C0..C10 harmonic profile of a pulse waveform.

    Args:
        signal: pulse waveform (1D array).
        fs: sampling rate (Hz).
        strict: use the narrower research-grade ranges and multipliers.

    Returns:
        HarmonicProfile, or None for fewer than 90 samples or zero energy.
    """
    x = as_signal(signal)
    if x.size < MIN_SAMPLES or is_flat(x):
        return None
    spec = transform(x, fs)
    if spec is None:
        return None
    mag = spec.magnitude
    lo = max(1, spec.floor_bin(FUNDAMENTAL_BAND_HZ[0]))
    hi = min(spec.ceil_bin(FUNDAMENTAL_BAND_HZ[1]), spec.nyquist_bin)
    fund_bin, _ = first_peak(mag, lo, hi)
    fund_hz = spec.bin_to_hz(fund_bin)

    amps = harmonic_amplitudes(mag, fund_bin)
    total = float(amps.sum())
    if total <= 0:
        return None

    th = thresholds_for(strict)
    pct = amps / total * 100.0
    c0 = amps[0]
    norm = amps / c0 if c0 > 0 else np.zeros_like(amps)
    statuses = [
        harmonic_status(float(pct[h]), th.ranges[h], th) for h in range(N_HARMONICS)
    ]
    harmonics = tuple(
        Harmonic(
            index=h,
            name=MERIDIANS[h][0],
            organ=MERIDIANS[h][1],
            frequency=fund_hz * (h + 1),
            amplitude=float(amps[h]),
            percentage=float(pct[h]),
            normalized=float(norm[h]),
            status=statuses[h],
            expected_range=_format_range(th.ranges[h]),
        )
        for h in range(N_HARMONICS)
    )
    pct_list = pct.tolist()
    return HarmonicProfile(
        harmonics=harmonics,
        fundamental_hz=fund_hz,
        constitution=classify_constitution(pct_list, statuses, strict),
        total_energy=total,
        healthy_order=pct_list[1] > pct_list[2] > pct_list[3] > pct_list[4],
        strict=strict,
        note=NOTE_STRICT if strict else NOTE_NORMAL,
    )
